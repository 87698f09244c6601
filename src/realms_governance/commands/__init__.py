"""Command handlers for the realms-governance CLI."""

from realms_governance.commands.check_vote import run_check_vote
from realms_governance.commands.list_proposals import run_list_proposals
from realms_governance.commands.member_realms import run_member_realms
from realms_governance.commands.prepare_vote import run_prepare_vote
from realms_governance.commands.proposal_metadata import run_proposal_metadata
from realms_governance.commands.resolve_realm import run_resolve_realm

__all__ = [
    "run_check_vote",
    "run_list_proposals",
    "run_member_realms",
    "run_prepare_vote",
    "run_proposal_metadata",
    "run_resolve_realm",
]
