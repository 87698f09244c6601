"""Domain models for realm, governance and proposal views."""

from realms_governance.domain.accounts import (
    GovernanceAccount,
    ProposalAccount,
    Realm,
    TokenOwnerRecord,
)
from realms_governance.domain.proposal_view import ProposalView
from realms_governance.domain.status import (
    ProposalState,
    ProposalStatus,
    coerce_proposal_state,
    collapse_status,
)

__all__ = [
    "GovernanceAccount",
    "ProposalAccount",
    "ProposalState",
    "ProposalStatus",
    "ProposalView",
    "Realm",
    "TokenOwnerRecord",
    "coerce_proposal_state",
    "collapse_status",
]
