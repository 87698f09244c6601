from __future__ import annotations

from argparse import Namespace

from realms_governance.commands.common import error_result, network_from_args, with_client
from realms_governance.config import AppSettings
from realms_governance.errors import GovernanceError, InputError
from realms_governance.orchestration.vote_builder import coerce_vote_choice
from realms_governance.solana.pubkeys import require_address
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "prepare-vote"


def run_prepare_vote(args: Namespace, settings: AppSettings) -> CommandResult:
    try:
        realm = require_address(getattr(args, "realm", ""), field_name="realm")
        proposal = require_address(getattr(args, "proposal", ""), field_name="proposal")
        token_mint = require_address(getattr(args, "token_mint", ""), field_name="token_mint")
        voter = require_address(getattr(args, "voter", ""), field_name="voter")
        choice = coerce_vote_choice(getattr(args, "vote", ""))
    except InputError as exc:
        return error_result(COMMAND, exc)

    network = network_from_args(args, settings)
    built = with_client(
        settings,
        network,
        lambda client: client.build_vote_transaction(
            str(realm),
            str(proposal),
            str(token_mint),
            str(voter),
            choice,
            network,
        ),
    )
    if isinstance(built, GovernanceError):
        return error_result(COMMAND, built)

    # The transaction is unsigned until the wallet signs and submits it.
    return CommandResult(command=COMMAND, status=CommandStatus.PENDING, details=built.as_dict())
