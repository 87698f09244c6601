from __future__ import annotations

from argparse import Namespace

from realms_governance.commands.common import error_result, network_from_args, with_client
from realms_governance.config import AppSettings
from realms_governance.errors import GovernanceError, InputError
from realms_governance.solana.pubkeys import require_address
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "check-vote"


def run_check_vote(args: Namespace, settings: AppSettings) -> CommandResult:
    try:
        proposal = require_address(getattr(args, "proposal", ""), field_name="proposal")
        record = require_address(
            getattr(args, "token_owner_record", ""),
            field_name="token_owner_record",
        )
    except InputError as exc:
        return error_result(COMMAND, exc)

    network = network_from_args(args, settings)
    voted = with_client(
        settings,
        network,
        lambda client: client.has_user_voted(str(proposal), str(record)),
    )
    if isinstance(voted, GovernanceError):
        return error_result(COMMAND, voted)

    return CommandResult(
        command=COMMAND,
        status=CommandStatus.OK,
        details={
            "proposal": str(proposal),
            "token_owner_record": str(record),
            "network": network.value,
            "voted": voted,
        },
    )
