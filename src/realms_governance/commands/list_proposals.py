from __future__ import annotations

from argparse import Namespace

from realms_governance.commands.common import error_result, network_from_args, with_client
from realms_governance.config import AppSettings
from realms_governance.errors import AddressError, GovernanceError
from realms_governance.solana.pubkeys import parse_address
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "list-proposals"


def run_list_proposals(args: Namespace, settings: AppSettings) -> CommandResult:
    realm = parse_address(getattr(args, "realm", ""), field_name="realm")
    if isinstance(realm, AddressError):
        return error_result(COMMAND, realm)

    governances = [str(value) for value in getattr(args, "governance", None) or []]
    network = network_from_args(args, settings)
    views = with_client(
        settings,
        network,
        lambda client: client.get_proposals(str(realm), governances or None),
    )
    if isinstance(views, GovernanceError):
        return error_result(COMMAND, views)

    return CommandResult(
        command=COMMAND,
        status=CommandStatus.OK,
        details={
            "realm": str(realm),
            "network": network.value,
            "proposal_count": len(views),
            "proposals": [view.as_dict() for view in views],
        },
    )
