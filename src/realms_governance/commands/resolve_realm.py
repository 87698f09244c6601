from __future__ import annotations

from argparse import Namespace

from realms_governance.commands.common import error_result, network_from_args, with_client
from realms_governance.config import AppSettings
from realms_governance.errors import AddressError, GovernanceError
from realms_governance.solana.pubkeys import parse_address
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "resolve-realm"


def run_resolve_realm(args: Namespace, settings: AppSettings) -> CommandResult:
    address = parse_address(getattr(args, "address", ""))
    if isinstance(address, AddressError):
        return error_result(COMMAND, address)

    network = network_from_args(args, settings)
    realm = with_client(settings, network, lambda client: client.resolve_realm(str(address)))
    if isinstance(realm, GovernanceError):
        return error_result(COMMAND, realm)

    return CommandResult(
        command=COMMAND,
        status=CommandStatus.OK,
        details={"input": str(address), "network": network.value, "realm": realm.as_dict()},
    )
