from __future__ import annotations

from argparse import Namespace

from realms_governance.commands.common import error_result, network_from_args, with_client
from realms_governance.config import AppSettings
from realms_governance.errors import AddressError, GovernanceError
from realms_governance.solana.pubkeys import parse_address
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "member-realms"


def run_member_realms(args: Namespace, settings: AppSettings) -> CommandResult:
    wallet = parse_address(getattr(args, "wallet", ""), field_name="wallet")
    if isinstance(wallet, AddressError):
        return error_result(COMMAND, wallet)

    network = network_from_args(args, settings)
    records = with_client(settings, network, lambda client: client.find_member_realms(str(wallet)))
    if isinstance(records, GovernanceError):
        return error_result(COMMAND, records)

    return CommandResult(
        command=COMMAND,
        status=CommandStatus.OK,
        details={
            "wallet": str(wallet),
            "network": network.value,
            "realms": sorted({str(record.realm) for record in records}),
            "token_owner_records": [record.as_dict() for record in records],
        },
    )
