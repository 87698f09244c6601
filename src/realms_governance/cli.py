from __future__ import annotations

import json
from argparse import ArgumentParser, Namespace
from collections.abc import Callable, Sequence

from realms_governance.commands import (
    run_check_vote,
    run_list_proposals,
    run_member_realms,
    run_prepare_vote,
    run_proposal_metadata,
    run_resolve_realm,
)
from realms_governance.config import AppSettings, get_settings
from realms_governance.observability.logging import configure_logging
from realms_governance.types import CommandResult, CommandStatus, Network, VoteChoice

CommandHandler = Callable[[Namespace, AppSettings], CommandResult]

COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "resolve-realm": run_resolve_realm,
    "list-proposals": run_list_proposals,
    "prepare-vote": run_prepare_vote,
    "check-vote": run_check_vote,
    "member-realms": run_member_realms,
    "proposal-metadata": run_proposal_metadata,
}


def _add_network(parser: ArgumentParser) -> None:
    parser.add_argument(
        "--network",
        choices=[network.value for network in Network],
        default=None,
        help="defaults to DEFAULT_NETWORK",
    )


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="realms-governance", description="SPL Governance (Realms) client")
    parser.add_argument("--json", action="store_true", help="emit machine-readable JSON output")

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve-realm", help="resolve a realm from a realm or governance address")
    resolve.add_argument("--address", required=True)
    _add_network(resolve)

    proposals = subparsers.add_parser("list-proposals", help="list the proposals of a realm")
    proposals.add_argument("--realm", required=True)
    proposals.add_argument(
        "--governance",
        action="append",
        default=[],
        help="governance address to use instead of scanning; repeatable",
    )
    _add_network(proposals)

    vote = subparsers.add_parser("prepare-vote", help="build an unsigned cast-vote transaction")
    vote.add_argument("--realm", required=True)
    vote.add_argument("--proposal", required=True)
    vote.add_argument("--token-mint", required=True)
    vote.add_argument("--voter", required=True)
    vote.add_argument("--vote", required=True, choices=[choice.value for choice in VoteChoice])
    _add_network(vote)

    check = subparsers.add_parser("check-vote", help="report whether a vote record exists")
    check.add_argument("--proposal", required=True)
    check.add_argument("--token-owner-record", required=True)
    _add_network(check)

    members = subparsers.add_parser("member-realms", help="realms where a wallet holds deposited tokens")
    members.add_argument("--wallet", required=True)
    _add_network(members)

    metadata = subparsers.add_parser("proposal-metadata", help="fetch a proposal description link")
    metadata.add_argument("--url", required=True)

    return parser


def _emit_result(result: CommandResult, *, as_json: bool) -> None:
    if as_json:
        print(result.to_json())
        return

    print(f"{result.command}: {result.status.value}")
    if result.details:
        print(json.dumps(result.details, indent=2, sort_keys=True))


def entrypoint(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    settings = get_settings()
    configure_logging(settings.log_level)

    handler = COMMAND_HANDLERS[str(args.command)]
    result = handler(args, settings)
    _emit_result(result, as_json=bool(args.json))
    return 1 if result.status == CommandStatus.FAILED else 0


if __name__ == "__main__":
    raise SystemExit(entrypoint())
