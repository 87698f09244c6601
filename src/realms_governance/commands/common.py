from __future__ import annotations

import asyncio
from argparse import Namespace
from collections.abc import Awaitable, Callable
from typing import TypeVar

from realms_governance.config import AppSettings
from realms_governance.errors import ErrorKind, GovernanceError
from realms_governance.orchestration.client import GovernanceClient, build_client
from realms_governance.types import CommandResult, CommandStatus, Network

T = TypeVar("T")


def network_from_args(args: Namespace, settings: AppSettings) -> Network:
    raw_network = getattr(args, "network", None)
    if not raw_network:
        return settings.default_network
    return Network(str(raw_network).strip().lower())


def error_result(command: str, error: GovernanceError) -> CommandResult:
    status = CommandStatus.NOT_FOUND if error.kind == ErrorKind.NOT_FOUND else CommandStatus.FAILED
    return CommandResult(command=command, status=status, details=error.as_dict())


async def _run_with_client(
    settings: AppSettings,
    network: Network,
    operation: Callable[[GovernanceClient], Awaitable[T]],
) -> T | GovernanceError:
    try:
        client = build_client(settings, network)
    except GovernanceError as exc:
        return exc
    try:
        return await operation(client)
    finally:
        await client.close()


def with_client(
    settings: AppSettings,
    network: Network,
    operation: Callable[[GovernanceClient], Awaitable[T]],
) -> T | GovernanceError:
    return asyncio.run(_run_with_client(settings, network, operation))
