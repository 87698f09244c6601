from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from dataclasses import dataclass

from realms_governance.config import get_settings
from realms_governance.errors import InputError
from realms_governance.observability.logging import configure_logging, get_logger
from realms_governance.orchestration.client import GovernanceClient, build_client
from realms_governance.types import Network

DEFAULT_POLL_INTERVAL_SECONDS = 60.0


@dataclass(slots=True)
class ProposalWatcher:
    """Keeps the proposal cache of the watched realms warm."""

    client: GovernanceClient
    realms: tuple[str, ...]
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS

    async def run_once(self) -> dict[str, int]:
        logger = get_logger("proposal_watcher")
        counts: dict[str, int] = {}
        for realm in self.realms:
            views = await self.client.get_proposals(realm)
            if isinstance(views, InputError):
                logger.warning("watched_realm_invalid", realm=realm, error=views.message)
                continue
            counts[realm] = len(views)
            logger.info(
                "watch_cycle",
                realm=realm,
                network=self.client.network.value,
                proposal_count=len(views),
            )
        return counts

    async def run_forever(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.poll_interval_seconds)


def _network_from_env(default: Network) -> Network:
    raw_network = os.environ.get("WATCH_NETWORK", default.value).strip().lower()
    try:
        return Network(raw_network)
    except ValueError:
        return default


def _poll_interval_from_env(default: float = DEFAULT_POLL_INTERVAL_SECONDS) -> float:
    raw_interval = os.environ.get("WATCH_POLL_INTERVAL_SECONDS", str(default)).strip()
    try:
        interval = float(raw_interval)
    except ValueError:
        return default

    if interval <= 0:
        return default
    return interval


def _watched_realms(raw_realms: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(realm.strip() for realm in raw_realms if realm.strip()))


def _default_watcher() -> ProposalWatcher:
    settings = get_settings()
    network = _network_from_env(settings.default_network)
    default_interval = settings.watch_interval_seconds
    if default_interval <= 0:
        default_interval = DEFAULT_POLL_INTERVAL_SECONDS
    return ProposalWatcher(
        client=build_client(settings, network),
        realms=_watched_realms(settings.watched_realms),
        poll_interval_seconds=_poll_interval_from_env(default_interval),
    )


async def run_worker() -> None:
    configure_logging(get_settings().log_level)
    watcher = _default_watcher()
    try:
        await watcher.run_forever()
    finally:
        await watcher.client.close()


if __name__ == "__main__":
    asyncio.run(run_worker())
