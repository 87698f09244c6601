from __future__ import annotations

import asyncio

from builders import PROGRAM_ID, FakeFetcher, governance_data, key, proposal_v2_data
from realms_governance.config import get_settings
from realms_governance.orchestration.client import GovernanceClient
from realms_governance.runtime import worker
from realms_governance.runtime.worker import (
    ProposalWatcher,
    _default_watcher,
    _network_from_env,
    _poll_interval_from_env,
    _watched_realms,
)
from realms_governance.types import Network


def test_network_from_env_uses_default_for_invalid_value(monkeypatch: object) -> None:
    monkeypatch.setenv("WATCH_NETWORK", "testnet")  # type: ignore[attr-defined]

    assert _network_from_env(Network.MAINNET) == Network.MAINNET


def test_network_from_env_normalizes_case_and_whitespace(monkeypatch: object) -> None:
    monkeypatch.setenv("WATCH_NETWORK", "  DEVNET  ")  # type: ignore[attr-defined]

    assert _network_from_env(Network.MAINNET) == Network.DEVNET


def test_poll_interval_from_env_rejects_invalid_or_non_positive_values(monkeypatch: object) -> None:
    monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "invalid")  # type: ignore[attr-defined]
    assert _poll_interval_from_env(30.0) == 30.0

    monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "0")  # type: ignore[attr-defined]
    assert _poll_interval_from_env(30.0) == 30.0

    monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "-1")  # type: ignore[attr-defined]
    assert _poll_interval_from_env(30.0) == 30.0


def test_poll_interval_from_env_accepts_valid_float(monkeypatch: object) -> None:
    monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "1.5")  # type: ignore[attr-defined]

    assert _poll_interval_from_env() == 1.5


def test_watched_realms_are_trimmed_and_deduplicated() -> None:
    assert _watched_realms([" a ", "", "b", "a"]) == ("a", "b")


def test_default_watcher_uses_settings_and_env(monkeypatch: object) -> None:
    monkeypatch.setenv("WATCHED_REALMS", f'["{key(1)}"]')  # type: ignore[attr-defined]
    monkeypatch.setenv("WATCH_NETWORK", "devnet")  # type: ignore[attr-defined]
    monkeypatch.setenv("WATCH_POLL_INTERVAL_SECONDS", "3.5")  # type: ignore[attr-defined]
    get_settings.cache_clear()
    built: list[Network] = []

    def fake_build_client(settings: object, network: Network) -> GovernanceClient:
        built.append(network)
        return GovernanceClient(FakeFetcher(), program_id=PROGRAM_ID, network=network)

    monkeypatch.setattr(worker, "build_client", fake_build_client)  # type: ignore[attr-defined]
    try:
        watcher = _default_watcher()
    finally:
        get_settings.cache_clear()

    assert built == [Network.DEVNET]
    assert watcher.realms == (str(key(1)),)
    assert watcher.poll_interval_seconds == 3.5


def test_run_once_warms_the_cache_for_every_watched_realm() -> None:
    fetcher = FakeFetcher()
    fetcher.add(key(10), governance_data(key(1)))
    fetcher.add(key(40), proposal_v2_data(key(10)))
    client = GovernanceClient(fetcher, program_id=PROGRAM_ID)
    watcher = ProposalWatcher(client=client, realms=(str(key(1)), "bad-realm"))

    counts = asyncio.run(watcher.run_once())

    assert counts == {str(key(1)): 1}
    assert client.cache.fresh(str(key(1))) is not None
