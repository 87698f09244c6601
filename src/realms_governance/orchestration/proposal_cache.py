from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from realms_governance.domain.proposal_view import ProposalView
from realms_governance.observability.logging import get_logger

DEFAULT_TTL_SECONDS = 300.0

ProposalViews = tuple[ProposalView, ...]
FetchProposals = Callable[[], Awaitable[Iterable[ProposalView]]]


@dataclass(slots=True, frozen=True)
class CacheEntry:
    views: ProposalViews
    fetched_at: float


class ProposalCache:
    """TTL cache with per-realm request coalescing.

    Entries and in-flight fetches live on the event loop that calls
    ``get_or_fetch``. Nothing awaits between the freshness check and the
    in-flight registration, so concurrent callers for one realm always share a
    single fetch.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Future[ProposalViews]] = {}
        self._logger = get_logger("proposal_cache")

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def fresh(self, realm: str) -> ProposalViews | None:
        entry = self._entries.get(realm)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl_seconds:
            return None
        return entry.views

    def is_in_flight(self, realm: str) -> bool:
        return realm in self._in_flight

    def invalidate(self, realm: str) -> None:
        self._entries.pop(realm, None)

    async def get_or_fetch(self, realm: str, fetch: FetchProposals) -> ProposalViews:
        cached = self.fresh(realm)
        if cached is not None:
            self._logger.debug("proposal_cache_hit", realm=realm, proposal_count=len(cached))
            return cached

        pending = self._in_flight.get(realm)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch_and_store(realm, fetch))
            self._in_flight[realm] = pending
        else:
            self._logger.debug("proposal_fetch_joined", realm=realm)

        # A caller that gives up must not cancel the fetch other waiters share.
        return await asyncio.shield(pending)

    async def _fetch_and_store(self, realm: str, fetch: FetchProposals) -> ProposalViews:
        started = self._clock()
        try:
            views = tuple(await fetch())
        except Exception as exc:
            self._logger.warning(
                "proposal_fetch_failed",
                realm=realm,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ()
        else:
            self._entries[realm] = CacheEntry(views=views, fetched_at=self._clock())
            self._logger.info(
                "proposal_cache_stored",
                realm=realm,
                proposal_count=len(views),
                elapsed_seconds=round(self._clock() - started, 3),
            )
            return views
        finally:
            self._in_flight.pop(realm, None)
