from __future__ import annotations

import asyncio
from collections.abc import Iterable
from urllib.parse import urlparse

import aiohttp

from realms_governance.metadata.extract import (
    TEXT_DESCRIPTION_CHARS,
    ProposalMetadata,
    extract_description,
    is_allowed_metadata_url,
)
from realms_governance.observability.logging import get_logger

REQUEST_HEADERS = {
    "Accept": "application/json, text/plain, text/html, */*",
    "User-Agent": "realms-governance/0.1",
}
GIST_HOST = "gist.github.com"
GIST_RAW_HOST = "gist.githubusercontent.com"
GIST_RAW_TIMEOUT_SECONDS = 5.0


class MetadataFetcher:
    """Fetches proposal description links from an allow-listed set of gateways."""

    def __init__(
        self,
        allowed_domains: Iterable[str],
        *,
        timeout_seconds: float = 8.0,
        max_description_chars: int = TEXT_DESCRIPTION_CHARS,
    ) -> None:
        self._allowed_domains = tuple(domain.lower() for domain in allowed_domains)
        self._timeout_seconds = timeout_seconds
        self._max_description_chars = max_description_chars
        self._logger = get_logger("metadata_fetcher")

    def is_allowed(self, url: str) -> bool:
        return is_allowed_metadata_url(url, self._allowed_domains)

    async def _get_text(
        self,
        session: aiohttp.ClientSession,
        url: str,
        timeout_seconds: float,
    ) -> tuple[str, str] | None:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout_seconds)) as response:
            if response.status != 200:
                self._logger.warning("metadata_fetch_rejected", url=url, http_status=response.status)
                return None
            return await response.text(), response.headers.get("Content-Type", "")

    async def fetch(self, url: str) -> ProposalMetadata | None:
        """Return the extracted metadata, ``None`` when the link is refused or unreachable."""
        if not self.is_allowed(url):
            self._logger.warning("metadata_url_not_allowed", url=url)
            return None

        try:
            async with aiohttp.ClientSession(headers=REQUEST_HEADERS) as session:
                fetched = await self._get_text(session, url, self._timeout_seconds)
                if fetched is None:
                    return None
                raw_text, content_type = fetched
                metadata = extract_description(
                    raw_text,
                    content_type=content_type,
                    max_chars=self._max_description_chars,
                )
                if not metadata.description and urlparse(url).hostname == GIST_HOST:
                    metadata = await self._fetch_raw_gist(session, url) or metadata
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as exc:
            self._logger.warning("metadata_fetch_failed", url=url, error=str(exc))
            return None

        self._logger.info(
            "metadata_fetched",
            url=url,
            has_title=bool(metadata.title),
            description_chars=len(metadata.description),
        )
        return metadata

    async def _fetch_raw_gist(
        self,
        session: aiohttp.ClientSession,
        url: str,
    ) -> ProposalMetadata | None:
        raw_url = url.replace(GIST_HOST, GIST_RAW_HOST, 1).rstrip("/") + "/raw"
        fetched = await self._get_text(session, raw_url, GIST_RAW_TIMEOUT_SECONDS)
        if fetched is None:
            return None
        raw_text, _ = fetched
        text = raw_text.strip()[: self._max_description_chars]
        return ProposalMetadata(description=text) if text else None
