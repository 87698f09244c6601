from __future__ import annotations

import asyncio
from argparse import Namespace

from realms_governance.config import AppSettings
from realms_governance.metadata.client import MetadataFetcher
from realms_governance.types import CommandResult, CommandStatus

COMMAND = "proposal-metadata"


def build_metadata_fetcher(settings: AppSettings) -> MetadataFetcher:
    return MetadataFetcher(
        settings.metadata_allowed_domains,
        timeout_seconds=settings.metadata_timeout_seconds,
        max_description_chars=settings.metadata_max_description_chars,
    )


def run_proposal_metadata(args: Namespace, settings: AppSettings) -> CommandResult:
    url = str(getattr(args, "url", "")).strip()
    if not url:
        return CommandResult(
            command=COMMAND,
            status=CommandStatus.FAILED,
            details={"error": "url is required", "error_kind": "input"},
        )

    fetcher = build_metadata_fetcher(settings)
    if not fetcher.is_allowed(url):
        return CommandResult(
            command=COMMAND,
            status=CommandStatus.FAILED,
            details={"error": "url is not from an allowed gateway", "error_kind": "input", "url": url},
        )

    metadata = asyncio.run(fetcher.fetch(url))
    if metadata is None:
        return CommandResult(
            command=COMMAND,
            status=CommandStatus.NOT_FOUND,
            details={"error": "metadata could not be fetched", "url": url},
        )

    return CommandResult(
        command=COMMAND,
        status=CommandStatus.OK,
        details={"url": url, **metadata.as_dict()},
    )
