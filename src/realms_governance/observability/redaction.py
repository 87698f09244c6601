from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

REDACTED = "***REDACTED***"

# Substring match; "token" is deliberately absent so mint and owner-record fields stay readable.
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "secret",
        "private_key",
        "keypair",
        "mnemonic",
        "api_key",
        "password",
        "seed_phrase",
    }
)

_URL_CREDENTIAL = re.compile(r"([?&](?:api-key|api_key|apikey|token)=)[^&\s]+", re.IGNORECASE)


def _is_sensitive_key(key: str) -> bool:
    normalized = key.lower().replace("-", "_")
    return any(sensitive in normalized for sensitive in SENSITIVE_KEYS)


def redact_url(value: str) -> str:
    """Mask credentials carried in RPC URL query strings."""
    return _URL_CREDENTIAL.sub(lambda match: f"{match.group(1)}{REDACTED}", value)


def redact_sensitive(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {
            key: REDACTED if _is_sensitive_key(str(key)) else redact_sensitive(value)
            for key, value in data.items()
        }
    if isinstance(data, list | tuple):
        return [redact_sensitive(item) for item in data]
    if isinstance(data, str) and "://" in data:
        return redact_url(data)
    return data
