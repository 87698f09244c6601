"""Ordered decode strategies for fields whose on-the-wire shape varies.

Back-references arrive as a typed ``Pubkey``, as base-58 text, or wrapped in
some other object; vote tallies arrive as native integers, big-integer-like
objects or strings. Each logical field is read by walking a fixed tuple of
pure strategies and keeping the first success. New encodings are added by
extending the tuples, not the control flow.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from solders.pubkey import Pubkey

from realms_governance.errors import AddressError
from realms_governance.observability.logging import get_logger
from realms_governance.solana.pubkeys import parse_address

PUBKEY_LENGTH = 32

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "realm": ("realm", "realmAddress", "realm_address"),
    "governance": ("governance", "governanceAddress", "governance_address"),
    "governed_account": ("governed_account", "governedAccount"),
    "governing_token_mint": ("governing_token_mint", "governingTokenMint"),
    "governing_token_owner": ("governing_token_owner", "governingTokenOwner"),
    "token_owner_record": ("token_owner_record", "tokenOwnerRecord"),
    "community_mint": ("community_mint", "communityMint"),
    "council_mint": ("council_mint", "councilMint", "config.council_mint", "config.councilMint"),
    "authority": ("authority",),
    "name": ("name",),
    "description_link": ("description_link", "descriptionLink"),
    "state": ("state",),
    "account_type": ("account_type", "accountType"),
    "draft_at": ("draft_at", "draftAt"),
    "voting_at": ("voting_at", "votingAt"),
    "voting_completed_at": ("voting_completed_at", "votingCompletedAt"),
    "max_voting_time": (
        "max_voting_time",
        "maxVotingTime",
        "config.max_voting_time",
        "config.maxVotingTime",
        "config.voting_base_time",
        "config.baseVotingTime",
    ),
    "deposit_amount": ("governing_token_deposit_amount", "governingTokenDepositAmount"),
}

YES_TALLY_FIELDS: tuple[str, ...] = (
    "yes_votes_count",
    "yesVotesCount",
    "approve_vote_weight",
    "yesVoteWeight",
)

NO_TALLY_FIELDS: tuple[str, ...] = (
    "no_votes_count",
    "noVotesCount",
    "deny_vote_weight",
    "denyVoteWeight",
)

ADDRESS_WRAPPER_KEYS: tuple[str, ...] = ("pubkey", "publicKey", "address", "key")
BIG_INTEGER_CONVERTERS: tuple[str, ...] = ("to_number", "toNumber", "to_int")

_MISSING = object()


@dataclass(slots=True, frozen=True)
class AddressRef:
    value: Pubkey


@dataclass(slots=True, frozen=True)
class TextRef:
    value: str


@dataclass(slots=True, frozen=True)
class OpaqueRef:
    value: object


RawReference = AddressRef | TextRef | OpaqueRef
ReferenceStrategy = Callable[[RawReference], Pubkey | None]
NumberStrategy = Callable[[object], int | None]


def lookup(record: Mapping[str, Any], path: str) -> Any:
    """Resolve ``path`` (dotted for nested mappings); ``_MISSING`` when absent."""
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def first_present(record: Mapping[str, Any], names: Sequence[str]) -> tuple[str | None, Any]:
    for name in names:
        value = lookup(record, name)
        if value is not _MISSING and value is not None:
            return name, value
    return None, None


def field(record: Mapping[str, Any], logical_name: str) -> Any:
    _, value = first_present(record, FIELD_ALIASES.get(logical_name, (logical_name,)))
    return value


def classify_reference(raw: object) -> RawReference:
    if isinstance(raw, Pubkey):
        return AddressRef(raw)
    if isinstance(raw, (bytes, bytearray)) and len(raw) == PUBKEY_LENGTH:
        return AddressRef(Pubkey.from_bytes(bytes(raw)))
    if isinstance(raw, str):
        return TextRef(raw)
    if isinstance(raw, Mapping):
        for key in ADDRESS_WRAPPER_KEYS:
            if key in raw:
                return classify_reference(raw[key])
    return OpaqueRef(raw)


def _typed_address(reference: RawReference) -> Pubkey | None:
    if isinstance(reference, AddressRef):
        return reference.value
    return None


def _textual_address(reference: RawReference) -> Pubkey | None:
    if not isinstance(reference, TextRef):
        return None
    parsed = parse_address(reference.value)
    return None if isinstance(parsed, AddressError) else parsed


def _stringified_address(reference: RawReference) -> Pubkey | None:
    if not isinstance(reference, OpaqueRef) or reference.value is None:
        return None
    try:
        text = str(reference.value)
    except Exception:
        return None
    parsed = parse_address(text)
    return None if isinstance(parsed, AddressError) else parsed


REFERENCE_STRATEGIES: tuple[ReferenceStrategy, ...] = (
    _typed_address,
    _textual_address,
    _stringified_address,
)


def normalize_reference(raw: object) -> Pubkey | None:
    reference = classify_reference(raw)
    for strategy in REFERENCE_STRATEGIES:
        address = strategy(reference)
        if address is not None:
            return address
    return None


def _native_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _big_integer(value: object) -> int | None:
    if isinstance(value, (str, bytes, float, bool)):
        return None
    for converter_name in BIG_INTEGER_CONVERTERS:
        converter = getattr(value, converter_name, None)
        if callable(converter):
            try:
                return _native_number(converter())
            except Exception:
                return None
    if hasattr(value, "__index__"):
        try:
            return value.__index__()  # type: ignore[attr-defined, no-any-return]
        except Exception:
            return None
    return None


def _parsed_text(value: object) -> int | None:
    try:
        text = str(value).strip().replace("_", "")
    except Exception:
        return None
    if not text:
        return None
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    except ValueError:
        return None


NUMBER_STRATEGIES: tuple[NumberStrategy, ...] = (
    _native_number,
    _big_integer,
    _parsed_text,
)


def coerce_number(value: object) -> int | None:
    for strategy in NUMBER_STRATEGIES:
        number = strategy(value)
        if number is not None:
            return number
    return None


def read_tally(record: Mapping[str, Any], candidates: Sequence[str], **log_context: Any) -> int:
    """Non-negative tally from the first present candidate field, 0 when unreadable."""
    name, value = first_present(record, candidates)
    if name is None:
        return 0

    count = coerce_number(value)
    if count is None or count < 0:
        get_logger("account_decoder").warning(
            "tally_decode_failed",
            field=name,
            raw_type=type(value).__name__,
            **log_context,
        )
        return 0
    return count


def read_optional_number(record: Mapping[str, Any], logical_name: str) -> int | None:
    value = field(record, logical_name)
    if value is None:
        return None
    return coerce_number(value)
