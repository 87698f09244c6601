from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from solders.pubkey import Pubkey

from realms_governance.domain.accounts import (
    GovernanceAccount,
    ProposalAccount,
    Realm,
    TokenOwnerRecord,
)
from realms_governance.domain.status import coerce_proposal_state
from realms_governance.errors import DecodeError
from realms_governance.solana.decoding import (
    NO_TALLY_FIELDS,
    YES_TALLY_FIELDS,
    coerce_number,
    field,
    normalize_reference,
    read_optional_number,
    read_tally,
)
from realms_governance.solana.layouts import (
    GovernanceAccountType,
    account_type_of,
    parse_governance,
    parse_proposal,
    parse_realm,
    parse_token_owner_record,
)
from realms_governance.solana.rpc_client import RawAccount

LayoutParser = Callable[[bytes], dict[str, Any]]


def _record(raw: RawAccount, parse: LayoutParser) -> Mapping[str, Any]:
    if raw.fields is not None:
        return raw.fields
    return parse(raw.data)


def _required_reference(record: Mapping[str, Any], logical_name: str, raw: RawAccount) -> Pubkey:
    address = normalize_reference(field(record, logical_name))
    if address is None:
        raise DecodeError(f"{logical_name} back-reference is unreadable", address=str(raw.address))
    return address


def _optional_reference(record: Mapping[str, Any], logical_name: str) -> Pubkey | None:
    value = field(record, logical_name)
    if value is None:
        return None
    return normalize_reference(value)


def _text(record: Mapping[str, Any], logical_name: str) -> str | None:
    value = field(record, logical_name)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:
        return None


def _account_type(record: Mapping[str, Any]) -> int | None:
    value = field(record, "account_type")
    return None if value is None else coerce_number(value)


_ACCOUNT_TYPE_BY_NAME: dict[str, GovernanceAccountType] = {
    account_type.name.replace("_", "").lower(): account_type for account_type in GovernanceAccountType
}


def account_type_of_raw(raw: RawAccount) -> GovernanceAccountType | None:
    if raw.fields is None:
        return account_type_of(raw.data)

    value = field(raw.fields, "account_type")
    if isinstance(value, str) and not value.strip().isdigit():
        return _ACCOUNT_TYPE_BY_NAME.get(value.strip().replace("_", "").lower())

    number = None if value is None else coerce_number(value)
    if number is None:
        return None
    try:
        return GovernanceAccountType(number)
    except ValueError:
        return None


def decode_realm(raw: RawAccount) -> Realm | DecodeError:
    try:
        record = _record(raw, parse_realm)
        return Realm(
            address=raw.address,
            name=_text(record, "name") or "",
            community_mint=_required_reference(record, "community_mint", raw),
            council_mint=_optional_reference(record, "council_mint"),
            authority=_optional_reference(record, "authority"),
        )
    except DecodeError as exc:
        return exc


def decode_governance(raw: RawAccount) -> GovernanceAccount | DecodeError:
    try:
        record = _record(raw, parse_governance)
        return GovernanceAccount(
            address=raw.address,
            owner=raw.owner,
            realm=_required_reference(record, "realm", raw),
            governed_account=_optional_reference(record, "governed_account"),
            max_voting_time=read_optional_number(record, "max_voting_time"),
            account_type=_account_type(record),
        )
    except DecodeError as exc:
        return exc


def decode_proposal(raw: RawAccount) -> ProposalAccount | DecodeError:
    """Decode a proposal; tallies degrade to 0, an unreadable governance reference fails."""
    try:
        record = _record(raw, parse_proposal)
        governance = _required_reference(record, "governance", raw)
    except DecodeError as exc:
        return exc

    address = str(raw.address)
    return ProposalAccount(
        address=raw.address,
        governance=governance,
        state=coerce_proposal_state(field(record, "state")),
        yes_votes=read_tally(record, YES_TALLY_FIELDS, proposal=address, tally="yes"),
        no_votes=read_tally(record, NO_TALLY_FIELDS, proposal=address, tally="no"),
        name=_text(record, "name") or "",
        description_link=_text(record, "description_link") or None,
        governing_token_mint=_optional_reference(record, "governing_token_mint"),
        token_owner_record=_optional_reference(record, "token_owner_record"),
        draft_at=read_optional_number(record, "draft_at"),
        voting_at=read_optional_number(record, "voting_at"),
        voting_completed_at=read_optional_number(record, "voting_completed_at"),
        max_voting_time=read_optional_number(record, "max_voting_time"),
        account_type=_account_type(record),
    )


def decode_token_owner_record(raw: RawAccount) -> TokenOwnerRecord | DecodeError:
    try:
        record = _record(raw, parse_token_owner_record)
        deposit = read_optional_number(record, "deposit_amount")
        return TokenOwnerRecord(
            address=raw.address,
            realm=_required_reference(record, "realm", raw),
            governing_token_mint=_required_reference(record, "governing_token_mint", raw),
            governing_token_owner=_required_reference(record, "governing_token_owner", raw),
            deposit_amount=deposit if deposit is not None and deposit > 0 else 0,
        )
    except DecodeError as exc:
        return exc
