"""Borsh layouts of the SPL Governance accounts this package reads.

Parsers turn account bytes into plain field mappings using the protocol's
snake_case field names; typing and normalization happen in the decoder.
"""
from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Any, TypeVar

from solders.pubkey import Pubkey

from realms_governance.errors import DecodeError

T = TypeVar("T")

PUBKEY_LENGTH = 32


class GovernanceAccountType(IntEnum):
    UNINITIALIZED = 0
    REALM_V1 = 1
    TOKEN_OWNER_RECORD_V1 = 2
    GOVERNANCE_V1 = 3
    PROGRAM_GOVERNANCE_V1 = 4
    PROPOSAL_V1 = 5
    SIGNATORY_RECORD_V1 = 6
    VOTE_RECORD_V1 = 7
    PROPOSAL_INSTRUCTION_V1 = 8
    MINT_GOVERNANCE_V1 = 9
    TOKEN_GOVERNANCE_V1 = 10
    REALM_CONFIG = 11
    VOTE_RECORD_V2 = 12
    PROPOSAL_TRANSACTION_V2 = 13
    PROPOSAL_V2 = 14
    PROGRAM_METADATA = 15
    REALM_V2 = 16
    TOKEN_OWNER_RECORD_V2 = 17
    GOVERNANCE_V2 = 18
    PROGRAM_GOVERNANCE_V2 = 19
    MINT_GOVERNANCE_V2 = 20
    TOKEN_GOVERNANCE_V2 = 21
    SIGNATORY_RECORD_V2 = 22
    PROPOSAL_DEPOSIT = 23
    REQUIRED_SIGNATORY = 24


REALM_ACCOUNT_TYPES: frozenset[GovernanceAccountType] = frozenset(
    {GovernanceAccountType.REALM_V1, GovernanceAccountType.REALM_V2}
)

GOVERNANCE_ACCOUNT_TYPES: frozenset[GovernanceAccountType] = frozenset(
    {
        GovernanceAccountType.GOVERNANCE_V1,
        GovernanceAccountType.PROGRAM_GOVERNANCE_V1,
        GovernanceAccountType.MINT_GOVERNANCE_V1,
        GovernanceAccountType.TOKEN_GOVERNANCE_V1,
        GovernanceAccountType.GOVERNANCE_V2,
        GovernanceAccountType.PROGRAM_GOVERNANCE_V2,
        GovernanceAccountType.MINT_GOVERNANCE_V2,
        GovernanceAccountType.TOKEN_GOVERNANCE_V2,
    }
)

PROPOSAL_ACCOUNT_TYPES: frozenset[GovernanceAccountType] = frozenset(
    {GovernanceAccountType.PROPOSAL_V1, GovernanceAccountType.PROPOSAL_V2}
)

TOKEN_OWNER_RECORD_ACCOUNT_TYPES: frozenset[GovernanceAccountType] = frozenset(
    {GovernanceAccountType.TOKEN_OWNER_RECORD_V1, GovernanceAccountType.TOKEN_OWNER_RECORD_V2}
)

_VOTE_TYPE_MULTI_CHOICE = 1
_THRESHOLD_VARIANTS_WITH_VALUE = (0, 1)


class BorshReader:
    def __init__(self, data: bytes, *, account: str = "account") -> None:
        self._data = bytes(data)
        self._offset = 0
        self._account = account

    @property
    def offset(self) -> int:
        return self._offset

    def _take(self, size: int) -> bytes:
        end = self._offset + size
        if end > len(self._data):
            raise DecodeError(
                f"{self._account} data truncated at offset {self._offset} "
                f"(needed {size} bytes, {len(self._data) - self._offset} left)"
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def skip(self, size: int) -> None:
        self._take(size)

    def _uint(self, size: int, *, signed: bool = False) -> int:
        return int.from_bytes(self._take(size), byteorder="little", signed=signed)

    def u8(self) -> int:
        return self._uint(1)

    def u16(self) -> int:
        return self._uint(2)

    def u32(self) -> int:
        return self._uint(4)

    def u64(self) -> int:
        return self._uint(8)

    def i64(self) -> int:
        return self._uint(8, signed=True)

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self._take(PUBKEY_LENGTH))

    def string(self) -> str:
        length = self.u32()
        raw = self._take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"{self._account} string field is not valid utf-8") from exc

    def option(self, read: Callable[[], T]) -> T | None:
        tag = self.u8()
        if tag == 0:
            return None
        if tag != 1:
            raise DecodeError(f"{self._account} option tag {tag} at offset {self._offset - 1}")
        return read()


def account_type_of(data: bytes) -> GovernanceAccountType | None:
    if not data:
        return None
    try:
        return GovernanceAccountType(data[0])
    except ValueError:
        return None


def _expect_type(
    reader: BorshReader,
    expected: frozenset[GovernanceAccountType],
    account: str,
) -> GovernanceAccountType:
    raw_type = reader.u8()
    try:
        account_type = GovernanceAccountType(raw_type)
    except ValueError as exc:
        raise DecodeError(f"unknown governance account type {raw_type} for {account}") from exc
    if account_type not in expected:
        raise DecodeError(f"account type {account_type.name} is not a {account}")
    return account_type


def _vote_threshold(reader: BorshReader) -> dict[str, int]:
    variant = reader.u8()
    threshold = {"type": variant}
    if variant in _THRESHOLD_VARIANTS_WITH_VALUE:
        threshold["value"] = reader.u8()
    return threshold


def parse_realm(data: bytes) -> dict[str, Any]:
    reader = BorshReader(data, account="realm")
    account_type = _expect_type(reader, REALM_ACCOUNT_TYPES, "realm")
    community_mint = reader.pubkey()
    reader.skip(2 + 6)
    min_community_weight = reader.u64()
    reader.skip(1 + 8)
    council_mint = reader.option(reader.pubkey)
    reader.skip(6 + 2)
    authority = reader.option(reader.pubkey)
    name = reader.string()
    return {
        "account_type": int(account_type),
        "community_mint": community_mint,
        "council_mint": council_mint,
        "min_community_weight_to_create_governance": min_community_weight,
        "authority": authority,
        "name": name,
    }


def parse_governance(data: bytes) -> dict[str, Any]:
    reader = BorshReader(data, account="governance")
    account_type = _expect_type(reader, GOVERNANCE_ACCOUNT_TYPES, "governance")
    fields: dict[str, Any] = {
        "account_type": int(account_type),
        "realm": reader.pubkey(),
        "governed_account": reader.pubkey(),
        "proposals_count": reader.u32(),
        "max_voting_time": None,
    }
    # The config tail is context only; short accounts keep their identity fields.
    try:
        fields["vote_threshold"] = _vote_threshold(reader)
        fields["min_community_weight_to_create_proposal"] = reader.u64()
        fields["min_transaction_hold_up_time"] = reader.u32()
        fields["max_voting_time"] = reader.u32()
    except DecodeError:
        pass
    return fields


def _proposal_option(reader: BorshReader) -> dict[str, Any]:
    option = {
        "label": reader.string(),
        "vote_weight": reader.u64(),
        "vote_result": reader.u8(),
    }
    reader.skip(2 * 3)
    return option


def _proposal_v1(reader: BorshReader, fields: dict[str, Any]) -> None:
    fields["yes_votes_count"] = reader.u64()
    fields["no_votes_count"] = reader.u64()
    reader.skip(2 * 3)
    fields["draft_at"] = reader.i64()
    fields["signing_off_at"] = reader.option(reader.i64)
    fields["voting_at"] = reader.option(reader.i64)
    fields["voting_at_slot"] = reader.option(reader.u64)
    fields["voting_completed_at"] = reader.option(reader.i64)
    fields["executing_at"] = reader.option(reader.i64)
    fields["closed_at"] = reader.option(reader.i64)
    fields["execution_flags"] = reader.u8()
    fields["max_vote_weight"] = reader.option(reader.u64)
    fields["vote_threshold"] = reader.option(lambda: _vote_threshold(reader))
    fields["max_voting_time"] = None
    fields["name"] = reader.string()
    fields["description_link"] = reader.string()


def _proposal_v2(reader: BorshReader, fields: dict[str, Any]) -> None:
    vote_type = reader.u8()
    if vote_type == _VOTE_TYPE_MULTI_CHOICE:
        reader.skip(4)
    fields["vote_type"] = vote_type

    option_count = reader.u32()
    options = [_proposal_option(reader) for _ in range(option_count)]
    fields["options"] = options
    fields["approve_vote_weight"] = options[0]["vote_weight"] if options else None
    fields["deny_vote_weight"] = reader.option(reader.u64)
    reader.skip(1)
    fields["abstain_vote_weight"] = reader.option(reader.u64)
    fields["start_voting_at"] = reader.option(reader.i64)
    fields["draft_at"] = reader.i64()
    fields["signing_off_at"] = reader.option(reader.i64)
    fields["voting_at"] = reader.option(reader.i64)
    fields["voting_at_slot"] = reader.option(reader.u64)
    fields["voting_completed_at"] = reader.option(reader.i64)
    fields["executing_at"] = reader.option(reader.i64)
    fields["closed_at"] = reader.option(reader.i64)
    fields["execution_flags"] = reader.u8()
    fields["max_vote_weight"] = reader.option(reader.u64)
    fields["max_voting_time"] = reader.option(reader.u32)
    fields["vote_threshold"] = reader.option(lambda: _vote_threshold(reader))
    reader.skip(64)
    fields["name"] = reader.string()
    fields["description_link"] = reader.string()


def parse_proposal(data: bytes) -> dict[str, Any]:
    reader = BorshReader(data, account="proposal")
    account_type = _expect_type(reader, PROPOSAL_ACCOUNT_TYPES, "proposal")
    fields: dict[str, Any] = {
        "account_type": int(account_type),
        "governance": reader.pubkey(),
        "governing_token_mint": reader.pubkey(),
        "state": reader.u8(),
        "token_owner_record": reader.pubkey(),
        "signatories_count": reader.u8(),
        "signatories_signed_off_count": reader.u8(),
    }
    if account_type == GovernanceAccountType.PROPOSAL_V1:
        _proposal_v1(reader, fields)
    else:
        _proposal_v2(reader, fields)
    return fields


def parse_token_owner_record(data: bytes) -> dict[str, Any]:
    reader = BorshReader(data, account="token owner record")
    account_type = _expect_type(reader, TOKEN_OWNER_RECORD_ACCOUNT_TYPES, "token owner record")
    return {
        "account_type": int(account_type),
        "realm": reader.pubkey(),
        "governing_token_mint": reader.pubkey(),
        "governing_token_owner": reader.pubkey(),
        "governing_token_deposit_amount": reader.u64(),
    }
