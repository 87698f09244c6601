"""Account byte builders and an in-memory ledger shared by the test suites."""
from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from solders.hash import Hash
from solders.pubkey import Pubkey

from realms_governance.commands import common
from realms_governance.config import AppSettings
from realms_governance.errors import TransportError
from realms_governance.orchestration.client import GovernanceClient
from realms_governance.solana.account_decoder import account_type_of_raw
from realms_governance.solana.rpc_client import RawAccount
from realms_governance.types import Network

PROGRAM_ID = Pubkey.from_string("GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw")
OTHER_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGCPFXCWuBvf9Ss623VQ5DA")
BLOCKHASH = Hash(bytes([7]) * 32)


def key(seed: int) -> Pubkey:
    return Pubkey(bytes([seed]) * 32)


def u8(value: int) -> bytes:
    return value.to_bytes(1, "little")


def u16(value: int) -> bytes:
    return value.to_bytes(2, "little")


def u32(value: int) -> bytes:
    return value.to_bytes(4, "little")


def u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def i64(value: int) -> bytes:
    return value.to_bytes(8, "little", signed=True)


def string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return u32(len(encoded)) + encoded


def option(payload: bytes | None) -> bytes:
    if payload is None:
        return u8(0)
    return u8(1) + payload


def realm_data(
    community_mint: Pubkey,
    *,
    name: str = "Test DAO",
    council_mint: Pubkey | None = None,
    authority: Pubkey | None = None,
    account_type: int = 16,
) -> bytes:
    return b"".join(
        (
            u8(account_type),
            bytes(community_mint),
            bytes(2 + 6),
            u64(1),
            bytes(1 + 8),
            option(bytes(council_mint) if council_mint else None),
            bytes(6 + 2),
            option(bytes(authority) if authority else None),
            string(name),
        )
    )


def governance_data(
    realm: Pubkey,
    *,
    governed_account: Pubkey | None = None,
    max_voting_time: int | None = 259_200,
    account_type: int = 18,
) -> bytes:
    identity = b"".join(
        (
            u8(account_type),
            bytes(realm),
            bytes(governed_account or key(250)),
            u32(0),
        )
    )
    if max_voting_time is None:
        return identity
    return identity + b"".join((u8(0), u8(60), u64(1), u32(0), u32(max_voting_time)))


def proposal_v2_data(
    governance: Pubkey,
    *,
    mint: Pubkey | None = None,
    owner_record: Pubkey | None = None,
    state: int = 2,
    name: str = "Fund the grants program",
    description_link: str = "",
    yes: int = 0,
    no: int = 0,
    draft_at: int = 1_700_000_000,
    voting_at: int | None = None,
    voting_completed_at: int | None = None,
    max_voting_time: int | None = None,
) -> bytes:
    approve_option = string("Approve") + u64(yes) + u8(0) + bytes(6)
    return b"".join(
        (
            u8(14),
            bytes(governance),
            bytes(mint or key(200)),
            u8(state),
            bytes(owner_record or key(201)),
            u8(1),
            u8(1),
            u8(0),
            u32(1),
            approve_option,
            option(u64(no)),
            u8(0),
            option(None),
            option(None),
            i64(draft_at),
            option(None),
            option(i64(voting_at) if voting_at is not None else None),
            option(None),
            option(i64(voting_completed_at) if voting_completed_at is not None else None),
            option(None),
            option(None),
            u8(0),
            option(None),
            option(u32(max_voting_time) if max_voting_time is not None else None),
            option(None),
            bytes(64),
            string(name),
            string(description_link),
            u64(0),
        )
    )


def proposal_v1_data(
    governance: Pubkey,
    *,
    mint: Pubkey | None = None,
    owner_record: Pubkey | None = None,
    state: int = 2,
    name: str = "Legacy proposal",
    description_link: str = "",
    yes: int = 0,
    no: int = 0,
    draft_at: int = 1_600_000_000,
    voting_at: int | None = None,
) -> bytes:
    return b"".join(
        (
            u8(5),
            bytes(governance),
            bytes(mint or key(200)),
            u8(state),
            bytes(owner_record or key(201)),
            u8(1),
            u8(1),
            u64(yes),
            u64(no),
            u16(0) * 3,
            i64(draft_at),
            option(None),
            option(i64(voting_at) if voting_at is not None else None),
            option(None),
            option(None),
            option(None),
            option(None),
            u8(0),
            option(None),
            option(None),
            string(name),
            string(description_link),
        )
    )


def token_owner_record_data(
    realm: Pubkey,
    mint: Pubkey,
    owner: Pubkey,
    deposit: int,
    *,
    account_type: int = 17,
) -> bytes:
    return b"".join((u8(account_type), bytes(realm), bytes(mint), bytes(owner), u64(deposit)))


class FakeFetcher:
    """In-memory ledger implementing the fetcher and blockhash contracts."""

    def __init__(self, program_id: Pubkey = PROGRAM_ID) -> None:
        self.program_id = program_id
        self.accounts: dict[Pubkey, RawAccount] = {}
        self.get_calls: list[Pubkey] = []
        self.scan_calls: list[frozenset[int]] = []
        self.failure: TransportError | None = None
        self.scan_gate: asyncio.Event | None = None
        self.closed = False

    def add(self, address: Pubkey, data: bytes, *, owner: Pubkey | None = None) -> RawAccount:
        raw = RawAccount(address=address, owner=owner or self.program_id, data=data)
        self.accounts[address] = raw
        return raw

    def add_fields(
        self,
        address: Pubkey,
        fields: Mapping[str, Any],
        *,
        owner: Pubkey | None = None,
    ) -> RawAccount:
        raw = RawAccount(address=address, owner=owner or self.program_id, fields=fields)
        self.accounts[address] = raw
        return raw

    async def get_account(self, address: Pubkey) -> RawAccount | None:
        self.get_calls.append(address)
        await asyncio.sleep(0)
        if self.failure is not None:
            raise self.failure
        return self.accounts.get(address)

    async def scan_program_accounts(
        self,
        program_id: Pubkey,
        account_types: Iterable[int],
    ) -> list[tuple[Pubkey, RawAccount]]:
        """Matches on the type tag only, so foreign-owned accounts come back too."""
        wanted = frozenset(int(account_type) for account_type in account_types)
        self.scan_calls.append(wanted)
        if self.scan_gate is not None:
            await self.scan_gate.wait()
        await asyncio.sleep(0)
        if self.failure is not None:
            raise self.failure
        return [
            (address, raw)
            for address, raw in sorted(self.accounts.items(), key=lambda item: str(item[0]))
            if account_type_of_raw(raw) in wanted
        ]

    async def latest_blockhash(self) -> Hash:
        return BLOCKHASH

    async def close(self) -> None:
        self.closed = True


def install_fake_client(monkeypatch: Any, fetcher: FakeFetcher) -> list[Network]:
    """Route every CLI command through ``fetcher``; returns the networks requested."""
    requested: list[Network] = []

    def fake_build_client(_: AppSettings, network: Network) -> GovernanceClient:
        requested.append(network)
        return GovernanceClient(
            fetcher,
            program_id=fetcher.program_id,
            blockhash_source=fetcher,
            network=network,
        )

    monkeypatch.setattr(common, "build_client", fake_build_client)
    return requested
