"""Realm, governance and proposal relationship resolution.

The governance program keeps no realm -> governance index, so discovering the
governance accounts of a realm means scanning every governance account of the
program and filtering client side. Callers that already know the addresses
pass them as an override and skip the scan.
"""
from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from solders.pubkey import Pubkey

from realms_governance.domain.accounts import (
    GovernanceAccount,
    ProposalAccount,
    Realm,
    TokenOwnerRecord,
)
from realms_governance.errors import (
    DecodeError,
    GovernanceNotFound,
    InputError,
    NoGovernanceAccounts,
    NotFoundError,
    OwnershipError,
    TransportError,
)
from realms_governance.observability.logging import get_logger
from realms_governance.solana.account_decoder import (
    account_type_of_raw,
    decode_governance,
    decode_proposal,
    decode_realm,
    decode_token_owner_record,
)
from realms_governance.solana.layouts import (
    GOVERNANCE_ACCOUNT_TYPES,
    PROPOSAL_ACCOUNT_TYPES,
    REALM_ACCOUNT_TYPES,
    TOKEN_OWNER_RECORD_ACCOUNT_TYPES,
)
from realms_governance.solana.rpc_client import AccountFetcher, RawAccount


class GovernanceSource(StrEnum):
    OVERRIDE = "override"
    SCAN = "scan"


@dataclass(slots=True, frozen=True)
class GovernanceSet:
    realm: Pubkey
    addresses: tuple[Pubkey, ...]
    source: GovernanceSource
    accounts: dict[Pubkey, GovernanceAccount] = field(default_factory=dict)


class GovernanceResolver:
    def __init__(self, fetcher: AccountFetcher, program_id: Pubkey) -> None:
        self._fetcher = fetcher
        self._program_id = program_id
        self._logger = get_logger("governance_resolver")

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    async def fetch_owned(
        self,
        address: Pubkey,
        *,
        not_found: type[NotFoundError] = NotFoundError,
        label: str = "account",
    ) -> RawAccount:
        raw = await self._fetcher.get_account(address)
        if raw is None:
            raise not_found(f"{label} {address} not found", address=str(address))
        if raw.owner != self._program_id:
            raise OwnershipError(
                f"{label} {address} is owned by {raw.owner}, not the governance program",
                address=str(address),
                owner=str(raw.owner),
            )
        return raw

    async def fetch_governance(self, address: Pubkey) -> GovernanceAccount:
        raw = await self.fetch_owned(address, not_found=GovernanceNotFound, label="governance")
        governance = decode_governance(raw)
        if isinstance(governance, DecodeError):
            raise governance
        return governance

    async def resolve_realm_address(self, governance_address: Pubkey) -> Pubkey:
        governance = await self.fetch_governance(governance_address)
        self._logger.info(
            "governance_resolved",
            governance=str(governance_address),
            realm=str(governance.realm),
        )
        return governance.realm

    async def _decode_realm_at(self, address: Pubkey, raw: RawAccount | None = None) -> Realm:
        if raw is None:
            raw = await self.fetch_owned(address, label="realm")
        realm = decode_realm(raw)
        if isinstance(realm, DecodeError):
            raise realm
        return realm

    async def resolve_realm(self, address: Pubkey) -> Realm:
        """Resolve a realm from either its own address or one of its governance accounts."""
        raw = await self.fetch_owned(address)
        account_type = account_type_of_raw(raw)

        if account_type in REALM_ACCOUNT_TYPES:
            return await self._decode_realm_at(address, raw)

        if account_type in GOVERNANCE_ACCOUNT_TYPES:
            governance = decode_governance(raw)
            if isinstance(governance, DecodeError):
                raise governance
            return await self._decode_realm_at(governance.realm)

        if account_type is None:
            # Pre-parsed records may omit the type tag; fall back to what decodes.
            governance = decode_governance(raw)
            if not isinstance(governance, DecodeError):
                return await self._decode_realm_at(governance.realm)
            realm = decode_realm(raw)
            if not isinstance(realm, DecodeError):
                return realm

        raise InputError(
            f"{address} is neither a realm nor a governance account",
            address=str(address),
        )

    async def governance_set(
        self,
        realm: Pubkey,
        overrides: Sequence[Pubkey] | None = None,
    ) -> GovernanceSet:
        if overrides:
            return await self._override_set(realm, overrides)
        return await self._scanned_set(realm)

    async def _override_set(self, realm: Pubkey, overrides: Sequence[Pubkey]) -> GovernanceSet:
        addresses = tuple(dict.fromkeys(overrides))
        accounts: dict[Pubkey, GovernanceAccount] = {}
        # The override list is authoritative; the fetch only adds voting-time context.
        for address in addresses:
            try:
                accounts[address] = await self.fetch_governance(address)
            except (NotFoundError, OwnershipError, DecodeError, TransportError) as exc:
                self._logger.warning(
                    "governance_context_unavailable",
                    realm=str(realm),
                    governance=str(address),
                    error=exc.message,
                )
        return GovernanceSet(
            realm=realm,
            addresses=addresses,
            source=GovernanceSource.OVERRIDE,
            accounts=accounts,
        )

    async def _scanned_set(self, realm: Pubkey) -> GovernanceSet:
        scanned = await self._fetcher.scan_program_accounts(
            self._program_id,
            GOVERNANCE_ACCOUNT_TYPES,
        )
        accounts: dict[Pubkey, GovernanceAccount] = {}
        for address, raw in scanned:
            if raw.owner != self._program_id:
                continue
            governance = decode_governance(raw)
            if isinstance(governance, DecodeError):
                self._logger.debug("governance_skipped", governance=str(address), error=governance.message)
                continue
            if governance.realm == realm:
                accounts[address] = governance

        self._logger.info(
            "governance_scan_completed",
            realm=str(realm),
            scanned=len(scanned),
            matched=len(accounts),
        )
        if not accounts:
            raise NoGovernanceAccounts(
                f"realm {realm} has no discoverable governance accounts",
                address=str(realm),
            )
        return GovernanceSet(
            realm=realm,
            addresses=tuple(sorted(accounts, key=str)),
            source=GovernanceSource.SCAN,
            accounts=accounts,
        )

    async def proposals_for(self, governances: Collection[Pubkey]) -> list[ProposalAccount]:
        wanted = set(governances)
        scanned = await self._fetcher.scan_program_accounts(
            self._program_id,
            PROPOSAL_ACCOUNT_TYPES,
        )
        proposals: list[ProposalAccount] = []
        skipped = 0
        for address, raw in scanned:
            if raw.owner != self._program_id:
                continue
            proposal = decode_proposal(raw)
            if isinstance(proposal, DecodeError):
                skipped += 1
                self._logger.debug("proposal_skipped", proposal=str(address), error=proposal.message)
                continue
            if proposal.governance in wanted:
                proposals.append(proposal)

        self._logger.info(
            "proposal_scan_completed",
            governance_count=len(wanted),
            scanned=len(scanned),
            matched=len(proposals),
            skipped=skipped,
        )
        return proposals

    async def member_records(self, wallet: Pubkey) -> list[TokenOwnerRecord]:
        """Token owner records of ``wallet`` that hold a deposit."""
        scanned = await self._fetcher.scan_program_accounts(
            self._program_id,
            TOKEN_OWNER_RECORD_ACCOUNT_TYPES,
        )
        records: list[TokenOwnerRecord] = []
        for _, raw in scanned:
            if raw.owner != self._program_id:
                continue
            record = decode_token_owner_record(raw)
            if isinstance(record, DecodeError):
                continue
            if record.governing_token_owner == wallet and record.deposit_amount > 0:
                records.append(record)
        return sorted(records, key=lambda record: (str(record.realm), str(record.address)))
