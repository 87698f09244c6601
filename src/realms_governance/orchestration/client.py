"""Public surface consumed by the CLI and the watcher.

Every method returns errors as values; nothing raised by the resolver, the
cache or the vote builder escapes this class.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from solders.pubkey import Pubkey

from realms_governance.config import AppSettings
from realms_governance.domain.accounts import Realm, TokenOwnerRecord
from realms_governance.domain.proposal_view import ProposalView
from realms_governance.errors import (
    AddressError,
    GovernanceError,
    InputError,
    NoGovernanceAccounts,
    TransportError,
)
from realms_governance.observability.logging import get_logger
from realms_governance.orchestration.proposal_cache import ProposalCache
from realms_governance.orchestration.resolver import GovernanceResolver
from realms_governance.orchestration.view_mapper import map_proposals
from realms_governance.orchestration.vote_builder import (
    UnsignedVoteTransaction,
    VoteTransactionBuilder,
)
from realms_governance.solana.pdas import vote_record_address
from realms_governance.solana.pubkeys import parse_address, require_address
from realms_governance.solana.rpc_client import (
    AccountFetcher,
    BlockhashSource,
    RpcClientFactory,
)
from realms_governance.types import Network, VoteChoice

GovernanceOverrides = Mapping[Pubkey, tuple[Pubkey, ...]]


def parse_governance_overrides(raw_overrides: Mapping[str, Sequence[str]]) -> dict[Pubkey, tuple[Pubkey, ...]]:
    """Parse configured realm -> governance lists, dropping malformed entries."""
    logger = get_logger("governance_client")
    overrides: dict[Pubkey, tuple[Pubkey, ...]] = {}
    for raw_realm, raw_governances in raw_overrides.items():
        realm = parse_address(raw_realm, field_name="realm")
        if isinstance(realm, AddressError):
            logger.warning("governance_override_ignored", realm=str(raw_realm), error=realm.message)
            continue

        governances: list[Pubkey] = []
        for raw_governance in raw_governances:
            governance = parse_address(raw_governance, field_name="governance")
            if isinstance(governance, AddressError):
                logger.warning(
                    "governance_override_ignored",
                    realm=str(realm),
                    governance=str(raw_governance),
                    error=governance.message,
                )
                continue
            governances.append(governance)

        if governances:
            overrides[realm] = tuple(governances)
    return overrides


class GovernanceClient:
    """Realm resolution, cached proposal listing and vote preparation for one network."""

    def __init__(
        self,
        fetcher: AccountFetcher,
        *,
        program_id: Pubkey,
        blockhash_source: BlockhashSource | None = None,
        cache: ProposalCache | None = None,
        program_version: int = 3,
        network: Network = Network.MAINNET,
        governance_overrides: GovernanceOverrides | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._resolver = GovernanceResolver(fetcher, program_id)
        self._blockhash_source = blockhash_source
        self._cache = cache or ProposalCache()
        self._program_version = program_version
        self._network = network
        self._overrides = dict(governance_overrides or {})
        self._logger = get_logger("governance_client")

    @property
    def network(self) -> Network:
        return self._network

    @property
    def cache(self) -> ProposalCache:
        return self._cache

    @property
    def resolver(self) -> GovernanceResolver:
        return self._resolver

    async def resolve_realm(self, address: str) -> Realm | GovernanceError:
        parsed = parse_address(address)
        if isinstance(parsed, AddressError):
            return parsed
        try:
            return await self._resolver.resolve_realm(parsed)
        except GovernanceError as exc:
            self._logger.warning(
                "realm_resolution_failed",
                address=str(parsed),
                network=self._network.value,
                error_kind=exc.kind.value,
                error=exc.message,
            )
            return exc

    def _overrides_for(
        self,
        realm: Pubkey,
        override_governances: Sequence[str] | None,
    ) -> tuple[Pubkey, ...] | InputError:
        if not override_governances:
            return self._overrides.get(realm, ())

        addresses: list[Pubkey] = []
        for raw_governance in override_governances:
            governance = parse_address(raw_governance, field_name="governance")
            if isinstance(governance, AddressError):
                return governance
            addresses.append(governance)
        return tuple(addresses)

    async def _load_proposals(
        self,
        realm: Pubkey,
        overrides: tuple[Pubkey, ...],
    ) -> tuple[ProposalView, ...]:
        try:
            governance_set = await self._resolver.governance_set(realm, overrides or None)
        except NoGovernanceAccounts:
            self._logger.info("no_governance_accounts", realm=str(realm), network=self._network.value)
            return ()

        proposals = await self._resolver.proposals_for(governance_set.addresses)
        views = map_proposals(proposals, governance_set.accounts)
        self._logger.info(
            "proposals_loaded",
            realm=str(realm),
            network=self._network.value,
            governance_source=governance_set.source.value,
            governance_count=len(governance_set.addresses),
            proposal_count=len(views),
        )
        return views

    async def get_proposals(
        self,
        realm: str,
        override_governances: Sequence[str] | None = None,
    ) -> tuple[ProposalView, ...] | InputError:
        realm_key = parse_address(realm, field_name="realm")
        if isinstance(realm_key, AddressError):
            return realm_key

        overrides = self._overrides_for(realm_key, override_governances)
        if isinstance(overrides, InputError):
            return overrides

        return await self._cache.get_or_fetch(
            str(realm_key),
            lambda: self._load_proposals(realm_key, overrides),
        )

    def _vote_builder(self, network: Network | None) -> VoteTransactionBuilder | InputError:
        selected = network or self._network
        if selected != self._network:
            return InputError(f"client is bound to {self._network.value}, not {selected.value}")
        if self._blockhash_source is None:
            return InputError("client has no blockhash source; vote transactions are unavailable")
        return VoteTransactionBuilder(
            self._resolver,
            self._blockhash_source,
            program_version=self._program_version,
            network=selected,
        )

    async def build_vote_transaction(
        self,
        realm: str,
        proposal: str,
        governing_token_mint: str,
        voter: str,
        choice: VoteChoice | str,
        network: Network | None = None,
    ) -> UnsignedVoteTransaction | GovernanceError:
        builder = self._vote_builder(network)
        if isinstance(builder, InputError):
            return builder
        try:
            return await builder.build(realm, proposal, governing_token_mint, voter, choice)
        except GovernanceError as exc:
            self._logger.warning(
                "vote_transaction_failed",
                realm=str(realm),
                proposal=str(proposal),
                network=(network or self._network).value,
                error_kind=exc.kind.value,
                error=exc.message,
            )
            return exc

    async def prepare_vote_for_wallet(
        self,
        realm: str,
        proposal: str,
        governing_token_mint: str,
        voter: str,
        choice: VoteChoice | str = VoteChoice.YES,
        network: Network | None = None,
    ) -> dict[str, Any] | GovernanceError:
        built = await self.build_vote_transaction(
            realm,
            proposal,
            governing_token_mint,
            voter,
            choice,
            network,
        )
        if isinstance(built, GovernanceError):
            return built
        return {"transaction": built.to_base64(), "message": built.wallet_message()}

    async def has_user_voted(self, proposal: str, token_owner_record: str) -> bool | InputError:
        try:
            proposal_key = require_address(proposal, field_name="proposal")
            record_key = require_address(token_owner_record, field_name="token_owner_record")
        except InputError as exc:
            return exc

        vote_record = vote_record_address(self._resolver.program_id, proposal_key, record_key)
        try:
            account = await self._fetcher.get_account(vote_record)
        except TransportError as exc:
            self._logger.warning(
                "vote_record_lookup_failed",
                proposal=str(proposal_key),
                vote_record=str(vote_record),
                network=self._network.value,
                error=exc.message,
            )
            return False
        return account is not None and account.owner == self._resolver.program_id

    async def find_member_realms(self, wallet: str) -> tuple[TokenOwnerRecord, ...] | InputError:
        wallet_key = parse_address(wallet, field_name="wallet")
        if isinstance(wallet_key, AddressError):
            return wallet_key
        try:
            records = await self._resolver.member_records(wallet_key)
        except TransportError as exc:
            self._logger.warning(
                "member_realm_scan_failed",
                wallet=str(wallet_key),
                network=self._network.value,
                error=exc.message,
            )
            return ()
        self._logger.info(
            "member_realms_found",
            wallet=str(wallet_key),
            network=self._network.value,
            realm_count=len({record.realm for record in records}),
        )
        return tuple(records)

    async def close(self) -> None:
        close = getattr(self._fetcher, "close", None)
        if close is not None:
            await close()


def build_client(settings: AppSettings, network: Network | None = None) -> GovernanceClient:
    selected = network or settings.default_network
    program_id = require_address(settings.governance_program_id, field_name="governance_program_id")
    fetcher = RpcClientFactory(settings).fetcher(selected)
    return GovernanceClient(
        fetcher,
        program_id=program_id,
        blockhash_source=fetcher,
        cache=ProposalCache(settings.proposal_cache_ttl_seconds),
        program_version=settings.governance_program_version,
        network=selected,
        governance_overrides=parse_governance_overrides(settings.governance_overrides),
    )
