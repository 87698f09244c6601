from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import base58
import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import MemcmpOpts
from solders.hash import Hash
from solders.pubkey import Pubkey

from realms_governance.config import AppSettings
from realms_governance.errors import TransportError
from realms_governance.observability.logging import get_logger
from realms_governance.types import Network

_TRANSPORT_FAILURES: tuple[type[BaseException], ...] = (
    SolanaRpcException,
    RPCException,
    httpx.HTTPError,
    asyncio.TimeoutError,
    OSError,
)


@dataclass(slots=True, frozen=True)
class RawAccount:
    """Account as handed over by the ledger.

    ``fields`` carries a pre-parsed record when the source already decoded the
    account (an indexer or a JSON-parsed RPC response); otherwise the decoder
    reads ``data``.
    """

    address: Pubkey
    owner: Pubkey
    data: bytes = b""
    fields: Mapping[str, Any] | None = None
    lamports: int = 0


class AccountFetcher(Protocol):
    async def get_account(self, address: Pubkey) -> RawAccount | None:
        """Return the account, ``None`` when absent; raise ``TransportError`` on RPC failure."""
        ...

    async def scan_program_accounts(
        self,
        program_id: Pubkey,
        account_types: Iterable[int],
    ) -> list[tuple[Pubkey, RawAccount]]:
        """Return every program account whose type tag is in ``account_types``."""
        ...


class BlockhashSource(Protocol):
    async def latest_blockhash(self) -> Hash:
        ...


def account_type_filter(account_type: int) -> MemcmpOpts:
    return MemcmpOpts(offset=0, bytes=base58.b58encode(bytes([account_type])).decode("ascii"))


class RpcAccountFetcher:
    """``AccountFetcher`` over a solana-py ``AsyncClient``."""

    def __init__(
        self,
        client: AsyncClient,
        *,
        network: Network = Network.MAINNET,
        commitment: Commitment = Commitment("confirmed"),
    ) -> None:
        self._client = client
        self._network = network
        self._commitment = commitment
        self._logger = get_logger("rpc_account_fetcher")

    async def get_account(self, address: Pubkey) -> RawAccount | None:
        try:
            response = await self._client.get_account_info(
                address,
                commitment=self._commitment,
                encoding="base64",
            )
        except _TRANSPORT_FAILURES as exc:
            self._logger.warning(
                "rpc_get_account_failed",
                address=str(address),
                network=self._network.value,
                error=str(exc),
            )
            raise TransportError(f"getAccountInfo failed: {exc}", address=str(address)) from exc

        account = response.value
        if account is None:
            return None
        return RawAccount(
            address=address,
            owner=account.owner,
            data=bytes(account.data),
            lamports=account.lamports,
        )

    async def scan_program_accounts(
        self,
        program_id: Pubkey,
        account_types: Iterable[int],
    ) -> list[tuple[Pubkey, RawAccount]]:
        accounts: list[tuple[Pubkey, RawAccount]] = []
        for account_type in sorted(set(account_types)):
            try:
                response = await self._client.get_program_accounts(
                    program_id,
                    commitment=self._commitment,
                    encoding="base64",
                    filters=[account_type_filter(account_type)],
                )
            except _TRANSPORT_FAILURES as exc:
                self._logger.warning(
                    "rpc_program_scan_failed",
                    program_id=str(program_id),
                    account_type=account_type,
                    network=self._network.value,
                    error=str(exc),
                )
                raise TransportError(
                    f"getProgramAccounts failed for account type {account_type}: {exc}",
                    address=str(program_id),
                ) from exc

            for keyed in response.value:
                accounts.append(
                    (
                        keyed.pubkey,
                        RawAccount(
                            address=keyed.pubkey,
                            owner=keyed.account.owner,
                            data=bytes(keyed.account.data),
                            lamports=keyed.account.lamports,
                        ),
                    )
                )

        self._logger.info(
            "rpc_program_scan_completed",
            program_id=str(program_id),
            network=self._network.value,
            account_count=len(accounts),
        )
        return accounts

    async def latest_blockhash(self) -> Hash:
        try:
            response = await self._client.get_latest_blockhash(commitment=self._commitment)
        except _TRANSPORT_FAILURES as exc:
            raise TransportError(f"getLatestBlockhash failed: {exc}") from exc
        return response.value.blockhash

    async def close(self) -> None:
        await self._client.close()


class RpcClientFactory:
    """Thin factory for AsyncClient to keep adapter construction deterministic."""

    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings

    def create(self, network: Network | None = None) -> AsyncClient:
        selected = network or self._settings.default_network
        return AsyncClient(
            self._settings.rpc_url_for(selected),
            commitment=Commitment(self._settings.rpc_commitment),
            timeout=self._settings.rpc_timeout_seconds,
        )

    def fetcher(self, network: Network | None = None) -> RpcAccountFetcher:
        selected = network or self._settings.default_network
        return RpcAccountFetcher(
            self.create(selected),
            network=selected,
            commitment=Commitment(self._settings.rpc_commitment),
        )
