from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.sysvar import CLOCK, RENT
from solders.transaction import Transaction

from realms_governance.domain.accounts import GovernanceAccount, ProposalAccount
from realms_governance.errors import (
    DecodeError,
    DecodeFailure,
    InputError,
    ProposalNotFound,
)
from realms_governance.observability.logging import get_logger
from realms_governance.orchestration.resolver import GovernanceResolver
from realms_governance.solana.account_decoder import decode_proposal
from realms_governance.solana.instruction_codecs.cast_vote import (
    LEGACY_PROGRAM_VERSION,
    CastVotePayload,
    payload_for_choice,
)
from realms_governance.solana.pdas import (
    realm_config_address,
    token_owner_record_address,
    vote_record_address,
)
from realms_governance.solana.pubkeys import require_address
from realms_governance.solana.rpc_client import BlockhashSource
from realms_governance.types import Network, VoteChoice


@dataclass(slots=True, frozen=True)
class UnsignedVoteTransaction:
    transaction: Transaction
    realm: Pubkey
    governance: Pubkey
    proposal: Pubkey
    proposal_owner_record: Pubkey
    voter: Pubkey
    voter_token_owner_record: Pubkey
    vote_record: Pubkey
    choice: VoteChoice
    network: Network

    def serialize(self) -> bytes:
        return bytes(self.transaction)

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode("ascii")

    def wallet_message(self) -> str:
        return f"Vote {self.choice.value.upper()} on proposal {str(self.proposal)[:8]}..."

    def as_dict(self) -> dict[str, Any]:
        return {
            "transaction": self.to_base64(),
            "message": self.wallet_message(),
            "realm": str(self.realm),
            "governance": str(self.governance),
            "proposal": str(self.proposal),
            "proposal_owner_record": str(self.proposal_owner_record),
            "voter": str(self.voter),
            "voter_token_owner_record": str(self.voter_token_owner_record),
            "vote_record": str(self.vote_record),
            "vote": self.choice.value,
            "network": self.network.value,
        }


def coerce_vote_choice(raw_choice: object) -> VoteChoice:
    if isinstance(raw_choice, VoteChoice):
        return raw_choice
    try:
        return VoteChoice(str(raw_choice).strip().lower())
    except ValueError as exc:
        raise InputError("vote must be one of: yes, no, abstain") from exc


def cast_vote_instruction(
    *,
    program_id: Pubkey,
    program_version: int,
    realm: Pubkey,
    governance: Pubkey,
    proposal: Pubkey,
    proposal_owner_record: Pubkey,
    voter_token_owner_record: Pubkey,
    voter: Pubkey,
    governing_token_mint: Pubkey,
    payload: CastVotePayload,
) -> Instruction:
    legacy = program_version <= LEGACY_PROGRAM_VERSION
    accounts = [
        AccountMeta(realm, is_signer=False, is_writable=not legacy),
        AccountMeta(governance, is_signer=False, is_writable=not legacy),
        AccountMeta(proposal, is_signer=False, is_writable=True),
        AccountMeta(proposal_owner_record, is_signer=False, is_writable=True),
        AccountMeta(voter_token_owner_record, is_signer=False, is_writable=True),
        AccountMeta(voter, is_signer=True, is_writable=False),
        AccountMeta(
            vote_record_address(program_id, proposal, voter_token_owner_record),
            is_signer=False,
            is_writable=True,
        ),
        AccountMeta(governing_token_mint, is_signer=False, is_writable=False),
        AccountMeta(voter, is_signer=True, is_writable=True),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    if legacy:
        accounts.append(AccountMeta(RENT, is_signer=False, is_writable=False))
        accounts.append(AccountMeta(CLOCK, is_signer=False, is_writable=False))
    accounts.append(
        AccountMeta(realm_config_address(program_id, realm), is_signer=False, is_writable=False)
    )
    return Instruction(program_id, payload.to_bytes(), accounts)


class VoteTransactionBuilder:
    """Assembles an unsigned single-instruction cast-vote transaction.

    Signing is left to the wallet. Any fetch or decode failure aborts the build
    with a ``GovernanceError``; a partial transaction is never returned.
    """

    def __init__(
        self,
        resolver: GovernanceResolver,
        blockhash_source: BlockhashSource,
        *,
        program_version: int = 3,
        network: Network = Network.MAINNET,
    ) -> None:
        self._resolver = resolver
        self._blockhash_source = blockhash_source
        self._program_version = program_version
        self._network = network
        self._logger = get_logger("vote_builder")

    async def _proposal(self, address: Pubkey) -> tuple[ProposalAccount, Pubkey]:
        raw = await self._resolver.fetch_owned(address, not_found=ProposalNotFound, label="proposal")
        proposal = decode_proposal(raw)
        if isinstance(proposal, DecodeError):
            raise DecodeFailure(
                f"proposal {address} could not be decoded: {proposal.message}",
                address=str(address),
            )
        if proposal.token_owner_record is None:
            raise DecodeFailure(
                f"proposal {address} has no readable owner record",
                address=str(address),
            )
        return proposal, proposal.token_owner_record

    async def _governance(self, address: Pubkey) -> GovernanceAccount:
        try:
            return await self._resolver.fetch_governance(address)
        except DecodeError as exc:
            raise DecodeFailure(
                f"governance {address} could not be decoded: {exc.message}",
                address=str(address),
            ) from exc

    async def build(
        self,
        realm: str,
        proposal: str,
        governing_token_mint: str,
        voter: str,
        choice: VoteChoice | str,
    ) -> UnsignedVoteTransaction:
        realm_key = require_address(realm, field_name="realm")
        proposal_key = require_address(proposal, field_name="proposal")
        mint_key = require_address(governing_token_mint, field_name="governing_token_mint")
        voter_key = require_address(voter, field_name="voter")
        vote_choice = coerce_vote_choice(choice)

        proposal_account, owner_record = await self._proposal(proposal_key)
        governance = await self._governance(proposal_account.governance)
        program_id = self._resolver.program_id

        voter_record = token_owner_record_address(program_id, realm_key, mint_key, voter_key)
        if vote_choice == VoteChoice.ABSTAIN:
            self._logger.warning(
                "abstain_cast_as_no",
                proposal=str(proposal_key),
                vote_choice=vote_choice.value,
            )

        instruction = cast_vote_instruction(
            program_id=program_id,
            program_version=self._program_version,
            realm=realm_key,
            governance=governance.address,
            proposal=proposal_key,
            proposal_owner_record=owner_record,
            voter_token_owner_record=voter_record,
            voter=voter_key,
            governing_token_mint=mint_key,
            payload=payload_for_choice(vote_choice, program_version=self._program_version),
        )

        blockhash = await self._blockhash_source.latest_blockhash()
        message = Message.new_with_blockhash([instruction], voter_key, blockhash)

        self._logger.info(
            "vote_transaction_built",
            realm=str(realm_key),
            governance=str(governance.address),
            proposal=str(proposal_key),
            network=self._network.value,
            vote_choice=vote_choice.value,
        )
        return UnsignedVoteTransaction(
            transaction=Transaction.new_unsigned(message),
            realm=realm_key,
            governance=governance.address,
            proposal=proposal_key,
            proposal_owner_record=owner_record,
            voter=voter_key,
            voter_token_owner_record=voter_record,
            vote_record=vote_record_address(program_id, proposal_key, voter_record),
            choice=vote_choice,
            network=self._network,
        )
