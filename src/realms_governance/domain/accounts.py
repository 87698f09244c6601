from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from solders.pubkey import Pubkey

from realms_governance.domain.status import ProposalState


@dataclass(slots=True, frozen=True)
class Realm:
    address: Pubkey
    name: str
    community_mint: Pubkey
    council_mint: Pubkey | None = None
    authority: Pubkey | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "address": str(self.address),
            "name": self.name,
            "community_mint": str(self.community_mint),
            "council_mint": str(self.council_mint) if self.council_mint else None,
            "authority": str(self.authority) if self.authority else None,
        }


@dataclass(slots=True, frozen=True)
class GovernanceAccount:
    address: Pubkey
    owner: Pubkey
    realm: Pubkey
    governed_account: Pubkey | None = None
    max_voting_time: int | None = None
    account_type: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "address": str(self.address),
            "owner": str(self.owner),
            "realm": str(self.realm),
            "governed_account": str(self.governed_account) if self.governed_account else None,
            "max_voting_time": self.max_voting_time,
        }


@dataclass(slots=True, frozen=True)
class ProposalAccount:
    address: Pubkey
    governance: Pubkey
    state: ProposalState | None
    yes_votes: int = 0
    no_votes: int = 0
    name: str = ""
    description_link: str | None = None
    governing_token_mint: Pubkey | None = None
    token_owner_record: Pubkey | None = None
    draft_at: int | None = None
    voting_at: int | None = None
    voting_completed_at: int | None = None
    max_voting_time: int | None = None
    account_type: int | None = None


@dataclass(slots=True, frozen=True)
class TokenOwnerRecord:
    address: Pubkey
    realm: Pubkey
    governing_token_mint: Pubkey
    governing_token_owner: Pubkey
    deposit_amount: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "address": str(self.address),
            "realm": str(self.realm),
            "governing_token_mint": str(self.governing_token_mint),
            "governing_token_owner": str(self.governing_token_owner),
            "deposit_amount": self.deposit_amount,
        }
