from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from realms_governance.domain.status import ProposalStatus


@dataclass(slots=True, frozen=True)
class ProposalView:
    id: str
    title: str
    description: str
    status: ProposalStatus
    yes_votes: int
    no_votes: int
    created_at: datetime
    proposer: str
    voting_ends_at: datetime | None = None
    governance: str = ""
    governing_token_mint: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "votes_yes": self.yes_votes,
            "votes_no": self.no_votes,
            "voting_ends_at": self.voting_ends_at.isoformat() if self.voting_ends_at else None,
            "created_at": self.created_at.isoformat(),
            "proposer": self.proposer,
            "governance": self.governance,
            "governing_token_mint": self.governing_token_mint,
        }
