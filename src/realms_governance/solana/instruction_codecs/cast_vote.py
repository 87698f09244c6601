from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from realms_governance.types import VoteChoice

CAST_VOTE_INSTRUCTION = 13
FULL_WEIGHT_PERCENTAGE = 100
LEGACY_PROGRAM_VERSION = 1


class YesNoVote(IntEnum):
    YES = 0
    NO = 1


class VoteKind(IntEnum):
    APPROVE = 0
    DENY = 1
    ABSTAIN = 2
    VETO = 3


# The cast-vote instruction built here has no abstain variant; abstain is cast as No.
YES_NO_BY_CHOICE: dict[VoteChoice, YesNoVote] = {
    VoteChoice.YES: YesNoVote.YES,
    VoteChoice.NO: YesNoVote.NO,
    VoteChoice.ABSTAIN: YesNoVote.NO,
}


@dataclass(slots=True, frozen=True)
class CastVotePayload:
    vote: YesNoVote
    program_version: int = 3

    def to_bytes(self) -> bytes:
        if self.program_version <= LEGACY_PROGRAM_VERSION:
            return bytes([CAST_VOTE_INSTRUCTION, int(self.vote)])

        if self.vote == YesNoVote.NO:
            return bytes([CAST_VOTE_INSTRUCTION, VoteKind.DENY])

        return b"".join(
            (
                bytes([CAST_VOTE_INSTRUCTION, VoteKind.APPROVE]),
                (1).to_bytes(4, byteorder="little", signed=False),
                bytes([0, FULL_WEIGHT_PERCENTAGE]),
            )
        )


def payload_for_choice(choice: VoteChoice, *, program_version: int = 3) -> CastVotePayload:
    return CastVotePayload(vote=YES_NO_BY_CHOICE[choice], program_version=program_version)
