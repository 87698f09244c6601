from __future__ import annotations

from enum import IntEnum, StrEnum


class ProposalState(IntEnum):
    """Lifecycle states as stored on chain."""

    DRAFT = 0
    SIGNING_OFF = 1
    VOTING = 2
    SUCCEEDED = 3
    EXECUTING = 4
    COMPLETED = 5
    CANCELLED = 6
    DEFEATED = 7
    EXECUTING_WITH_ERRORS = 8
    VETOED = 9


class ProposalStatus(StrEnum):
    DRAFT = "draft"
    VOTING = "voting"
    SUCCEEDED = "succeeded"
    DEFEATED = "defeated"
    EXECUTED = "executed"
    CANCELLED = "cancelled"


STATUS_BY_STATE: dict[ProposalState, ProposalStatus] = {
    ProposalState.DRAFT: ProposalStatus.DRAFT,
    ProposalState.SIGNING_OFF: ProposalStatus.VOTING,
    ProposalState.VOTING: ProposalStatus.VOTING,
    ProposalState.SUCCEEDED: ProposalStatus.SUCCEEDED,
    ProposalState.EXECUTING: ProposalStatus.EXECUTED,
    ProposalState.COMPLETED: ProposalStatus.EXECUTED,
    ProposalState.CANCELLED: ProposalStatus.CANCELLED,
    ProposalState.DEFEATED: ProposalStatus.DEFEATED,
    ProposalState.EXECUTING_WITH_ERRORS: ProposalStatus.EXECUTED,
    ProposalState.VETOED: ProposalStatus.DEFEATED,
}

UNKNOWN_STATE_STATUS = ProposalStatus.DRAFT

_STATE_BY_NAME: dict[str, ProposalState] = {
    state.name.replace("_", "").lower(): state for state in ProposalState
}


def coerce_proposal_state(raw_state: object) -> ProposalState | None:
    """Accept the numeric tag, the enum itself or its name ("Voting", "signing_off")."""
    if isinstance(raw_state, ProposalState):
        return raw_state

    if isinstance(raw_state, int) and not isinstance(raw_state, bool):
        try:
            return ProposalState(raw_state)
        except ValueError:
            return None

    if isinstance(raw_state, str):
        normalized = raw_state.strip().replace("_", "").replace("-", "").lower()
        if normalized.isdigit():
            return coerce_proposal_state(int(normalized))
        return _STATE_BY_NAME.get(normalized)

    return None


def collapse_status(raw_state: object) -> ProposalStatus:
    state = coerce_proposal_state(raw_state)
    if state is None:
        return UNKNOWN_STATE_STATUS
    return STATUS_BY_STATE.get(state, UNKNOWN_STATE_STATUS)
