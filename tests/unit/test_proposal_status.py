from __future__ import annotations

import pytest

from realms_governance.domain.status import (
    ProposalState,
    ProposalStatus,
    coerce_proposal_state,
    collapse_status,
)


@pytest.mark.parametrize(
    ("state", "expected"),
    [
        (ProposalState.DRAFT, ProposalStatus.DRAFT),
        (ProposalState.SIGNING_OFF, ProposalStatus.VOTING),
        (ProposalState.VOTING, ProposalStatus.VOTING),
        (ProposalState.SUCCEEDED, ProposalStatus.SUCCEEDED),
        (ProposalState.EXECUTING, ProposalStatus.EXECUTED),
        (ProposalState.COMPLETED, ProposalStatus.EXECUTED),
        (ProposalState.CANCELLED, ProposalStatus.CANCELLED),
        (ProposalState.DEFEATED, ProposalStatus.DEFEATED),
        (ProposalState.EXECUTING_WITH_ERRORS, ProposalStatus.EXECUTED),
        (ProposalState.VETOED, ProposalStatus.DEFEATED),
    ],
)
def test_every_lifecycle_state_collapses_to_one_status(
    state: ProposalState,
    expected: ProposalStatus,
) -> None:
    assert collapse_status(state) == expected
    assert collapse_status(int(state)) == expected


@pytest.mark.parametrize("raw_state", [None, 42, -1, "Unheard", object(), True])
def test_unknown_states_collapse_to_draft(raw_state: object) -> None:
    assert collapse_status(raw_state) == ProposalStatus.DRAFT


def test_state_names_are_accepted_in_any_casing() -> None:
    assert coerce_proposal_state("SigningOff") == ProposalState.SIGNING_OFF
    assert coerce_proposal_state("executing_with_errors") == ProposalState.EXECUTING_WITH_ERRORS
    assert coerce_proposal_state(" 2 ") == ProposalState.VOTING
