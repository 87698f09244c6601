from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime

from solders.pubkey import Pubkey

from realms_governance.domain.accounts import GovernanceAccount, ProposalAccount
from realms_governance.domain.proposal_view import ProposalView
from realms_governance.domain.status import collapse_status

EPOCH = datetime.fromtimestamp(0, tz=UTC)


def _instant(unix_seconds: int | None) -> datetime | None:
    if unix_seconds is None:
        return None
    try:
        return datetime.fromtimestamp(unix_seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def voting_ends_at(
    proposal: ProposalAccount,
    governance: GovernanceAccount | None = None,
) -> datetime | None:
    if proposal.voting_completed_at is not None:
        return _instant(proposal.voting_completed_at)

    duration = proposal.max_voting_time
    if duration is None and governance is not None:
        duration = governance.max_voting_time

    if proposal.voting_at is None or duration is None:
        return None
    return _instant(proposal.voting_at + duration)


def to_view(proposal: ProposalAccount, governance: GovernanceAccount | None = None) -> ProposalView:
    proposal_id = str(proposal.address)
    return ProposalView(
        id=proposal_id,
        title=proposal.name or f"Proposal {proposal_id[:8]}",
        description=proposal.description_link or "",
        status=collapse_status(proposal.state),
        yes_votes=max(proposal.yes_votes, 0),
        no_votes=max(proposal.no_votes, 0),
        created_at=_instant(proposal.draft_at) or EPOCH,
        proposer=str(proposal.token_owner_record) if proposal.token_owner_record else "",
        voting_ends_at=voting_ends_at(proposal, governance),
        governance=str(proposal.governance),
        governing_token_mint=(
            str(proposal.governing_token_mint) if proposal.governing_token_mint else None
        ),
    )


def order_views(views: Iterable[ProposalView]) -> tuple[ProposalView, ...]:
    """Newest first; equal creation instants fall back to the proposal address."""
    by_address = sorted(views, key=lambda view: view.id)
    return tuple(sorted(by_address, key=lambda view: view.created_at, reverse=True))


def map_proposals(
    proposals: Iterable[ProposalAccount],
    governances: Mapping[Pubkey, GovernanceAccount] | None = None,
) -> tuple[ProposalView, ...]:
    context = governances or {}
    return order_views(to_view(proposal, context.get(proposal.governance)) for proposal in proposals)
