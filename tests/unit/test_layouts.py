from __future__ import annotations

import pytest

from builders import (
    governance_data,
    key,
    proposal_v1_data,
    proposal_v2_data,
    realm_data,
    token_owner_record_data,
)
from realms_governance.errors import DecodeError
from realms_governance.solana.layouts import (
    GovernanceAccountType,
    account_type_of,
    parse_governance,
    parse_proposal,
    parse_realm,
    parse_token_owner_record,
)


def test_account_type_of_reads_leading_tag() -> None:
    assert account_type_of(governance_data(key(1))) == GovernanceAccountType.GOVERNANCE_V2
    assert account_type_of(b"") is None
    assert account_type_of(bytes([200])) is None


def test_parse_realm_reads_mints_authority_and_name() -> None:
    fields = parse_realm(
        realm_data(key(2), name="Adrena", council_mint=key(3), authority=key(4))
    )

    assert fields["community_mint"] == key(2)
    assert fields["council_mint"] == key(3)
    assert fields["authority"] == key(4)
    assert fields["name"] == "Adrena"


def test_parse_realm_without_council_or_authority() -> None:
    fields = parse_realm(realm_data(key(2)))

    assert fields["council_mint"] is None
    assert fields["authority"] is None


def test_parse_governance_reads_realm_and_voting_time() -> None:
    fields = parse_governance(governance_data(key(1), max_voting_time=3600))

    assert fields["realm"] == key(1)
    assert fields["max_voting_time"] == 3600


def test_parse_governance_tolerates_missing_config_tail() -> None:
    fields = parse_governance(governance_data(key(1), max_voting_time=None))

    assert fields["realm"] == key(1)
    assert fields["max_voting_time"] is None


def test_parse_proposal_v2_reads_option_weights() -> None:
    fields = parse_proposal(
        proposal_v2_data(
            key(5),
            state=3,
            yes=700,
            no=300,
            voting_at=1_700_000_100,
            max_voting_time=600,
            name="Raise fees",
            description_link="https://arweave.net/abc",
        )
    )

    assert fields["account_type"] == GovernanceAccountType.PROPOSAL_V2
    assert fields["governance"] == key(5)
    assert fields["state"] == 3
    assert fields["approve_vote_weight"] == 700
    assert fields["deny_vote_weight"] == 300
    assert fields["voting_at"] == 1_700_000_100
    assert fields["max_voting_time"] == 600
    assert fields["name"] == "Raise fees"
    assert fields["description_link"] == "https://arweave.net/abc"


def test_parse_proposal_v1_reads_yes_no_counts() -> None:
    fields = parse_proposal(proposal_v1_data(key(5), yes=12, no=4, voting_at=1_600_000_050))

    assert fields["account_type"] == GovernanceAccountType.PROPOSAL_V1
    assert fields["yes_votes_count"] == 12
    assert fields["no_votes_count"] == 4
    assert fields["voting_at"] == 1_600_000_050
    assert fields["name"] == "Legacy proposal"


def test_parse_token_owner_record_reads_deposit() -> None:
    fields = parse_token_owner_record(token_owner_record_data(key(1), key(2), key(3), 5_000))

    assert fields["realm"] == key(1)
    assert fields["governing_token_owner"] == key(3)
    assert fields["governing_token_deposit_amount"] == 5_000


def test_parsers_reject_foreign_account_types() -> None:
    with pytest.raises(DecodeError, match="not a proposal"):
        parse_proposal(governance_data(key(1)))

    with pytest.raises(DecodeError, match="unknown governance account type"):
        parse_realm(bytes([99]) + bytes(64))


def test_parsers_reject_truncated_data() -> None:
    data = proposal_v2_data(key(5))

    with pytest.raises(DecodeError, match="truncated"):
        parse_proposal(data[:40])
