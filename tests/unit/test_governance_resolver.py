from __future__ import annotations

import asyncio

import pytest

from builders import (
    OTHER_PROGRAM_ID,
    PROGRAM_ID,
    FakeFetcher,
    governance_data,
    key,
    proposal_v2_data,
    realm_data,
    token_owner_record_data,
)
from realms_governance.errors import (
    GovernanceNotFound,
    InputError,
    NoGovernanceAccounts,
    OwnershipError,
    TransportError,
)
from realms_governance.orchestration.resolver import GovernanceResolver, GovernanceSource
from realms_governance.solana.layouts import GOVERNANCE_ACCOUNT_TYPES

REALM = key(1)
OTHER_REALM = key(2)


def _ledger() -> FakeFetcher:
    fetcher = FakeFetcher()
    fetcher.add(REALM, realm_data(key(100), name="Primary DAO"))
    fetcher.add(OTHER_REALM, realm_data(key(101), name="Other DAO"))
    fetcher.add(key(10), governance_data(REALM))
    fetcher.add(key(11), governance_data(REALM, account_type=3))
    fetcher.add(key(12), governance_data(OTHER_REALM))
    return fetcher


class TestGovernanceAddressResolution:
    def test_governance_address_resolves_to_its_realm(self) -> None:
        resolver = GovernanceResolver(_ledger(), PROGRAM_ID)

        assert asyncio.run(resolver.resolve_realm_address(key(10))) == REALM

    def test_missing_governance_is_not_found(self) -> None:
        resolver = GovernanceResolver(_ledger(), PROGRAM_ID)

        with pytest.raises(GovernanceNotFound):
            asyncio.run(resolver.resolve_realm_address(key(77)))

    def test_wrong_owner_is_reported_without_decoding(self) -> None:
        fetcher = _ledger()
        # Undecodable bytes prove the owner check happens first.
        fetcher.add(key(20), b"\xff\x00", owner=OTHER_PROGRAM_ID)
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        with pytest.raises(OwnershipError) as excinfo:
            asyncio.run(resolver.resolve_realm_address(key(20)))

        assert excinfo.value.owner == str(OTHER_PROGRAM_ID)

    def test_resolve_realm_accepts_realm_or_governance_address(self) -> None:
        resolver = GovernanceResolver(_ledger(), PROGRAM_ID)

        from_realm = asyncio.run(resolver.resolve_realm(REALM))
        from_governance = asyncio.run(resolver.resolve_realm(key(10)))

        assert from_realm == from_governance
        assert from_realm.name == "Primary DAO"

    def test_resolve_realm_rejects_other_account_kinds(self) -> None:
        fetcher = _ledger()
        fetcher.add(key(30), token_owner_record_data(REALM, key(100), key(40), 1))
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        with pytest.raises(InputError):
            asyncio.run(resolver.resolve_realm(key(30)))

    def test_untyped_parsed_records_fall_back_to_decoding(self) -> None:
        fetcher = _ledger()
        fetcher.add_fields(key(31), {"realmAddress": {"pubkey": str(REALM)}})
        fetcher.add_fields(key(32), {"name": "Parsed DAO", "communityMint": str(key(100))})
        fetcher.add_fields(key(33), {"name": "neither"})
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        assert asyncio.run(resolver.resolve_realm(key(31))).address == REALM
        assert asyncio.run(resolver.resolve_realm(key(32))).name == "Parsed DAO"
        with pytest.raises(InputError):
            asyncio.run(resolver.resolve_realm(key(33)))

    def test_transport_failure_surfaces_as_transport_error(self) -> None:
        fetcher = _ledger()
        fetcher.failure = TransportError("429 Too Many Requests")
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        with pytest.raises(TransportError):
            asyncio.run(resolver.resolve_realm_address(key(10)))


class TestGovernanceSet:
    def test_scan_keeps_only_governances_of_the_realm(self) -> None:
        fetcher = _ledger()
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        governance_set = asyncio.run(resolver.governance_set(REALM))

        assert governance_set.source == GovernanceSource.SCAN
        assert set(governance_set.addresses) == {key(10), key(11)}
        assert fetcher.scan_calls == [frozenset(int(tag) for tag in GOVERNANCE_ACCOUNT_TYPES)]

    def test_scan_skips_accounts_of_other_programs(self) -> None:
        fetcher = _ledger()
        fetcher.add(key(13), governance_data(REALM), owner=OTHER_PROGRAM_ID)
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        scanned = asyncio.run(fetcher.scan_program_accounts(PROGRAM_ID, [18]))
        governance_set = asyncio.run(resolver.governance_set(REALM))

        assert key(13) in {address for address, _ in scanned}
        assert key(13) not in governance_set.addresses
        assert key(13) not in governance_set.accounts

    def test_proposal_scan_skips_accounts_of_other_programs(self) -> None:
        fetcher = _ledger()
        fetcher.add(key(60), proposal_v2_data(key(10)), owner=OTHER_PROGRAM_ID)
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        proposals = asyncio.run(resolver.proposals_for([key(10)]))

        assert key(60) not in {proposal.address for proposal in proposals}

    def test_scan_with_no_match_is_reportable(self) -> None:
        resolver = GovernanceResolver(_ledger(), PROGRAM_ID)

        with pytest.raises(NoGovernanceAccounts):
            asyncio.run(resolver.governance_set(key(3)))

    def test_override_skips_scan_and_is_authoritative(self) -> None:
        fetcher = _ledger()
        resolver = GovernanceResolver(fetcher, PROGRAM_ID)

        governance_set = asyncio.run(resolver.governance_set(REALM, [key(12), key(12), key(88)]))

        assert governance_set.source == GovernanceSource.OVERRIDE
        assert governance_set.addresses == (key(12), key(88))
        assert fetcher.scan_calls == []
        assert set(governance_set.accounts) == {key(12)}


def test_proposals_for_filters_by_governance_set() -> None:
    fetcher = _ledger()
    fetcher.add(key(40), proposal_v2_data(key(10)))
    fetcher.add(key(41), proposal_v2_data(key(11)))
    fetcher.add(key(42), proposal_v2_data(key(12)))
    fetcher.add(key(43), b"\x0e\x01")
    resolver = GovernanceResolver(fetcher, PROGRAM_ID)

    proposals = asyncio.run(resolver.proposals_for({key(10), key(11)}))

    assert {proposal.address for proposal in proposals} == {key(40), key(41)}


def test_member_records_require_a_deposit() -> None:
    wallet = key(70)
    fetcher = _ledger()
    fetcher.add(key(80), token_owner_record_data(OTHER_REALM, key(101), wallet, 10))
    fetcher.add(key(81), token_owner_record_data(REALM, key(100), wallet, 5))
    fetcher.add(key(82), token_owner_record_data(REALM, key(100), wallet, 0, account_type=2))
    fetcher.add(key(83), token_owner_record_data(REALM, key(100), key(71), 99))
    resolver = GovernanceResolver(fetcher, PROGRAM_ID)

    records = asyncio.run(resolver.member_records(wallet))

    assert {record.address for record in records} == {key(80), key(81)}
    assert [str(record.realm) for record in records] == sorted(str(record.realm) for record in records)
    assert all(record.deposit_amount > 0 for record in records)
