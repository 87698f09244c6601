from __future__ import annotations

import pytest
from solders.pubkey import Pubkey

from realms_governance.errors import AddressError, ErrorKind, InputError
from realms_governance.solana.pubkeys import parse_address, require_address

PROGRAM_ADDRESS = "GovER5Lthms3bLBqWub97yVrMmEogzX7xNjdXpPPCVZw"
SYSTEM_ADDRESS = "11111111111111111111111111111111"


def test_parse_address_returns_pubkey_for_valid_text() -> None:
    parsed = parse_address(PROGRAM_ADDRESS)

    assert isinstance(parsed, Pubkey)
    assert str(parsed) == PROGRAM_ADDRESS


def test_parse_address_strips_surrounding_whitespace() -> None:
    parsed = parse_address(f"  {SYSTEM_ADDRESS}\n")

    assert parsed == Pubkey.from_string(SYSTEM_ADDRESS)


@pytest.mark.parametrize(
    "raw_value",
    [
        "",
        "   ",
        "1111111111111111111111111111111",
        "1" * 45,
        "0" * 32,
        "O" * 32,
        "I" * 32,
        "l" * 32,
        "not-a-pubkey-but-long-enough-to-pass-length",
    ],
)
def test_parse_address_returns_error_value_for_malformed_text(raw_value: str) -> None:
    parsed = parse_address(raw_value)

    assert isinstance(parsed, AddressError)
    assert parsed.kind == ErrorKind.INPUT


def test_parse_address_never_raises_for_non_string_input() -> None:
    for raw_value in (None, 42, b"\x00" * 32, ["x"]):
        assert isinstance(parse_address(raw_value), AddressError)


def test_parse_address_names_the_field_in_the_message() -> None:
    parsed = parse_address("bad", field_name="voter")

    assert isinstance(parsed, AddressError)
    assert parsed.message.startswith("voter")


def test_require_address_raises_input_error() -> None:
    with pytest.raises(InputError):
        require_address("bad", field_name="realm")
