from __future__ import annotations

from solders.pubkey import Pubkey

from realms_governance.errors import AddressError

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
MIN_ADDRESS_LENGTH = 32
MAX_ADDRESS_LENGTH = 44

_BASE58_CHARS: frozenset[str] = frozenset(BASE58_ALPHABET)


def parse_address(text: object, *, field_name: str = "address") -> Pubkey | AddressError:
    """Parse a base-58 account address.

    Never raises: malformed input comes back as an ``AddressError`` value.
    """
    if not isinstance(text, str):
        return AddressError(f"{field_name} must be a string")

    candidate = text.strip()
    if not candidate:
        return AddressError(f"{field_name} is required")

    if not MIN_ADDRESS_LENGTH <= len(candidate) <= MAX_ADDRESS_LENGTH:
        return AddressError(
            f"{field_name} must be {MIN_ADDRESS_LENGTH}-{MAX_ADDRESS_LENGTH} base58 characters",
            address=candidate,
        )

    if any(char not in _BASE58_CHARS for char in candidate):
        return AddressError(
            f"{field_name} contains characters outside the base58 alphabet",
            address=candidate,
        )

    try:
        return Pubkey.from_string(candidate)
    except ValueError:
        return AddressError(f"{field_name} must be a valid Solana public key", address=candidate)


def require_address(text: object, *, field_name: str = "address") -> Pubkey:
    parsed = parse_address(text, field_name=field_name)
    if isinstance(parsed, AddressError):
        raise parsed
    return parsed
