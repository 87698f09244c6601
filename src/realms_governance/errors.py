"""Error taxonomy shared by the resolver, cache and vote builder.

Components raise these internally; ``GovernanceClient`` hands them back to
callers as values so that nothing unchecked crosses the public surface.
"""
from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar


class ErrorKind(StrEnum):
    INPUT = "input"
    NOT_FOUND = "not_found"
    OWNERSHIP = "ownership"
    DECODE = "decode"
    TRANSPORT = "transport"


class GovernanceError(Exception):
    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, address: str | None = None) -> None:
        self.message = message
        self.address = address
        super().__init__(message)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.message,
            "error_kind": self.kind.value,
            "error_type": type(self).__name__,
        }
        if self.address is not None:
            payload["address"] = self.address
        return payload


class InputError(GovernanceError):
    kind = ErrorKind.INPUT


class AddressError(InputError):
    pass


class NotFoundError(GovernanceError):
    kind = ErrorKind.NOT_FOUND


class ProposalNotFound(NotFoundError):
    pass


class GovernanceNotFound(NotFoundError):
    pass


class NoGovernanceAccounts(NotFoundError):
    pass


class OwnershipError(GovernanceError):
    kind = ErrorKind.OWNERSHIP

    def __init__(self, message: str, *, address: str | None = None, owner: str | None = None) -> None:
        super().__init__(message, address=address)
        self.owner = owner

    def as_dict(self) -> dict[str, Any]:
        payload = super().as_dict()
        if self.owner is not None:
            payload["owner"] = self.owner
        return payload


class DecodeError(GovernanceError):
    kind = ErrorKind.DECODE


DecodeFailure = DecodeError


class TransportError(GovernanceError):
    kind = ErrorKind.TRANSPORT
