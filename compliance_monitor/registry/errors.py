"""Registry error kinds.

Every failure raised by the registry is a :class:`RegistryError` carrying an
:class:`ErrorKind` and the numeric code the contract reports for it, so
callers can branch on the kind instead of parsing messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    ALREADY_INITIALIZED = "already-initialized"
    PROPERTY_NOT_FOUND = "property-not-found"
    OCCUPANCY_NOT_FOUND = "occupancy-not-found"
    OCCUPANCY_ALREADY_EXISTS = "occupancy-already-exists"
    INVALID_LEASE_EXPIRY = "invalid-lease-expiry"
    INVALID_ARGUMENT = "invalid-argument"


ERROR_CODES: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: 100,
    ErrorKind.ALREADY_INITIALIZED: 101,
    ErrorKind.PROPERTY_NOT_FOUND: 102,
    ErrorKind.OCCUPANCY_NOT_FOUND: 103,
    ErrorKind.OCCUPANCY_ALREADY_EXISTS: 104,
    ErrorKind.INVALID_LEASE_EXPIRY: 105,
    ErrorKind.INVALID_ARGUMENT: 106,
}


class RegistryError(Exception):
    """Base class for all registry failures."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value

    @property
    def code(self) -> int:
        return ERROR_CODES[self.kind]


class UnauthorizedError(RegistryError):
    """Raised when the caller lacks the role an operation requires."""

    kind = ErrorKind.UNAUTHORIZED


class AlreadyInitializedError(RegistryError):
    kind = ErrorKind.ALREADY_INITIALIZED


class NotFoundError(RegistryError):
    """A property or occupancy is absent."""


class PropertyNotFoundError(NotFoundError):
    kind = ErrorKind.PROPERTY_NOT_FOUND


class OccupancyNotFoundError(NotFoundError):
    kind = ErrorKind.OCCUPANCY_NOT_FOUND


class OccupancyAlreadyExistsError(RegistryError):
    kind = ErrorKind.OCCUPANCY_ALREADY_EXISTS


class InvalidArgumentError(RegistryError):
    """Malformed identifier, amount, status or date."""

    kind = ErrorKind.INVALID_ARGUMENT


class InvalidLeaseExpiryError(InvalidArgumentError):
    kind = ErrorKind.INVALID_LEASE_EXPIRY
