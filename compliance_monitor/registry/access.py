"""Role-based authorization for registry operations."""

from __future__ import annotations

import logging
from enum import Enum

from compliance_monitor.registry.errors import InvalidArgumentError, UnauthorizedError
from compliance_monitor.registry.models import RegistryState

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Roles a caller may hold against the registry."""

    ADMIN = "admin"
    INSPECTOR = "inspector"
    PROPERTY_OWNER = "property-owner"
    ANYONE = "anyone"


# Permission matrix: operation -> set of roles allowed
_PERMISSIONS: dict[str, set[Role]] = {
    "initialize": {Role.ANYONE},
    "add-inspector": {Role.ADMIN},
    "remove-inspector": {Role.ADMIN},
    "set-property-details": {Role.ADMIN},
    "register-occupancy": {Role.ADMIN, Role.PROPERTY_OWNER},
    "perform-compliance-check": {Role.INSPECTOR},
    "end-occupancy": {Role.ADMIN, Role.INSPECTOR},
    "transfer-admin": {Role.ADMIN},
    "get-occupancy": {Role.ANYONE},
    "get-property-details": {Role.ANYONE},
    "is-compliant": {Role.ANYONE},
    "is-lease-expired": {Role.ANYONE},
    "is-inspector": {Role.ANYONE},
    "get-admin": {Role.ANYONE},
}

MUTATING_OPERATIONS: frozenset[str] = frozenset({
    "initialize",
    "add-inspector",
    "remove-inspector",
    "set-property-details",
    "register-occupancy",
    "perform-compliance-check",
    "end-occupancy",
    "transfer-admin",
})

READ_ONLY_OPERATIONS: frozenset[str] = frozenset(_PERMISSIONS) - MUTATING_OPERATIONS


def roles_of(
    state: RegistryState,
    caller: str | None,
    property_id: int | None = None,
) -> set[Role]:
    """Resolve every role *caller* holds, optionally for one property."""
    roles = {Role.ANYONE}
    if not caller:
        return roles
    if state.admin is not None and caller == state.admin:
        roles.add(Role.ADMIN)
    if caller in state.inspectors:
        roles.add(Role.INSPECTOR)
    if isinstance(property_id, int):
        details = state.properties.get(property_id)
        if details is not None and details.owner == caller:
            roles.add(Role.PROPERTY_OWNER)
    return roles


def allowed_roles(operation: str) -> set[Role]:
    """Return the roles permitted to perform *operation*."""
    try:
        return set(_PERMISSIONS[operation])
    except KeyError:
        raise InvalidArgumentError(f"Unknown operation '{operation}'.") from None


def check_permission(
    state: RegistryState,
    caller: str | None,
    operation: str,
    property_id: int | None = None,
) -> bool:
    """Check whether *caller* may perform *operation*.

    Returns True if allowed, False otherwise.
    """
    return bool(allowed_roles(operation) & roles_of(state, caller, property_id))


def require_permission(
    state: RegistryState,
    caller: str | None,
    operation: str,
    property_id: int | None = None,
) -> None:
    """Raise UnauthorizedError if *caller* may not perform *operation*."""
    if not check_permission(state, caller, operation, property_id):
        logger.warning("Rejected %s by %s: unauthorized", operation, caller)
        required = ", ".join(sorted(r.value for r in allowed_roles(operation)))
        raise UnauthorizedError(
            f"Caller '{caller}' is not allowed to perform '{operation}' "
            f"(requires one of: {required})."
        )
