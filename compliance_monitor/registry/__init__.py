"""Compliance registry: occupancy lifecycle and role-gated compliance checks."""

from compliance_monitor.registry.access import Role, check_permission, require_permission
from compliance_monitor.registry.clock import BlockClock
from compliance_monitor.registry.core import ComplianceRegistry
from compliance_monitor.registry.errors import (
    AlreadyInitializedError,
    ErrorKind,
    InvalidArgumentError,
    InvalidLeaseExpiryError,
    NotFoundError,
    OccupancyAlreadyExistsError,
    OccupancyNotFoundError,
    PropertyNotFoundError,
    RegistryError,
    UnauthorizedError,
)
from compliance_monitor.registry.models import (
    ComplianceStatus,
    Occupancy,
    PropertyDetails,
    RegistryState,
)
from compliance_monitor.registry.store import LedgerStore

__all__ = [
    "AlreadyInitializedError",
    "BlockClock",
    "ComplianceRegistry",
    "ComplianceStatus",
    "ErrorKind",
    "InvalidArgumentError",
    "InvalidLeaseExpiryError",
    "LedgerStore",
    "NotFoundError",
    "Occupancy",
    "OccupancyAlreadyExistsError",
    "OccupancyNotFoundError",
    "PropertyDetails",
    "PropertyNotFoundError",
    "RegistryError",
    "RegistryState",
    "Role",
    "UnauthorizedError",
    "check_permission",
    "require_permission",
]
