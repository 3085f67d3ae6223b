"""Compliance Monitor: property-occupancy compliance registry with role-gated transitions."""

__version__ = "1.0.0"

from compliance_monitor.audit.hasher import Hasher
from compliance_monitor.audit.log import AuditEntry, AuditLogger
from compliance_monitor.config_manager import ConfigManager, configure_logging
from compliance_monitor.contract import CallResult, ComplianceMonitoringContract
from compliance_monitor.registry.access import Role, check_permission, require_permission
from compliance_monitor.registry.clock import BlockClock
from compliance_monitor.registry.core import ComplianceRegistry
from compliance_monitor.registry.errors import ErrorKind, RegistryError
from compliance_monitor.registry.models import (
    ComplianceStatus,
    Occupancy,
    PropertyDetails,
    RegistryState,
)
from compliance_monitor.registry.store import LedgerStore
from compliance_monitor.report import RegistryReport

__all__ = [
    "__version__",
    # Registry
    "BlockClock",
    "ComplianceRegistry",
    "ComplianceStatus",
    "ErrorKind",
    "LedgerStore",
    "Occupancy",
    "PropertyDetails",
    "RegistryError",
    "RegistryState",
    "Role",
    "check_permission",
    "require_permission",
    # Contract surface
    "CallResult",
    "ComplianceMonitoringContract",
    # Audit
    "AuditEntry",
    "AuditLogger",
    "Hasher",
    # Config and reporting
    "ConfigManager",
    "RegistryReport",
    "configure_logging",
]
