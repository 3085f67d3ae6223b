"""Audit trail: hash-chained log of every committed registry transition."""

from compliance_monitor.audit.hasher import Hasher
from compliance_monitor.audit.log import AuditEntry, AuditLogger, property_resource

__all__ = ["AuditEntry", "AuditLogger", "Hasher", "property_resource"]
