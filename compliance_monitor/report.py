"""RegistryReport model and Markdown report generation."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from compliance_monitor.registry.core import ComplianceRegistry
from compliance_monitor.registry.models import ComplianceStatus


class OccupancyRow(BaseModel):
    """One occupancy as it appears in the report."""

    property_id: int
    resident: str
    move_in_date: int
    lease_expiry: int
    rent_amount: int = 0
    last_compliance_check: int
    compliance_status: ComplianceStatus = ComplianceStatus.COMPLIANT
    violations: int = 0
    expired: bool = False


class RegistryReport(BaseModel):
    """Summary of a registry at a given block height."""

    block_height: int = 0
    admin: str | None = None
    inspectors: list[str] = Field(default_factory=list)
    property_count: int = 0
    occupancies: list[OccupancyRow] = Field(default_factory=list)

    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_registry(cls, registry: ComplianceRegistry) -> RegistryReport:
        """Build a report from the registry's current state."""
        state = registry.snapshot()
        height = registry.height
        rows = [
            OccupancyRow(
                property_id=pid,
                resident=resident,
                move_in_date=occ.move_in_date,
                lease_expiry=occ.lease_expiry,
                rent_amount=occ.rent_amount,
                last_compliance_check=occ.last_compliance_check,
                compliance_status=occ.compliance_status,
                violations=occ.violations,
                expired=occ.is_expired(height),
            )
            for (pid, resident), occ in sorted(state.occupancies.items())
        ]
        return cls(
            block_height=height,
            admin=state.admin,
            inspectors=sorted(state.inspectors),
            property_count=len(state.properties),
            occupancies=rows,
        )

    @property
    def compliant_count(self) -> int:
        return sum(1 for r in self.occupancies if r.compliance_status is ComplianceStatus.COMPLIANT)

    @property
    def non_compliant_count(self) -> int:
        return len(self.occupancies) - self.compliant_count

    @property
    def expired_count(self) -> int:
        return sum(1 for r in self.occupancies if r.expired)

    @property
    def total_violations(self) -> int:
        return sum(r.violations for r in self.occupancies)

    def to_markdown(self) -> str:
        """Render the report as a Markdown document."""
        lines: list[str] = []

        lines.append(f"# Compliance Registry Report — block {self.block_height}")
        lines.append("")
        lines.append(f"**Admin:** `{self.admin or 'uninitialized'}`")
        lines.append(f"**Inspectors:** {len(self.inspectors)}")
        lines.append(f"**Properties:** {self.property_count}")
        lines.append(f"**Generated:** {self.generated_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append("")
        lines.append(
            f"**Occupancies:** {len(self.occupancies)} "
            f"({self.compliant_count} compliant, {self.non_compliant_count} non-compliant, "
            f"{self.expired_count} expired; {self.total_violations} violations)"
        )
        lines.append("")

        if self.occupancies:
            lines.append("## Occupancies")
            lines.append("")
            lines.append("| Property | Resident | Status | Violations | Last Check | Lease Expiry |")
            lines.append("|----------|----------|--------|------------|------------|--------------|")
            for r in self.occupancies:
                expiry = f"{r.lease_expiry} (expired)" if r.expired else str(r.lease_expiry)
                lines.append(
                    f"| {r.property_id} | {r.resident} | {_status_icon(r.compliance_status)} "
                    f"| {r.violations} | {r.last_compliance_check} | {expiry} |"
                )
            lines.append("")

        flagged = [r for r in self.occupancies if r.compliance_status is ComplianceStatus.NON_COMPLIANT]
        if flagged:
            lines.append("## Non-Compliant Occupancies")
            lines.append("")
            for r in flagged:
                lines.append(
                    f"- **Property {r.property_id}** — {r.resident}: "
                    f"{r.violations} violation(s), last checked at block {r.last_compliance_check}"
                )
            lines.append("")

        return "\n".join(lines)


def _status_icon(status: ComplianceStatus) -> str:
    """Return a text icon for a compliance status."""
    return {
        ComplianceStatus.COMPLIANT: "OK",
        ComplianceStatus.NON_COMPLIANT: "FAIL",
    }.get(status, status.value)
