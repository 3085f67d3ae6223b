"""Tests for the registry summary report."""

from __future__ import annotations

import pytest

from compliance_monitor.registry import BlockClock, ComplianceRegistry, ComplianceStatus
from compliance_monitor.report import RegistryReport

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
INSPECTOR = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP"
ALICE = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
BOB = "ST2NEB84ASENDXKYGJPQW86YXQCEFEX2ZQPG87ND"


@pytest.fixture
def registry() -> ComplianceRegistry:
    reg = ComplianceRegistry(clock=BlockClock(start=100))
    reg.initialize(sender=ADMIN)
    reg.add_inspector(INSPECTOR, sender=ADMIN)
    reg.set_property_details(1, ADMIN, 1000, sender=ADMIN)
    reg.set_property_details(2, ADMIN, 800, sender=ADMIN)
    reg.register_occupancy(1, ALICE, 150, sender=ADMIN)
    reg.register_occupancy(2, BOB, 500, sender=ADMIN)
    reg.perform_compliance_check(2, BOB, "non-compliant", True, sender=INSPECTOR)
    reg.perform_compliance_check(2, BOB, "non-compliant", True, sender=INSPECTOR)
    reg.clock.advance(100)
    return reg


class TestRegistryReport:
    def test_summary_counts(self, registry: ComplianceRegistry) -> None:
        report = RegistryReport.from_registry(registry)
        assert report.block_height == 200
        assert report.admin == ADMIN
        assert report.inspectors == [INSPECTOR]
        assert report.property_count == 2
        assert len(report.occupancies) == 2
        assert report.compliant_count == 1
        assert report.non_compliant_count == 1
        assert report.expired_count == 1
        assert report.total_violations == 2

    def test_rows(self, registry: ComplianceRegistry) -> None:
        report = RegistryReport.from_registry(registry)
        alice, bob = report.occupancies
        assert (alice.property_id, alice.resident, alice.expired) == (1, ALICE, True)
        assert bob.compliance_status is ComplianceStatus.NON_COMPLIANT
        assert bob.violations == 2

    def test_markdown(self, registry: ComplianceRegistry) -> None:
        md = RegistryReport.from_registry(registry).to_markdown()
        assert "# Compliance Registry Report — block 200" in md
        assert "## Occupancies" in md
        assert "150 (expired)" in md
        assert "## Non-Compliant Occupancies" in md
        assert f"**Property 2** — {BOB}: 2 violation(s)" in md

    def test_empty_registry(self) -> None:
        md = RegistryReport.from_registry(ComplianceRegistry()).to_markdown()
        assert "uninitialized" in md
        assert "## Occupancies" not in md
