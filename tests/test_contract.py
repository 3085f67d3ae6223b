"""Tests for the contract-style call surface.

Mirrors the call sequence a client makes against the compliance-monitoring
contract: every call returns a CallResult, failures are values not raises.
"""

from __future__ import annotations

import pytest

from compliance_monitor.contract import CallResult, ComplianceMonitoringContract
from compliance_monitor.registry import BlockClock, ComplianceRegistry, ErrorKind

TX_SENDER = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
RESIDENT = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
INSPECTOR = "ST3NBRSFKX28FQ2ZJ1MAKX58HKHSDGNV5N7R21XCP"


@pytest.fixture
def contract() -> ComplianceMonitoringContract:
    registry = ComplianceRegistry(clock=BlockClock(start=12345))
    return ComplianceMonitoringContract(registry, tx_sender=TX_SENDER)


@pytest.fixture
def live(contract: ComplianceMonitoringContract) -> ComplianceMonitoringContract:
    """Contract initialized with an inspector, property 1 and one occupancy."""
    assert contract.call_function("initialize").ok
    assert contract.call_function("add-inspector", INSPECTOR).ok
    assert contract.call_function("set-property-details", 1, TX_SENDER, 1000).ok
    assert contract.call_function("register-occupancy", 1, RESIDENT, 22345).ok
    return contract


class TestPublicFunctions:
    def test_initialize(self, contract: ComplianceMonitoringContract) -> None:
        result = contract.call_function("initialize")
        assert result.value is True
        assert contract.call_read_only("get-admin").value == TX_SENDER

    def test_initialize_twice(self, contract: ComplianceMonitoringContract) -> None:
        contract.call_function("initialize")
        result = contract.call_function("initialize")
        assert result.ok is False
        assert result.error is ErrorKind.ALREADY_INITIALIZED
        assert result.code == 101

    def test_add_and_remove_inspector(self, live: ComplianceMonitoringContract) -> None:
        assert live.call_read_only("is-inspector", INSPECTOR).value is True
        result = live.call_function("remove-inspector", INSPECTOR)
        assert result.value is True
        assert live.call_read_only("is-inspector", INSPECTOR).value is False

    def test_set_property_details(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_read_only("get-property-details", 1)
        assert result.value == {"owner": TX_SENDER, "rent-amount": 1000}

    def test_perform_compliance_check_as_inspector(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_function(
            "perform-compliance-check", 1, RESIDENT, "compliant", False, sender=INSPECTOR,
        )
        assert result.value is True
        assert live.call_read_only("get-occupancy", 1, RESIDENT).value["violations"] == 0

    def test_perform_compliance_check_as_tx_sender_fails(
        self, live: ComplianceMonitoringContract,
    ) -> None:
        result = live.call_function("perform-compliance-check", 1, RESIDENT, "non-compliant", True)
        assert result.ok is False
        assert result.error is ErrorKind.UNAUTHORIZED
        assert result.code == 100

    def test_tx_sender_switch(self, live: ComplianceMonitoringContract) -> None:
        original = live.tx_sender
        live.tx_sender = INSPECTOR
        result = live.call_function("perform-compliance-check", 1, RESIDENT, "non-compliant", True)
        live.tx_sender = original
        assert result.ok
        assert live.call_read_only("is-compliant", 1, RESIDENT).value is False

    def test_end_occupancy(self, live: ComplianceMonitoringContract) -> None:
        assert live.call_function("end-occupancy", 1, RESIDENT).value is True
        result = live.call_read_only("get-occupancy", 1, RESIDENT)
        assert result.ok is False
        assert result.error is ErrorKind.OCCUPANCY_NOT_FOUND

    def test_transfer_admin(self, live: ComplianceMonitoringContract) -> None:
        assert live.call_function("transfer-admin", RESIDENT).value is True
        result = live.call_function("add-inspector", TX_SENDER)
        assert result.error is ErrorKind.UNAUTHORIZED


class TestReadOnlyFunctions:
    def test_get_occupancy(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_read_only("get-occupancy", 1, RESIDENT)
        assert result.value == {
            "move-in-date": 12345,
            "lease-expiry": 22345,
            "rent-amount": 1000,
            "last-compliance-check": 12345,
            "compliance-status": "compliant",
            "violations": 0,
        }

    def test_is_compliant(self, live: ComplianceMonitoringContract) -> None:
        assert live.call_read_only("is-compliant", 1, RESIDENT).value is True

    def test_is_lease_expired(self, live: ComplianceMonitoringContract) -> None:
        assert live.call_read_only("is-lease-expired", 1, RESIDENT).value is False
        live.registry.clock.advance(10_001)
        assert live.call_read_only("is-lease-expired", 1, RESIDENT).value is True

    def test_missing_property_details(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_read_only("get-property-details", 9)
        assert result.error is ErrorKind.PROPERTY_NOT_FOUND


class TestDispatch:
    def test_unknown_function(self, contract: ComplianceMonitoringContract) -> None:
        result = contract.call_function("mint")
        assert result.error is ErrorKind.INVALID_ARGUMENT

    def test_public_function_via_read_only_rejected(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_read_only("end-occupancy", 1, RESIDENT)
        assert result.error is ErrorKind.INVALID_ARGUMENT
        assert live.call_read_only("get-occupancy", 1, RESIDENT).ok

    def test_wrong_arity(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_function("register-occupancy", 1, RESIDENT)
        assert result.error is ErrorKind.INVALID_ARGUMENT

    def test_malformed_arguments_become_failures(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_read_only("get-occupancy", [1], RESIDENT)
        assert result.ok is False
        assert result.error is ErrorKind.INVALID_ARGUMENT
        assert result.code == 106

        assert live.call_read_only("is-compliant", 1, None).error is ErrorKind.INVALID_ARGUMENT
        assert live.call_read_only("get-property-details", "1").error is ErrorKind.INVALID_ARGUMENT
        result = live.call_function("end-occupancy", [1], RESIDENT)
        assert result.error is ErrorKind.INVALID_ARGUMENT
        assert live.call_read_only("get-occupancy", 1, RESIDENT).ok

    def test_failure_result_shape(self) -> None:
        result = CallResult(ok=False, error=ErrorKind.OCCUPANCY_ALREADY_EXISTS, code=104)
        assert result.value is None
        assert ComplianceMonitoringContract.error_code(ErrorKind.OCCUPANCY_ALREADY_EXISTS) == 104

    def test_duplicate_registration(self, live: ComplianceMonitoringContract) -> None:
        result = live.call_function("register-occupancy", 1, RESIDENT, 30000)
        assert result.error is ErrorKind.OCCUPANCY_ALREADY_EXISTS
        assert "already occupies" in result.message
