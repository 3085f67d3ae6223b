"""ComplianceMonitoringContract: contract-style call surface over the registry.

Functions are invoked by their hyphenated contract names with positional
arguments, and every call returns a :class:`CallResult` instead of raising::

    contract = ComplianceMonitoringContract(tx_sender=deployer)
    contract.call_function("initialize")
    contract.call_function("set-property-details", 1, deployer, 1000)
    contract.call_function("register-occupancy", 1, resident, 22345)
    result = contract.call_read_only("get-occupancy", 1, resident)
    result.value["compliance-status"]   # "compliant"
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel

from compliance_monitor.registry.access import MUTATING_OPERATIONS, READ_ONLY_OPERATIONS
from compliance_monitor.registry.core import ComplianceRegistry
from compliance_monitor.registry.errors import (
    ERROR_CODES,
    ErrorKind,
    InvalidArgumentError,
    OccupancyNotFoundError,
    PropertyNotFoundError,
    RegistryError,
)

logger = logging.getLogger(__name__)

CONTRACT_NAME = "compliance-monitoring"


class CallResult(BaseModel):
    """Outcome of a contract call: a value on success, a tagged error otherwise."""

    ok: bool = True
    value: Any = None
    error: ErrorKind | None = None
    code: int | None = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = True) -> CallResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, exc: RegistryError) -> CallResult:
        return cls(ok=False, error=exc.kind, code=exc.code, message=exc.message)


# function name -> number of positional arguments
_ARITY: dict[str, int] = {
    "initialize": 0,
    "add-inspector": 1,
    "remove-inspector": 1,
    "set-property-details": 3,
    "register-occupancy": 3,
    "perform-compliance-check": 4,
    "end-occupancy": 2,
    "transfer-admin": 1,
    "get-occupancy": 2,
    "get-property-details": 1,
    "is-compliant": 2,
    "is-lease-expired": 2,
    "is-inspector": 1,
    "get-admin": 0,
}


class ComplianceMonitoringContract:
    """Dispatch named contract calls to a :class:`ComplianceRegistry`.

    Parameters
    ----------
    registry:
        Registry to operate on.  A fresh in-memory one is created if omitted.
    tx_sender:
        Default sender for public function calls.
    """

    name = CONTRACT_NAME

    def __init__(
        self,
        registry: ComplianceRegistry | None = None,
        tx_sender: str | None = None,
    ) -> None:
        self.registry = registry or ComplianceRegistry()
        self.tx_sender = tx_sender

        r = self.registry
        self._public: dict[str, Callable[..., Any]] = {
            "initialize": lambda s: r.initialize(sender=s),
            "add-inspector": lambda s, a: r.add_inspector(a, sender=s),
            "remove-inspector": lambda s, a: r.remove_inspector(a, sender=s),
            "set-property-details": lambda s, p, o, amt: r.set_property_details(
                p, o, amt, sender=s,
            ),
            "register-occupancy": lambda s, p, res, exp: r.register_occupancy(
                p, res, exp, sender=s,
            ),
            "perform-compliance-check": lambda s, p, res, st, flag: r.perform_compliance_check(
                p, res, st, flag, sender=s,
            ),
            "end-occupancy": lambda s, p, res: r.end_occupancy(p, res, sender=s),
            "transfer-admin": lambda s, a: r.transfer_admin(a, sender=s),
        }
        self._read_only: dict[str, Callable[..., Any]] = {
            "get-occupancy": self._get_occupancy,
            "get-property-details": self._get_property_details,
            "is-compliant": r.is_compliant,
            "is-lease-expired": r.is_lease_expired,
            "is-inspector": r.is_inspector,
            "get-admin": lambda: r.admin,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call_function(self, function_name: str, *args: Any, sender: str | None = None) -> CallResult:
        """Invoke a public (state-changing) function.

        *sender* defaults to :attr:`tx_sender`.  Success always carries
        ``value=True``.
        """
        caller = sender if sender is not None else self.tx_sender
        try:
            self._check_call(function_name, args, MUTATING_OPERATIONS)
            self._public[function_name](caller, *args)
        except RegistryError as exc:
            logger.warning(
                "%s.%s by %s failed: %s (u%d)",
                self.name, function_name, caller, exc.kind.value, exc.code,
            )
            return CallResult.failure(exc)
        return CallResult.success(True)

    def call_read_only(self, function_name: str, *args: Any) -> CallResult:
        """Invoke a read-only function; never changes registry state."""
        try:
            self._check_call(function_name, args, READ_ONLY_OPERATIONS)
            value = self._read_only[function_name](*args)
        except RegistryError as exc:
            logger.debug("%s.%s failed: %s", self.name, function_name, exc.kind.value)
            return CallResult.failure(exc)
        return CallResult.success(value)

    @staticmethod
    def error_code(kind: ErrorKind) -> int:
        return ERROR_CODES[kind]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_call(self, function_name: str, args: tuple[Any, ...], allowed: frozenset[str]) -> None:
        if function_name not in allowed:
            if function_name in _ARITY:
                raise InvalidArgumentError(
                    f"'{function_name}' cannot be called through this entry point."
                )
            raise InvalidArgumentError(f"Unknown function '{function_name}'.")
        expected = _ARITY[function_name]
        if len(args) != expected:
            raise InvalidArgumentError(
                f"'{function_name}' takes {expected} argument(s), got {len(args)}."
            )

    def _get_occupancy(self, property_id: int, resident: str) -> dict[str, Any]:
        occupancy = self.registry.get_occupancy(property_id, resident)
        if occupancy is None:
            raise OccupancyNotFoundError(
                f"No occupancy for resident '{resident}' at property {property_id}."
            )
        return occupancy.to_contract()

    def _get_property_details(self, property_id: int) -> dict[str, Any]:
        details = self.registry.get_property_details(property_id)
        if details is None:
            raise PropertyNotFoundError(f"Property {property_id} not found.")
        return details.to_contract()
