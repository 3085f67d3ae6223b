"""ComplianceRegistry: role-gated ledger of occupancies and compliance checks.

Usage::

    from compliance_monitor.registry import BlockClock, ComplianceRegistry

    clock = BlockClock(start=12345)
    registry = ComplianceRegistry(clock=clock)
    registry.initialize(sender=admin)
    registry.set_property_details(1, owner, 1000, sender=admin)
    registry.register_occupancy(1, resident, 22345, sender=admin)
    registry.add_inspector(inspector, sender=admin)
    registry.perform_compliance_check(1, resident, "compliant", False, sender=inspector)

Every mutating call authorizes the sender, validates its arguments and the
current record state, and only then applies the transition.  A call that
raises leaves the ledger untouched.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from compliance_monitor.audit.hasher import Hasher
from compliance_monitor.audit.log import AuditEntry, AuditLogger, property_resource
from compliance_monitor.registry.access import require_permission
from compliance_monitor.registry.clock import BlockClock
from compliance_monitor.registry.errors import (
    AlreadyInitializedError,
    InvalidArgumentError,
    InvalidLeaseExpiryError,
    OccupancyAlreadyExistsError,
    OccupancyNotFoundError,
    PropertyNotFoundError,
)
from compliance_monitor.registry.models import (
    ComplianceStatus,
    Occupancy,
    OccupancyKey,
    PropertyDetails,
    RegistryState,
)
from compliance_monitor.registry.store import LedgerStore

logger = logging.getLogger(__name__)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _check_property_id(property_id: Any) -> int:
    if not _is_uint(property_id) or property_id == 0:
        raise InvalidArgumentError(
            f"Property id must be a positive integer, got {property_id!r}."
        )
    return property_id


def _check_address(address: Any, label: str = "address") -> str:
    if not isinstance(address, str) or not address.strip():
        raise InvalidArgumentError(f"Invalid {label}: {address!r}.")
    return address


def _check_amount(amount: Any) -> int:
    if not _is_uint(amount):
        raise InvalidArgumentError(
            f"Rent amount must be a non-negative integer, got {amount!r}."
        )
    return amount


def _check_status(status: Any) -> ComplianceStatus:
    try:
        return ComplianceStatus(status)
    except ValueError:
        allowed = [s.value for s in ComplianceStatus]
        raise InvalidArgumentError(
            f"Compliance status {status!r} not in allowed values {allowed}."
        ) from None


class ComplianceRegistry:
    """Stateful registry of properties, occupancies and inspector roles.

    Parameters
    ----------
    clock:
        Block-height source for move-in, check and expiry dates.
        Defaults to a fresh :class:`BlockClock` at height 0.
    store:
        Optional :class:`LedgerStore`.  When given, the registry loads its
        state from the store and writes every committed transition back
        before it becomes visible.
    audit:
        Optional :class:`AuditLogger` receiving one entry per committed
        transition.
    state:
        Initial state; ignored when *store* already holds a snapshot.
    """

    def __init__(
        self,
        clock: BlockClock | None = None,
        store: LedgerStore | None = None,
        audit: AuditLogger | None = None,
        state: RegistryState | None = None,
    ) -> None:
        self.clock = clock or BlockClock()
        self.store = store
        self.audit = audit
        self._lock = threading.RLock()

        if store is not None and not store.is_empty():
            self._state = store.load()
            logger.info(
                "Loaded registry from store: %d properties, %d occupancies",
                len(self._state.properties), len(self._state.occupancies),
            )
            # The clock never runs behind the last persisted transition.
            stored_height = store.load_height()
            if stored_height is not None and stored_height > self.clock.height:
                logger.info(
                    "Resuming block height at %d (configured start %d)",
                    stored_height, self.clock.height,
                )
                self.clock.set_height(stored_height)
        else:
            self._state = state.copy() if state is not None else RegistryState()

    # -- Properties ----------------------------------------------------------

    @property
    def height(self) -> int:
        """Current block height."""
        return self.clock.height

    @property
    def admin(self) -> str | None:
        return self._state.admin

    @property
    def inspectors(self) -> frozenset[str]:
        return frozenset(self._state.inspectors)

    def snapshot(self) -> RegistryState:
        """Return an independent copy of the full registry state."""
        with self._lock:
            return self._state.copy()

    # -- Roles ---------------------------------------------------------------

    def initialize(self, *, sender: str) -> None:
        """One-time setup: make *sender* the admin and clear the inspectors."""
        with self._lock:
            if self._state.initialized:
                logger.warning("Rejected initialize by %s: already initialized", sender)
                raise AlreadyInitializedError(
                    f"Registry already initialized with admin '{self._state.admin}'."
                )
            require_permission(self._state, sender, "initialize")
            _check_address(sender, "sender")

            def apply(state: RegistryState) -> None:
                state.admin = sender
                state.inspectors.clear()

            self._commit(apply, "initialize", sender, resource=sender)
            logger.info("Registry initialized; admin is %s", sender)

    def add_inspector(self, address: str, *, sender: str) -> bool:
        """Grant the inspector role to *address*.

        Adding an existing inspector is a no-op.  Returns True if the
        inspector set changed.
        """
        with self._lock:
            require_permission(self._state, sender, "add-inspector")
            _check_address(address)
            if address in self._state.inspectors:
                logger.debug("Inspector %s already present", address)
                return False
            self._commit(
                lambda state: state.inspectors.add(address),
                "add-inspector", sender, resource=address,
            )
            logger.info("Added inspector %s", address)
            return True

    def remove_inspector(self, address: str, *, sender: str) -> bool:
        """Revoke the inspector role from *address*.

        Removing an absent inspector is a no-op.  Returns True if the
        inspector set changed.
        """
        with self._lock:
            require_permission(self._state, sender, "remove-inspector")
            _check_address(address)
            if address not in self._state.inspectors:
                logger.debug("Inspector %s not present", address)
                return False
            self._commit(
                lambda state: state.inspectors.discard(address),
                "remove-inspector", sender, resource=address,
            )
            logger.info("Removed inspector %s", address)
            return True

    def is_inspector(self, address: str) -> bool:
        _check_address(address)
        with self._lock:
            return address in self._state.inspectors

    def transfer_admin(self, new_admin: str, *, sender: str) -> None:
        """Replace the admin.  The old admin loses its rights immediately."""
        with self._lock:
            require_permission(self._state, sender, "transfer-admin")
            _check_address(new_admin, "new admin")

            def apply(state: RegistryState) -> None:
                state.admin = new_admin

            self._commit(apply, "transfer-admin", sender, resource=new_admin)
            logger.info("Admin transferred from %s to %s", sender, new_admin)

    # -- Properties ----------------------------------------------------------

    def set_property_details(
        self,
        property_id: int,
        owner: str,
        rent_amount: int,
        *,
        sender: str,
    ) -> PropertyDetails:
        """Create or overwrite the details of *property_id*."""
        with self._lock:
            require_permission(self._state, sender, "set-property-details")
            _check_property_id(property_id)
            _check_address(owner, "owner")
            _check_amount(rent_amount)

            before = self._state.properties.get(property_id)
            details = PropertyDetails(owner=owner, rent_amount=rent_amount)

            def apply(state: RegistryState) -> None:
                state.properties[property_id] = details

            self._commit(
                apply, "set-property-details", sender,
                resource=property_resource(property_id), before=before, after=details,
            )
            logger.info(
                "Property %d details set: owner=%s rent=%d",
                property_id, owner, rent_amount,
            )
            return details.model_copy()

    def get_property_details(self, property_id: int) -> PropertyDetails | None:
        _check_property_id(property_id)
        with self._lock:
            details = self._state.properties.get(property_id)
            return details.model_copy() if details is not None else None

    # -- Occupancy lifecycle -------------------------------------------------

    def register_occupancy(
        self,
        property_id: int,
        resident: str,
        lease_expiry: int,
        *,
        sender: str,
    ) -> Occupancy:
        """Start an occupancy for *resident* at *property_id*.

        The move-in date and first compliance check are the current block
        height; rent is copied from the property.

        Raises
        ------
        UnauthorizedError
            If *sender* is neither the admin nor the property owner.
        PropertyNotFoundError
            If the property has no details.
        OccupancyAlreadyExistsError
            If the resident already occupies the property.
        InvalidLeaseExpiryError
            If *lease_expiry* is not after the current block height.
        """
        with self._lock:
            require_permission(
                self._state, sender, "register-occupancy", property_id=property_id,
            )
            _check_property_id(property_id)
            _check_address(resident, "resident")
            if not _is_uint(lease_expiry):
                raise InvalidArgumentError(
                    f"Lease expiry must be a non-negative integer, got {lease_expiry!r}."
                )

            details = self._state.properties.get(property_id)
            if details is None:
                raise PropertyNotFoundError(f"Property {property_id} not found.")

            key = (property_id, resident)
            if key in self._state.occupancies:
                raise OccupancyAlreadyExistsError(
                    f"Resident '{resident}' already occupies property {property_id}."
                )

            height = self.height
            if lease_expiry <= height:
                raise InvalidLeaseExpiryError(
                    f"Lease expiry {lease_expiry} must be after current "
                    f"block height {height}."
                )

            occupancy = Occupancy(
                move_in_date=height,
                lease_expiry=lease_expiry,
                rent_amount=details.rent_amount,
                last_compliance_check=height,
                compliance_status=ComplianceStatus.COMPLIANT,
                violations=0,
            )

            def apply(state: RegistryState) -> None:
                state.occupancies[key] = occupancy

            self._commit(
                apply, "register-occupancy", sender,
                resource=property_resource(property_id, resident), after=occupancy,
            )
            logger.info(
                "Registered occupancy of %s at property %d (lease expires at %d)",
                resident, property_id, lease_expiry,
            )
            return occupancy.model_copy()

    def perform_compliance_check(
        self,
        property_id: int,
        resident: str,
        status: ComplianceStatus | str,
        violation_flag: bool,
        *,
        sender: str,
    ) -> Occupancy:
        """Record an inspector's compliance check.

        Sets the status and the check date.  The violation counter goes up
        by exactly one when *violation_flag* is true, whatever the status.
        """
        with self._lock:
            require_permission(self._state, sender, "perform-compliance-check")
            new_status = _check_status(status)
            if not isinstance(violation_flag, bool):
                raise InvalidArgumentError(
                    f"Violation flag must be a bool, got {violation_flag!r}."
                )

            key = self._occupancy_key(property_id, resident)
            before = self._require_occupancy(key)
            after = before.model_copy(update={
                "compliance_status": new_status,
                "last_compliance_check": self.height,
                "violations": before.violations + (1 if violation_flag else 0),
            })

            def apply(state: RegistryState) -> None:
                state.occupancies[key] = after

            self._commit(
                apply, "perform-compliance-check", sender,
                resource=property_resource(property_id, resident), before=before, after=after,
            )
            logger.info(
                "Compliance check on %s at property %d: %s (violations=%d)",
                resident, property_id, new_status.value, after.violations,
            )
            return after.model_copy()

    def end_occupancy(self, property_id: int, resident: str, *, sender: str) -> Occupancy:
        """Remove the occupancy and return the final record."""
        with self._lock:
            require_permission(self._state, sender, "end-occupancy")
            key = self._occupancy_key(property_id, resident)
            before = self._require_occupancy(key)

            def apply(state: RegistryState) -> None:
                del state.occupancies[key]

            self._commit(
                apply, "end-occupancy", sender,
                resource=property_resource(property_id, resident), before=before,
            )
            logger.info("Ended occupancy of %s at property %d", resident, property_id)
            return before.model_copy()

    # -- Queries -------------------------------------------------------------

    def get_occupancy(self, property_id: int, resident: str) -> Occupancy | None:
        """Return a copy of the occupancy, or None if there is none."""
        key = self._occupancy_key(property_id, resident)
        with self._lock:
            occupancy = self._state.occupancies.get(key)
            return occupancy.model_copy() if occupancy is not None else None

    def is_compliant(self, property_id: int, resident: str) -> bool:
        """True iff the occupancy exists and its last check was compliant."""
        key = self._occupancy_key(property_id, resident)
        with self._lock:
            occupancy = self._state.occupancies.get(key)
            return occupancy is not None and occupancy.is_compliant

    def is_lease_expired(self, property_id: int, resident: str) -> bool:
        """True iff the occupancy exists and the block height is past its expiry."""
        key = self._occupancy_key(property_id, resident)
        with self._lock:
            occupancy = self._state.occupancies.get(key)
            return occupancy is not None and occupancy.is_expired(self.height)

    def list_occupancies(
        self, property_id: int | None = None,
    ) -> list[tuple[OccupancyKey, Occupancy]]:
        """Return ``((property_id, resident), occupancy)`` pairs, sorted by key."""
        with self._lock:
            return [
                (key, occ.model_copy())
                for key, occ in sorted(self._state.occupancies.items())
                if property_id is None or key[0] == property_id
            ]

    def history(self, property_id: int, resident: str | None = None) -> list[AuditEntry]:
        """Return the audit entries that touched a property or one occupancy.

        Without *resident*, entries for the property details and for every
        occupancy of the property are included.  Empty when no audit log is
        attached.
        """
        _check_property_id(property_id)
        if resident is not None:
            _check_address(resident, "resident")
        if self.audit is None:
            return []
        return self.audit.history(property_id, resident)

    # -- Internal ------------------------------------------------------------

    @staticmethod
    def _occupancy_key(property_id: Any, resident: Any) -> OccupancyKey:
        return _check_property_id(property_id), _check_address(resident, "resident")

    def _require_occupancy(self, key: OccupancyKey) -> Occupancy:
        occupancy = self._state.occupancies.get(key)
        if occupancy is None:
            raise OccupancyNotFoundError(
                f"No occupancy for resident '{key[1]}' at property {key[0]}."
            )
        return occupancy

    def _commit(
        self,
        apply: Callable[[RegistryState], Any],
        action: str,
        sender: str,
        *,
        resource: str = "",
        before: Any = None,
        after: Any = None,
    ) -> None:
        """Apply a validated transition, persist it, then audit it.

        With a store, the transition is applied to a working copy that only
        replaces the live state once the store has saved it, together with
        the current block height.
        """
        if self.store is None:
            apply(self._state)
        else:
            working = self._state.copy()
            apply(working)
            self.store.save(working, block_height=self.height)
            self._state = working

        if self.audit is not None:
            self.audit.log(
                sender,
                action,
                resource=resource,
                block_height=self.height,
                before_hash=Hasher.hash_record(before),
                after_hash=Hasher.hash_record(after),
            )
