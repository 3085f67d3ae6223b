"""Ledger records: property details, occupancies and the registry state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ComplianceStatus(str, Enum):
    """Outcome recorded by the most recent compliance check."""

    COMPLIANT = "compliant"
    NON_COMPLIANT = "non-compliant"


class PropertyDetails(BaseModel):
    """Owner and rent for a single property."""

    model_config = ConfigDict(populate_by_name=True)

    owner: str
    """Address of the property owner."""

    rent_amount: int = Field(default=0, ge=0, alias="rent-amount")
    """Rent copied into every occupancy registered against the property."""

    def to_contract(self) -> dict[str, Any]:
        """Return the hyphen-keyed representation used by contract calls."""
        return self.model_dump(by_alias=True, mode="json")


class Occupancy(BaseModel):
    """The active lease and compliance record of a resident at a property.

    All dates are block heights.  Field aliases follow the contract's
    hyphenated tuple keys so records can be read from, and rendered back
    to, contract call results.
    """

    model_config = ConfigDict(populate_by_name=True)

    move_in_date: int = Field(ge=0, alias="move-in-date")
    lease_expiry: int = Field(ge=0, alias="lease-expiry")
    rent_amount: int = Field(default=0, ge=0, alias="rent-amount")
    last_compliance_check: int = Field(ge=0, alias="last-compliance-check")
    compliance_status: ComplianceStatus = Field(
        default=ComplianceStatus.COMPLIANT, alias="compliance-status",
    )
    violations: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _lease_after_move_in(self) -> Occupancy:
        if self.lease_expiry <= self.move_in_date:
            raise ValueError(
                f"lease-expiry {self.lease_expiry} must be after "
                f"move-in-date {self.move_in_date}"
            )
        return self

    @property
    def is_compliant(self) -> bool:
        return self.compliance_status is ComplianceStatus.COMPLIANT

    def is_expired(self, height: int) -> bool:
        """True once *height* has passed the lease expiry."""
        return height > self.lease_expiry

    def to_contract(self) -> dict[str, Any]:
        """Return the hyphen-keyed representation used by contract calls."""
        return self.model_dump(by_alias=True, mode="json")


OccupancyKey = tuple[int, str]


@dataclass
class RegistryState:
    """Everything the registry owns.

    Held by a single :class:`~compliance_monitor.registry.core.ComplianceRegistry`
    and passed explicitly to the authorization layer and the store.
    """

    admin: str | None = None
    inspectors: set[str] = field(default_factory=set)
    properties: dict[int, PropertyDetails] = field(default_factory=dict)
    occupancies: dict[OccupancyKey, Occupancy] = field(default_factory=dict)

    @property
    def initialized(self) -> bool:
        return self.admin is not None

    def copy(self) -> RegistryState:
        """Return an independent snapshot of the state."""
        return RegistryState(
            admin=self.admin,
            inspectors=set(self.inspectors),
            properties={pid: p.model_copy() for pid, p in self.properties.items()},
            occupancies={key: o.model_copy() for key, o in self.occupancies.items()},
        )
