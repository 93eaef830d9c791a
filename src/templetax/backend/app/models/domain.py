"""Immutable domain values shared by the stores and the liability calculator.

Amounts are held as :class:`~decimal.Decimal` quantised to cents, mirroring the
``DECIMAL(10,2)`` columns the portal has always persisted. Models dump with
camelCase aliases so the HTTP layer can hand them to ``jsonify`` unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce ``value`` into a two-place decimal amount."""

    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError("Amounts must be numeric")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Amount is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError("Amounts must be finite")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError("Amount is out of range") from exc


Money = Annotated[
    Decimal,
    BeforeValidator(to_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class DomainModel(BaseModel):
    """Frozen base with camelCase aliases for serialisation."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def as_payload(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase representation."""

        return self.model_dump(mode="json", by_alias=True)


class TaxYearSetting(DomainModel):
    """A tenant's tax policy for one year."""

    id: int | None = None
    tenant_id: int
    year: int
    tax_amount: Money
    is_active: bool = True
    include_previous_years: bool = False
    description: str = ""

    @field_validator("tax_amount")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("Tax amount cannot be negative")
        return value


class MemberTaxRecord(DomainModel):
    """What a member was assessed and has paid for one year."""

    id: int | None = None
    tenant_id: int
    member_identifier: str
    name: str | None = None
    year: int
    tax_amount: Money = ZERO
    amount_paid: Money = ZERO
    outstanding_amount: Money = ZERO

    @field_validator("amount_paid")
    @classmethod
    def _paid_non_negative(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("Amount paid cannot be negative")
        return value


class BreakdownStatus(str, Enum):
    """Why a year appears in a liability breakdown."""

    REGISTERED = "registered"
    NEW_REGISTRATION_PREVIOUS_YEAR = "new_registration_previous_year"
    CURRENT_REGISTERED = "current_registered"
    CURRENT_NEW = "current_new"

    @property
    def is_current(self) -> bool:
        return self in (BreakdownStatus.CURRENT_REGISTERED, BreakdownStatus.CURRENT_NEW)


class BreakdownRow(DomainModel):
    """One per-year line of a liability report."""

    year: int
    tax_amount: Money
    amount_paid: Money
    outstanding: Money
    status: BreakdownStatus


class LiabilityReport(DomainModel):
    """Multi-year liability of a single member relative to a reference year."""

    cumulative_outstanding: Money
    current_year_tax: Money
    total_tax_due: Money
    year_breakdown: tuple[BreakdownRow, ...] = ()
    has_existing_registration: bool
    is_new_user: bool
    joining_year: int


class LiabilitySnapshot(DomainModel):
    """Policy settings and member records read together for one calculation.

    The two halves come from independent store reads; holding them in one
    value makes that boundary explicit to callers.
    """

    settings: tuple[TaxYearSetting, ...] = ()
    records: Mapping[int, MemberTaxRecord] = Field(default_factory=dict)

    @field_validator("records")
    @classmethod
    def _records_keyed_by_year(
        cls, value: Mapping[int, MemberTaxRecord]
    ) -> Mapping[int, MemberTaxRecord]:
        for year, record in value.items():
            if record.year != year:
                raise ValueError(
                    f"Record for year {record.year} is filed under year {year}"
                )
        return value


__all__ = [
    "BreakdownRow",
    "BreakdownStatus",
    "CENT",
    "DomainModel",
    "LiabilityReport",
    "LiabilitySnapshot",
    "MemberTaxRecord",
    "Money",
    "TaxYearSetting",
    "ZERO",
    "to_money",
]
