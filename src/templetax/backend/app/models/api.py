"""Pydantic models describing the public API request bodies."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .domain import Money

__all__ = [
    "BulkToggleInput",
    "PaymentInput",
    "RegistrationQuery",
    "TaxRecordInput",
    "TaxSettingInput",
    "format_validation_error",
    "MIN_YEAR",
    "MAX_YEAR",
]

MIN_YEAR = 1000
MAX_YEAR = 9999


class ApiModel(BaseModel):
    """Request bodies accept camelCase keys as well as field names."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class TaxSettingInput(ApiModel):
    """Create or update the tax policy for one year."""

    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    tax_amount: Money
    description: str = ""
    is_active: bool = True
    include_previous_years: bool = False

    @field_validator("tax_amount")
    @classmethod
    def _require_amount(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("tax amount is required and must be greater than zero")
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _blank_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("is_active", mode="before")
    @classmethod
    def _default_active(cls, value: Any) -> Any:
        return True if value is None else value

    @field_validator("include_previous_years", mode="before")
    @classmethod
    def _default_include(cls, value: Any) -> Any:
        return False if value is None else value


class BulkToggleInput(ApiModel):
    """Flag applied to every tax year of a tenant."""

    include_previous_years: bool = False

    @field_validator("include_previous_years", mode="before")
    @classmethod
    def _missing_means_false(cls, value: Any) -> Any:
        return False if value is None else value


class TaxRecordInput(ApiModel):
    """A member's registration for one year."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    member_identifier: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("memberIdentifier", "mobileNumber", "member_identifier"),
    )
    name: str | None = None
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    tax_amount: Money = Decimal("0.00")
    amount_paid: Money = Decimal("0.00")

    @field_validator("member_identifier", mode="before")
    @classmethod
    def _strip_identifier(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("tax_amount", "amount_paid")
    @classmethod
    def _non_negative(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("value cannot be negative")
        return value


class PaymentInput(ApiModel):
    """An amount paid against an existing registration."""

    amount: Money

    @field_validator("amount")
    @classmethod
    def _positive(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("payment amount must be greater than zero")
        return value


class RegistrationQuery(ApiModel):
    """Pagination and filters for listing member registrations."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    page: int = 1
    page_size: int = 20
    search: str = ""
    pending: bool = False

    @field_validator("page", mode="before")
    @classmethod
    def _clamp_page(cls, value: Any) -> int:
        try:
            return max(int(value), 1)
        except (TypeError, ValueError):
            return 1

    @field_validator("page_size", mode="before")
    @classmethod
    def _clamp_page_size(cls, value: Any) -> int:
        try:
            return min(max(int(value), 1), 100)
        except (TypeError, ValueError):
            return 20

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("pending", mode="before")
    @classmethod
    def _pending_flag(cls, value: Any) -> bool:
        return str(value).strip().lower() in {"1", "true", "yes"}

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def format_validation_error(error: ValidationError, *, subject: str = "request") -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {subject}: {details}"
