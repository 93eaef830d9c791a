"""Pydantic models describing the portal configuration file."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

_CENT = Decimal("0.01")


class ConfigurationError(ValueError):
    """Raised when configuration values violate schema expectations."""


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class StorageConfig(ImmutableModel):
    """Where tax settings and member records are persisted.

    A missing ``database`` selects the in-memory stores, which is what the test
    suite and local previews use.
    """

    database: str | None = None
    timeout_seconds: float = 5.0

    @field_validator("database", mode="before")
    @classmethod
    def _blank_database_means_memory(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_timeout(self) -> Self:
        if self.timeout_seconds <= 0:
            raise ConfigurationError("Storage timeout must be positive")
        return self


class TenancyConfig(ImmutableModel):
    """Tenant resolution for incoming requests."""

    default_tenant: int = 1
    header: str = "X-Tenant-ID"

    @model_validator(mode="after")
    def _validate_tenant(self) -> Self:
        if self.default_tenant <= 0:
            raise ConfigurationError("Default tenant must be a positive identifier")
        if not self.header.strip():
            raise ConfigurationError("Tenant header name cannot be blank")
        return self


class SeedTaxSetting(ImmutableModel):
    """One year of tax policy inserted when the store has no row for it."""

    year: int
    tax_amount: Decimal = Field(alias="amount")
    description: str = ""
    is_active: bool = True
    include_previous_years: bool = False

    @field_validator("tax_amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ConfigurationError(f"Seed tax amount is not a number: {value!r}") from exc
        if not amount.is_finite():
            raise ConfigurationError(f"Seed tax amount must be finite: {value!r}")
        try:
            return amount.quantize(_CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as exc:
            raise ConfigurationError(f"Seed tax amount is out of range: {value!r}") from exc

    @model_validator(mode="after")
    def _validate_values(self) -> Self:
        if self.tax_amount <= 0:
            raise ConfigurationError("Seed tax amounts must be greater than zero")
        if not 1000 <= self.year <= 9999:
            raise ConfigurationError("Seed years must be four-digit values")
        return self


class SeedConfig(ImmutableModel):
    """Tax settings applied to a tenant at application start-up."""

    enabled: bool = False
    tenant: int = 1
    tax_settings: tuple[SeedTaxSetting, ...] = ()

    @model_validator(mode="after")
    def _validate_unique_years(self) -> Self:
        years = [entry.year for entry in self.tax_settings]
        if len(years) != len(set(years)):
            raise ConfigurationError("Seed tax settings must declare each year once")
        return self

    @property
    def years(self) -> Sequence[int]:
        return tuple(entry.year for entry in self.tax_settings)


class PortalSettings(ImmutableModel):
    """Top-level configuration for the portal backend."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    tenancy: TenancyConfig = Field(default_factory=TenancyConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)
    default_locale: str = "en"
    allowed_origins: tuple[str, ...] = ()

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(origin.strip() for origin in value.split(",") if origin.strip())
        return value


__all__ = [
    "ConfigurationError",
    "ImmutableModel",
    "PortalSettings",
    "SeedConfig",
    "SeedTaxSetting",
    "StorageConfig",
    "TenancyConfig",
]
