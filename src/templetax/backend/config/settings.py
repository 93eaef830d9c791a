"""Configuration loader wrapping the shared schema models."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import (
    ConfigurationError,
    PortalSettings,
    SeedConfig,
    SeedTaxSetting,
    StorageConfig,
    TenancyConfig,
)

CONFIG_DIRECTORY = Path(__file__).resolve().parent / "data"
SETTINGS_FILE = CONFIG_DIRECTORY / "settings.yaml"

_LOGGER = logging.getLogger(__name__)


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must define a mapping at the top level")
    return data


def _apply_environment(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``TEMPLETAX_*`` environment variables onto the raw mapping."""

    merged = dict(raw)

    database = os.getenv("TEMPLETAX_DB")
    if database is not None:
        storage = dict(merged.get("storage") or {})
        storage["database"] = database
        merged["storage"] = storage

    default_tenant = os.getenv("TEMPLETAX_DEFAULT_TENANT")
    if default_tenant is not None and default_tenant.strip():
        try:
            tenant = int(default_tenant)
        except ValueError:
            _LOGGER.warning(
                "Ignoring invalid value for TEMPLETAX_DEFAULT_TENANT: %s", default_tenant
            )
        else:
            tenancy = dict(merged.get("tenancy") or {})
            tenancy["default_tenant"] = tenant
            merged["tenancy"] = tenancy

    origins = os.getenv("TEMPLETAX_ALLOWED_ORIGINS")
    if origins is not None:
        merged["allowed_origins"] = origins

    return merged


@lru_cache(maxsize=1)
def load_settings() -> PortalSettings:
    """Load, validate and cache the portal configuration."""

    raw: dict[str, Any] = {}
    if SETTINGS_FILE.exists():
        raw = _load_yaml(SETTINGS_FILE)
    else:
        _LOGGER.warning("Settings file %s not found; using defaults", SETTINGS_FILE)

    try:
        return PortalSettings.model_validate(_apply_environment(raw))
    except ValidationError as error:
        raise ConfigurationError(f"Settings validation failed: {error}") from error


__all__ = [
    "CONFIG_DIRECTORY",
    "ConfigurationError",
    "PortalSettings",
    "SETTINGS_FILE",
    "SeedConfig",
    "SeedTaxSetting",
    "StorageConfig",
    "TenancyConfig",
    "load_settings",
]
