"""Helpers for normalising incoming requests at the HTTP boundary."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from flask import Request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from templetax.backend.app.errors import InvalidArgument
from templetax.backend.app.localization import normalise_locale
from templetax.backend.app.models import MAX_YEAR, MIN_YEAR, format_validation_error
from templetax.backend.config.schema import TenancyConfig

ModelT = TypeVar("ModelT", bound=BaseModel)


def resolve_locale(req: Request, default: str | None = None) -> str:
    """Pick the locale from ``?locale=`` or the ``Accept-Language`` header.

    Requests naming neither use ``default``, the configured portal locale.
    """

    locale_param = req.args.get("locale")
    if locale_param:
        return normalise_locale(locale_param)

    accept_language = req.headers.get("Accept-Language")
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip()
        if primary:
            return normalise_locale(primary)

    return normalise_locale(default)


def resolve_tenant(req: Request, tenancy: TenancyConfig) -> int:
    """Return the tenant named by the tenant header, or the configured default."""

    raw = req.headers.get(tenancy.header)
    if raw is None or not raw.strip():
        return tenancy.default_tenant

    value = raw.strip()
    if not (value.isascii() and value.isdigit()) or int(value) <= 0:
        raise InvalidArgument(f"Header '{tenancy.header}' must be a positive integer")
    return int(value)


def parse_year(raw: Any, *, field: str = "year", default: int | None = None) -> int:
    """Parse a four-digit year supplied as text or an integer.

    Blank values fall back to ``default`` when one is given.
    """

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if default is not None:
            return default
        raise InvalidArgument(f"Field '{field}' is required")

    if isinstance(raw, bool):
        raise InvalidArgument(f"Field '{field}' must be a four-digit year")

    if isinstance(raw, int):
        year = raw
    else:
        text = str(raw).strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidArgument(f"Field '{field}' must be a four-digit year")
        year = int(text)

    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidArgument(f"Field '{field}' must be a four-digit year")
    return year


def parse_json_payload(req: Request) -> dict[str, Any]:
    """Extract a JSON object from ``req``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_model(model: type[ModelT], payload: Mapping[str, Any], *, subject: str) -> ModelT:
    """Validate ``payload`` against ``model`` and raise ``InvalidArgument`` on failure."""

    try:
        return model.model_validate(payload)
    except ValidationError as error:
        raise InvalidArgument(format_validation_error(error, subject=subject)) from error


__all__ = [
    "parse_json_payload",
    "parse_model",
    "parse_year",
    "resolve_locale",
    "resolve_tenant",
]
