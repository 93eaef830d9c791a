"""Unit tests for request parsing helpers."""

from __future__ import annotations

import pytest
from flask import Flask, request
from werkzeug.exceptions import BadRequest

from templetax.backend.app.errors import InvalidArgument
from templetax.backend.app.models import TaxSettingInput
from templetax.backend.config.schema import TenancyConfig
from templetax.backend.services.request_parser import (
    parse_json_payload,
    parse_model,
    parse_year,
    resolve_locale,
    resolve_tenant,
)

TENANCY = TenancyConfig(default_tenant=7)


def test_resolve_locale_prefers_query_parameter(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/tax-settings?locale=ta", headers={"Accept-Language": "en-GB"}
    ):
        assert resolve_locale(request) == "ta"


def test_resolve_locale_uses_accept_language(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/tax-settings", headers={"Accept-Language": "ta-IN;q=0.9, en;q=0.8"}
    ):
        assert resolve_locale(request) == "ta"


def test_resolve_locale_defaults_to_english(app: Flask) -> None:
    with app.test_request_context("/api/v1/tax-settings"):
        assert resolve_locale(request) == "en"


def test_resolve_locale_falls_back_to_configured_default(app: Flask) -> None:
    with app.test_request_context("/api/v1/tax-settings"):
        assert resolve_locale(request, "ta") == "ta"
        assert resolve_locale(request, "fr") == "en"

    with app.test_request_context("/api/v1/tax-settings", headers={"Accept-Language": "en"}):
        assert resolve_locale(request, "ta") == "en"


def test_resolve_tenant_defaults_without_header(app: Flask) -> None:
    with app.test_request_context("/api/v1/tax-settings"):
        assert resolve_tenant(request, TENANCY) == 7


def test_resolve_tenant_reads_header(app: Flask) -> None:
    with app.test_request_context("/api/v1/tax-settings", headers={"X-Tenant-ID": " 42 "}):
        assert resolve_tenant(request, TENANCY) == 42


@pytest.mark.parametrize("raw", ["0", "-3", "abc", "1e3", "1.5"])
def test_resolve_tenant_rejects_invalid_header(app: Flask, raw: str) -> None:
    with app.test_request_context("/api/v1/tax-settings", headers={"X-Tenant-ID": raw}):
        with pytest.raises(InvalidArgument, match="positive integer"):
            resolve_tenant(request, TENANCY)


@pytest.mark.parametrize(("raw", "expected"), [("2024", 2024), (" 1999 ", 1999), (2030, 2030)])
def test_parse_year_accepts_four_digit_values(raw: object, expected: int) -> None:
    assert parse_year(raw) == expected


def test_parse_year_falls_back_to_default_when_blank() -> None:
    assert parse_year("  ", default=2025) == 2025
    assert parse_year(None, default=2025) == 2025


def test_parse_year_requires_value_without_default() -> None:
    with pytest.raises(InvalidArgument, match="Field 'currentYear' is required"):
        parse_year("", field="currentYear")


@pytest.mark.parametrize("raw", ["abc", "99", "12345", True, "２０２４", -2024])
def test_parse_year_rejects_non_years(raw: object) -> None:
    with pytest.raises(InvalidArgument, match="four-digit year"):
        parse_year(raw)


def test_parse_json_payload_rejects_non_object(app: Flask) -> None:
    """Non-object JSON payloads should trigger BadRequest responses."""

    with app.test_request_context(
        "/api/v1/tax-settings",
        method="POST",
        json=["not", "an", "object"],
    ):
        with pytest.raises(BadRequest):
            parse_json_payload(request)


def test_parse_json_payload_rejects_invalid_json(app: Flask) -> None:
    with app.test_request_context(
        "/api/v1/tax-settings",
        method="POST",
        data="{not json",
        content_type="application/json",
    ):
        with pytest.raises(BadRequest):
            parse_json_payload(request)


def test_parse_model_reports_field_errors() -> None:
    with pytest.raises(InvalidArgument) as excinfo:
        parse_model(TaxSettingInput, {"year": 2024, "taxAmount": 0}, subject="tax setting")

    message = str(excinfo.value)
    assert message.startswith("Invalid tax setting:")
    assert "taxAmount" in message
    assert "greater than zero" in message
