"""Integration tests covering CORS behaviour for API endpoints."""

import pytest
from flask.testing import FlaskClient

from templetax.backend.app import create_app
from templetax.backend.config.settings import load_settings

ALLOWED_ORIGIN = "https://allowed.test"
ALLOWED_KIOSK = "https://kiosk.test"
DISALLOWED_ORIGIN = "https://blocked.test"


@pytest.fixture()
def cors_client(monkeypatch: pytest.MonkeyPatch) -> FlaskClient:
    """Return a client configured with a known CORS allow-list."""

    monkeypatch.setenv(
        "TEMPLETAX_ALLOWED_ORIGINS",
        ",".join([ALLOWED_ORIGIN, ALLOWED_KIOSK]),
    )
    monkeypatch.delenv("TEMPLETAX_DB", raising=False)
    load_settings.cache_clear()

    app = create_app()
    app.config.update(TESTING=True)

    with app.test_client() as client:
        yield client

    load_settings.cache_clear()


def test_tax_settings_endpoint_includes_cors_headers(
    cors_client: FlaskClient,
) -> None:
    """Ensure cross-origin requests are permitted for configured origins."""

    response = cors_client.get(
        "/api/v1/tax-settings",
        headers={"Origin": ALLOWED_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_ORIGIN


def test_preflight_allows_tenant_header(cors_client: FlaskClient) -> None:
    """Preflight checks should succeed for allowed origins."""

    response = cors_client.options(
        "/api/v1/tax-settings/bulk-toggle",
        headers={
            "Origin": ALLOWED_KIOSK,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type, X-Tenant-ID",
        },
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == ALLOWED_KIOSK
    assert "POST" in response.headers.get("Access-Control-Allow-Methods", "")
    assert "x-tenant-id" in response.headers.get("Access-Control-Allow-Headers", "").lower()


def test_disallowed_origin_does_not_receive_cors_headers(
    cors_client: FlaskClient,
) -> None:
    """Origins outside the allow-list should not receive CORS access."""

    response = cors_client.get(
        "/api/v1/tax-settings",
        headers={"Origin": DISALLOWED_ORIGIN},
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") is None


def test_seeded_years_are_served(cors_client: FlaskClient) -> None:
    years = [item["year"] for item in cors_client.get("/api/v1/tax-settings").get_json()["data"]]

    assert years == [2025, 2024, 2023]
