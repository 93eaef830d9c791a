"""Integration tests for the translations API."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from flask.testing import FlaskClient

from templetax.backend.app import create_app
from templetax.backend.app.services.stores import PortalStores
from templetax.backend.config.schema import PortalSettings

TRANSLATIONS_ROOT = Path(__file__).resolve().parents[2] / "src" / "templetax" / "translations"


def _load_message(locale: str, key: str) -> str:
    payload = json.loads(TRANSLATIONS_ROOT.joinpath(f"{locale}.json").read_text(encoding="utf-8"))
    return str(payload["messages"][key])


def test_translations_endpoint_returns_default_catalogue(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["locale"] == "en"
    assert payload["available_locales"] == ["en", "ta"]
    assert payload["messages"]["status.registered"] == _load_message("en", "status.registered")
    assert payload["fallback"]["locale"] == "en"


def test_translations_endpoint_negotiates_accept_language(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/", headers={"Accept-Language": "ta-IN"})

    assert response.get_json()["locale"] == "ta"


def test_translations_endpoint_respects_locale_path(client: FlaskClient) -> None:
    response = client.get("/api/v1/translations/ta")
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["locale"] == "ta"
    assert payload["messages"]["status.registered"] == _load_message("ta", "status.registered")
    assert payload["fallback"]["messages"]["errors.not_found"] == _load_message(
        "en", "errors.not_found"
    )


def test_translations_endpoint_falls_back_for_unknown_locale(client: FlaskClient) -> None:
    payload = client.get("/api/v1/translations/fr").get_json()

    assert payload["locale"] == "en"


@pytest.fixture()
def tamil_client(portal_settings: PortalSettings, stores: PortalStores) -> FlaskClient:
    settings = portal_settings.model_copy(update={"default_locale": "ta"})
    app = create_app(settings=settings, stores=stores)
    app.config.update(TESTING=True)
    return app.test_client()


def test_configured_default_locale_applies_without_negotiation(
    tamil_client: FlaskClient,
) -> None:
    catalogue = tamil_client.get("/api/v1/translations/").get_json()
    saved = tamil_client.post("/api/v1/tax-settings", json={"year": 2024, "taxAmount": 500})

    assert catalogue["locale"] == "ta"
    assert saved.get_json()["message"] == _load_message("ta", "settings.action.created")


def test_accept_language_overrides_configured_default(tamil_client: FlaskClient) -> None:
    response = tamil_client.get("/api/v1/translations/", headers={"Accept-Language": "en"})

    assert response.get_json()["locale"] == "en"
