"""Integration tests for application endpoints."""

from http import HTTPStatus

from flask.testing import FlaskClient

from templetax.backend.app import create_app
from templetax.backend.app.services.stores import (
    InMemoryLedgerStore,
    InMemoryPolicyStore,
    PortalStores,
)
from templetax.backend.config.schema import PortalSettings
from templetax.backend.version import get_project_version


def test_health_endpoint(client: FlaskClient) -> None:
    """Ensure the health endpoint returns a successful status payload."""
    response = client.get("/health")
    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["status"] == "ok"
    assert payload["version"] == get_project_version()
    assert payload["default_tenant"] == 1
    assert response.mimetype == "application/json"


def test_create_app_seeds_configured_years() -> None:
    settings = PortalSettings.model_validate(
        {
            "seed": {
                "enabled": True,
                "tenant": 1,
                "tax_settings": [
                    {"year": 2023, "amount": 450, "include_previous_years": True},
                    {"year": 2024, "amount": 500},
                ],
            }
        }
    )
    stores = PortalStores(policy=InMemoryPolicyStore(), ledger=InMemoryLedgerStore())

    app = create_app(settings=settings, stores=stores)
    # A second start against the same stores must not duplicate the years.
    create_app(settings=settings, stores=stores)

    years = app.test_client().get("/api/v1/tax-settings").get_json()["data"]
    assert [item["year"] for item in years] == [2024, 2023]
    assert years[1]["includePreviousYears"] is True
