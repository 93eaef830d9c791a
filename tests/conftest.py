"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from templetax.backend.app import create_app  # noqa: E402
from templetax.backend.app.services.stores import (  # noqa: E402
    InMemoryLedgerStore,
    InMemoryPolicyStore,
    PortalStores,
)
from templetax.backend.config.schema import PortalSettings  # noqa: E402


@pytest.fixture()
def portal_settings() -> PortalSettings:
    """Settings with seeding disabled so every test starts from empty stores."""

    return PortalSettings.model_validate(
        {
            "tenancy": {"default_tenant": 1},
            "seed": {"enabled": False},
            "allowed_origins": ["https://admin.temple.test"],
        }
    )


@pytest.fixture()
def stores() -> PortalStores:
    return PortalStores(policy=InMemoryPolicyStore(), ledger=InMemoryLedgerStore())


@pytest.fixture()
def app(portal_settings: PortalSettings, stores: PortalStores) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(settings=portal_settings, stores=stores)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()
