"""Application factory for the TempleTax backend services."""

from __future__ import annotations

import logging
from http import HTTPStatus

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from templetax.backend.config.schema import PortalSettings
from templetax.backend.config.settings import load_settings
from templetax.backend.version import get_project_version

from .errors import InvalidArgument, StorageUnavailable
from .http import EXTENSION_KEY, PortalContext, problem_response
from .services.stores import PortalStores, build_stores, seed_tax_settings

_LOGGER = logging.getLogger(__name__)


def create_app(
    settings: PortalSettings | None = None,
    stores: PortalStores | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``settings`` defaults to the YAML configuration and ``stores`` to the
    backends it selects; tests pass their own to stay isolated.
    """

    from .routes import register_routes

    app = Flask(__name__)

    portal_settings = settings or load_settings()
    portal_stores = stores or build_stores(portal_settings)

    seed = portal_settings.seed
    if seed.enabled:
        inserted = seed_tax_settings(portal_stores.policy, seed.tenant, seed.tax_settings)
        if inserted:
            _LOGGER.info("Seeded %d tax setting(s) for tenant %s", inserted, seed.tenant)

    app.extensions[EXTENSION_KEY] = PortalContext(
        settings=portal_settings, stores=portal_stores
    )

    allowed_origins = sorted(portal_settings.allowed_origins)
    if not allowed_origins:
        _LOGGER.warning("No allowed origins configured; cross-origin requests will be rejected.")

    CORS(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST", "DELETE"],
        allow_headers=["Content-Type", portal_settings.tenancy.header],
    )

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        return jsonify(
            {
                "status": "ok",
                "version": get_project_version(),
                "default_tenant": portal_settings.tenancy.default_tenant,
            }
        )

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response(
            "bad_request", status=HTTPStatus.BAD_REQUEST, message=message
        ).to_response()

    @app.errorhandler(InvalidArgument)
    def handle_invalid_argument(error: InvalidArgument):
        return problem_response(
            "invalid_argument", status=HTTPStatus.BAD_REQUEST, message=str(error)
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Gracefully surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=HTTPStatus.BAD_REQUEST, message=str(error)
        ).to_response()

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(error: StorageUnavailable):
        _LOGGER.error("Request aborted: %s", error)
        return problem_response(
            "storage_unavailable",
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            message=str(error),
        ).to_response()

    return app
