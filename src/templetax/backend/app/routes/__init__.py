"""Blueprint registrations for application routes."""

from flask import Flask

from .localization import blueprint as localization_blueprint
from .tax_calculations import blueprint as tax_calculations_blueprint
from .tax_registrations import blueprint as tax_registrations_blueprint
from .tax_settings import blueprint as tax_settings_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(tax_settings_blueprint)
    app.register_blueprint(tax_calculations_blueprint)
    app.register_blueprint(tax_registrations_blueprint)
    app.register_blueprint(localization_blueprint)
