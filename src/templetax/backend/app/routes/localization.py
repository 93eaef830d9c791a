"""Expose message catalogues to front-end consumers."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from templetax.backend.app.http import portal_context
from templetax.backend.app.localization import load_translations
from templetax.backend.services import resolve_locale

blueprint = Blueprint("translations", __name__, url_prefix="/api/v1/translations")


@blueprint.get("/")
def get_default_translations():
    """Return the catalogue negotiated from ``?locale=`` or ``Accept-Language``.

    Requests naming neither get the portal's configured default locale.
    """

    locale = resolve_locale(request, portal_context().settings.default_locale)
    return jsonify(load_translations(locale)), 200


@blueprint.get("/<locale>")
def get_locale_translations(locale: str):
    return jsonify(load_translations(locale)), 200
