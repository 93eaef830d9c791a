"""REST endpoints for administering per-year tax settings."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request

from templetax.backend.app.http import portal_context, problem_response
from templetax.backend.app.localization import get_translator
from templetax.backend.app.models import BulkToggleInput, TaxSettingInput
from templetax.backend.app.services.liability_service import (
    bulk_set_include_previous_years,
    list_active_setting,
)
from templetax.backend.services import (
    parse_json_payload,
    parse_model,
    parse_year,
    resolve_locale,
    resolve_tenant,
    success_response,
)

blueprint = Blueprint("tax_settings", __name__, url_prefix="/api/v1/tax-settings")


def _tenant() -> int:
    return resolve_tenant(request, portal_context().settings.tenancy)


def _locale() -> str:
    return resolve_locale(request, portal_context().settings.default_locale)


@blueprint.get("")
def list_tax_settings() -> tuple[Any, int]:
    """Return every setting of the tenant, newest year first."""

    policy = portal_context().stores.policy
    settings = policy.list_settings(_tenant(), descending=True)
    return success_response([setting.as_payload() for setting in settings])


@blueprint.get("/year/<year>")
def get_year_setting(year: str) -> tuple[Any, int]:
    """Return the active setting for ``year`` or ``null`` when none exists."""

    setting = list_active_setting(portal_context().stores.policy, _tenant(), parse_year(year))
    return success_response(setting.as_payload() if setting is not None else None)


@blueprint.post("")
def save_tax_setting() -> tuple[Any, int]:
    """Create the setting for a year, or update it when the year already exists."""

    data = parse_model(TaxSettingInput, parse_json_payload(request), subject="tax setting")
    setting, created = portal_context().stores.policy.upsert_setting(_tenant(), data)

    action = "created" if created else "updated"
    translator = get_translator(_locale())
    return success_response(
        setting.as_payload(),
        status=HTTPStatus.CREATED if created else HTTPStatus.OK,
        id=setting.id,
        action=action,
        message=translator(f"settings.action.{action}"),
    )


@blueprint.delete("/<int:setting_id>")
def delete_tax_setting(setting_id: int) -> tuple[Any, int]:
    try:
        portal_context().stores.policy.delete_setting(_tenant(), setting_id)
    except KeyError:
        translator = get_translator(_locale())
        return problem_response(
            "not_found", status=HTTPStatus.NOT_FOUND, message=translator("errors.not_found")
        ).to_response()

    return jsonify({"success": True}), HTTPStatus.OK


@blueprint.post("/bulk-toggle")
def bulk_toggle_previous_years() -> tuple[Any, int]:
    """Apply one ``includePreviousYears`` value to every year of the tenant."""

    payload = request.get_json(silent=True) or {}
    data = parse_model(BulkToggleInput, payload, subject="bulk toggle")
    updated = bulk_set_include_previous_years(
        portal_context().stores.policy, _tenant(), data.include_previous_years
    )
    return jsonify({"success": True, "updated": updated}), HTTPStatus.OK


__all__ = ["blueprint"]
