"""REST endpoints for member tax registrations and payments."""

from __future__ import annotations

from http import HTTPStatus
from math import ceil
from typing import Any

from flask import Blueprint, jsonify, request

from templetax.backend.app.http import portal_context, problem_response
from templetax.backend.app.localization import get_translator
from templetax.backend.app.models import PaymentInput, RegistrationQuery, TaxRecordInput
from templetax.backend.services import (
    parse_json_payload,
    parse_model,
    resolve_locale,
    resolve_tenant,
    success_response,
)

blueprint = Blueprint(
    "tax_registrations", __name__, url_prefix="/api/v1/tax-registrations"
)


def _tenant() -> int:
    return resolve_tenant(request, portal_context().settings.tenancy)


def _locale() -> str:
    return resolve_locale(request, portal_context().settings.default_locale)


@blueprint.get("")
def list_registrations() -> tuple[Any, int]:
    """Page through the tenant's registrations, newest first."""

    query = parse_model(RegistrationQuery, request.args.to_dict(), subject="query")
    rows, total = portal_context().stores.ledger.list_records(_tenant(), query)
    return jsonify(
        {
            "success": True,
            "data": [row.as_payload() for row in rows],
            "total": total,
            "page": query.page,
            "pageSize": query.page_size,
            "totalPages": ceil(total / query.page_size),
        }
    ), HTTPStatus.OK


@blueprint.post("")
def save_registration() -> tuple[Any, int]:
    """Create or update a member's registration for one year."""

    data = parse_model(TaxRecordInput, parse_json_payload(request), subject="tax registration")
    record, created = portal_context().stores.ledger.upsert_record(_tenant(), data)
    return success_response(
        record.as_payload(),
        status=HTTPStatus.CREATED if created else HTTPStatus.OK,
        id=record.id,
        action="created" if created else "updated",
    )


@blueprint.post("/<int:record_id>/payments")
def record_payment(record_id: int) -> tuple[Any, int]:
    data = parse_model(PaymentInput, parse_json_payload(request), subject="payment")
    try:
        record = portal_context().stores.ledger.record_payment(
            _tenant(), record_id, data.amount
        )
    except KeyError:
        translator = get_translator(_locale())
        return problem_response(
            "not_found", status=HTTPStatus.NOT_FOUND, message=translator("errors.not_found")
        ).to_response()

    return success_response(record.as_payload())


__all__ = ["blueprint"]
