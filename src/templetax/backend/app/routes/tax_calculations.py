"""REST endpoint for a member's cumulative tax liability."""

from __future__ import annotations

from datetime import date
from typing import Any

from flask import Blueprint, request

from templetax.backend.app.errors import InvalidArgument
from templetax.backend.app.http import portal_context
from templetax.backend.app.localization import get_translator
from templetax.backend.app.services.liability_service import compute_cumulative_liability
from templetax.backend.services import (
    build_report_response,
    parse_year,
    resolve_locale,
    resolve_tenant,
)

blueprint = Blueprint("tax_calculations", __name__, url_prefix="/api/v1/tax-calculations")


@blueprint.get("/cumulative/<member_identifier>")
def cumulative_liability(member_identifier: str) -> tuple[Any, int]:
    """Report what the member owes up to ``?currentYear=`` (default: this year)."""

    context = portal_context()
    tenant_id = resolve_tenant(request, context.settings.tenancy)

    member = member_identifier.strip()
    if not member:
        raise InvalidArgument("Member identifier cannot be blank")

    reference_year = parse_year(
        request.args.get("currentYear"),
        field="currentYear",
        default=date.today().year,
    )

    report = compute_cumulative_liability(
        context.stores.policy,
        context.stores.ledger,
        tenant_id,
        member,
        reference_year,
    )
    return build_report_response(
        report, get_translator(resolve_locale(request, context.settings.default_locale))
    )


__all__ = ["blueprint"]
