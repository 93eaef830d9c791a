"""Utilities for serialising service results into JSON responses."""

from __future__ import annotations

from typing import Any, Tuple

from flask import jsonify

from templetax.backend.app.localization import Translator
from templetax.backend.app.models import LiabilityReport
from templetax.backend.app.services.calculators import format_currency

ResponseTuple = Tuple[Any, int]

_REPORT_LABEL_KEYS = {
    "cumulativeOutstanding": "report.cumulative_outstanding",
    "currentYearTax": "report.current_year_tax",
    "totalTaxDue": "report.total_tax_due",
    "joiningYear": "report.joining_year",
}


def success_response(data: Any, *, status: int = 200, **extra: Any) -> ResponseTuple:
    """Wrap ``data`` in the ``{"success": true, "data": ...}`` envelope."""

    return jsonify({"success": True, "data": data, **extra}), status


def build_report_payload(report: LiabilityReport, translator: Translator) -> dict[str, Any]:
    """Return the camelCase report with localized labels attached."""

    payload = report.as_payload()
    for row, entry in zip(report.year_breakdown, payload["yearBreakdown"]):
        entry["statusLabel"] = translator(f"status.{row.status.value}")

    payload["labels"] = {field: translator(key) for field, key in _REPORT_LABEL_KEYS.items()}
    payload["display"] = {
        "cumulativeOutstanding": format_currency(report.cumulative_outstanding),
        "currentYearTax": format_currency(report.current_year_tax),
        "totalTaxDue": format_currency(report.total_tax_due),
    }
    payload["locale"] = translator.locale
    return payload


def build_report_response(report: LiabilityReport, translator: Translator) -> ResponseTuple:
    return success_response(build_report_payload(report, translator))


__all__ = [
    "build_report_payload",
    "build_report_response",
    "success_response",
]
