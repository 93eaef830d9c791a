"""Request parsing and response building shared by the HTTP routes."""

from .request_parser import (
    parse_json_payload,
    parse_model,
    parse_year,
    resolve_locale,
    resolve_tenant,
)
from .response_builder import build_report_payload, build_report_response, success_response

__all__ = [
    "build_report_payload",
    "build_report_response",
    "parse_json_payload",
    "parse_model",
    "parse_year",
    "resolve_locale",
    "resolve_tenant",
    "success_response",
]
