"""HTTP helper utilities shared across Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import current_app, jsonify

from templetax.backend.app.services.stores import PortalStores
from templetax.backend.config.schema import PortalSettings

EXTENSION_KEY = "templetax"


@dataclass(frozen=True)
class ProblemResponse:
    """Lightweight representation of an RFC 7807-style error payload."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Convenience factory mirroring Flask's ``jsonify`` interface."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


@dataclass(frozen=True)
class PortalContext:
    """Settings and stores attached to the Flask application."""

    settings: PortalSettings
    stores: PortalStores


def portal_context() -> PortalContext:
    """Return the context registered by ``create_app`` for the current app."""

    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "EXTENSION_KEY",
    "PortalContext",
    "ProblemResponse",
    "portal_context",
    "problem_response",
]
