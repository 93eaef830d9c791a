"""Exceptions raised at the service boundary and mapped to HTTP problems."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """Raised when caller-supplied input cannot be parsed or is out of range."""


class StorageUnavailable(RuntimeError):
    """Raised by a store when its backend cannot be reached or queried."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"Storage unavailable while trying to {operation}")


__all__ = ["InvalidArgument", "StorageUnavailable"]
