from __future__ import annotations

from http import HTTPStatus
from typing import Any


class SantaError(Exception):
    """Base class for failures surfaced to callers with a kind and a message."""

    kind = "error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, "details": self.details}


class ValidationError(SantaError):
    kind = "validation"
    status_code = HTTPStatus.BAD_REQUEST


class NotFoundError(SantaError):
    kind = "not_found"
    status_code = HTTPStatus.NOT_FOUND


class ConflictError(SantaError):
    kind = "conflict"
    status_code = HTTPStatus.CONFLICT


class InvalidStateError(SantaError):
    """Lifecycle precondition violated: wrong phase, roster too small, pending wishlists."""

    kind = "invalid_state"
    status_code = HTTPStatus.CONFLICT


class AuthorizationError(SantaError):
    kind = "forbidden"
    status_code = HTTPStatus.FORBIDDEN


class InternalError(SantaError):
    """Unexpected persistence failure. The message shown to clients stays generic."""

    kind = "internal"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": "Internal error. Please try again.", "details": {}}
