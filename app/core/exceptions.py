"""
Application exception hierarchy.

Services and the project aggregate raise these types; the handlers registered
in ``app.main`` map each one to its HTTP status and the JSON envelope.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Payment", payment_id)
    raise ValidationError("Valid amount is required", details={"amount": amount})
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors that are reported to the client as-is."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppError):
    """Input is missing or violates a business rule. Maps to HTTP 400."""

    status_code = 400


class ForbiddenError(AppError):
    """The acting user may not perform this operation. Maps to HTTP 403."""

    status_code = 403


class NotFoundError(AppError):
    """
    A project, user or child record does not exist. Maps to HTTP 404.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Time entry")
        resource_id: The id that was looked up; kept for logs
    """

    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    """
    A state-machine precondition failed or a concurrent write won the race.
    Maps to HTTP 409.
    """

    status_code = 409
