"""Typed exceptions raised by the data service core.

Every error carries the HTTP status the API layer answers with, so the
blueprints never have to map exception classes by hand.
"""
from __future__ import annotations
from typing import Optional


class DataServiceError(Exception):
    """Base exception for all data service operations.

    Attributes:
        detail: Human-readable error message
        status: HTTP status code used by the API layer
        kind: Short machine-readable error kind
    """

    status = 400
    kind = "error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def to_dict(self) -> dict:
        """Convert to JSON error response format."""
        return {"error": self.kind, "message": self.detail}


class ValidationError(DataServiceError, ValueError):
    """Missing or empty required input (id, query, attribute name, values...)."""

    status = 400
    kind = "validation"


class SessionNotFoundError(DataServiceError):
    """Token is missing, unknown or expired - the caller must initialize again."""

    status = 409
    kind = "session_not_found"


class SessionConflictError(DataServiceError):
    """An explicit token is already bound to a live session."""

    status = 409
    kind = "session_conflict"


class SessionLimitError(DataServiceError):
    """Every session slot is held by a live session; none is evicted."""

    status = 503
    kind = "session_limit"


class SchemaError(DataServiceError):
    """Unknown object type, or an attribute outside the target schema."""

    status = 400
    kind = "schema"


class AuthorizationPendingError(DataServiceError):
    """The directory accepted the write but deferred it behind an approval.

    This is not a failed write: the attributes were staged. It is raised so
    the caller can tell it apart from both success and hard failure.
    """

    status = 202
    kind = "authorization_required"

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "authorization required")


class DirectoryError(DataServiceError):
    """Any other failure reported by the directory client, message preserved."""

    status = 502
    kind = "directory"
