"""Domain errors raised by the contact request services.

Each error carries the HTTP status the API layer answers with; the handler in
``farmconnect.main`` turns them into ``{"detail": ...}`` responses.
"""
from typing import Any, Optional


class ContactRequestError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class ValidationError(ContactRequestError):
    """Malformed input: bad id, non-positive quantity, unknown resolution."""
    status_code = 400


class ForbiddenError(ContactRequestError):
    """Caller lacks the role or ownership the action needs."""
    status_code = 403


class NotFoundError(ContactRequestError):
    status_code = 404


class ConflictError(ContactRequestError):
    """Transition guard violated, e.g. accepting an already accepted request."""
    status_code = 409


class DuplicateRequestError(ConflictError):
    """An active request already exists for the same requester, farmer and product."""

    def __init__(self, existing_request_id: str, message: Optional[str] = None):
        super().__init__(message or "An active request already exists for this farmer and product")
        self.existing_request_id = existing_request_id

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "existing_request_id": self.existing_request_id}


class RateLimitError(ContactRequestError):
    status_code = 429
