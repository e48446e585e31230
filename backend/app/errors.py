# app/errors.py
"""
Error taxonomy for the request lifecycle.

Every error carries a stable ``public_message`` that is safe to show to
callers, and an HTTP ``status_code`` used by the exception handler in
``app.main``. Internal detail goes to the logs, never to the response.
"""
from typing import Optional


class ServiceError(Exception):
    status_code = 500
    public_message = "Failed to process request"

    def __init__(self, public_message: Optional[str] = None, detail: Optional[str] = None):
        if public_message:
            self.public_message = public_message
        self.detail = detail
        super().__init__(detail or self.public_message)


class ValidationError(ServiceError):
    """A required field is missing or a value is out of range."""
    status_code = 400
    public_message = "Invalid request"


class ConflictError(ServiceError):
    """An active request already exists for the same patient."""
    status_code = 409
    public_message = "An active request already exists for this patient"


class NotFoundError(ServiceError):
    status_code = 404
    public_message = "Request not found"


class TransitionError(ServiceError):
    """Status change not permitted by the transition table."""
    status_code = 409
    public_message = "Status transition not allowed"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status from {current} to {requested}")


class PersistenceError(ServiceError):
    status_code = 500
    public_message = "Failed to process request"


class ClassificationError(ServiceError):
    """Raised inside the triage helpers; always recovered with fallback values."""
    public_message = "Failed to classify request"
