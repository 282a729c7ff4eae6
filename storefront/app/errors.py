"""Error taxonomy shared by services and HTTP handlers.

Every error carries an HTTP status and a short machine-readable ``code``.
Services raise these before mutating anything; ``app.main`` turns them into
``{"message", "code"}`` JSON bodies.
"""
from typing import Any, Optional


class StorefrontError(Exception):
    status_code = 500
    default_code = "InternalError"

    def __init__(self, message: str, code: Optional[str] = None, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.detail = detail

    def to_dict(self):
        return {"message": self.message, "code": self.code}


class ValidationError(StorefrontError):
    status_code = 400
    default_code = "ValidationError"


class NotFoundError(StorefrontError):
    status_code = 404
    default_code = "NotFound"


class StateConflictError(StorefrontError):
    status_code = 409
    default_code = "StateConflict"


class OtpAttemptsExceeded(StateConflictError):
    status_code = 429
    default_code = "OtpAttemptsExceeded"


class AuthorizationError(StorefrontError):
    status_code = 401
    default_code = "Unauthorized"


class ForbiddenError(AuthorizationError):
    status_code = 403
    default_code = "Forbidden"


class UpstreamError(StorefrontError):
    """A collaborator (database, mail, payment gateway, completion API) failed."""
    status_code = 502
    default_code = "UpstreamError"
