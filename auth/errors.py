"""
auth/errors.py -- Error taxonomy for the authentication flow.

Each class maps to exactly one HTTP status. The store, session service and
token dependency raise these; api/main.py converts them into the shared
ErrorResponse envelope with a single exception handler, so the user-safe
message is the only thing a client ever sees.

Layer rule: no imports from api/. No FastAPI types here.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class. Subclasses set status_code and a default code/message."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.message
        self.code = code or self.code
        super().__init__(self.message)


class BadRequest(AuthError):
    status_code = 400
    code = "bad_request"
    message = "Required fields are missing."


class Unauthorized(AuthError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class Forbidden(AuthError):
    status_code = 403
    code = "forbidden"
    message = "Token invalid or expired."


class NotFound(AuthError):
    status_code = 404
    code = "not_found"
    message = "User not found."


class Conflict(AuthError):
    status_code = 409
    code = "conflict"
    message = "A user with that identifier already exists."


class ServerError(AuthError):
    pass
