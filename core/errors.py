"""
core/errors.py -- Client-facing error taxonomy.

Every failure a client can observe is one of these classes. Each carries the
HTTP status it maps to and a message that is safe to show the caller; the
exception handler in api/main.py renders them as {"error": message}.

Messages are deliberately coarse where detail would leak information:
  InvalidCredentials  -- same text for unknown email and wrong password.
  Unauthenticated     -- same text for bad signature, expiry, and garbage.
  NotFound            -- same text for absent records and records owned by
                         another identity.

Layer rule: core/ is the kernel. No imports from api/, auth/, or records/.
"""


class AppError(Exception):
    """Base class for errors that translate directly into an HTTP response."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(AppError):
    """Missing or malformed request input."""

    status_code = 400


class Conflict(AppError):
    """The request would violate a uniqueness rule (duplicate email)."""

    status_code = 400


class InvalidCredentials(AppError):
    """Login failed. Never says which half of the credentials was wrong."""

    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class NotFound(AppError):
    status_code = 404
