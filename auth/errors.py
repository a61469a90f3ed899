"""
auth/errors.py -- Domain error taxonomy for the auth core.

Every error carries a stable machine code and a human message that is safe
to show to end users. The API layer maps each class to one HTTP status in a
single exception handler; nothing below api/ knows about status codes.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all recoverable auth-domain failures."""

    code = "auth_error"
    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed or missing input, raised before any store access."""

    code = "validation_error"
    default_message = "Invalid input"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateEmail(AuthError):
    """An account with the same normalized email already exists.

    The message deliberately says nothing about the existing account.
    """

    code = "duplicate_email"
    default_message = "Email already exists"


class InvalidCredentials(AuthError):
    """Login failed. Identical for unknown email and wrong password."""

    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidToken(AuthError):
    """Token is malformed, expired, or carries a bad signature."""

    code = "invalid_token"
    default_message = "Invalid token"


class MissingToken(InvalidToken):
    """No bearer token, or an Authorization header that is not 'Bearer <token>'."""

    code = "missing_token"
    default_message = "Access denied. No token provided."


class NotFound(AuthError):
    """Referenced account no longer exists."""

    code = "not_found"
    default_message = "User not found"
