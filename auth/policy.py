"""
auth/policy.py -- Input rules for registration and login.

Pure, synchronous checks with no I/O. The Authenticator calls these before
touching the store so a rejected signup never costs a DB round trip or a
bcrypt hash.
"""

from __future__ import annotations

import re

from auth.errors import ValidationError

# Permissive local-part@domain.tld check. Deliberately not RFC 5322.
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")

PASSWORD_MIN_LENGTH = 8
# bcrypt compares at most 72 bytes of input and rejects anything longer.
PASSWORD_MAX_BYTES = 72
PASSWORD_SYMBOLS = frozenset("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?")

MISSING_FIELDS_MESSAGE = "Email, password, and first name are required"
INVALID_EMAIL_MESSAGE = "Invalid email format"
WEAK_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters and include uppercase, lowercase, number, and special character"
)
PASSWORD_TOO_LONG_MESSAGE = "Password must be at most 72 bytes long"


def normalize_email(email: str) -> str:
    """Trimmed, lowercased form used for storage and lookup."""
    return email.strip().lower()


def clean_optional(value: str | None) -> str | None:
    """Trim an optional profile field; blank collapses to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def password_fits_hash(password: str) -> bool:
    """True if the UTF-8 encoding of password is within bcrypt's input limit."""
    return len(password.encode("utf-8")) <= PASSWORD_MAX_BYTES


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def is_valid_password(password: str) -> bool:
    """Length >= 8 with at least one lowercase, uppercase, digit, and symbol.

    Character classes are ASCII-only: a non-ASCII letter or digit does not
    satisfy the corresponding rule.
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return False
    return (
        any("a" <= c <= "z" for c in password)
        and any("A" <= c <= "Z" for c in password)
        and any("0" <= c <= "9" for c in password)
        and any(c in PASSWORD_SYMBOLS for c in password)
    )


def validate_registration(email: str | None, password: str | None, first_name: str | None) -> None:
    """Raise ValidationError for the first rule the input breaks.

    Order matters for the message the user sees: missing fields first, then
    email format, then password strength, then password size.
    """
    email = (email or "").strip()
    first_name = (first_name or "").strip()
    if not email or not password or not first_name:
        missing = next(
            name for name, value in (("email", email), ("password", password), ("firstName", first_name)) if not value
        )
        raise ValidationError(MISSING_FIELDS_MESSAGE, field=missing)
    if not is_valid_email(email):
        raise ValidationError(INVALID_EMAIL_MESSAGE, field="email")
    if not is_valid_password(password):
        raise ValidationError(WEAK_PASSWORD_MESSAGE, field="password")
    if not password_fits_hash(password):
        raise ValidationError(PASSWORD_TOO_LONG_MESSAGE, field="password")
