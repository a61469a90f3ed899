"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container). Stores and services do the work;
the only behaviour here is producing the redacted view, which must live next
to the shape it strips.

Layer rule: no imports from api/, client/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A registered traveller's durable identity and credentials.

    email is always stored in normalized form (trimmed, lowercased) -- the
    store's UNIQUE constraint relies on it.

    password_hash is a bcrypt hash. The plaintext password never reaches
    this object.
    """

    email: str
    password_hash: str
    first_name: str
    id: str | None = None  # assigned by the store on insert
    last_name: str | None = None
    phone: str | None = None
    created_at: str | None = None  # ISO 8601 UTC
    last_login_at: str | None = None  # ISO 8601 UTC

    def redacted(self) -> AccountView:
        """Return every field except password_hash."""
        return AccountView(
            id=self.id or "",
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            phone=self.phone,
            created_at=self.created_at,
            last_login_at=self.last_login_at,
        )


@dataclass(frozen=True)
class AccountView:
    """Redacted Account, safe to hand to clients."""

    id: str
    email: str
    first_name: str
    last_name: str | None = None
    phone: str | None = None
    created_at: str | None = None
    last_login_at: str | None = None
