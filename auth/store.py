"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Service and route code never touches SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  The UNIQUE constraint on accounts.email is the only duplicate check. The
  store does not look before it inserts -- a look-then-insert pair would let
  two concurrent signups for the same address both pass the look. The
  IntegrityError raised by the losing insert is translated to DuplicateEmail.
  Callers must hand in the normalized email (auth.policy.normalize_email);
  the store normalizes again on every read and write so a caller that forgets
  cannot create a case-variant duplicate.

DB URL: Settings.database_url (DATABASE_URL env var). Any SQLAlchemy URL works;
SQLite gets WAL mode.

Layer rule: no imports from api/, client/, or core/.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateEmail
from auth.models import Account
from auth.policy import normalize_email

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex, never reused
    Column("email", String(255), nullable=False, unique=True),  # normalized
    Column("password_hash", Text, nullable=False),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100)),
    Column("phone", String(40)),
    Column("created_at", String(32), nullable=False),
    Column("last_login_at", String(32)),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///accounts.db")
        saved = store.insert(Account(email="a@example.com", password_hash=h, first_name="Ann"))
        account = store.find_by_email("A@Example.com ")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> Account | None:
        """Look up an account by email, ignoring case and surrounding whitespace."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == normalize_email(email))).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_id(self, account_id: str) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def count(self) -> int:
        """Return the number of stored accounts."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_accounts)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, account: Account) -> Account:
        """Insert a new account and return it with id and created_at filled in.

        Raises DuplicateEmail if the normalized email is already taken. The
        check and the insert are one statement, so concurrent signups for the
        same address cannot both succeed.
        """
        saved = replace(
            account,
            id=uuid.uuid4().hex,
            email=normalize_email(account.email),
            created_at=account.created_at or now_iso(),
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _accounts.insert().values(
                        id=saved.id,
                        email=saved.email,
                        password_hash=saved.password_hash,
                        first_name=saved.first_name,
                        last_name=saved.last_name,
                        phone=saved.phone,
                        created_at=saved.created_at,
                        last_login_at=saved.last_login_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        return saved

    def update_last_login(self, account_id: str, timestamp: str | None = None) -> bool:
        """Stamp last_login_at for the given account.

        Returns True if a row was updated, False if account_id was not found.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where(_accounts.c.id == account_id).values(last_login_at=timestamp or now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        created_at=row.created_at,
        last_login_at=row.last_login_at,
    )
