"""
auth/service.py -- Registration and login rules on top of the account store.

The Authenticator is the only caller of the password and token primitives in
auth/tokens.py. It raises auth.errors exceptions and never builds HTTP
responses -- api/ owns the mapping to status codes.

Security:
  [C1] login() always runs bcrypt, even for unknown emails, and raises the
       same InvalidCredentials for both failure modes. No enumeration signal
       in the error or in the response time.
  Plaintext passwords are hashed immediately and never logged. Log lines
  identify accounts by id, not by email.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import InvalidCredentials, NotFound, ValidationError
from auth.models import Account, AccountView
from auth.policy import clean_optional, normalize_email, validate_registration
from auth.store import AccountStore, now_iso
from auth.tokens import burn_password_check, create_access_token, decode_access_token, hash_password, verify_password

logger = logging.getLogger("tripmate.auth")

LOGIN_MISSING_FIELDS_MESSAGE = "Email and password are required"


class Authenticator:
    """Business rules for registration, login, and token verification.

    Usage:
        auth = Authenticator(AccountStore(url))
        account_id = auth.register("a@example.com", "Abc12345!", "Ann")
        token, view = auth.login("a@example.com", "Abc12345!")
        assert auth.verify_token(token) == account_id
    """

    def __init__(self, store: AccountStore, token_ttl: timedelta | None = None) -> None:
        self._store = store
        self._token_ttl = token_ttl

    def register(
        self,
        email: str | None,
        password: str | None,
        first_name: str | None,
        last_name: str | None = None,
        phone: str | None = None,
    ) -> str:
        """Create an account and return its id.

        Raises ValidationError before touching the store, DuplicateEmail if the
        normalized email is taken.
        """
        validate_registration(email, password, first_name)

        account = Account(
            email=normalize_email(email),
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=clean_optional(last_name),
            phone=clean_optional(phone),
        )
        saved = self._store.insert(account)
        logger.info("Account created id=%s", saved.id)
        return saved.id

    def login(self, email: str | None, password: str | None) -> tuple[str, AccountView]:
        """Check credentials and return (token, redacted account view)."""
        if not email or not email.strip() or not password:
            raise ValidationError(LOGIN_MISSING_FIELDS_MESSAGE)

        account = self._store.find_by_email(email)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            burn_password_check(password)
            raise InvalidCredentials()
        if not verify_password(password, account.password_hash):
            raise InvalidCredentials()

        account.last_login_at = now_iso()
        try:
            self._store.update_last_login(account.id, account.last_login_at)
        except SQLAlchemyError:
            # A stale last_login_at must not lock anyone out.
            logger.warning("Could not record last login for id=%s", account.id, exc_info=True)

        token = create_access_token(account.id, expires_in=self._token_ttl)
        logger.info("Login succeeded id=%s", account.id)
        return token, account.redacted()

    def verify_token(self, token: str) -> str:
        """Return the account id embedded in a valid token; raise InvalidToken otherwise."""
        return decode_access_token(token)

    def get_profile(self, account_id: str) -> AccountView:
        """Fresh redacted view of the account; raise NotFound if it is gone."""
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account.redacted()
