"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry only the account id (sub), the
       issue time and the expiry. Verification raises InvalidToken on any
       failure -- the route layer turns that into a 403. The server keeps no
       session table, so a token cannot be revoked before it expires.

  Passwords: bcrypt with a fixed cost factor of 10. The _DUMMY_HASH constant
       enables timing equalization in the Authenticator so response time does
       not reveal whether an email is registered [C1].

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup [M6] [M7].

Layer rule: no imports from api/ or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.errors import InvalidToken
from core.config import get_settings

logger = logging.getLogger("tripmate.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton [M6]
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The API layer caps password
    length well below that (pydantic max_length) so the limit is never hit
    silently by a legitimate client.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Corrupt or non-bcrypt hash in the store
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("tripmate_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run a bcrypt comparison whose result is discarded [C1].

    Called when the email is unknown so that path costs the same as a
    wrong-password check.
    """
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    account_id: str,
    expires_in: timedelta | None = None,
    secret_key: str | None = None,
) -> str:
    """Encode a signed JWT for account_id.

    Args:
        account_id: Opaque id of the authenticated account (sub claim).
        expires_in: Token lifetime. Defaults to Settings.token_expire_seconds
                    (24 h). Tests pass a negative delta to mint expired tokens.
        secret_key: Signing key override; defaults to Settings.secret_key.
    """
    if expires_in is None:
        expires_in = timedelta(seconds=_settings.token_expire_seconds)
    now = datetime.now(timezone.utc)
    payload = {
        "sub": account_id,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret_key or _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret_key: str | None = None) -> str:
    """Verify a JWT and return the embedded account id.

    Raises InvalidToken for a bad signature, expiry, malformed structure, or a
    payload without a string sub claim. The reason is logged at debug level
    only -- the caller always sees the same error.
    """
    try:
        payload = jwt.decode(token, secret_key or _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError as exc:
        logger.debug("Token rejected: %s", exc)
        raise InvalidToken() from exc
    account_id = payload.get("sub")
    if not isinstance(account_id, str) or not account_id:
        logger.debug("Token rejected: missing sub claim")
        raise InvalidToken()
    return account_id
