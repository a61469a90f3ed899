"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Only one credential is accepted: an "Authorization: Bearer <token>" header.
There is no cookie or API-key fallback; the browser client stores the token
itself and attaches it to each request.

get_authenticator() resolves the Authenticator wired into app.state by the
lifespan. require_account_id() extracts and verifies the bearer token and
returns the embedded account id.

Layer rule: no imports from api/ or client/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.errors import MissingToken
from auth.service import Authenticator


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an Authorization header value, or "" if absent or ill-formed."""
    if not authorization:
        return ""
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def require_account_id(
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator),
) -> str:
    """Require a valid bearer token and return its account id.

    Raises MissingToken (401) when there is no usable header and InvalidToken
    (403) when the token fails verification.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account_id: str = Depends(require_account_id)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        raise MissingToken()
    return authenticator.verify_token(token)
