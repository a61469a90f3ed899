"""
api/routes/auth.py -- Signup, login, and profile REST endpoints.

Routes:
  POST /api/auth/signup   -- create an account; 201 {message, userId}
  POST /api/auth/login    -- password login; 200 {message, token, user}
  GET  /api/auth/profile  -- redacted account view (requires bearer token)

No business logic lives here. Handlers call the Authenticator and shape the
response; every domain failure propagates as an auth.errors exception and is
mapped to a status code by the handler in api/main.py.

Signup and login are plain (sync) functions on purpose: FastAPI runs them in
its worker thread pool, so bcrypt never blocks the event loop.

Security:
  [H2] POST /login is rate-limited per client IP (Settings.login_rate_limit).
  [C1] Timing equalization happens inside Authenticator.login().
  [M5] Cache-Control: no-store on login responses.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LoginUser,
    ProfileResponse,
    SignupRequest,
    SignupResponse,
)
from auth.dependencies import get_authenticator, require_account_id
from auth.service import Authenticator

# Auth policy:
# - POST /api/auth/signup:   public
# - POST /api/auth/login:    public, rate limited
# - GET  /api/auth/profile:  requires bearer token (require_account_id)
router = APIRouter()


@router.post(
    "/auth/signup",
    response_model=SignupResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def signup(body: SignupRequest, authenticator: Authenticator = Depends(get_authenticator)) -> JSONResponse:
    """Register a new account.

    400 for missing fields, a bad email, a weak password, or an email that is
    already registered. The plaintext password goes straight to the
    Authenticator and is not kept anywhere else.
    """
    account_id = authenticator.register(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
    )
    return JSONResponse(
        status_code=201,
        content=SignupResponse(user_id=account_id).model_dump(by_alias=True),
    )


@limiter.limit(login_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
)
def login(
    request: Request,
    body: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Unknown email and wrong password produce the same 401 "Invalid
    credentials" body.
    """
    token, view = authenticator.login(body.email, body.password)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(token=token, user=LoginUser.from_view(view)).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@router.get(
    "/auth/profile",
    response_model=ProfileResponse,
    response_model_by_alias=True,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def profile(
    account_id: str = Depends(require_account_id),
    authenticator: Authenticator = Depends(get_authenticator),
) -> ProfileResponse:
    """Return the current account, re-read from the store on every call."""
    return ProfileResponse.from_view(authenticator.get_profile(account_id))
