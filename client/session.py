"""
client/session.py -- Client-side owner of the login session.

SessionManager is the single place that reads or writes the bearer token and
the current user. UI code calls login()/logout()/current_session() and sends
authenticated calls through request(); nothing else touches SessionStorage.

State machine:
  ANONYMOUS      -- initial; no usable token
  BOOTSTRAPPING  -- a stored token is being revalidated against /auth/profile
  AUTHENTICATED  -- token and user held in memory and in storage

  ANONYMOUS     --login() ok-->            AUTHENTICATED
  (load)        --bootstrap(), token-->    BOOTSTRAPPING
  BOOTSTRAPPING --profile 200-->           AUTHENTICATED
  BOOTSTRAPPING --anything else-->         ANONYMOUS (storage cleared)
  AUTHENTICATED --logout()-->              ANONYMOUS (storage cleared)
  AUTHENTICATED --401 on any request-->    ANONYMOUS (forced logout)

The HTTP client is injected. Anything with requests.Session's
request/get/post signature works, including FastAPI's TestClient.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

import requests

from client.storage import SessionStorage

logger = logging.getLogger("tripmate.client")

TOKEN_KEY = "auth_token"
USER_KEY = "user_data"

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."
GENERIC_ERROR_MESSAGE = "Something went wrong"


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    BOOTSTRAPPING = "bootstrapping"
    AUTHENTICATED = "authenticated"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ApiRequestError(Exception):
    """Non-2xx response. message is the server's user-facing error text."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpired(ApiRequestError):
    """The server rejected the session token; the manager has already logged out."""

    def __init__(self, status_code: int = 401, message: str = SESSION_EXPIRED_MESSAGE) -> None:
        super().__init__(status_code, message)


class SubmissionInProgress(Exception):
    """A login or signup is already in flight."""


# ---------------------------------------------------------------------------
# Session snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SessionUser:
    """Redacted user as returned in the login response."""

    id: str
    email: str
    first_name: str
    last_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SessionUser":
        """Build from the wire format (_id, firstName, lastName). Extra keys are ignored."""
        return cls(
            id=str(payload["_id"]),
            email=str(payload["email"]),
            first_name=str(payload.get("firstName") or ""),
            last_name=payload.get("lastName"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {"_id": self.id, "email": self.email, "firstName": self.first_name, "lastName": self.last_name}


@dataclass(frozen=True)
class ClientSession:
    """Immutable snapshot of who is logged in."""

    state: SessionState = SessionState.ANONYMOUS
    token: Optional[str] = None
    user: Optional[SessionUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and bool(self.token) and self.user is not None


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class SessionManager:
    """Owns the ClientSession lifecycle.

    Usage:
        manager = SessionManager("http://localhost:3000/api", SessionStorage(path))
        manager.bootstrap()                      # once per application load
        manager.login("ann@example.com", "Abc12345!")
        trips = manager.request("GET", "/trips")
        manager.logout()
    """

    def __init__(
        self,
        base_url: str,
        storage: SessionStorage,
        http: Any = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._storage = storage
        self._http = http if http is not None else requests.Session()
        self._timeout = timeout
        self._lock = threading.Lock()
        self._submit_lock = threading.Lock()
        self._session = ClientSession()
        self._bootstrap_started = False
        self._bootstrap_cancelled = threading.Event()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def current_session(self) -> ClientSession:
        with self._lock:
            return self._session

    @property
    def is_submitting(self) -> bool:
        """True while a login or signup is in flight. Drives the disabled submit button."""
        return self._submit_lock.locked()

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    def bootstrap(self) -> ClientSession:
        """Revalidate a stored token against the server, once per manager.

        Later calls return the current session without another round trip.
        """
        with self._lock:
            if self._bootstrap_started:
                return self._session
            self._bootstrap_started = True
            if self._bootstrap_cancelled.is_set():
                return self._session
            token = self._storage.get(TOKEN_KEY)
            if not token:
                return self._session
            self._session = ClientSession(state=SessionState.BOOTSTRAPPING, token=token)

        try:
            resp = self._http.get(self._url("/auth/profile"), headers=_bearer(token), timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Session bootstrap failed: %s", e)
            resp = None

        with self._lock:
            if self._session.state is not SessionState.BOOTSTRAPPING:
                # A login or logout won the race; its state stands.
                return self._session
            if self._bootstrap_cancelled.is_set():
                self._session = ClientSession()
                return self._session
            user = _profile_user(resp)
            if user is not None:
                self._storage.set(USER_KEY, json.dumps(user.to_payload()))
                self._session = ClientSession(state=SessionState.AUTHENTICATED, token=token, user=user)
            else:
                logger.info("Stored session rejected; starting anonymous")
                self._clear_storage()
                self._session = ClientSession()
            return self._session

    def cancel_bootstrap(self) -> None:
        """Discard the result of an in-flight bootstrap, or skip one not yet started.

        The manager stays ANONYMOUS and the stored token is left in place for
        the next application load. Bootstrap runs once per manager, so the
        flag is never reset.
        """
        self._bootstrap_cancelled.set()

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> ClientSession:
        """Log in and persist the session. Raises ApiRequestError on any non-200."""
        with self._submission():
            resp = self._http.post(
                self._url("/auth/login"),
                json={"email": email, "password": password},
                timeout=self._timeout,
            )
            data = _json_body(resp)
            if resp.status_code != 200:
                raise ApiRequestError(resp.status_code, _error_message(data))

            token = data.get("token")
            payload = data.get("user")
            if not isinstance(token, str) or not token or not isinstance(payload, dict):
                raise ApiRequestError(resp.status_code, GENERIC_ERROR_MESSAGE)
            try:
                user = SessionUser.from_payload(payload)
            except KeyError as e:
                raise ApiRequestError(resp.status_code, GENERIC_ERROR_MESSAGE) from e
            with self._lock:
                self._storage.set(TOKEN_KEY, token)
                self._storage.set(USER_KEY, json.dumps(user.to_payload()))
                self._session = ClientSession(state=SessionState.AUTHENTICATED, token=token, user=user)
                logger.info("Logged in as account %s", user.id)
                return self._session

    def signup(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        """Register an account and return its id. Does not log in."""
        body: dict[str, Any] = {"email": email, "password": password, "firstName": first_name}
        if last_name is not None:
            body["lastName"] = last_name
        if phone is not None:
            body["phone"] = phone
        with self._submission():
            resp = self._http.post(self._url("/auth/signup"), json=body, timeout=self._timeout)
            data = _json_body(resp)
            if resp.status_code != 201:
                raise ApiRequestError(resp.status_code, _error_message(data))
            user_id = data.get("userId")
            if not user_id:
                raise ApiRequestError(resp.status_code, GENERIC_ERROR_MESSAGE)
            return str(user_id)

    @contextmanager
    def _submission(self) -> Iterator[None]:
        if not self._submit_lock.acquire(blocking=False):
            raise SubmissionInProgress("A submission is already in progress.")
        try:
            yield
        finally:
            self._submit_lock.release()

    # ------------------------------------------------------------------
    # Logout
    # ------------------------------------------------------------------

    def logout(self) -> None:
        with self._lock:
            self._clear_storage()
            self._session = ClientSession()

    def _force_logout(self, rejected_token: Optional[str]) -> None:
        """Log out because the server rejected rejected_token.

        Only acts if that token is still the current one, so a stale response
        cannot end a session started after the request was sent.
        """
        with self._lock:
            if rejected_token is None or self._session.token != rejected_token:
                return
            logger.info("Session token rejected by server; logging out")
            self._clear_storage()
            self._session = ClientSession()

    def _clear_storage(self) -> None:
        self._storage.remove(TOKEN_KEY)
        self._storage.remove(USER_KEY)

    # ------------------------------------------------------------------
    # Authenticated requests
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request with the current bearer token and return the decoded JSON body.

        401, or 403 with code invalid_token, forces a logout and raises
        SessionExpired. Other non-2xx responses raise ApiRequestError. Nothing
        is retried.
        """
        token = self.current_session().token
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers.update(_bearer(token))
        resp = self._http.request(method, self._url(path), headers=headers, timeout=self._timeout, **kwargs)
        data = _json_body(resp)

        if resp.status_code == 401 or (resp.status_code == 403 and data.get("code") == "invalid_token"):
            self._force_logout(token)
            raise SessionExpired()
        if not 200 <= resp.status_code < 300:
            raise ApiRequestError(resp.status_code, _error_message(data))
        return data

    def get_profile(self) -> dict[str, Any]:
        return self.request("GET", "/auth/profile")

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _json_body(resp: Any) -> dict[str, Any]:
    """Decoded JSON object body, or {} for an empty or non-JSON body."""
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _profile_user(resp: Any) -> Optional[SessionUser]:
    """User from a 200 profile response; None for any other outcome."""
    if resp is None or resp.status_code != 200:
        return None
    try:
        return SessionUser.from_payload(_json_body(resp))
    except KeyError:
        return None


def _error_message(data: dict[str, Any]) -> str:
    error = data.get("error")
    return error if isinstance(error, str) and error else GENERIC_ERROR_MESSAGE
