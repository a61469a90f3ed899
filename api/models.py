"""
API request and response models for the Tripmate auth endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.

Wire format is camelCase (firstName, lastName, userId) with "_id" for the
account id, matching what the front end already consumes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import AccountView

# bcrypt reads at most 72 bytes; stay well clear of it.
PASSWORD_MAX_LENGTH = 64


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/auth/signup.

    Required fields default to "" so that a missing field reaches the
    Authenticator and gets its domain message ("Email, password, and first
    name are required") rather than a generic schema error. Wrong types
    are still rejected here.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=PASSWORD_MAX_LENGTH)
    first_name: str = Field(default="", max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=40)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=PASSWORD_MAX_LENGTH)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SignupResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    message: str = "Signup successful"
    user_id: str


class LoginUser(BaseModel):
    """The user object embedded in a login response."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    first_name: str
    last_name: Optional[str] = None

    @classmethod
    def from_view(cls, view: AccountView) -> "LoginUser":
        return cls(id=view.id, email=view.email, first_name=view.first_name, last_name=view.last_name)


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "Login successful"
    token: str
    user: LoginUser


class ProfileResponse(BaseModel):
    """Redacted account view for GET /api/auth/profile. Never carries a password field."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(alias="_id")
    email: str
    first_name: str
    last_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None
    last_login_at: Optional[str] = None

    @classmethod
    def from_view(cls, view: AccountView) -> "ProfileResponse":
        """Build a ProfileResponse from the domain AccountView.

        Factory Method -- the mapping lives here, colocated with the output
        model, rather than in the route handler.
        """
        return cls(
            id=view.id,
            email=view.email,
            first_name=view.first_name,
            last_name=view.last_name,
            phone=view.phone,
            created_at=view.created_at,
            last_login_at=view.last_login_at,
        )


class ErrorResponse(BaseModel):
    """Error envelope returned on 4xx/5xx responses.

    error is the human-readable message the front end shows as-is;
    code is the stable machine-readable identifier.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    code: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    message: str = "Server is running"
    version: str
