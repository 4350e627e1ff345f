"""
API request and response models for ContactVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
contacts/models.py, which own the internal domain representation. Route
handlers map between the two.

UserResponse has no password field at all -- the hash cannot leak through
a response even if a handler passes the whole User across.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from auth.models import Session, User
from contacts.models import Contact, ContactPage

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ContactTypeEnum(str, Enum):
    work = "work"
    home = "home"
    personal = "personal"


class SortOrderEnum(str, Enum):
    asc = "asc"
    desc = "desc"


class ContactSortEnum(str, Enum):
    id = "id"
    name = "name"
    phone_number = "phone_number"
    email = "email"
    is_favourite = "is_favourite"
    contact_type = "contact_type"
    created_at = "created_at"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Anything beyond email and password lands in the user's profile.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(min_length=3, max_length=64)

    def profile(self) -> dict[str, Any]:
        return {"name": self.name}


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=64)


class ResetEmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=3, max_length=64)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a User (never includes the password hash)."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    profile: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            profile=user.profile,
            created_at=user.created_at,
        )


class SessionResponse(BaseModel):
    """Body returned by login and refresh.

    The refresh token and session id travel only in httpOnly cookies; the
    body carries what the client needs to call the API.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    access_token_valid_until: datetime
    token_type: str = "bearer"

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            access_token=session.access_token,
            access_token_valid_until=session.access_token_valid_until,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------


class ContactCreate(BaseModel):
    """Request body for POST /api/v1/contacts and PUT /api/v1/contacts/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=3, max_length=20)
    phone_number: str = Field(min_length=3, max_length=20)
    email: Optional[EmailStr] = None
    is_favourite: bool = False
    contact_type: ContactTypeEnum = ContactTypeEnum.personal


class ContactPatch(BaseModel):
    """Request body for PATCH /api/v1/contacts/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=3, max_length=20)
    phone_number: Optional[str] = Field(default=None, min_length=3, max_length=20)
    email: Optional[EmailStr] = None
    is_favourite: Optional[bool] = None
    contact_type: Optional[ContactTypeEnum] = None

    @field_validator("name", "phone_number", "is_favourite", "contact_type")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        """Omit a field to keep it; only email may be cleared with null."""
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class ContactResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    phone_number: str
    email: Optional[str] = None
    is_favourite: bool
    contact_type: str
    created_at: str
    updated_at: str

    @classmethod
    def from_contact(cls, contact: Contact) -> "ContactResponse":
        return cls(
            id=contact.id,
            name=contact.name,
            phone_number=contact.phone_number,
            email=contact.email,
            is_favourite=contact.is_favourite,
            contact_type=contact.contact_type,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
        )


class ContactPageResponse(BaseModel):
    """Paginated contact list for GET /api/v1/contacts."""

    model_config = ConfigDict(frozen=True)

    data: list[ContactResponse]
    page: int
    per_page: int
    total_items: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool

    @classmethod
    def from_page(cls, page: ContactPage) -> "ContactPageResponse":
        return cls(
            data=[ContactResponse.from_contact(c) for c in page.data],
            page=page.page,
            per_page=page.per_page,
            total_items=page.total_items,
            total_pages=page.total_pages,
            has_previous_page=page.has_previous_page,
            has_next_page=page.has_next_page,
        )


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
