"""
Member records managed from the admin console, and their request bodies.
JSON uses camelCase (fullName, isActive, createdAt); Python code uses snake_case.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ALLOWED_ROLES = frozenset({"user", "admin", "consultant", "moderator", "support", "staff"})

Gender = Literal["Male", "Female", "Other", "Prefer not to say"]
Membership = Literal["Free", "Premium", "VIP"]

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
EMAIL_PATTERN = r"^\S+@\S+\.\S+$"
PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Location(_CamelModel):
    city: str | None = None
    state: str | None = None
    country: str = "India"


class User(_CamelModel):
    id: str
    username: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    gender: Gender | None = None
    location: Location = Field(default_factory=Location)
    roles: list[str] = Field(default_factory=lambda: ["user"])
    membership: Membership = "Free"
    is_active: bool = True
    is_verified: bool = False
    is_suspended: bool = False
    suspended_reason: str | None = None
    suspended_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    password_hash: str | None = Field(default=None, exclude=True)


class UserCreate(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN)
    password: str | None = Field(default=None, min_length=8, max_length=72)
    full_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    gender: Gender | None = None
    location: Location | None = None
    roles: list[str] = Field(default_factory=lambda: ["user"])
    membership: Membership = "Free"
    is_active: bool = True
    is_verified: bool = False


class UserUpdate(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str | None = Field(default=None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: str | None = Field(default=None, max_length=254, pattern=EMAIL_PATTERN)
    full_name: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN)
    gender: Gender | None = None
    location: Location | None = None
    roles: list[str] | None = None
    membership: Membership | None = None


class StatusAction(str, Enum):
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    SUSPEND = "suspend"
    UNSUSPEND = "unsuspend"
    VERIFY = "verify"
    UNVERIFY = "unverify"


class StatusChange(BaseModel):
    action: StatusAction
    reason: str | None = Field(default=None, max_length=500)

    model_config = {"extra": "forbid"}


class UserFilters(BaseModel):
    """List filters taken from the query string."""

    search: str | None = None
    status: str | None = None
    role: str | None = None
    membership: str | None = None
