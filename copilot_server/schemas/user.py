# copilot_server/schemas/user.py
from datetime import date, datetime

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import Field

from copilot_server.core import quota_limits
from copilot_server.core.account_status import AccountStatus
from copilot_server.core.clock import as_utc
from copilot_server.models.user import User
from copilot_server.schemas.base import CamelModel


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty")
    return v


class UserRead(CamelModel):
    """
    Outward view of a User. Never carries the password hash.

    `daily_limit` uses the wire convention: -1 means unlimited.
    """

    id: int
    email: str
    name: str
    status: AccountStatus
    is_admin: bool
    is_paid: bool
    daily_limit: int
    today_usage: int | None = None
    remaining: int | str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(
        cls,
        user: User,
        today_usage: int | None = None,
        remaining: int | str | None = None,
    ) -> "UserRead":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            status=AccountStatus(user.status),
            is_admin=user.is_admin,
            is_paid=user.is_paid,
            daily_limit=quota_limits.to_wire(user.quota_limit),
            today_usage=today_usage,
            remaining=remaining,
            created_at=as_utc(user.created_at),
            updated_at=as_utc(user.updated_at),
        )


class DailyUsage(CamelModel):
    date: date
    count: int


class UserDetailResponse(CamelModel):
    success: bool = True
    user: UserRead
    usage_stats: list[DailyUsage]


class UserListResponse(CamelModel):
    success: bool = True
    users: list[UserRead]


class AdminUserCreate(CamelModel):
    """
    Admin-created account. Unlike self-registration, defaults to active.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str
    name: str = Field(max_length=200)
    status: AccountStatus = AccountStatus.ACTIVE
    daily_limit: int | None = Field(default=None, ge=quota_limits.UNLIMITED_WIRE_VALUE)
    is_paid: bool = False

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return _strip_name(v)


class AdminUserUpdate(CamelModel):
    """
    Partial update (admin only). Omitted fields are left untouched.
    `password`, when given, replaces the stored hash.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    status: AccountStatus | None = None
    daily_limit: int | None = Field(default=None, ge=quota_limits.UNLIMITED_WIRE_VALUE)
    is_paid: bool | None = None
    password: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        return _strip_name(v)


class StatusUpdate(CamelModel):
    """Quick status change: activate, pause, deactivate, or back to pending."""

    model_config = ConfigDict(extra="forbid")
    status: AccountStatus


class UserCreatedResponse(CamelModel):
    success: bool = True
    message: str
    user_id: int


class MessageResponse(CamelModel):
    success: bool = True
    message: str
