# copilot_server/models/user.py
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum
from sqlmodel import SQLModel, Field

from copilot_server.core import quota_limits
from copilot_server.core.account_status import AccountStatus, Role
from copilot_server.core.clock import utcnow


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class User(SQLModel, table=True):
    """
    Account record: identity, credentials, authorization and quota.

    Identity:
      - id: integer primary key, opaque to clients
      - email: unique, stored lowercased/stripped

    Authorization:
      - status: pending | active | paused | deactivated
      - role: standard | admin

    Quota:
      - daily_limit: analyses per UTC day; NULL means unlimited.
        Admins are never limited, whatever is stored here.

    `password_hash` never leaves the service; read schemas omit it.
    """

    __tablename__ = "users"

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Login email, lowercased",
    )

    password_hash: str = Field(
        description="passlib hash; replaced on password change, never returned",
    )

    name: str = Field(
        max_length=200,
        description="Display name",
    )

    status: AccountStatus = Field(
        default=AccountStatus.PENDING,
        sa_type=SAEnum(
            AccountStatus,
            values_callable=_enum_values,
            native_enum=False,
            length=20,
        ),
        index=True,
        description="Account lifecycle status",
    )

    role: Role = Field(
        default=Role.STANDARD,
        sa_type=SAEnum(
            Role,
            values_callable=_enum_values,
            native_enum=False,
            length=20,
        ),
        description="Application role: standard | admin",
    )

    # Creation paths always pass the limit; the account default (10) lives
    # in settings, not here.
    daily_limit: int | None = Field(
        default=None,
        description="Analyses per UTC day; NULL = unlimited",
    )

    is_paid: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        description="Last modification timestamp (UTC)",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def quota_limit(self) -> quota_limits.QuotaLimit:
        return quota_limits.from_column(self.daily_limit)

    def touch(self) -> None:
        self.updated_at = utcnow()
