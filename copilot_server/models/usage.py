# copilot_server/models/usage.py
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer
from sqlmodel import SQLModel, Field

ANALYSIS_ACTION = "analysis"


class UsageEvent(SQLModel, table=True):
    """
    One quota-consuming action performed by a user.

    Append-only: rows are written once, after the action succeeded, and are
    only removed together with their owning user.
    """

    __tablename__ = "usage_logs"
    __table_args__ = (
        Index("idx_usage_user_timestamp", "user_id", "timestamp"),
    )

    id: int | None = Field(
        default=None,
        primary_key=True,
    )

    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )

    # Only "analysis" counts against the daily quota
    action: str = Field(
        max_length=50,
        description="Action kind",
    )

    timestamp: datetime = Field(
        sa_type=DateTime(timezone=True),
        description="When the action completed (UTC)",
    )
