# copilot_server/schemas/stats.py
from pydantic import ConfigDict

from copilot_server.schemas.base import CamelModel


class StatusSummary(CamelModel):
    """
    Head counts for the admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    total_users: int
    active_users: int
    pending_users: int
    paused_users: int
    deactivated_users: int
    paid_users: int


class UserUsageTotal(CamelModel):
    """
    Analyses per user over the requested window.
    """
    model_config = ConfigDict(extra="forbid")

    id: int
    email: str
    name: str
    total_uses: int
    daily_limit: int


class AdminDashboardStats(CamelModel):
    """
    Full payload for admin dashboard.
    """
    model_config = ConfigDict(extra="forbid")

    success: bool = True
    days: int
    summary: StatusSummary
    user_stats: list[UserUsageTotal]
