# copilot_server/services/stats_service.py
from datetime import datetime

from sqlmodel import Session

from copilot_server.core import quota_limits
from copilot_server.core.account_status import AccountStatus
from copilot_server.core.clock import utcnow
from copilot_server.repositories.stats_repo import StatsRepository
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository
from copilot_server.schemas.stats import (
    AdminDashboardStats,
    StatusSummary,
    UserUsageTotal,
)


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(
        self,
        repo: StatsRepository,
        user_repo: UserRepository,
        usage_repo: UsageRepository,
    ):
        self.repo = repo
        self.user_repo = user_repo
        self.usage_repo = usage_repo

    def get_admin_dashboard_stats(
        self,
        session: Session,
        days: int = 7,
        now: datetime | None = None,
    ) -> AdminDashboardStats:
        now = now or utcnow()

        by_status = self.repo.count_by_status(session)
        summary = StatusSummary(
            total_users=self.repo.count_users(session),
            active_users=by_status[AccountStatus.ACTIVE],
            pending_users=by_status[AccountStatus.PENDING],
            paused_users=by_status[AccountStatus.PAUSED],
            deactivated_users=by_status[AccountStatus.DEACTIVATED],
            paid_users=self.repo.count_paid(session),
        )

        totals = self.usage_repo.totals_by_user(session, now, days=days)
        user_stats: list[UserUsageTotal] = []
        for u in self.user_repo.list(session):
            user_stats.append(
                UserUsageTotal(
                    id=u.id,
                    email=u.email,
                    name=u.name,
                    total_uses=totals.get(u.id, 0),
                    daily_limit=quota_limits.to_wire(u.quota_limit),
                )
            )
        # Busiest first
        user_stats.sort(key=lambda s: s.total_uses, reverse=True)

        return AdminDashboardStats(days=days, summary=summary, user_stats=user_stats)
