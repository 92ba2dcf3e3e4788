# copilot_server/repositories/stats_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from copilot_server.core.account_status import AccountStatus
from copilot_server.models.user import User


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.
    """

    def count_users(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User)
        # SQLModel's Session.exec() -> ScalarResult -> use .one()
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_by_status(self, session: Session) -> dict[AccountStatus, int]:
        """
        Number of users per status. Every status is present, zero if unused.
        """
        stmt = select(User.status, func.count()).group_by(User.status)
        counts = {status: 0 for status in AccountStatus}
        for status, n in session.exec(stmt).all():
            counts[AccountStatus(status)] = int(n or 0)
        return counts

    def count_paid(self, session: Session) -> int:
        stmt = select(func.count()).select_from(User).where(User.is_paid == True)  # noqa: E712
        value = session.exec(stmt).one()
        return int(value or 0)
