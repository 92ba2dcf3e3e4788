# copilot_server/repositories/usage_repo.py
from datetime import date, datetime, timedelta

from sqlalchemy import delete, func
from sqlmodel import Session, select

from copilot_server.core.clock import as_utc, utc_day_bounds
from copilot_server.models.usage import ANALYSIS_ACTION, UsageEvent


class UsageRepository:
    """
    Quota ledger: append-only usage events and the counts derived from them.

    Nothing here updates an existing row. `purge_for_user` is only used when
    the owning user is deleted.
    """

    def append(
        self,
        session: Session,
        *,
        user_id: int,
        action: str,
        at: datetime,
    ) -> UsageEvent:
        event = UsageEvent(user_id=user_id, action=action, timestamp=as_utc(at))
        session.add(event)
        session.commit()
        session.refresh(event)
        return event

    def count_for_day(
        self,
        session: Session,
        user_id: int,
        now: datetime,
        action: str = ANALYSIS_ACTION,
    ) -> int:
        """Events of `action` for the user within the UTC day containing `now`."""
        start, end = utc_day_bounds(now)
        stmt = (
            select(func.count())
            .select_from(UsageEvent)
            .where(
                UsageEvent.user_id == user_id,
                UsageEvent.action == action,
                UsageEvent.timestamp >= start,
                UsageEvent.timestamp < end,
            )
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def daily_counts(
        self,
        session: Session,
        user_id: int,
        now: datetime,
        days: int = 30,
        action: str = ANALYSIS_ACTION,
    ) -> list[tuple[date, int]]:
        """
        Per-day counts over the last `days` days (today included), newest
        first. Days without events are omitted.
        """
        since = as_utc(now) - timedelta(days=days)
        stmt = select(UsageEvent.timestamp).where(
            UsageEvent.user_id == user_id,
            UsageEvent.action == action,
            UsageEvent.timestamp >= since,
        )
        # Bucketed in Python: date() functions differ across backends
        buckets: dict[date, int] = {}
        for ts in session.exec(stmt).all():
            day = as_utc(ts).date()
            buckets[day] = buckets.get(day, 0) + 1
        return sorted(buckets.items(), key=lambda kv: kv[0], reverse=True)

    def totals_by_user(
        self,
        session: Session,
        now: datetime,
        days: int = 7,
        action: str = ANALYSIS_ACTION,
    ) -> dict[int, int]:
        """Event totals per user id over the last `days` days."""
        since = as_utc(now) - timedelta(days=days)
        stmt = (
            select(UsageEvent.user_id, func.count(UsageEvent.id))
            .where(
                UsageEvent.action == action,
                UsageEvent.timestamp >= since,
            )
            .group_by(UsageEvent.user_id)
        )
        return {int(user_id): int(n) for user_id, n in session.exec(stmt).all()}

    def count_for_user(self, session: Session, user_id: int) -> int:
        """All events for a user, any action, any time."""
        stmt = (
            select(func.count())
            .select_from(UsageEvent)
            .where(UsageEvent.user_id == user_id)
        )
        return int(session.exec(stmt).one() or 0)

    def purge_for_user(self, session: Session, user_id: int) -> None:
        """
        Remove every event owned by `user_id`. Does not commit; the caller
        deletes the user in the same transaction.
        """
        session.exec(delete(UsageEvent).where(UsageEvent.user_id == user_id))
