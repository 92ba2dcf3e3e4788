# copilot_server/services/quota_service.py
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlmodel import Session

from copilot_server.core import quota_limits
from copilot_server.core.account_status import AccountStatus
from copilot_server.core.clock import utcnow
from copilot_server.models.usage import ANALYSIS_ACTION, UsageEvent
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

LIMIT_REACHED = "Daily limit reached"
USER_NOT_FOUND = "User not found"
ACCOUNT_NOT_ACTIVE = "Account not active"


@dataclass(frozen=True)
class QuotaDecision:
    """
    Outcome of a quota check.

    `limit` is the tagged internal value; `remaining` is None when the
    user is unlimited. Use `as_payload()` for the wire format.
    """

    allowed: bool
    used: int
    limit: quota_limits.QuotaLimit
    remaining: int | None = None
    reason: str | None = None

    @property
    def unlimited(self) -> bool:
        return isinstance(self.limit, quota_limits.Unlimited)

    def as_payload(self) -> dict:
        """
        `{allowed, used, limit, remaining, reason?}` with limit -1 and
        remaining "unlimited" for unlimited users.
        """
        payload: dict = {
            "allowed": self.allowed,
            "used": self.used,
            "limit": quota_limits.to_wire(self.limit),
            "remaining": (
                "unlimited" if self.unlimited and self.allowed else (self.remaining or 0)
            ),
        }
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload


class QuotaService:
    """
    Daily analysis quota.

    `can_consume` is a read-only decision; `record_consumption` appends the
    usage event and must only be called once the gated action succeeded.
    The two are deliberately separate steps: a failed downstream call
    consumes nothing. Two requests racing at the boundary can both be
    allowed, so the day's count may overshoot the limit by the number of
    concurrent in-flight requests minus one.
    """

    def __init__(self, user_repo: UserRepository, usage_repo: UsageRepository):
        self.user_repo = user_repo
        self.usage_repo = usage_repo

    def used_today(self, session: Session, user_id: int, now: datetime | None = None) -> int:
        return self.usage_repo.count_for_day(session, user_id, now or utcnow())

    def can_consume(
        self,
        session: Session,
        user_id: int,
        now: datetime | None = None,
    ) -> QuotaDecision:
        now = now or utcnow()

        user = self.user_repo.get_by_id(session, user_id)
        if user is None:
            return QuotaDecision(
                allowed=False, used=0, limit=quota_limits.Limited(0), remaining=0,
                reason=USER_NOT_FOUND,
            )
        # Admins are never limited, whatever their stored limit says
        limit = quota_limits.UNLIMITED if user.is_admin else user.quota_limit

        if AccountStatus(user.status) is not AccountStatus.ACTIVE:
            return QuotaDecision(
                allowed=False, used=0, limit=limit, remaining=0, reason=ACCOUNT_NOT_ACTIVE,
            )

        used = self.usage_repo.count_for_day(session, user_id, now)
        if isinstance(limit, quota_limits.Unlimited):
            return QuotaDecision(allowed=True, used=used, limit=limit)

        if used >= limit.count:
            logger.info(
                "Quota denied for user %s: %s/%s used today", user_id, used, limit.count
            )
            return QuotaDecision(
                allowed=False, used=used, limit=limit, remaining=0, reason=LIMIT_REACHED,
            )

        return QuotaDecision(
            allowed=True, used=used, limit=limit, remaining=limit.count - used,
        )

    def record_consumption(
        self,
        session: Session,
        user_id: int,
        action: str = ANALYSIS_ACTION,
        now: datetime | None = None,
    ) -> UsageEvent:
        """Append one usage event. Call only after the action completed."""
        return self.usage_repo.append(
            session, user_id=user_id, action=action, at=now or utcnow()
        )
