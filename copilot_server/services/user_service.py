# copilot_server/services/user_service.py
import logging
from datetime import date, datetime

from fastapi import HTTPException, status
from sqlmodel import Session

from copilot_server.core import quota_limits
from copilot_server.core.account_status import AccountStatus, Role, can_transition
from copilot_server.core.clock import utcnow
from copilot_server.core.security import hash_password, verify_password
from copilot_server.models.user import User
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import DuplicateEmailError, UserRepository
from copilot_server.schemas.auth import PasswordChange, RegisterRequest
from copilot_server.schemas.user import AdminUserCreate, AdminUserUpdate

logger = logging.getLogger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UserService:
    """
    Business logic for accounts.

    Responsibilities:
      - registration and admin-side account CRUD
      - password rules and hashing
      - account status changes (any status to any other, admin only)
      - protect admins from removing themselves or each other
      - map domain errors to HTTP errors
    """

    def __init__(
        self,
        repo: UserRepository,
        usage_repo: UsageRepository,
        default_daily_limit: int = 10,
        min_password_length: int = 6,
    ):
        self.repo = repo
        self.usage_repo = usage_repo
        self.default_daily_limit = default_daily_limit
        self.min_password_length = min_password_length

    # ----- internal helpers -----

    def _check_password(self, password: str | None) -> str:
        if not password or len(password) < self.min_password_length:
            raise _bad_request(
                f"Password must be at least {self.min_password_length} characters"
            )
        return password

    def _insert(self, session: Session, user: User) -> User:
        try:
            return self.repo.create(session, user)
        except DuplicateEmailError:
            raise _bad_request("Email already exists")

    # ----- Self service -----

    def register(self, session: Session, payload: RegisterRequest) -> User:
        """
        Self-registration. The account starts `pending`; an admin has to
        activate it before the user can log in.
        """
        password = self._check_password(payload.password)
        if self.repo.get_by_email(session, payload.email) is not None:
            raise _bad_request("Email already exists")

        user = self._insert(
            session,
            User(
                email=payload.email,
                password_hash=hash_password(password),
                name=payload.name,
                status=AccountStatus.PENDING,
                role=Role.STANDARD,
                daily_limit=self.default_daily_limit,
            ),
        )
        logger.info("Registered user %s (%s), pending approval", user.id, user.email)
        return user

    def change_password(
        self,
        session: Session,
        current_user: User,
        payload: PasswordChange,
    ) -> User:
        """Replace the caller's password after re-checking the current one."""
        if not verify_password(payload.current_password, current_user.password_hash):
            raise _bad_request("Current password is incorrect")
        new_password = self._check_password(payload.new_password)
        current_user.password_hash = hash_password(new_password)
        logger.info("User %s changed their password", current_user.id)
        return self.repo.update(session, current_user)

    # ----- Admin operations -----

    def list_users(self, session: Session) -> list[User]:
        return self.repo.list(session)

    def get_user(self, session: Session, user_id: int) -> User:
        """
        Get a user by id (admin only).

        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def usage_history(
        self,
        session: Session,
        user_id: int,
        days: int = 30,
        now: datetime | None = None,
    ) -> list[tuple[date, int]]:
        return self.usage_repo.daily_counts(session, user_id, now or utcnow(), days=days)

    def create_user(self, session: Session, payload: AdminUserCreate) -> User:
        """
        Admin-created account: active by default, standard role.
        """
        password = self._check_password(payload.password)
        if self.repo.get_by_email(session, payload.email) is not None:
            raise _bad_request("Email already exists")

        if payload.daily_limit is None:
            limit = quota_limits.Limited(self.default_daily_limit)
        else:
            limit = quota_limits.from_wire(payload.daily_limit)

        user = self._insert(
            session,
            User(
                email=payload.email,
                password_hash=hash_password(password),
                name=payload.name,
                status=payload.status,
                role=Role.STANDARD,
                daily_limit=quota_limits.to_column(limit),
                is_paid=payload.is_paid,
            ),
        )
        logger.info("Admin created user %s (%s) as %s", user.id, user.email, user.status)
        return user

    def update_user(
        self,
        session: Session,
        acting_admin: User,
        user_id: int,
        payload: AdminUserUpdate,
    ) -> User:
        """
        Partial update: name, status, daily limit, paid flag, password.
        """
        user = self.get_user(session, user_id)

        if payload.status is not None:
            refusal = can_transition(
                user.status, payload.status, acting_on_self=user.id == acting_admin.id
            )
            if refusal:
                raise _bad_request(refusal)
        if payload.password is not None:
            password = self._check_password(payload.password)

        if payload.name is not None:
            user.name = payload.name
        if payload.status is not None:
            user.status = payload.status
        if payload.daily_limit is not None:
            user.daily_limit = quota_limits.to_column(
                quota_limits.from_wire(payload.daily_limit)
            )
        if payload.is_paid is not None:
            user.is_paid = payload.is_paid
        if payload.password is not None:
            user.password_hash = hash_password(password)

        user = self.repo.update(session, user)
        logger.info("Admin %s updated user %s", acting_admin.id, user.id)
        return user

    def set_status(
        self,
        session: Session,
        acting_admin: User,
        user_id: int,
        new_status: AccountStatus,
    ) -> User:
        """Quick status change. No automatic transitions exist."""
        user = self.get_user(session, user_id)
        refusal = can_transition(
            user.status, new_status, acting_on_self=user.id == acting_admin.id
        )
        if refusal:
            raise _bad_request(refusal)

        previous = user.status
        user.status = new_status
        user = self.repo.update(session, user)
        logger.info(
            "Admin %s moved user %s from %s to %s",
            acting_admin.id, user.id, AccountStatus(previous).value, new_status.value,
        )
        return user

    def delete_user(self, session: Session, acting_admin: User, user_id: int) -> None:
        """
        Delete a standard user together with their usage history.

        Admins cannot delete themselves or any other admin.
        """
        if user_id == acting_admin.id:
            raise _bad_request("Cannot delete your own account")

        user = self.get_user(session, user_id)
        if user.is_admin:
            raise _bad_request("Cannot delete admin accounts")

        email = user.email
        purged = self.usage_repo.count_for_user(session, user.id)
        self.usage_repo.purge_for_user(session, user.id)
        self.repo.delete(session, user)
        logger.info(
            "Admin %s deleted user %s (%s) and %s usage events",
            acting_admin.id, user_id, email, purged,
        )

    # ----- Bootstrap -----

    def ensure_master_admin(
        self,
        session: Session,
        email: str,
        password: str,
        name: str,
    ) -> tuple[User, bool]:
        """
        Create the master admin if no account uses `email` yet.

        The bootstrap account is active, admin, unlimited and paid. An
        existing account is left exactly as it is.

        Returns:
            (user, created)
        """
        existing = self.repo.get_by_email(session, email)
        if existing is not None:
            logger.info("Master admin already exists")
            return existing, False

        user = self._insert(
            session,
            User(
                email=email,
                password_hash=hash_password(password),
                name=name,
                status=AccountStatus.ACTIVE,
                role=Role.ADMIN,
                daily_limit=quota_limits.to_column(quota_limits.UNLIMITED),
                is_paid=True,
            ),
        )
        logger.info("Master admin %s created with unlimited usage", user.email)
        return user, True
