# copilot_server/repositories/user_repo.py
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from copilot_server.models.user import User


class DuplicateEmailError(Exception):
    """Raised when inserting a user whose email already exists."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserRepository:
    """
    Data access layer for User (the credential store).

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    # ----- Basic CRUD -----

    def get_by_id(self, session: Session, user_id: int) -> User | None:
        """Return a User by primary key, or None if not found."""
        return session.get(User, user_id)

    def get_by_email(self, session: Session, email: str) -> User | None:
        """Return a User by unique (normalized) email, or None if not found."""
        stmt = select(User).where(User.email == normalize_email(email))
        return session.exec(stmt).first()

    def list(self, session: Session) -> list[User]:
        """All users, newest first."""
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        return list(session.exec(stmt).all())

    def create(self, session: Session, user: User) -> User:
        """
        Insert a new User and return the persisted row.

        Raises:
            DuplicateEmailError: the email is taken. The transaction is
            rolled back, so no partial row is left behind.
        """
        user.email = normalize_email(user.email)
        session.add(user)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise DuplicateEmailError(user.email) from exc
        session.refresh(user)
        return user

    def update(self, session: Session, user: User) -> User:
        """Persist changes to an existing User."""
        user.touch()
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    def delete(self, session: Session, user: User) -> None:
        """
        Delete a User.

        Usage rows must already be gone (or be purged in the same
        transaction by the caller) since usage_logs references users.
        """
        session.delete(user)
        session.commit()
