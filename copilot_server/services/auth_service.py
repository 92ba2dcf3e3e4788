# copilot_server/services/auth_service.py
import logging

from fastapi import HTTPException, status
from sqlmodel import Session

from copilot_server.core.account_status import rejection_reason
from copilot_server.core.security import verify_password
from copilot_server.core.tokens import TokenService
from copilot_server.models.user import User
from copilot_server.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """
    Credential login.

    Unknown email and wrong password produce the same 401 so callers cannot
    probe which emails exist. A correct password on a non-active account
    gets that status's own 403 message.
    """

    def __init__(self, repo: UserRepository, tokens: TokenService):
        self.repo = repo
        self.tokens = tokens

    def login(self, session: Session, email: str, password: str) -> tuple[str, User]:
        """
        Returns:
            (token, user)

        Raises:
            HTTPException(401): unknown email or wrong password.
            HTTPException(403): account is pending, paused or deactivated.
        """
        user = self.repo.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=INVALID_CREDENTIALS,
            )

        reason = rejection_reason(user.status)
        if reason is not None:
            logger.info("Login refused for user %s: status %s", user.id, user.status)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=reason,
            )

        return self.tokens.issue(user), user
