# copilot_server/routers/auth.py
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from copilot_server.core.auth import get_token_service, require_auth
from copilot_server.core.tokens import TokenService
from copilot_server.database import get_session
from copilot_server.models.user import User
from copilot_server.repositories.usage_repo import UsageRepository
from copilot_server.repositories.user_repo import UserRepository
from copilot_server.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PasswordChange,
    RegisterRequest,
    RegisterResponse,
    VerifyResponse,
)
from copilot_server.schemas.user import MessageResponse, UserRead
from copilot_server.services.auth_service import AuthService
from copilot_server.services.quota_service import QuotaService
from copilot_server.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
usage_repo = UsageRepository()
quota = QuotaService(repo, usage_repo)


def get_user_service(request: Request) -> UserService:
    settings = request.app.state.settings
    return UserService(
        repo,
        usage_repo,
        default_daily_limit=settings.DEFAULT_DAILY_LIMIT,
        min_password_length=settings.MIN_PASSWORD_LENGTH,
    )


def _with_usage(session: Session, user: User) -> UserRead:
    """User view with today's usage and what is left of the quota."""
    decision = quota.can_consume(session, user.id).as_payload()
    return UserRead.from_user(user, today_usage=decision["used"], remaining=decision["remaining"])


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Exchange email + password for a session token (valid 7 days).

    Pending, paused and deactivated accounts are refused with a
    status-specific message.
    """
    token, user = AuthService(repo, tokens).login(session, payload.email, payload.password)
    return LoginResponse(token=token, user=_with_usage(session, user))


@router.post("/register", response_model=RegisterResponse)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
    service: UserService = Depends(get_user_service),
):
    """
    Create an account that waits for admin approval.
    """
    user = service.register(session, payload)
    return RegisterResponse(
        message="Registration successful! Please wait for admin approval.",
        user_id=user.id,
    )


@router.get("/me", response_model=MeResponse)
def read_me(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Return the authenticated user's profile with today's usage.
    """
    return MeResponse(user=_with_usage(session, current_user))


@router.post("/verify", response_model=VerifyResponse)
def verify(current_user: User = Depends(require_auth)):
    """
    Check that the presented token is still usable (signature, expiry and
    current account status).
    """
    return VerifyResponse(user=UserRead.from_user(current_user))


@router.post("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChange,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    service: UserService = Depends(get_user_service),
):
    """
    Self-service password change. Existing tokens stay valid until expiry.
    """
    service.change_password(session, current_user, payload)
    return MessageResponse(message="Password updated successfully")
