# copilot_server/core/auth.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from copilot_server.core import access
from copilot_server.core.tokens import TokenService
from copilot_server.database import get_session
from copilot_server.models.user import User
from copilot_server.repositories.user_repo import UserRepository

users_repo = UserRepository()

# auto_error=False: a missing or non-Bearer header reaches the gate as None,
# which reports "No token provided" in the error envelope.
bearer_scheme = HTTPBearer(auto_error=False)


def _token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials else None


def get_token_service(request: Request) -> TokenService:
    """TokenService built from settings at startup (see `create_app`)."""
    return request.app.state.tokens


def _raise_for(rejected: access.Rejected) -> None:
    """
    Map a gate rejection onto an HTTP error.

    Raises:
        HTTPException(401): unauthenticated (no/invalid token, unknown user).
        HTTPException(403): forbidden (inactive account, not an admin).
    """
    if rejected.kind is access.RejectionKind.UNAUTHENTICATED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=rejected.reason,
            headers={"WWW-Authenticate": "Bearer"},
        )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=rejected.reason,
    )


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """
    Enforce authentication.

    Returns:
        The freshly loaded, active User.
    """
    result = access.authenticate(session, tokens, users_repo, _token(credentials))
    if isinstance(result, access.Rejected):
        _raise_for(result)
    return result.user


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    """
    Enforce admin role.

    Route is accessible only if the caller is authenticated, active and
    currently holds role='admin'.
    """
    result = access.authorize_admin(session, tokens, users_repo, _token(credentials))
    if isinstance(result, access.Rejected):
        _raise_for(result)
    return result.user


def optional_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
) -> User | None:
    """The authenticated user, or None for anonymous callers."""
    return access.authenticate_optional(session, tokens, users_repo, _token(credentials))
