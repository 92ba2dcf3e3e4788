# copilot_server/core/access.py
"""
Access gate: reusable authorization checks.

Each check is a plain function returning `Granted(user)` or
`Rejected(reason, kind)`; nothing here raises for a refused caller or
writes to the store. `core/auth.py` adapts these to FastAPI dependencies.

The user record is always re-read by id from the store. Token claims
(email, admin flag) are never trusted for authorization, so pausing,
deleting or demoting a user takes effect on their very next request.
"""
from dataclasses import dataclass
from enum import Enum

from sqlmodel import Session

from copilot_server.core.account_status import rejection_reason
from copilot_server.core.tokens import TokenService
from copilot_server.models.user import User
from copilot_server.repositories.user_repo import UserRepository

NO_TOKEN = "No token provided"
INVALID_TOKEN = "Invalid or expired token"
USER_NOT_FOUND = "User not found"
ADMIN_REQUIRED = "Admin access required"


class RejectionKind(str, Enum):
    # 401: who the caller is could not be established
    UNAUTHENTICATED = "unauthenticated"
    # 403: caller is known but not allowed
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Granted:
    user: User


@dataclass(frozen=True)
class Rejected:
    reason: str
    kind: RejectionKind


AccessResult = Granted | Rejected


def authenticate(
    session: Session,
    tokens: TokenService,
    users: UserRepository,
    token: str | None,
) -> AccessResult:
    """
    Resolve the caller to a current, active user.

    `token` is the raw bearer credential, or None if none was sent.
    Order matters: presence, then signature/expiry, then a fresh fetch of the
    user, then their status.
    """
    if not token:
        return Rejected(NO_TOKEN, RejectionKind.UNAUTHENTICATED)

    claims = tokens.verify(token)
    if claims is None:
        return Rejected(INVALID_TOKEN, RejectionKind.UNAUTHENTICATED)

    user = users.get_by_id(session, claims.user_id)
    if user is None:
        return Rejected(USER_NOT_FOUND, RejectionKind.UNAUTHENTICATED)

    reason = rejection_reason(user.status)
    if reason is not None:
        return Rejected(reason, RejectionKind.FORBIDDEN)

    return Granted(user)


def authorize_admin(
    session: Session,
    tokens: TokenService,
    users: UserRepository,
    token: str | None,
) -> AccessResult:
    """`authenticate`, then require the admin role on the fresh record."""
    result = authenticate(session, tokens, users, token)
    if isinstance(result, Rejected):
        return result
    if not result.user.is_admin:
        return Rejected(ADMIN_REQUIRED, RejectionKind.FORBIDDEN)
    return result


def authenticate_optional(
    session: Session,
    tokens: TokenService,
    users: UserRepository,
    token: str | None,
) -> User | None:
    """The active caller if a usable token was sent, else None. Never rejects."""
    result = authenticate(session, tokens, users, token)
    if isinstance(result, Granted):
        return result.user
    return None
