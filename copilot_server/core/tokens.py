# copilot_server/core/tokens.py
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt, JWTError

from copilot_server.core.clock import utcnow


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a session token at issuance time."""

    user_id: int
    email: str
    is_admin: bool
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and verifies signed, time-bound session tokens (JWT).

    The secret is handed in by the caller (resolved once from settings at
    startup), so tests can build a service with their own secret and clock.

    Verification only proves the token was signed by us and has not expired.
    It says nothing about the user's *current* status or role; the access
    gate re-reads the user record for that.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_days: int = 7,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret:
            raise ValueError("jwt_secret_blank")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(days=expires_days)
        self._clock = clock

    def issue(self, user) -> str:
        """Sign a token for `user` valid for the configured lifetime from now."""
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "is_admin": bool(user.is_admin),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims | None:
        """
        Decode and check a token.

        Returns:
            TokenClaims on success; None for a bad signature, an expired
            token, or anything malformed. Callers cannot tell these apart.
        """
        if not token:
            return None
        try:
            # Expiry is checked below against our own clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None

        try:
            user_id = int(payload["sub"])
            email = str(payload["email"])
            is_admin = payload["is_admin"]
            iat = int(payload["iat"])
            exp = int(payload["exp"])
        except (KeyError, TypeError, ValueError):
            return None
        if not isinstance(is_admin, bool):
            return None

        if int(self._clock().timestamp()) >= exp:
            return None

        return TokenClaims(
            user_id=user_id,
            email=email,
            is_admin=is_admin,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
