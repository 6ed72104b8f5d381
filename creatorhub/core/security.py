"""
JWT token creation / verification and password hashing (bcrypt).

The signing key is never read from ambient settings here: callers build a
``TokenCodec`` with the key and pass it to whoever needs to issue or verify.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from creatorhub.core.exceptions import TokenExpired, Unauthenticated

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN = "access"
PASSWORD_RESET_TOKEN = "password-reset"


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
@dataclass(frozen=True)
class TokenCodec:
    """Issues and verifies signed bearer tokens with an explicit key."""

    secret: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(days=7)
    reset_ttl: timedelta = timedelta(hours=1)

    def issue(
        self,
        subject: str | Any,
        token_type: str = ACCESS_TOKEN,
        expires_delta: timedelta | None = None,
        **claims: Any,
    ) -> str:
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = self.reset_ttl if token_type == PASSWORD_RESET_TOKEN else self.access_ttl
        payload = {
            **claims,
            "sub": str(subject),
            "type": token_type,
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str, token_type: str = ACCESS_TOKEN) -> dict[str, Any]:
        """Return the claims of a valid token of ``token_type``.

        Raises ``TokenExpired`` for an otherwise valid token past its ``exp``,
        and ``Unauthenticated`` for anything malformed, mis-signed or of the
        wrong type.
        """
        if not token:
            raise Unauthenticated("Empty credential")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired("Token has expired") from e
        except JWTError as e:
            raise Unauthenticated(f"Invalid token: {e}") from e

        if payload.get("type") != token_type:
            raise Unauthenticated(f"Expected a {token_type} token")
        if not payload.get("sub"):
            raise Unauthenticated("Token has no subject")
        return payload
