"""
Session token signing / verification, session cookie, and password hashing (bcrypt).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from taskhub.core.config import settings
from taskhub.core.exceptions import InvalidToken
from taskhub.schemas.token import TokenClaims

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str | None) -> bool:
    if not plain or not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Unrecognised or corrupt hash in the store.
        return False


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── Session tokens ──────────────────────────────────────────────────
def create_session_token(
    user_id: str,
    email: str | None,
    role: str,
    now: datetime | None = None,
) -> str:
    """Sign ``{sub, email, role, iat, exp}``; expiry is absolute, creation + 7 days."""
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(days=settings.SESSION_EXPIRE_DAYS)
    return jwt.encode(
        {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": expire,
        },
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_session_token(token: str) -> TokenClaims:
    """Verify signature and expiry, returning the decoded claims.

    Raises :class:`InvalidToken` for expired, tampered or malformed tokens.
    """
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise InvalidToken("Session token expired") from exc
    except JWTError as exc:
        raise InvalidToken() from exc

    user_id = payload.get("sub")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not user_id or issued_at is None or expires_at is None:
        raise InvalidToken("Session token is missing required claims")

    return TokenClaims(
        user_id=str(user_id),
        email=payload.get("email"),
        role=payload.get("role"),
        issued_at=datetime.fromtimestamp(int(issued_at), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(expires_at), tz=timezone.utc),
    )


# ── Cookie ──────────────────────────────────────────────────────────
def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        path="/",
        max_age=settings.session_max_age,
    )


def clear_session_cookie(response: Response) -> None:
    for name in (settings.SESSION_COOKIE_NAME, *settings.SESSION_COOKIE_ALIASES):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        )
