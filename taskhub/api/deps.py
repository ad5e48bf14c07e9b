"""
FastAPI dependencies: database session and the auth pipeline.

Request flow: ``get_session_claims`` (token found + verified) ->
``get_auth_context`` (user loaded) -> ``require_roles(...)`` (role checked).
Each stage raises an ``AuthError`` subclass to halt the chain.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Callable, Coroutine, Iterable
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.core.exceptions import (Forbidden, InternalError, Unauthenticated,
                                     UserNotFound)
from taskhub.core.security import decode_session_token
from taskhub.crud.user import get_user_by_id
from taskhub.db.session import Database
from taskhub.models.user import User
from taskhub.schemas.token import TokenClaims

logger = logging.getLogger(__name__)

# auto_error=False so a missing header falls through to our own Unauthenticated
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Request-scoped identity: verified claims plus the freshly loaded user."""

    claims: TokenClaims
    user: User

    @property
    def role(self) -> str | None:
        return self.user.role


# ── Database session ────────────────────────────────────────────────
def get_database(request: Request) -> Database:
    return request.app.state.db


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Session extractor ───────────────────────────────────────────────
def get_token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> str | None:
    """Cookie (primary name, then aliases) takes precedence over the Bearer header."""
    for name in (settings.SESSION_COOKIE_NAME, *settings.SESSION_COOKIE_ALIASES):
        token = request.cookies.get(name)
        if token:
            return token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return None


async def get_session_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenClaims:
    token = get_token_from_request(request, credentials)
    if not token:
        raise Unauthenticated()
    return decode_session_token(token)


# ── User loader ─────────────────────────────────────────────────────
async def get_auth_context(
    claims: TokenClaims = Depends(get_session_claims),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Resolve the token identity against the store; the store's role wins."""
    try:
        user = await get_user_by_id(db, claims.user_id)
    except SQLAlchemyError as exc:
        raise InternalError("Credential store read failed") from exc

    if user is None:
        logger.info("Session token for missing user %s rejected", claims.user_id)
        raise UserNotFound()

    if claims.role is not None and claims.role != user.role:
        logger.warning(
            "Stale role in session token for user %s: token=%s, stored=%s",
            user.id,
            claims.role,
            user.role,
        )
    return AuthContext(claims=claims, user=user)


async def get_current_user(ctx: AuthContext = Depends(get_auth_context)) -> User:
    return ctx.user


# ── Role authorizer ─────────────────────────────────────────────────
def _norm(value: object) -> str:
    return ("" if value is None else str(value)).strip().lower()


def is_role_allowed(role: object, allowed: Iterable[object]) -> bool:
    r = _norm(role)
    return bool(r) and r in {_norm(a) for a in allowed}


def require_roles(
    *allowed: str,
) -> Callable[..., Coroutine[Any, Any, AuthContext]]:
    """Build a dependency gating a route to ``allowed`` roles (case/space-insensitive)."""
    allowed_set = frozenset(_norm(r) for r in allowed)

    async def _check_role(ctx: Optional[AuthContext] = Depends(get_auth_context)) -> AuthContext:
        role = _norm(ctx.role if ctx is not None else None)
        if settings.ROLE_DEBUG:
            logger.info("Role check: role=%r allowed=%s", role, sorted(allowed_set))
        if not role:
            raise Unauthenticated("Not authenticated: role not found")
        if not is_role_allowed(role, allowed_set):
            logger.debug("Forbidden: role %r not in %s", role, sorted(allowed_set))
            raise Forbidden()
        return ctx  # type: ignore[return-value]

    return _check_role


require_admin = require_roles("admin")
