"""
Auth endpoints: login, registration, session profile, password change, logout.
"""

# No postponed annotations here: FastAPI would resolve them against the
# slowapi wrapper's module globals.
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.api.deps import AuthContext, get_auth_context, get_db
from taskhub.core.config import settings
from taskhub.core.security import (clear_session_cookie, create_session_token,
                                   set_session_cookie, verify_password)
from taskhub.crud import user as crud
from taskhub.models.user import User
from taskhub.schemas.token import (ChangePasswordRequest, LoginRequest,
                                   LoginResponse, MessageResponse, OkResponse,
                                   RegisterRequest, RegisterResponse)
from taskhub.schemas.user import UserRead

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def issue_session(response: Response, user: User) -> str:
    """Sign a session token for ``user`` and attach it as the session cookie."""
    token = create_session_token(user.id, user.email, user.role)
    set_session_cookie(response, token)
    return token


@router.post("/auth/login", response_model=LoginResponse)
@router.post("/login", response_model=LoginResponse, include_in_schema=False)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """Authenticate with email/password. Sets the HttpOnly session cookie."""
    user = await crud.authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = issue_session(response, user)
    return LoginResponse(user_id=user.id, email=user.email, role=user.role, token=token)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Create a ``client`` account and start a session for it."""
    if await crud.get_user_by_email(db, body.email) is not None:
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        user = await crud.create_user(
            db,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
        )
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    token = issue_session(response, user)
    return RegisterResponse(user_id=user.id, email=user.email, role=user.role, token=token)


@router.get("/auth/user", response_model=UserRead)
async def read_session_user(ctx: AuthContext = Depends(get_auth_context)) -> User:
    """Return the sanitized profile of the authenticated user."""
    return ctx.user


@router.post("/auth/change-password", response_model=MessageResponse)
@router.post(
    "/users/change-password", response_model=MessageResponse, include_in_schema=False
)
async def change_password(
    body: ChangePasswordRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    if not verify_password(body.current_password, ctx.user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    await crud.update_password(db, ctx.user, body.new_password)
    return MessageResponse(message="Password updated")


@router.post("/auth/logout", response_model=OkResponse)
async def logout(response: Response) -> OkResponse:
    """Clear the session cookie. Issued tokens stay valid until they expire."""
    clear_session_cookie(response)
    return OkResponse()
