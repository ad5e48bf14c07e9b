"""
Admin-only user management.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.api.deps import AuthContext, get_db, require_admin
from taskhub.crud import user as crud
from taskhub.models.user import User
from taskhub.schemas.user import AdminUserCreate, RoleUpdate, UserRead

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    _admin: AuthContext = Depends(require_admin),
) -> list[User]:
    return await crud.list_users(db, skip=skip, limit=limit)


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: AdminUserCreate,
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(require_admin),
) -> User:
    """Create an account with an explicit role."""
    if await crud.get_user_by_email(db, body.email) is not None:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = await crud.create_user(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    logger.info("Admin %s created user %s", admin.user.id, user.id)
    return user


@router.patch("/users/{user_id}/role", response_model=UserRead)
async def change_role(
    user_id: str,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: AuthContext = Depends(require_admin),
) -> User:
    user = await crud.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return await crud.update_role(db, user, body.role)
