"""
User profile endpoints.

- GET /users/{id} is public and exposes only the display fields.
- /users/me, PATCH /users/profile and DELETE /users/delete-account require
  a session.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.api.deps import get_current_user, get_db
from taskhub.core.security import clear_session_cookie
from taskhub.crud import user as crud
from taskhub.models.user import User
from taskhub.schemas.token import MessageResponse
from taskhub.schemas.user import (CurrentUserResponse, ProfileUpdate,
                                  ProfileUpdateResponse, UserPublic, UserRead)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=CurrentUserResponse)
async def read_me(current_user: User = Depends(get_current_user)) -> CurrentUserResponse:
    return CurrentUserResponse(user=UserRead.model_validate(current_user))


@router.patch("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    body: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileUpdateResponse:
    """Partially update the caller's own profile."""
    updates = body.model_dump(exclude_unset=True)
    if updates.get("email") and updates["email"] != current_user.email:
        if await crud.get_user_by_email(db, updates["email"]) is not None:
            raise HTTPException(status_code=400, detail="Email already registered")

    user = await crud.update_profile(db, current_user, updates)
    logger.info("Profile updated for user %s: %s", user.id, sorted(updates))
    return ProfileUpdateResponse(user=UserRead.model_validate(user))


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete the caller's account and end the session.

    Tokens issued before the deletion are rejected by the user loader.
    """
    await crud.delete_user(db, current_user)
    clear_session_cookie(response)
    return MessageResponse(message="Account deleted")


@router.get("/{user_id}", response_model=UserPublic)
async def read_public_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await crud.get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
