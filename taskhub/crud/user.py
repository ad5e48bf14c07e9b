"""
Credential store: user lookups and writes over an injected AsyncSession.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.security import (get_password_hash, pwd_context,
                                   verify_password)
from taskhub.models.user import DEFAULT_ROLE, User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == str(user_id)))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    e = normalize_email(email)
    if not e:
        return None
    result = await db.execute(select(User).where(User.email == e))
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[User]:
    result = await db.execute(
        select(User).order_by(User.created_at, User.email).offset(skip).limit(limit)
    )
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    role: str = DEFAULT_ROLE,
) -> User:
    """Insert a user with a bcrypt-hashed password."""
    user = User(
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created user %s (role=%s)", user.id, user.role)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user when ``password`` matches the stored hash, else ``None``."""
    user = await get_user_by_email(db, email)
    if user is None:
        # Unknown emails still cost one bcrypt verification
        pwd_context.dummy_verify()
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


async def update_password(db: AsyncSession, user: User, new_password: str) -> None:
    user.hashed_password = get_password_hash(new_password)
    await db.commit()
    logger.info("Password changed for user %s", user.id)


async def update_profile(db: AsyncSession, user: User, updates: dict[str, Any]) -> User:
    for field, value in updates.items():
        if field == "skills" and value is not None:
            value = json.dumps(list(value))
        elif field == "hourly_rate" and value is not None:
            value = Decimal(value)
        elif field == "email" and value is not None:
            value = normalize_email(value)
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.commit()
    logger.info("Deleted user %s", user.id)


async def update_role(db: AsyncSession, user: User, role: str) -> User:
    previous = user.role
    user.role = role
    await db.commit()
    await db.refresh(user)
    logger.info("Role of user %s changed: %s -> %s", user.id, previous, role)
    return user
