"""
User model: credentials, role, and marketplace profile fields.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text

from taskhub.db.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    TASKER = "tasker"
    CLIENT = "client"
    GUEST = "guest"


VALID_ROLES = frozenset(r.value for r in UserRole)
DEFAULT_ROLE = UserRole.CLIENT.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: str = Column(  # type: ignore[assignment]
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=DEFAULT_ROLE,
        server_default=DEFAULT_ROLE,
    )  # admin | tasker | client | guest

    # ── Profile ──────────────────────────────────────────────────────
    first_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    last_name: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    profile_image_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    location: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    bio: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    skills: str | None = Column(Text, nullable=True)  # type: ignore[assignment]  # JSON list
    is_tasker: bool | None = Column(Boolean, nullable=True, default=False)  # type: ignore[assignment]
    hourly_rate: Decimal | None = Column(Numeric(10, 2), nullable=True)  # type: ignore[assignment]
    total_earnings: Decimal | None = Column(Numeric(12, 2), nullable=True)  # type: ignore[assignment]
    rating: Decimal | None = Column(Numeric(3, 2), nullable=True)  # type: ignore[assignment]
    review_count: int | None = Column(Integer, nullable=True, default=0)  # type: ignore[assignment]
    total_tasks: int | None = Column(Integer, nullable=True, default=0)  # type: ignore[assignment]

    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime | None = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )
