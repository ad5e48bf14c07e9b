"""Pydantic schemas for User profile reads and updates."""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from taskhub.models.user import VALID_ROLES
from taskhub.schemas.base import CamelModel


def _to_str_or_none(v: object) -> str | None:
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        raise ValueError("Must be a number")
    if isinstance(v, (int, float, Decimal)):
        return str(v)
    if isinstance(v, str):
        try:
            Decimal(v.strip())
        except ArithmeticError as exc:
            raise ValueError("Must be a number") from exc
        return v.strip()
    raise ValueError("Must be a number")


# Largest value a Numeric(10, 2) column holds
MAX_HOURLY_RATE = Decimal("99999999.99")
_CENT = Decimal("0.01")


def _parse_rate(v: object) -> str | None:
    text = _to_str_or_none(v)
    if text is None:
        return None
    rate = Decimal(text)
    if not rate.is_finite():
        raise ValueError("Must be a finite number")
    if rate < 0:
        raise ValueError("Must not be negative")
    if rate > MAX_HOURLY_RATE or rate.quantize(_CENT) > MAX_HOURLY_RATE:
        raise ValueError(f"Must not exceed {MAX_HOURLY_RATE}")
    return str(rate.quantize(_CENT))


def _parse_skills(v: object) -> list[str]:
    if v is None or v == "":
        return []
    if isinstance(v, str):
        try:
            decoded = json.loads(v)
        except ValueError:
            return [s.strip() for s in v.split(",") if s.strip()]
        if isinstance(decoded, list):
            return [str(s) for s in decoded]
        return [str(decoded)]
    return [str(s) for s in v]  # type: ignore[union-attr]


def _validate_role(v: str) -> str:
    v = v.strip().lower()
    if v not in VALID_ROLES:
        raise ValueError(f"Role must be one of: {sorted(VALID_ROLES)}")
    return v


class UserRead(CamelModel):
    """Sanitized profile; never includes the password hash."""

    id: str
    email: str | None = None
    role: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    phone: str | None = None
    location: str | None = None
    bio: str | None = None
    is_tasker: bool | None = None
    skills: list[str] = Field(default_factory=list)
    hourly_rate: str | None = None
    total_earnings: str | None = None
    rating: str | None = None
    review_count: int | None = None
    total_tasks: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, v: object) -> list[str]:
        return _parse_skills(v)

    @field_validator("hourly_rate", "total_earnings", "rating", mode="before")
    @classmethod
    def _numeric_as_str(cls, v: object) -> str | None:
        return _to_str_or_none(v)


class UserPublic(CamelModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    model_config = {"from_attributes": True}


class CurrentUserResponse(CamelModel):
    user: UserRead


class ProfileUpdate(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    bio: str | None = None
    profile_image_url: str | None = None
    is_tasker: bool | None = None
    skills: list[str] | None = None
    hourly_rate: str | None = None

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str | None) -> str | None:
        # Only runs for a value the client sent; the column is NOT NULL
        if v is None:
            raise ValueError("Email cannot be null")
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def _rate(cls, v: object) -> str | None:
        return _parse_rate(v)


class ProfileUpdateResponse(CamelModel):
    message: str = "Profile updated"
    user: UserRead


class AdminUserCreate(CamelModel):
    email: str
    password: str = Field(min_length=6, max_length=72)
    first_name: str | None = None
    last_name: str | None = None
    role: str = "client"

    @field_validator("role")
    @classmethod
    def _role(cls, v: str) -> str:
        return _validate_role(v)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class RoleUpdate(CamelModel):
    role: str

    @field_validator("role")
    @classmethod
    def _role(cls, v: str) -> str:
        return _validate_role(v)
