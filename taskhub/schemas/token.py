"""Pydantic schemas for session tokens and auth payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskhub.schemas.base import CamelModel


class TokenClaims(BaseModel):
    """Claims decoded from a verified session token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str | None = None
    role: str | None = None
    issued_at: datetime
    expires_at: datetime


# ── Requests ────────────────────────────────────────────────────────
class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str
    password: str = Field(min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=72)


# ── Responses ───────────────────────────────────────────────────────
class LoginResponse(CamelModel):
    ok: bool = True
    user_id: str
    email: str | None
    role: str
    token: str


class RegisterResponse(CamelModel):
    message: str = "User created"
    user_id: str
    email: str | None
    role: str
    token: str


class OkResponse(BaseModel):
    ok: bool = True


class MessageResponse(BaseModel):
    message: str
