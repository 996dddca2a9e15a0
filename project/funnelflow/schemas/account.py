# funnelflow/schemas/account.py

import re
from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from funnelflow.schemas.base import CamelModel, as_utc

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def check_password_strength(password: str) -> str:
    """Правила пароля: от 8 символов, верхний и нижний регистр, цифра, спецсимвол."""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", password):
        raise ValueError("Password must contain at least one special character")
    return password


# ────────────── Вход ──────────────
class AccountCredentials(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AccountCreate(CamelModel):
    """Регистрация: логин, пароль и необязательный email для писем."""
    username: str
    password: str
    email: Optional[str] = None

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Username must be at least 3 characters")
        if len(value) > 30:
            raise ValueError("Username must be less than 30 characters")
        if not USERNAME_RE.match(value):
            raise ValueError("Username can only contain letters, numbers and underscores")
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not EMAIL_RE.match(value):
            raise ValueError("Please enter a valid email address")
        return value


class ResetRequest(CamelModel):
    username: str = Field(..., min_length=1)


class PasswordReset(CamelModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


# ────────────── Ответы ──────────────
class AccountBrief(CamelModel):
    id: int
    username: str


class AccountResponse(AccountBrief):
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value):
        return as_utc(value)


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: AccountBrief
