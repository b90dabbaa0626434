"""Pydantic models for users and authentication payloads"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_validator, model_validator

MIN_PASSWORD_LENGTH = 6


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class User(BaseModel):
    """A stored user. `password` holds the bcrypt hash and never leaves the server."""
    id: str
    username: str
    email: str
    password: str
    created_at: datetime
    updated_at: datetime

    def public(self) -> "PublicUser":
        return PublicUser(id=self.id, username=self.username, email=self.email)


class PublicUser(BaseModel):
    id: str
    username: str
    email: str


class AuthResult(BaseModel):
    token: str
    user: PublicUser


class SignUpRequest(BaseModel):
    username: str
    email: str
    password: str

    @model_validator(mode="before")
    @classmethod
    def require_all_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            if any(_is_blank(data.get(name)) for name in ("username", "email", "password")):
                raise ValueError("All fields are required")
        return data

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def check_password_length(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @model_validator(mode="before")
    @classmethod
    def require_credentials(cls, data: Any) -> Any:
        if isinstance(data, dict) and (_is_blank(data.get("email")) or _is_blank(data.get("password"))):
            raise ValueError("Email and password are required")
        return data

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class AuthResponse(AuthResult):
    message: str
