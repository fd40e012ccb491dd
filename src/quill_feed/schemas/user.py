"""Profile and authentication Pydantic schemas."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quill_feed.core.settings import settings

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_username(value: str) -> str:
    """Apply the username length and character rules."""
    if len(value) < settings.min_username_length:
        raise ValueError(
            f"Username must be at least {settings.min_username_length} characters"
        )
    if len(value) > settings.max_username_length:
        raise ValueError(
            f"Username must be {settings.max_username_length} characters or less"
        )
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return value


class ProfileOut(BaseModel):
    """Public profile information."""

    id: str
    username: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SignUpRequest(BaseModel):
    """Schema for account registration."""

    email: str = Field(..., description="Account email address")
    password: str = Field(..., description="Account password")
    username: str = Field(..., description="Unique public username")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the email looks like an address."""
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate the minimum password length."""
        if len(v) < settings.min_password_length:
            raise ValueError(
                f"Password must be at least {settings.min_password_length} characters"
            )
        return v

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return validate_username(v)


class SignInRequest(BaseModel):
    """Schema for sign-in submissions."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, description="Password is required")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenResponse(BaseModel):
    """Response returned after successful sign-in."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (always 'bearer')")


class ProfileUpdateRequest(BaseModel):
    """Schema for updating profile information."""

    username: str | None = Field(None, description="New unique username")

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_username(v)
