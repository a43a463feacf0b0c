"""
User Pydantic Schemas

Schemas:
- UserCreate: Registration data (email, username, password)
- UserResponse: The caller's own account data (never exposes password)
- UserPublicResponse: What other users see, embedded in ratings
- TokenResponse: Login result
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserBase(BaseModel):
    """Base schema with shared user fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["jane@college.edu"],
    )

    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Unique username (3-50 characters, alphanumeric and underscores)",
        examples=["janedoe", "jane_doe123"],
    )

    @field_validator("username")
    @classmethod
    def username_must_be_valid(cls, v: str) -> str:
        """
        Validate username format.

        Rules:
        - Only alphanumeric and underscores
        - Must start with a letter
        """
        if not re.match(r"^[a-zA-Z][a-zA-Z0-9_]*$", v):
            raise ValueError(
                "Username must start with a letter and contain only "
                "letters, numbers, and underscores"
            )
        return v.lower()


class UserCreate(UserBase):
    """Schema for user registration."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (min 8 chars, must include uppercase and number)",
        examples=["SecurePass123"],
    )

    full_name: str | None = Field(
        default=None,
        max_length=255,
        description="User's full display name",
    )

    department: str | None = Field(
        default=None,
        max_length=100,
        description="Academic department",
        examples=["Computer Science"],
    )

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """Require at least one uppercase letter, one lowercase letter and one digit."""
        if not re.search(r"[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one number")
        return v


class UserResponse(BaseModel):
    """Full account data for the authenticated user."""

    id: int
    email: EmailStr
    username: str
    full_name: str | None = None
    department: str | None = None
    reputation: int = Field(default=0, description="Reputation points")
    is_active: bool
    is_superuser: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPublicResponse(BaseModel):
    """
    Schema for public user profile (visible to other users).

    Excludes email and account status fields.
    """

    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")
    full_name: str | None = Field(default=None, description="User's display name")
    department: str | None = Field(default=None, description="Academic department")

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """JWT access token returned by /auth/login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
