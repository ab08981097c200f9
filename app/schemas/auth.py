"""
Pydantic schemas for authentication requests and responses.
Handles sign-up, login, token refresh, and the user profile.
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from app.schemas.base import CamelModel


class SignupRequest(CamelModel):
    """Sign-up request schema."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's full name",
        examples=["Asha Kulkarni"]
    )
    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["asha@example.com"]
    )
    mobile: str = Field(
        ...,
        min_length=7,
        max_length=20,
        description="User's mobile number",
        examples=["9876543210"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("name", "mobile")
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class LoginRequest(CamelModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["asha@example.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RefreshTokenRequest(CamelModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class UserProfile(CamelModel):
    """User profile as shown on the account page."""

    id: str
    name: str
    email: EmailStr
    mobile: str
    created_at: Optional[datetime] = None


class AccessTokenResponse(CamelModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(
        ...,
        description="Access token expiration time in seconds",
        examples=[1800]
    )


class AuthResponse(AccessTokenResponse):
    """Tokens plus profile, returned by sign-up and login."""

    refresh_token: str = Field(..., description="JWT refresh token")
    user: UserProfile
