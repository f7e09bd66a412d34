"""
Authentication and user-related Pydantic schemas.

Defines request/response models for registration, login and the
current user.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, validator
from uuid import UUID


class UserRegistrationRequest(BaseModel):
    """User registration request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")
    full_name: Optional[str] = Field(None, max_length=200, description="Display name")

    @validator('password')
    def validate_password(cls, v):
        """Validate password strength."""
        if len(v) < 8:
            raise ValueError('password too short')
        return v


class UserLoginRequest(BaseModel):
    """User login request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class UserInfo(BaseModel):
    """User information schema."""
    id: UUID = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email address")
    full_name: Optional[str] = Field(None, description="Display name")
    active: bool = Field(..., description="Whether user is active")
    has_pin: bool = Field(..., description="Whether an admin PIN has been set")
    require_pin: bool = Field(..., description="Whether protected actions require the PIN")


class AuthResponse(BaseModel):
    """Authentication response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserInfo = Field(..., description="User information")


class StandardResponse(BaseModel):
    """Standard API response schema."""
    message: str = Field(..., description="Response message")


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(..., description="Error detail message")
