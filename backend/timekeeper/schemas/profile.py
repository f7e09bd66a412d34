"""
Billing profile Pydantic schemas.

Defines request/response models for profile CRUD operations.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID


class ProfileCreateRequest(BaseModel):
    """Profile creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Profile name")
    hourly_rate: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Hourly rate")


class ProfileUpdateRequest(BaseModel):
    """Profile update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Profile name")
    hourly_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2, description="Hourly rate")


class ProfileResponse(BaseModel):
    """Profile response schema."""
    id: UUID = Field(..., description="Profile ID")
    user_id: UUID = Field(..., description="Owning user ID")
    name: str = Field(..., description="Profile name")
    hourly_rate: Decimal = Field(..., description="Hourly rate")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        from_attributes = True
