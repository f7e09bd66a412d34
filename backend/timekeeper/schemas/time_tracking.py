"""
Time tracking-related Pydantic schemas.

Defines request/response models for clock in/out, time entries,
and earnings reports.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, validator
from uuid import UUID

from ..common.datetime_utils import as_utc


class ClockInRequest(BaseModel):
    """Clock in request schema."""
    profile_id: UUID = Field(..., description="Profile to clock in against")
    notes: Optional[str] = Field(None, description="Work notes")


class ClockOutRequest(BaseModel):
    """Clock out request schema."""
    profile_id: UUID = Field(..., description="Profile to clock out of")
    notes: Optional[str] = Field(None, description="Final work notes")


class ManualEntryRequest(BaseModel):
    """Manual time entry request schema."""
    profile_id: UUID = Field(..., description="Profile ID")
    clock_in: datetime = Field(..., description="Start time")
    clock_out: datetime = Field(..., description="End time")
    notes: Optional[str] = Field(None, description="Work notes")

    @validator('clock_out')
    def validate_clock_out(cls, v, values):
        """Clock out must come after clock in."""
        clock_in = values.get('clock_in')
        if clock_in is not None and as_utc(v) <= as_utc(clock_in):
            raise ValueError('clock_out must be after clock_in')
        return v


class TimeEntryUpdateRequest(BaseModel):
    """Time entry update request schema."""
    clock_in: Optional[datetime] = Field(None, description="Start time")
    clock_out: Optional[datetime] = Field(None, description="End time")
    notes: Optional[str] = Field(None, description="Work notes")


class TimeEntryResponse(BaseModel):
    """Time entry response schema."""
    id: UUID = Field(..., description="Time entry ID")
    user_id: UUID = Field(..., description="User ID")
    profile_id: UUID = Field(..., description="Profile ID")
    profile_name: Optional[str] = Field(None, description="Profile name")
    clock_in: datetime = Field(..., description="Start time")
    clock_out: Optional[datetime] = Field(None, description="End time")
    notes: Optional[str] = Field(None, description="Work notes")
    duration_minutes: Optional[int] = Field(None, description="Duration in minutes")
    earnings: Optional[Decimal] = Field(None, description="Earnings at the profile's rate")
    is_running: bool = Field(..., description="Whether the entry is still clocked in")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class TimeEntriesListResponse(BaseModel):
    """Time entries list response schema."""
    entries: List[TimeEntryResponse] = Field(..., description="List of time entries")
    total: int = Field(..., description="Total number of entries")


class ProfileEarnings(BaseModel):
    """Per-profile report line."""
    profile_id: UUID = Field(..., description="Profile ID")
    name: str = Field(..., description="Profile name")
    hourly_rate: Decimal = Field(..., description="Hourly rate")
    hours: float = Field(..., description="Hours worked")
    earnings: Decimal = Field(..., description="Earnings")
    entry_count: int = Field(..., description="Number of completed entries")


class EarningsReportResponse(BaseModel):
    """Earnings report response schema."""
    start_date: date = Field(..., description="First day of the report")
    end_date: date = Field(..., description="Last day of the report")
    total_hours: float = Field(..., description="Total hours")
    total_earnings: Decimal = Field(..., description="Total earnings")
    entry_count: int = Field(..., description="Total number of completed entries")
    profiles: List[ProfileEarnings] = Field(..., description="Breakdown by profile")
    entries: List[TimeEntryResponse] = Field(..., description="Entries in the report")
