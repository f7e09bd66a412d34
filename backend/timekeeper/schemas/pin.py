"""
PIN-related Pydantic schemas.

Format rules (4 digits, matching confirmation) are enforced by the PIN
flows so the same messages reach every client; these schemas only
describe the payloads.
"""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field


class PinSetupRequest(BaseModel):
    """First-time PIN setup request schema."""
    pin: str = Field(..., max_length=16, description="New 4-digit PIN")
    confirm_pin: str = Field(..., max_length=16, description="New PIN, repeated")


class PinChangeRequest(BaseModel):
    """PIN change request schema."""
    current_pin: str = Field(..., max_length=16, description="Current PIN")
    new_pin: str = Field(..., max_length=16, description="New 4-digit PIN")
    confirm_new_pin: str = Field(..., max_length=16, description="New PIN, repeated")


class PinVerifyRequest(BaseModel):
    """PIN verification request schema."""
    pin: str = Field(..., max_length=16, description="Entered PIN; non-digits are ignored")


class PinResetConfirmRequest(BaseModel):
    """PIN reset confirmation schema."""
    code: str = Field(..., max_length=6, description="6-digit reset code")
    new_pin: str = Field(..., max_length=16, description="New 4-digit PIN")
    confirm_new_pin: str = Field(..., max_length=16, description="New PIN, repeated")


class PinRequirementRequest(BaseModel):
    """Request to turn the PIN requirement on or off."""
    require_pin: bool = Field(..., description="Whether protected actions require the PIN")


class PinStatusResponse(BaseModel):
    """PIN status response schema."""
    has_pin: bool = Field(..., description="Whether a PIN has been set")
    require_pin: bool = Field(..., description="Whether protected actions require the PIN")
    pending_action: Optional[str] = Field(None, description="Protected action awaiting verification")


class PinResetRequestResponse(BaseModel):
    """PIN reset request response schema."""
    message: str = Field(..., description="Response message")
    expires_at: datetime = Field(..., description="When the reset code expires")


class GateResponse(BaseModel):
    """Outcome of a PIN-protected action."""
    status: str = Field(..., description="completed, pin_required, verified or cancelled")
    action: Optional[str] = Field(None, description="Protected action tag")
    result: Optional[Any] = Field(None, description="Result of the completed action")
