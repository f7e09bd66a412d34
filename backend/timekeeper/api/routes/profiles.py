"""
Billing profile API routes.

Reads are open to the authenticated user; creating, editing and deleting a
profile are PIN-protected actions.
"""
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...schemas.profile import ProfileCreateRequest, ProfileUpdateRequest, ProfileResponse
from ...schemas.pin import GateResponse
from ...auth.action_gate import ActionGate
from ...auth.dependencies import get_current_user, get_action_gate, CurrentUser
from ...services import tracking
from ...services.protected_actions import ADD_PROFILE, EDIT_PROFILE, DELETE_PROFILE
from ..gate import gate_response

router = APIRouter(prefix="/profiles", tags=["Profiles"])


# PUBLIC_INTERFACE
@router.get("/", response_model=List[ProfileResponse],
           summary="List profiles",
           description="List the current user's billing profiles, newest first.")
async def list_profiles(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    profiles = tracking.list_profiles(db, current_user.user_id)
    return [ProfileResponse.model_validate(profile) for profile in profiles]


# PUBLIC_INTERFACE
@router.get("/{profile_id}", response_model=ProfileResponse,
           summary="Get profile",
           description="Get one billing profile by ID.")
async def get_profile(
    profile_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ProfileResponse.model_validate(tracking.get_profile(db, current_user.user_id, profile_id))


# PUBLIC_INTERFACE
@router.post("/", response_model=GateResponse, status_code=status.HTTP_201_CREATED,
            summary="Create profile",
            description="Create a billing profile. Requires PIN verification when the PIN is required.")
async def create_profile(
    request: ProfileCreateRequest,
    response: Response,
    gate: ActionGate = Depends(get_action_gate)
):
    """
    Create a new billing profile.

    Answers 201 with the created profile, or 202 when the PIN must be
    verified first.
    """
    outcome = gate.guard(ADD_PROFILE, {
        "name": request.name,
        "hourly_rate": request.hourly_rate
    })
    return gate_response(outcome, response, status.HTTP_201_CREATED)


# PUBLIC_INTERFACE
@router.put("/{profile_id}", response_model=GateResponse,
           summary="Update profile",
           description="Update a profile's name or hourly rate. PIN-protected.")
async def update_profile(
    profile_id: UUID,
    request: ProfileUpdateRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    gate: ActionGate = Depends(get_action_gate),
    db: Session = Depends(get_db)
):
    # Unknown profiles fail before anything is parked.
    tracking.get_profile(db, current_user.user_id, profile_id)
    outcome = gate.guard(EDIT_PROFILE, {
        "profile_id": profile_id,
        "name": request.name,
        "hourly_rate": request.hourly_rate
    })
    return gate_response(outcome, response)


# PUBLIC_INTERFACE
@router.delete("/{profile_id}", response_model=GateResponse,
              summary="Delete profile",
              description="Delete a profile and all of its time entries. PIN-protected.")
async def delete_profile(
    profile_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    gate: ActionGate = Depends(get_action_gate),
    db: Session = Depends(get_db)
):
    tracking.get_profile(db, current_user.user_id, profile_id)
    outcome = gate.guard(DELETE_PROFILE, {"profile_id": profile_id})
    return gate_response(outcome, response)
