"""
Time tracking API routes.

Provides endpoints for clocking in and out, time entries and the
earnings report. Manual entry, editing and deleting entries are
PIN-protected actions.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Response, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...schemas.time_tracking import (
    ClockInRequest, ClockOutRequest, ManualEntryRequest, TimeEntryUpdateRequest,
    TimeEntryResponse, TimeEntriesListResponse, EarningsReportResponse
)
from ...schemas.pin import GateResponse
from ...auth.action_gate import ActionGate
from ...auth.dependencies import get_current_user, get_action_gate, CurrentUser
from ...services import tracking
from ...services.protected_actions import ADD_MANUAL_ENTRY, EDIT_ENTRY, DELETE_ENTRY
from ..gate import gate_response

router = APIRouter(tags=["Time Tracking"])


# Clock in/out Routes
clock_router = APIRouter(prefix="/clock", tags=["Clock"])


# PUBLIC_INTERFACE
@clock_router.post("/in", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED,
                  summary="Clock in",
                  description="Start a running time entry for a profile.")
async def clock_in(
    request: ClockInRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Clock in to a profile.

    Only one running entry is allowed per profile.
    """
    entry = tracking.clock_in(db, current_user.user_id, request.profile_id, request.notes)
    return tracking.to_entry_response(entry)


# PUBLIC_INTERFACE
@clock_router.post("/out", response_model=TimeEntryResponse,
                  summary="Clock out",
                  description="Stop the running time entry for a profile.")
async def clock_out(
    request: ClockOutRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entry = tracking.clock_out(db, current_user.user_id, request.profile_id, request.notes)
    return tracking.to_entry_response(entry)


# PUBLIC_INTERFACE
@clock_router.get("/active/{profile_id}", response_model=Optional[TimeEntryResponse],
                 summary="Get running entry",
                 description="Get the running time entry for a profile, or null.")
async def get_active_entry(
    profile_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tracking.get_profile(db, current_user.user_id, profile_id)
    entry = tracking.get_active_entry(db, current_user.user_id, profile_id)
    return tracking.to_entry_response(entry) if entry else None


# Time Entry Routes
entries_router = APIRouter(prefix="/time-entries", tags=["Time Entries"])


# PUBLIC_INTERFACE
@entries_router.get("/", response_model=TimeEntriesListResponse,
                   summary="List time entries",
                   description="List the current user's time entries, newest first, with optional filters.")
async def list_time_entries(
    profile_id: Optional[UUID] = Query(None, description="Filter by profile"),
    start_date: Optional[date] = Query(None, description="Clocked in on or after this day"),
    end_date: Optional[date] = Query(None, description="Clocked in on or before this day"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    entries = tracking.list_entries(db, current_user.user_id, profile_id, start_date, end_date)
    return TimeEntriesListResponse(
        entries=[tracking.to_entry_response(entry) for entry in entries],
        total=len(entries)
    )


# PUBLIC_INTERFACE
@entries_router.get("/{entry_id}", response_model=TimeEntryResponse,
                   summary="Get time entry",
                   description="Get one time entry by ID.")
async def get_time_entry(
    entry_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return tracking.to_entry_response(tracking.get_entry(db, current_user.user_id, entry_id))


# PUBLIC_INTERFACE
@entries_router.post("/manual", response_model=GateResponse, status_code=status.HTTP_201_CREATED,
                    summary="Add manual entry",
                    description="Add a completed time entry by hand. PIN-protected.")
async def add_manual_entry(
    request: ManualEntryRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    gate: ActionGate = Depends(get_action_gate),
    db: Session = Depends(get_db)
):
    tracking.get_profile(db, current_user.user_id, request.profile_id)
    outcome = gate.guard(ADD_MANUAL_ENTRY, {
        "profile_id": request.profile_id,
        "clock_in": request.clock_in,
        "clock_out": request.clock_out,
        "notes": request.notes
    })
    return gate_response(outcome, response, status.HTTP_201_CREATED)


# PUBLIC_INTERFACE
@entries_router.put("/{entry_id}", response_model=GateResponse,
                   summary="Edit time entry",
                   description="Change an entry's times or notes. PIN-protected.")
async def update_time_entry(
    entry_id: UUID,
    request: TimeEntryUpdateRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    gate: ActionGate = Depends(get_action_gate),
    db: Session = Depends(get_db)
):
    """
    Edit a time entry.

    Only the fields present in the request body are changed.
    """
    tracking.get_entry(db, current_user.user_id, entry_id)
    outcome = gate.guard(EDIT_ENTRY, {
        "entry_id": entry_id,
        "changes": request.dict(exclude_unset=True)
    })
    return gate_response(outcome, response)


# PUBLIC_INTERFACE
@entries_router.delete("/{entry_id}", response_model=GateResponse,
                      summary="Delete time entry",
                      description="Delete a time entry. PIN-protected.")
async def delete_time_entry(
    entry_id: UUID,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    gate: ActionGate = Depends(get_action_gate),
    db: Session = Depends(get_db)
):
    tracking.get_entry(db, current_user.user_id, entry_id)
    outcome = gate.guard(DELETE_ENTRY, {"entry_id": entry_id})
    return gate_response(outcome, response)


# Report Routes
reports_router = APIRouter(prefix="/reports", tags=["Reports"])


# PUBLIC_INTERFACE
@reports_router.get("/earnings", response_model=EarningsReportResponse,
                   summary="Earnings report",
                   description="Hours and earnings of completed entries in a date range, by profile.")
async def get_earnings_report(
    start_date: date = Query(..., description="First day (inclusive)"),
    end_date: date = Query(..., description="Last day (inclusive)"),
    profile_ids: Optional[List[UUID]] = Query(None, description="Limit to these profiles"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the earnings report for a period.

    Entries count toward the day they were clocked in on (UTC); running
    entries are left out.
    """
    return tracking.earnings_report(db, current_user.user_id, start_date, end_date, profile_ids)


# Include sub-routers
router.include_router(clock_router)
router.include_router(entries_router)
router.include_router(reports_router)
