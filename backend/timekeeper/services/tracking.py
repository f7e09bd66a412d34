"""
Profile, clock and time entry operations.

Every function is scoped to the owning user; rows belonging to other
users are reported as not found. Routes and the PIN-protected actions
both call into this module.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..common.datetime_utils import as_utc, end_of_day, start_of_day, utcnow
from ..database.models import BillingProfile, TimeEntry
from ..schemas.profile import ProfileResponse
from ..schemas.time_tracking import (
    EarningsReportResponse, ProfileEarnings, TimeEntryResponse
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _duration_seconds(entry: TimeEntry) -> Optional[Decimal]:
    if entry.clock_out is None:
        return None
    delta = as_utc(entry.clock_out) - as_utc(entry.clock_in)
    return Decimal(str(delta.total_seconds()))


def entry_earnings(entry: TimeEntry, hourly_rate: Decimal) -> Optional[Decimal]:
    """Earnings of a completed entry, rounded to cents."""
    seconds = _duration_seconds(entry)
    if seconds is None:
        return None
    return (seconds / Decimal(3600) * Decimal(hourly_rate)).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_entry_response(entry: TimeEntry) -> TimeEntryResponse:
    seconds = _duration_seconds(entry)
    profile = entry.profile
    return TimeEntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        profile_id=entry.profile_id,
        profile_name=profile.name if profile else None,
        clock_in=as_utc(entry.clock_in),
        clock_out=as_utc(entry.clock_out),
        notes=entry.notes,
        duration_minutes=int(seconds // 60) if seconds is not None else None,
        earnings=entry_earnings(entry, profile.hourly_rate) if profile else None,
        is_running=entry.is_running,
        created_at=as_utc(entry.created_at),
        updated_at=as_utc(entry.updated_at)
    )


# Profiles

def list_profiles(db: Session, user_id: UUID) -> List[BillingProfile]:
    return db.query(BillingProfile).filter(
        BillingProfile.user_id == user_id
    ).order_by(desc(BillingProfile.created_at)).all()


def get_profile(db: Session, user_id: UUID, profile_id: UUID) -> BillingProfile:
    profile = db.query(BillingProfile).filter(
        BillingProfile.id == profile_id,
        BillingProfile.user_id == user_id
    ).first()
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile


def create_profile(db: Session, user_id: UUID, name: str, hourly_rate: Decimal) -> ProfileResponse:
    profile = BillingProfile(user_id=user_id, name=name, hourly_rate=Decimal(str(hourly_rate)))
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created profile {profile.id} for user {user_id}")
    return ProfileResponse.model_validate(profile)


def update_profile(db: Session, user_id: UUID, profile_id: UUID,
                   name: Optional[str] = None, hourly_rate: Optional[Decimal] = None) -> ProfileResponse:
    profile = get_profile(db, user_id, profile_id)
    if name is not None:
        profile.name = name
    if hourly_rate is not None:
        profile.hourly_rate = Decimal(str(hourly_rate))
    db.commit()
    db.refresh(profile)
    logger.info(f"Updated profile {profile.id} for user {user_id}")
    return ProfileResponse.model_validate(profile)


def delete_profile(db: Session, user_id: UUID, profile_id: UUID) -> None:
    profile = get_profile(db, user_id, profile_id)
    db.delete(profile)
    db.commit()
    logger.info(f"Deleted profile {profile_id} and its entries for user {user_id}")


# Clock in/out

def get_active_entry(db: Session, user_id: UUID, profile_id: UUID) -> Optional[TimeEntry]:
    return db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.profile_id == profile_id,
        TimeEntry.clock_out.is_(None)
    ).first()


def clock_in(db: Session, user_id: UUID, profile_id: UUID, notes: Optional[str] = None) -> TimeEntry:
    get_profile(db, user_id, profile_id)
    if get_active_entry(db, user_id, profile_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Already clocked in for this profile. Clock out before clocking in again."
        )

    entry = TimeEntry(
        user_id=user_id,
        profile_id=profile_id,
        clock_in=utcnow(),
        notes=notes or None
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def clock_out(db: Session, user_id: UUID, profile_id: UUID, notes: Optional[str] = None) -> TimeEntry:
    entry = get_active_entry(db, user_id, profile_id)
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not clocked in for this profile"
        )

    entry.clock_out = utcnow()
    if notes:
        entry.notes = notes
    db.commit()
    db.refresh(entry)
    return entry


# Time entries

def list_entries(db: Session, user_id: UUID, profile_id: Optional[UUID] = None,
                 start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[TimeEntry]:
    query = db.query(TimeEntry).filter(TimeEntry.user_id == user_id)
    if profile_id:
        query = query.filter(TimeEntry.profile_id == profile_id)
    if start_date:
        query = query.filter(TimeEntry.clock_in >= start_of_day(start_date))
    if end_date:
        query = query.filter(TimeEntry.clock_in <= end_of_day(end_date))
    return query.order_by(desc(TimeEntry.clock_in)).all()


def get_entry(db: Session, user_id: UUID, entry_id: UUID) -> TimeEntry:
    entry = db.query(TimeEntry).filter(
        TimeEntry.id == entry_id,
        TimeEntry.user_id == user_id
    ).first()
    if not entry:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Time entry not found"
        )
    return entry


def _check_order(clock_in_at: datetime, clock_out_at: Optional[datetime]):
    if clock_out_at is not None and as_utc(clock_out_at) <= as_utc(clock_in_at):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="clock_out must be after clock_in"
        )


def add_manual_entry(db: Session, user_id: UUID, profile_id: UUID, clock_in_at: datetime,
                     clock_out_at: datetime, notes: Optional[str] = None) -> TimeEntryResponse:
    get_profile(db, user_id, profile_id)
    _check_order(clock_in_at, clock_out_at)

    entry = TimeEntry(
        user_id=user_id,
        profile_id=profile_id,
        clock_in=as_utc(clock_in_at),
        clock_out=as_utc(clock_out_at),
        notes=notes or None
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"Added manual entry {entry.id} for user {user_id}")
    return to_entry_response(entry)


def update_entry(db: Session, user_id: UUID, entry_id: UUID, changes: dict) -> TimeEntryResponse:
    """Apply clock_in, clock_out and notes changes; keys absent from changes are left alone."""
    entry = get_entry(db, user_id, entry_id)
    new_clock_in = as_utc(changes["clock_in"]) if changes.get("clock_in") else as_utc(entry.clock_in)
    new_clock_out = as_utc(changes["clock_out"]) if "clock_out" in changes else as_utc(entry.clock_out)
    _check_order(new_clock_in, new_clock_out)
    if new_clock_out is None:
        active = get_active_entry(db, user_id, entry.profile_id)
        if active is not None and active.id != entry.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Another entry is already running for this profile"
            )

    entry.clock_in = new_clock_in
    entry.clock_out = new_clock_out
    if "notes" in changes:
        entry.notes = changes["notes"] or None
    db.commit()
    db.refresh(entry)
    logger.info(f"Updated time entry {entry.id} for user {user_id}")
    return to_entry_response(entry)


def delete_entry(db: Session, user_id: UUID, entry_id: UUID) -> None:
    entry = get_entry(db, user_id, entry_id)
    db.delete(entry)
    db.commit()
    logger.info(f"Deleted time entry {entry_id} for user {user_id}")


# Reports

def earnings_report(db: Session, user_id: UUID, start_date: date, end_date: date,
                    profile_ids: Optional[Iterable[UUID]] = None) -> EarningsReportResponse:
    """
    Build the earnings report for completed entries clocked in within the period.

    Args:
        db: Database session
        user_id: Owning user
        start_date: First day (inclusive)
        end_date: Last day (inclusive, up to 23:59:59 UTC)
        profile_ids: Restrict to these profiles; all profiles when empty

    Returns:
        EarningsReportResponse: Totals, per-profile breakdown and entries
    """
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must not be before start_date"
        )

    query = db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.clock_in >= start_of_day(start_date),
        TimeEntry.clock_in <= end_of_day(end_date),
        TimeEntry.clock_out.isnot(None)
    )
    profile_ids = list(profile_ids or [])
    if profile_ids:
        query = query.filter(TimeEntry.profile_id.in_(profile_ids))
    entries = query.order_by(desc(TimeEntry.clock_in)).all()

    total_seconds = Decimal(0)
    total_earnings = Decimal(0)
    breakdown = {}
    for entry in entries:
        profile = entry.profile
        seconds = _duration_seconds(entry)
        earnings = entry_earnings(entry, profile.hourly_rate)
        total_seconds += seconds
        total_earnings += earnings

        line = breakdown.setdefault(profile.id, {
            "profile": profile,
            "seconds": Decimal(0),
            "earnings": Decimal(0),
            "entry_count": 0
        })
        line["seconds"] += seconds
        line["earnings"] += earnings
        line["entry_count"] += 1

    profiles = [
        ProfileEarnings(
            profile_id=line["profile"].id,
            name=line["profile"].name,
            hourly_rate=line["profile"].hourly_rate,
            hours=round(float(line["seconds"]) / 3600.0, 2),
            earnings=line["earnings"],
            entry_count=line["entry_count"]
        )
        for line in sorted(breakdown.values(), key=lambda item: item["profile"].name)
    ]

    return EarningsReportResponse(
        start_date=start_date,
        end_date=end_date,
        total_hours=round(float(total_seconds) / 3600.0, 2),
        total_earnings=total_earnings,
        entry_count=len(entries),
        profiles=profiles,
        entries=[to_entry_response(entry) for entry in entries]
    )
