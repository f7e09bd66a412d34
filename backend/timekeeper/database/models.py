"""
SQLAlchemy database models for the timekeeper.

Defines the tables for users, PIN credentials, PIN reset codes,
billing profiles, and time entries.
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, Numeric,
    ForeignKey, Index, Uuid
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    """Registered user; owns profiles, time entries and a PIN credential."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    credential = relationship("PinCredential", back_populates="user", uselist=False, cascade="all, delete-orphan")
    reset_codes = relationship("PinResetCode", back_populates="user", cascade="all, delete-orphan")
    profiles = relationship("BillingProfile", back_populates="user", cascade="all, delete-orphan")
    time_entries = relationship("TimeEntry", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class PinCredential(Base):
    """Per-user admin PIN hash and the flag that enforces it."""
    __tablename__ = "pin_credentials"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    pin_hash = Column(String(64), nullable=True)  # null until a PIN is set
    require_pin = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="credential")

    def __repr__(self):
        return f"<PinCredential(user_id={self.user_id}, require_pin={self.require_pin})>"


class PinResetCode(Base):
    """Single-use, time-limited code for replacing a forgotten PIN."""
    __tablename__ = "pin_reset_codes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    user = relationship("User", back_populates="reset_codes")

    # Constraints
    __table_args__ = (
        Index('idx_reset_code_user_code', 'user_id', 'code'),
    )

    def __repr__(self):
        return f"<PinResetCode(id={self.id}, user_id={self.user_id}, used={self.used})>"


class BillingProfile(Base):
    """Named hourly rate that time entries are billed against."""
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="profiles")
    time_entries = relationship("TimeEntry", back_populates="profile", cascade="all, delete-orphan")

    # Constraints
    __table_args__ = (
        Index('idx_profile_user', 'user_id'),
    )

    def __repr__(self):
        return f"<BillingProfile(id={self.id}, name='{self.name}', user_id={self.user_id})>"


class TimeEntry(Base):
    """Clocked work session against a billing profile."""
    __tablename__ = "time_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    profile_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    clock_in = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    clock_out = Column(DateTime(timezone=True), nullable=True)  # null while clocked in
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=_utcnow)

    # Relationships
    user = relationship("User", back_populates="time_entries")
    profile = relationship("BillingProfile", back_populates="time_entries")

    # Constraints
    __table_args__ = (
        Index('idx_time_entry_user', 'user_id'),
        Index('idx_time_entry_profile', 'profile_id'),
        Index('idx_time_entry_clock_in', 'clock_in'),
    )

    @property
    def is_running(self) -> bool:
        return self.clock_out is None

    def __repr__(self):
        return f"<TimeEntry(id={self.id}, user_id={self.user_id}, profile_id={self.profile_id})>"
