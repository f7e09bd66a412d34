"""
Credential store accessor.

Point reads and writes of a user's PIN credential record and PIN reset
codes. Database failures are rolled back and surfaced as StoreUnavailable.
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import PinCredential, PinResetCode
from .errors import NotAuthenticated, StoreUnavailable

logger = logging.getLogger(__name__)


def require_identity(identity) -> UUID:
    """Return the identity's user id, or fail fast when there is none."""
    if identity is None or getattr(identity, "user_id", None) is None:
        raise NotAuthenticated()
    return identity.user_id


class CredentialStore:
    """Reads and writes PIN credential and reset-code records."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: Exception):
        self.db.rollback()
        logger.error(f"Credential store failed to {action}: {exc}")
        raise StoreUnavailable() from exc

    def get_credential(self, identity) -> PinCredential:
        """
        Get the credential record for an identity.

        The record is created with defaults (no PIN, PIN required) the
        first time it is read.

        Raises:
            NotAuthenticated: If no identity is present
            StoreUnavailable: On database failure
        """
        user_id = require_identity(identity)
        try:
            credential = self.db.query(PinCredential).filter(
                PinCredential.user_id == user_id
            ).first()
            if credential is None:
                credential = PinCredential(user_id=user_id, pin_hash=None, require_pin=True)
                self.db.add(credential)
                self.db.commit()
                self.db.refresh(credential)
                logger.info(f"Created PIN credential for user {user_id}")
            return credential
        except SQLAlchemyError as exc:
            self._fail("read credential", exc)

    def get_pin_hash(self, identity) -> Optional[str]:
        return self.get_credential(identity).pin_hash

    def is_pin_required(self, identity) -> bool:
        return bool(self.get_credential(identity).require_pin)

    def set_pin_hash(self, identity, pin_hash: str) -> PinCredential:
        """Overwrite the stored PIN hash."""
        credential = self.get_credential(identity)
        try:
            credential.pin_hash = pin_hash
            self.db.commit()
            self.db.refresh(credential)
            return credential
        except SQLAlchemyError as exc:
            self._fail("write PIN hash", exc)

    def set_require_pin(self, identity, require_pin: bool) -> PinCredential:
        """Set the flag that enforces PIN verification on protected actions."""
        credential = self.get_credential(identity)
        try:
            credential.require_pin = require_pin
            self.db.commit()
            self.db.refresh(credential)
            return credential
        except SQLAlchemyError as exc:
            self._fail("write PIN requirement", exc)

    def add_reset_code(self, identity, code: str, expires_at: datetime) -> PinResetCode:
        """Store a new, unused reset code."""
        user_id = require_identity(identity)
        try:
            reset_code = PinResetCode(
                user_id=user_id,
                code=code,
                expires_at=expires_at,
                used=False
            )
            self.db.add(reset_code)
            self.db.commit()
            self.db.refresh(reset_code)
            return reset_code
        except SQLAlchemyError as exc:
            self._fail("store reset code", exc)

    def find_valid_reset_code(self, identity, code: str, now: datetime) -> Optional[PinResetCode]:
        """
        Find the most recently created unused, unexpired reset code.

        Args:
            identity: Current identity
            code: Code entered by the user
            now: Reference time for expiry

        Returns:
            Optional[PinResetCode]: Matching record, or None
        """
        user_id = require_identity(identity)
        try:
            return self.db.query(PinResetCode).filter(
                PinResetCode.user_id == user_id,
                PinResetCode.code == code,
                PinResetCode.used == False,
                PinResetCode.expires_at > now
            ).order_by(desc(PinResetCode.created_at)).first()
        except SQLAlchemyError as exc:
            self._fail("read reset code", exc)

    def redeem_reset_code(self, identity, reset_code: PinResetCode, pin_hash: str) -> PinCredential:
        """Overwrite the PIN hash and mark the reset code used in one commit."""
        credential = self.get_credential(identity)
        try:
            credential.pin_hash = pin_hash
            reset_code.used = True
            self.db.commit()
            self.db.refresh(credential)
            return credential
        except SQLAlchemyError as exc:
            self._fail("redeem reset code", exc)
