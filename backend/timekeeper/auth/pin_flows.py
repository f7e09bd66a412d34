"""
PIN verify, setup, change and reset flows.

Every operation takes the current identity explicitly. The flows compare
hashes here, at the server boundary; stored hashes are never logged or
returned to the caller.
"""
import enum
import logging
import os
import smtplib
from datetime import timedelta
from typing import Any, Callable, Optional

from ..common.datetime_utils import utcnow
from ..database.models import PinCredential, PinResetCode
from ..services.delivery import LogDelivery, ResetCodeDelivery
from .credential_store import CredentialStore, require_identity
from .errors import (
    AuthorizationError, InvalidOrExpiredCode, StoreUnavailable, ValidationError
)
from .pin_handler import PIN_LENGTH, PinHandler

logger = logging.getLogger(__name__)

RESET_CODE_TTL_MINUTES = int(os.getenv("PIN_RESET_CODE_TTL_MINUTES", "15"))


class VerifyState(str, enum.Enum):
    """States of the PIN verify flow."""
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    VERIFYING = "verifying"
    SUCCESS = "success"


class PinVerifyFlow:
    """
    Collects a PIN, hashes it and compares it with the stored hash.

    Invokes exactly one of the success or cancel callbacks and never
    mutates persisted state.
    """

    def __init__(self, store: CredentialStore, identity,
                 on_success: Optional[Callable[[], Any]] = None,
                 on_cancel: Optional[Callable[[], Any]] = None):
        self.store = store
        self.identity = identity
        self.on_success = on_success
        self.on_cancel = on_cancel
        self.state = VerifyState.IDLE
        self.pin_input = ""

    def open(self):
        """Show the prompt with empty input."""
        self.pin_input = ""
        self.state = VerifyState.AWAITING_INPUT

    def enter(self, raw: str):
        """Record entered input, keeping digits only."""
        self.pin_input = PinHandler.sanitize_pin(raw)

    def submit(self, pin: Optional[str] = None) -> Any:
        """
        Verify the entered PIN.

        Args:
            pin: Raw input; replaces the current input when given

        Returns:
            Any: Return value of the success callback

        Raises:
            ValidationError: If the input is not 4 digits
            AuthorizationError: If the PIN does not match, or no PIN is set
            StoreUnavailable: If the stored hash cannot be read
        """
        if self.state != VerifyState.AWAITING_INPUT:
            raise RuntimeError(f"PIN prompt is not awaiting input (state={self.state.value})")
        if pin is not None:
            self.enter(pin)
        if len(self.pin_input) != PIN_LENGTH:
            raise ValidationError("PIN must be 4 digits")

        self.state = VerifyState.VERIFYING
        entered_hash = PinHandler.hash_pin(self.pin_input)
        self.pin_input = ""
        try:
            stored_hash = self.store.get_pin_hash(self.identity)
        except StoreUnavailable:
            self.state = VerifyState.AWAITING_INPUT
            raise

        if stored_hash is None or not PinHandler.matches(entered_hash, stored_hash):
            self.state = VerifyState.AWAITING_INPUT
            logger.info(f"PIN verification failed for user {self.identity.user_id}")
            raise AuthorizationError("Incorrect PIN")

        self.state = VerifyState.SUCCESS
        logger.info(f"PIN verified for user {self.identity.user_id}")
        if self.on_success is not None:
            return self.on_success()
        return None

    def cancel(self) -> Any:
        """Discard input, close the prompt and invoke the cancel callback."""
        self.pin_input = ""
        self.state = VerifyState.IDLE
        if self.on_cancel is not None:
            return self.on_cancel()
        return None


class PinManager:
    """Setup, change and out-of-band reset of a user's PIN."""

    def __init__(self, store: CredentialStore, delivery: Optional[ResetCodeDelivery] = None,
                 clock: Callable = utcnow):
        self.store = store
        self.delivery = delivery or LogDelivery()
        self.clock = clock

    def has_pin(self, identity) -> bool:
        return self.store.get_pin_hash(identity) is not None

    def setup(self, identity, pin: str, confirm_pin: str,
              on_success: Optional[Callable[[], Any]] = None) -> PinCredential:
        """
        Set the first PIN for an identity.

        Raises:
            ValidationError: Malformed PIN or confirmation mismatch
            AuthorizationError: A PIN is already set
        """
        require_identity(identity)
        PinHandler.validate_new_pin(pin, confirm_pin)
        if self.has_pin(identity):
            raise AuthorizationError("PIN is already set; change or reset it instead")

        credential = self.store.set_pin_hash(identity, PinHandler.hash_pin(pin))
        logger.info(f"PIN set for user {identity.user_id}")
        if on_success is not None:
            on_success()
        return credential

    def change(self, identity, current_pin: str, new_pin: str, confirm_new_pin: str) -> PinCredential:
        """
        Replace the PIN after re-verifying the current one.

        Raises:
            ValidationError: No PIN set, malformed new PIN or mismatch
            AuthorizationError: Current PIN is incorrect
        """
        require_identity(identity)
        stored_hash = self.store.get_pin_hash(identity)
        if stored_hash is None:
            raise ValidationError("No PIN has been set yet")
        PinHandler.validate_new_pin(new_pin, confirm_new_pin)

        if not PinHandler.matches(PinHandler.hash_pin(current_pin or ""), stored_hash):
            logger.info(f"PIN change rejected for user {identity.user_id}: current PIN incorrect")
            raise AuthorizationError("Current PIN is incorrect")

        credential = self.store.set_pin_hash(identity, PinHandler.hash_pin(new_pin))
        logger.info(f"PIN changed for user {identity.user_id}")
        return credential

    def request_reset(self, identity) -> PinResetCode:
        """
        Create a reset code and hand it to the delivery channel.

        Returns:
            PinResetCode: The stored reset code record
        """
        require_identity(identity)
        code = PinHandler.generate_reset_code()
        expires_at = self.clock() + timedelta(minutes=RESET_CODE_TTL_MINUTES)
        reset_code = self.store.add_reset_code(identity, code, expires_at)

        try:
            self.delivery.deliver(identity.email, code, RESET_CODE_TTL_MINUTES)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Failed to deliver PIN reset code to user {identity.user_id}: {exc}")
            raise StoreUnavailable("Failed to send reset code") from exc

        logger.info(f"PIN reset requested for user {identity.user_id}")
        return reset_code

    def verify_reset(self, identity, code: str, new_pin: str, confirm_new_pin: str) -> PinCredential:
        """
        Redeem a reset code and set a new PIN.

        Raises:
            ValidationError: Malformed new PIN or mismatch
            InvalidOrExpiredCode: No unused, unexpired code matches
        """
        require_identity(identity)
        PinHandler.validate_new_pin(new_pin, confirm_new_pin)

        reset_code = self.store.find_valid_reset_code(identity, code, self.clock())
        if reset_code is None:
            raise InvalidOrExpiredCode()

        credential = self.store.redeem_reset_code(identity, reset_code, PinHandler.hash_pin(new_pin))
        logger.info(f"PIN reset for user {identity.user_id}")
        return credential
