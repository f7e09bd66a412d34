"""
PIN hashing and format utilities.

Provides the one-way digest used to store admin PINs, the format checks
shared by the setup, change and reset flows, and reset code generation.
"""
import hashlib
import hmac
import re
import secrets

from .errors import ValidationError

PIN_LENGTH = 4
RESET_CODE_LENGTH = 6

PIN_PATTERN = re.compile(r"^\d{4}$")
_NON_DIGITS = re.compile(r"\D")


class PinHandler:
    """PIN handling utilities."""

    @staticmethod
    def hash_pin(pin: str) -> str:
        """
        Hash a PIN.

        Args:
            pin: Plain 4-digit PIN

        Returns:
            str: Lowercase hex SHA-256 digest
        """
        return hashlib.sha256(pin.encode("utf-8")).hexdigest()

    @staticmethod
    def matches(pin_hash: str, stored_hash: str) -> bool:
        """
        Compare two PIN digests in constant time.

        Args:
            pin_hash: Digest of the entered PIN
            stored_hash: Digest on the credential record

        Returns:
            bool: True if the digests are identical
        """
        return hmac.compare_digest(pin_hash, stored_hash)

    @staticmethod
    def sanitize_pin(raw: str) -> str:
        """Strip every non-digit character from entered input."""
        return _NON_DIGITS.sub("", raw or "")

    @staticmethod
    def validate_new_pin(pin: str, confirm_pin: str) -> None:
        """
        Validate a new PIN and its confirmation.

        Raises:
            ValidationError: If the PIN is not 4 digits or the two differ
        """
        if pin is None or not PIN_PATTERN.match(pin):
            raise ValidationError("PIN must be exactly 4 digits")
        if pin != confirm_pin:
            raise ValidationError("PINs do not match")

    @staticmethod
    def generate_reset_code() -> str:
        """Generate a uniformly random 6-digit code (100000-999999)."""
        return str(100000 + secrets.randbelow(900000))


# PUBLIC_INTERFACE
def hash_pin(pin: str) -> str:
    """
    Get PIN hash.

    Args:
        pin: Plain PIN

    Returns:
        str: Hex digest
    """
    return PinHandler.hash_pin(pin)
