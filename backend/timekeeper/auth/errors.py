"""
Error taxonomy for the PIN-gated authorization flow.

Each error carries the HTTP status it is rendered with by the API layer,
so the flows themselves stay free of FastAPI imports.
"""
from fastapi import status


class PinFlowError(Exception):
    """Base class for all PIN flow failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "PIN operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PinFlowError):
    """Malformed PIN or confirmation mismatch. The user corrects the input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "PIN must be exactly 4 digits"


class AuthorizationError(PinFlowError):
    """Wrong PIN. The flow stays open for another attempt."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Incorrect PIN"


class InvalidOrExpiredCode(PinFlowError):
    """Reset code not found, already used, or past its expiry."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid or expired reset code"


class NotAuthenticated(PinFlowError):
    """No identity present; the action is aborted."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class StoreUnavailable(PinFlowError):
    """The credential store could not be reached or written."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "PIN verification failed, please try again"


class ActionPending(PinFlowError):
    """Another protected action is already waiting for PIN verification."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Another action is awaiting PIN verification"
