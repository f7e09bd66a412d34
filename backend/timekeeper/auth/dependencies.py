"""
Authentication dependencies for FastAPI endpoints.

Provides dependency functions for extracting the current identity and
building the PIN credential store, PIN manager and action gate for a
request.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID

from ..database.connection import get_db
from ..database.models import User
from ..services.delivery import ResetCodeDelivery, get_delivery
from ..services.protected_actions import build_protected_actions
from .action_gate import ActionGate, PendingActionRegistry
from .credential_store import CredentialStore
from .errors import NotAuthenticated
from .jwt_handler import JWTHandler
from .pin_flows import PinManager

security = HTTPBearer(auto_error=False)

_pending_actions = PendingActionRegistry()


class CurrentUser:
    """Current user identity from the JWT token."""

    def __init__(self, user_id: UUID, email: str):
        self.user_id = user_id
        self.email = email

    def __repr__(self):
        return f"<CurrentUser(user_id={self.user_id})>"


# PUBLIC_INTERFACE
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP authorization credentials
        db: Database session

    Returns:
        CurrentUser: Current user identity

    Raises:
        NotAuthenticated: If the token is missing or invalid, or the user is inactive
    """
    if credentials is None:
        raise NotAuthenticated()

    payload = JWTHandler.verify_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise NotAuthenticated("Could not validate credentials")

    try:
        user_id = UUID(payload.get("sub"))
    except (TypeError, ValueError):
        raise NotAuthenticated("Could not validate credentials")

    user = db.query(User).filter(User.id == user_id, User.active == True).first()
    if not user:
        raise NotAuthenticated("Could not validate credentials")

    return CurrentUser(user_id=user.id, email=user.email)


# PUBLIC_INTERFACE
def get_pending_actions() -> PendingActionRegistry:
    """
    Get the process-wide registry of pending protected actions.

    Returns:
        PendingActionRegistry: One pending slot per identity
    """
    return _pending_actions


# PUBLIC_INTERFACE
async def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    """Get the PIN credential store for this request."""
    return CredentialStore(db)


# PUBLIC_INTERFACE
async def get_pin_manager(
    store: CredentialStore = Depends(get_credential_store),
    delivery: ResetCodeDelivery = Depends(get_delivery)
) -> PinManager:
    """Get the PIN setup/change/reset manager for this request."""
    return PinManager(store, delivery)


# PUBLIC_INTERFACE
async def get_action_gate(
    current_user: CurrentUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    registry: PendingActionRegistry = Depends(get_pending_actions),
    db: Session = Depends(get_db)
) -> ActionGate:
    """
    Get the action gate for the current user.

    The gate's protected actions are bound to this request's session, and its
    pending slot persists across requests in the registry.
    """
    return ActionGate(
        identity=current_user,
        store=store,
        actions=build_protected_actions(db, current_user, store),
        slot=registry.slot_for(current_user.user_id)
    )
