"""
Authentication API routes.

Provides endpoints for user registration, login and the current user.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.models import User, PinCredential
from ...schemas.auth import (
    UserRegistrationRequest, UserLoginRequest, AuthResponse, UserInfo
)
from ...auth.credential_store import CredentialStore
from ...auth.dependencies import get_current_user, get_credential_store, CurrentUser
from ...auth.jwt_handler import JWTHandler, PasswordHandler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_info(user: User, credential: PinCredential) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        active=user.active,
        has_pin=credential.pin_hash is not None,
        require_pin=credential.require_pin
    )


# PUBLIC_INTERFACE
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
            summary="Register new user",
            description="Register a new user account. The account starts without a PIN and with the PIN requirement on.")
async def register_user(
    request: UserRegistrationRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    Creates the user and its PIN credential record, returning an access token.
    """
    existing_user = db.query(User).filter(User.email == request.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    if not PasswordHandler.validate_password_strength(request.password):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Password does not meet requirements"
        )

    user = User(
        email=request.email,
        password_hash=PasswordHandler.hash_password(request.password),
        full_name=request.full_name
    )
    db.add(user)
    db.flush()

    credential = PinCredential(user_id=user.id, pin_hash=None, require_pin=True)
    db.add(credential)
    db.commit()
    db.refresh(user)
    db.refresh(credential)
    logger.info(f"Registered user {user.id}")

    return AuthResponse(
        access_token=JWTHandler.create_user_token(user.id, user.email),
        user=_user_info(user, credential)
    )


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthResponse,
            summary="User login",
            description="Authenticate user with email and password, returning an access token.")
async def login_user(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return an access token.
    """
    user = db.query(User).filter(User.email == request.email, User.active == True).first()
    if not user or not PasswordHandler.verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    credential = CredentialStore(db).get_credential(CurrentUser(user_id=user.id, email=user.email))
    return AuthResponse(
        access_token=JWTHandler.create_user_token(user.id, user.email),
        user=_user_info(user, credential)
    )


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserInfo,
           summary="Get current user",
           description="Get information about the currently authenticated user.")
async def get_current_user_info(
    current_user: CurrentUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated user information, including PIN status.
    """
    user = db.query(User).filter(User.id == current_user.user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _user_info(user, store.get_credential(current_user))
