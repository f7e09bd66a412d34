"""
PIN API routes.

Provides endpoints for PIN status, first-time setup, change, verification
of pending protected actions, the PIN requirement toggle and reset by
emailed code.
"""
import logging
from fastapi import APIRouter, Depends, Response, status

from ...auth.action_gate import ActionGate
from ...auth.credential_store import CredentialStore
from ...auth.dependencies import (
    get_current_user, get_credential_store, get_pin_manager, get_action_gate, CurrentUser
)
from ...auth.pin_flows import PinManager
from ...common.datetime_utils import as_utc
from ...schemas.auth import StandardResponse
from ...schemas.pin import (
    PinSetupRequest, PinChangeRequest, PinVerifyRequest, PinResetConfirmRequest,
    PinRequirementRequest, PinStatusResponse, PinResetRequestResponse, GateResponse
)
from ...services.protected_actions import DISABLE_PIN
from ..gate import gate_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pin", tags=["PIN"])


# PUBLIC_INTERFACE
@router.get("/status", response_model=PinStatusResponse,
           summary="Get PIN status",
           description="Whether a PIN is set, whether it is required, and any action awaiting verification.")
async def get_pin_status(
    current_user: CurrentUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    gate: ActionGate = Depends(get_action_gate)
):
    credential = store.get_credential(current_user)
    return PinStatusResponse(
        has_pin=credential.pin_hash is not None,
        require_pin=credential.require_pin,
        pending_action=gate.pending.tag if gate.pending else None
    )


# PUBLIC_INTERFACE
@router.post("/setup", response_model=StandardResponse, status_code=status.HTTP_201_CREATED,
            summary="Set up PIN",
            description="Set the first 4-digit PIN. Fails if a PIN is already set.")
async def setup_pin(
    request: PinSetupRequest,
    current_user: CurrentUser = Depends(get_current_user),
    manager: PinManager = Depends(get_pin_manager)
):
    """
    Set up the user's PIN for the first time.

    Rejects malformed PINs and mismatched confirmations with 422, and an
    already configured PIN with 403.
    """
    manager.setup(current_user, request.pin, request.confirm_pin)
    return StandardResponse(message="PIN set successfully")


# PUBLIC_INTERFACE
@router.post("/change", response_model=StandardResponse,
            summary="Change PIN",
            description="Replace the PIN after re-entering the current one.")
async def change_pin(
    request: PinChangeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    manager: PinManager = Depends(get_pin_manager)
):
    manager.change(current_user, request.current_pin, request.new_pin, request.confirm_new_pin)
    return StandardResponse(message="PIN changed successfully")


# PUBLIC_INTERFACE
@router.post("/verify", response_model=GateResponse,
            summary="Verify PIN",
            description="Verify the PIN and run the protected action waiting for it, if any.")
async def verify_pin(
    request: PinVerifyRequest,
    response: Response,
    gate: ActionGate = Depends(get_action_gate)
):
    """
    Verify the entered PIN.

    On success the pending action runs exactly once and its result is
    returned with status "completed"; with nothing pending the status is
    "verified". A wrong PIN answers 403 and leaves the action pending.
    """
    return gate_response(gate.verify(request.pin), response)


# PUBLIC_INTERFACE
@router.post("/cancel", response_model=GateResponse,
            summary="Cancel PIN prompt",
            description="Discard the protected action waiting for the PIN without running it.")
async def cancel_pin(
    response: Response,
    gate: ActionGate = Depends(get_action_gate)
):
    return gate_response(gate.cancel(), response)


# PUBLIC_INTERFACE
@router.put("/requirement", response_model=GateResponse,
           summary="Set PIN requirement",
           description="Turn the PIN requirement on, or off after PIN verification.")
async def set_pin_requirement(
    request: PinRequirementRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    store: CredentialStore = Depends(get_credential_store),
    gate: ActionGate = Depends(get_action_gate)
):
    """
    Enable or disable the PIN requirement.

    Enabling applies immediately. Disabling is itself a protected action.
    """
    if request.require_pin:
        credential = store.set_require_pin(current_user, True)
        logger.info(f"PIN requirement enabled for user {current_user.user_id}")
        return GateResponse(status="completed", action="enable_pin",
                            result={"require_pin": credential.require_pin})
    return gate_response(gate.guard(DISABLE_PIN), response)


# PUBLIC_INTERFACE
@router.post("/reset/request", response_model=PinResetRequestResponse,
            summary="Request PIN reset",
            description="Send a 6-digit reset code to the account email.")
async def request_pin_reset(
    current_user: CurrentUser = Depends(get_current_user),
    manager: PinManager = Depends(get_pin_manager)
):
    """
    Request a PIN reset code.

    The code is delivered out of band and is never part of the response.
    """
    reset_code = manager.request_reset(current_user)
    return PinResetRequestResponse(
        message="A reset code has been sent to your email",
        expires_at=as_utc(reset_code.expires_at)
    )


# PUBLIC_INTERFACE
@router.post("/reset/confirm", response_model=StandardResponse,
            summary="Confirm PIN reset",
            description="Redeem a reset code and set a new PIN.")
async def confirm_pin_reset(
    request: PinResetConfirmRequest,
    current_user: CurrentUser = Depends(get_current_user),
    manager: PinManager = Depends(get_pin_manager)
):
    manager.verify_reset(current_user, request.code, request.new_pin, request.confirm_new_pin)
    return StandardResponse(message="PIN reset successfully")
