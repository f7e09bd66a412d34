"""
PIN-protected actions.

Maps each protected action tag to a callable taking the action's
parameters. The callables are bound to one request's session and
identity; the action gate invokes them directly or after the PIN is
verified on a later request.
"""
from typing import Any, Callable, Dict

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..auth.credential_store import CredentialStore
from . import tracking

ADD_PROFILE = "add_profile"
EDIT_PROFILE = "edit_profile"
DELETE_PROFILE = "delete_profile"
ADD_MANUAL_ENTRY = "add_manual_entry"
EDIT_ENTRY = "edit_entry"
DELETE_ENTRY = "delete_entry"
DISABLE_PIN = "disable_pin"


def build_protected_actions(db: Session, identity, store: CredentialStore) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
    """
    Build the protected action table for one identity.

    Args:
        db: Database session for this request
        identity: Current identity
        store: Credential store for this request

    Returns:
        Dict[str, Callable]: Action tag to callable; each returns a JSON-ready result
    """
    user_id = identity.user_id

    def add_profile(params):
        profile = tracking.create_profile(db, user_id, params["name"], params["hourly_rate"])
        return jsonable_encoder(profile)

    def edit_profile(params):
        profile = tracking.update_profile(
            db, user_id, params["profile_id"],
            name=params.get("name"), hourly_rate=params.get("hourly_rate")
        )
        return jsonable_encoder(profile)

    def delete_profile(params):
        tracking.delete_profile(db, user_id, params["profile_id"])
        return {"deleted": str(params["profile_id"])}

    def add_manual_entry(params):
        entry = tracking.add_manual_entry(
            db, user_id, params["profile_id"], params["clock_in"],
            params["clock_out"], params.get("notes")
        )
        return jsonable_encoder(entry)

    def edit_entry(params):
        entry = tracking.update_entry(db, user_id, params["entry_id"], params.get("changes", {}))
        return jsonable_encoder(entry)

    def delete_entry(params):
        tracking.delete_entry(db, user_id, params["entry_id"])
        return {"deleted": str(params["entry_id"])}

    def disable_pin(params):
        credential = store.set_require_pin(identity, False)
        return {"require_pin": credential.require_pin}

    return {
        ADD_PROFILE: add_profile,
        EDIT_PROFILE: edit_profile,
        DELETE_PROFILE: delete_profile,
        ADD_MANUAL_ENTRY: add_manual_entry,
        EDIT_ENTRY: edit_entry,
        DELETE_ENTRY: delete_entry,
        DISABLE_PIN: disable_pin,
    }
