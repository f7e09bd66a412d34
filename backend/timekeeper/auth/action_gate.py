"""
Action gate for PIN-protected operations.

A protected action runs immediately when the identity does not require a
PIN. Otherwise it is parked in the identity's single pending slot until the
PIN verify flow succeeds (the action runs once) or is cancelled (it is
dropped).
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from .credential_store import CredentialStore, require_identity
from .errors import ActionPending
from .pin_flows import PinVerifyFlow, VerifyState

logger = logging.getLogger(__name__)

ProtectedAction = Callable[[Dict[str, Any]], Any]


class GateStatus(str, enum.Enum):
    """Outcome of a gate call."""
    COMPLETED = "completed"
    PIN_REQUIRED = "pin_required"
    VERIFIED = "verified"
    CANCELLED = "cancelled"


@dataclass
class PendingAction:
    """Protected action waiting for PIN verification."""
    tag: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GateOutcome:
    """Result of guard, verify or cancel."""
    status: GateStatus
    action: Optional[str] = None
    result: Any = None


class PendingActionSlot:
    """Single-slot holder for one identity's pending action."""

    def __init__(self, on_change: Optional[Callable[["PendingActionSlot"], None]] = None):
        self.pending: Optional[PendingAction] = None
        self._on_change = on_change

    def _set(self, action: Optional[PendingAction]):
        self.pending = action
        if self._on_change is not None:
            self._on_change(self)

    def put(self, action: PendingAction):
        self._set(action)

    def take(self) -> Optional[PendingAction]:
        action = self.pending
        self._set(None)
        return action

    def clear(self):
        self._set(None)


class PendingActionRegistry:
    """In-memory pending slots, one per identity. Empty slots are not kept."""

    def __init__(self):
        self._slots: Dict[UUID, PendingActionSlot] = {}

    def __len__(self):
        return len(self._slots)

    def slot_for(self, user_id: UUID) -> PendingActionSlot:
        """The identity's parked slot, or a fresh one that registers itself when filled."""
        slot = self._slots.get(user_id)
        if slot is None:
            slot = PendingActionSlot(on_change=lambda changed: self._sync(user_id, changed))
        return slot

    def _sync(self, user_id: UUID, slot: PendingActionSlot):
        current = self._slots.get(user_id)
        if slot.pending is None:
            if current is slot:
                del self._slots[user_id]
        elif current is None:
            self._slots[user_id] = slot
        elif current is not slot:
            # Another request parked an action first.
            slot.pending = None
            raise ActionPending(f"Action '{current.pending.tag}' is awaiting PIN verification")

    def clear(self):
        self._slots.clear()


class ActionGate:
    """Runs protected actions only after PIN verification when required."""

    def __init__(self, identity, store: CredentialStore, actions: Dict[str, ProtectedAction],
                 slot: Optional[PendingActionSlot] = None):
        self.identity = identity
        self.store = store
        self.actions = actions
        self.slot = slot or PendingActionSlot()
        self.verify_flow = PinVerifyFlow(
            store, identity, on_success=self._resume, on_cancel=self._discard
        )
        # A parked action means the prompt is already showing.
        if self.slot.pending is not None:
            self.verify_flow.open()

    @property
    def pending(self) -> Optional[PendingAction]:
        return self.slot.pending

    def _resolve(self, tag: str) -> ProtectedAction:
        if tag not in self.actions:
            raise KeyError(f"Unknown protected action: {tag}")
        return self.actions[tag]

    def guard(self, tag: str, params: Optional[Dict[str, Any]] = None) -> GateOutcome:
        """
        Run a protected action, or park it until the PIN is verified.

        Args:
            tag: Name of the protected action
            params: Parameters needed to run or resume it

        Returns:
            GateOutcome: COMPLETED with the action's result, or PIN_REQUIRED

        Raises:
            NotAuthenticated: If no identity is present
            ActionPending: If another action is already awaiting verification
        """
        require_identity(self.identity)
        action = self._resolve(tag)
        params = dict(params or {})

        if not self.store.is_pin_required(self.identity):
            logger.info(f"Running {tag} for user {self.identity.user_id} without PIN")
            return GateOutcome(GateStatus.COMPLETED, tag, action(params))

        if self.slot.pending is not None:
            raise ActionPending(
                f"Action '{self.slot.pending.tag}' is awaiting PIN verification"
            )

        self.slot.put(PendingAction(tag, params))
        self.verify_flow.open()
        logger.info(f"Action {tag} for user {self.identity.user_id} is waiting for PIN")
        return GateOutcome(GateStatus.PIN_REQUIRED, tag)

    def verify(self, pin: str) -> GateOutcome:
        """
        Submit a PIN; on success resume the pending action, if any.

        Without a pending action this is a plain PIN check.
        """
        require_identity(self.identity)
        if self.verify_flow.state != VerifyState.AWAITING_INPUT:
            self.verify_flow.open()
        return self.verify_flow.submit(pin)

    def cancel(self) -> GateOutcome:
        """Close the prompt and drop the pending action without running it."""
        require_identity(self.identity)
        if self.verify_flow.state != VerifyState.AWAITING_INPUT:
            self.verify_flow.open()
        return self.verify_flow.cancel()

    def _resume(self) -> GateOutcome:
        pending = self.slot.take()
        if pending is None:
            return GateOutcome(GateStatus.VERIFIED)
        logger.info(f"Resuming {pending.tag} for user {self.identity.user_id} after PIN")
        result = self._resolve(pending.tag)(pending.params)
        return GateOutcome(GateStatus.COMPLETED, pending.tag, result)

    def _discard(self) -> GateOutcome:
        pending = self.slot.take()
        if pending is not None:
            logger.info(f"Discarded {pending.tag} for user {self.identity.user_id}")
            return GateOutcome(GateStatus.CANCELLED, pending.tag)
        return GateOutcome(GateStatus.CANCELLED)
