"""
Confirmation gate for irreversible actions.

The gate sits in front of a destructive call (deleting a delivery note,
provisioning an account) and only lets it through once the operator has
explicitly acknowledged the consequences. Valid transitions are defined
in one table; anything not listed is refused.

    idle --open--> awaiting_confirmation --acknowledge--> confirmed
    confirmed --submit--> in_flight --succeed--> idle
                                    --fail-----> confirmed
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from opsconsole.logging_config import get_logger

logger = get_logger(__name__)

S = TypeVar("S")

UNKNOWN_CUSTOMER = "Unknown"


class GateState(str, Enum):
    """Client-local gate state; never persisted."""
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    IN_FLIGHT = "in_flight"


class GateEvent(str, Enum):
    OPEN = "open"
    ACKNOWLEDGE = "acknowledge"
    WITHDRAW = "withdraw"
    SUBMIT = "submit"
    SUCCEED = "succeed"
    FAIL = "fail"
    CANCEL = "cancel"


# Valid transitions: (from_state, event) -> to_state
_TRANSITIONS: Dict[Tuple[GateState, GateEvent], GateState] = {
    (GateState.IDLE, GateEvent.OPEN): GateState.AWAITING_CONFIRMATION,
    (GateState.AWAITING_CONFIRMATION, GateEvent.ACKNOWLEDGE): GateState.CONFIRMED,
    (GateState.AWAITING_CONFIRMATION, GateEvent.WITHDRAW): GateState.AWAITING_CONFIRMATION,
    (GateState.CONFIRMED, GateEvent.ACKNOWLEDGE): GateState.CONFIRMED,
    (GateState.CONFIRMED, GateEvent.WITHDRAW): GateState.AWAITING_CONFIRMATION,
    (GateState.CONFIRMED, GateEvent.SUBMIT): GateState.IN_FLIGHT,
    (GateState.IN_FLIGHT, GateEvent.SUCCEED): GateState.IDLE,
    # Input is re-enabled with the acknowledgment kept so the operator can retry
    (GateState.IN_FLIGHT, GateEvent.FAIL): GateState.CONFIRMED,
    (GateState.IDLE, GateEvent.CANCEL): GateState.IDLE,
    (GateState.AWAITING_CONFIRMATION, GateEvent.CANCEL): GateState.IDLE,
    (GateState.CONFIRMED, GateEvent.CANCEL): GateState.IDLE,
}


def can_transition(from_state: GateState, event: GateEvent) -> bool:
    """Check if event is allowed in from_state."""
    return (from_state, event) in _TRANSITIONS


@dataclass(frozen=True)
class DeliveryNoteSummary:
    """What the operator sees before deleting a delivery note."""

    id: str
    display_number: str
    customer_name: str
    item_count: int

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DeliveryNoteSummary":
        """
        Build a summary from a delivery-note-shaped record (API JSON or dict).

        The display number is delivery_number, falling back to the legacy
        delivery_note_number; a missing customer shows as "Unknown".
        """
        customer = record.get("customer") or {}
        customer_name = record.get("customer_name") or customer.get("name") or UNKNOWN_CUSTOMER

        items = record.get("items")
        if items is not None:
            item_count = len(items)
        else:
            item_count = int(record.get("item_count") or 0)

        return cls(
            id=str(record.get("id", "")),
            display_number=record.get("delivery_number") or record.get("delivery_note_number") or "",
            customer_name=customer_name,
            item_count=item_count,
        )

    def warning_lines(self) -> List[str]:
        return [
            f"Remove {self.item_count} delivery item(s)",
            "Reverse all stock movements and restore inventory quantities",
            "Remove all related records permanently",
        ]


class GateError(Exception):
    """A gate transition that is not allowed in the current state."""


class ConfirmationGate(Generic[S]):
    """
    Guards one irreversible async callback behind an explicit acknowledgment.

    Usage:
        gate = ConfirmationGate(lambda note: client.delete(note.id))
        gate.open(summary)
        gate.set_acknowledged(True)
        await gate.confirm()
    """

    def __init__(self, callback: Callable[[S], Awaitable[Any]]):
        self._callback = callback
        self.state = GateState.IDLE
        self.subject: Optional[S] = None
        self.acknowledged = False
        self.last_error: Optional[BaseException] = None
        self.last_result: Any = None

    def _apply(self, event: GateEvent) -> GateState:
        target = _TRANSITIONS.get((self.state, event))
        if target is None:
            raise GateError(f"Invalid gate transition: {self.state.value} --{event.value}-->")
        logger.debug(
            "Gate transition",
            extra={"from_state": self.state.value, "event": event.value, "to_state": target.value},
        )
        self.state = target
        return target

    @property
    def is_open(self) -> bool:
        return self.state != GateState.IDLE

    @property
    def is_in_flight(self) -> bool:
        return self.state == GateState.IN_FLIGHT

    @property
    def can_submit(self) -> bool:
        return can_transition(self.state, GateEvent.SUBMIT)

    def open(self, subject: S) -> None:
        """Show the dialog for subject, starting unacknowledged."""
        self._apply(GateEvent.OPEN)
        self.subject = subject
        self.acknowledged = False
        self.last_error = None
        self.last_result = None

    def set_acknowledged(self, acknowledged: bool) -> None:
        """Tick or untick the acknowledgment; ignored while closed or in flight."""
        event = GateEvent.ACKNOWLEDGE if acknowledged else GateEvent.WITHDRAW
        if not can_transition(self.state, event):
            return
        self._apply(event)
        self.acknowledged = acknowledged

    async def confirm(self) -> bool:
        """
        Invoke the callback once if the operator has acknowledged.

        Returns:
            True if the callback ran and succeeded, False if the gate was not
            in a state that allows submitting (no-op)

        Raises:
            Whatever the callback raised; the gate returns to confirmed with
            the acknowledgment intact and the error kept in last_error
        """
        if not self.can_submit:
            return False

        # Move to in_flight before the first await so repeated triggers are no-ops
        self._apply(GateEvent.SUBMIT)
        self.last_error = None
        try:
            result = await self._callback(self.subject)
        except BaseException as e:
            self._apply(GateEvent.FAIL)
            self.last_error = e
            raise

        self._apply(GateEvent.SUCCEED)
        self.last_result = result
        self._reset()
        return True

    def cancel(self) -> bool:
        """Close the dialog without acting. Refused while a call is in flight."""
        if not can_transition(self.state, GateEvent.CANCEL):
            return False
        self._apply(GateEvent.CANCEL)
        self._reset()
        return True

    def warning_lines(self) -> List[str]:
        """Impact bullets for the current subject, if it can describe itself."""
        describe = getattr(self.subject, "warning_lines", None)
        return describe() if callable(describe) else []

    def _reset(self) -> None:
        self.subject = None
        self.acknowledged = False
