"""Orchestration layer - confirmation gate for irreversible actions."""

from opsconsole.orchestration.confirmation_gate import (
    ConfirmationGate,
    DeliveryNoteSummary,
    GateError,
    GateEvent,
    GateState,
    can_transition,
)

__all__ = [
    "ConfirmationGate",
    "DeliveryNoteSummary",
    "GateError",
    "GateEvent",
    "GateState",
    "can_transition",
]
