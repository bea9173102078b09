"""Appointment status transitions"""

from ...shared.exceptions import ConflictError

PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"

# Statuses that hold a barber's slot
SLOT_HOLDING_STATUSES = (PENDING, CONFIRMED)

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {CANCELLED},
    CANCELLED: set(),
}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def ensure_transition(current: str, target: str) -> None:
    """Raise ConflictError when the appointment cannot move from `current` to `target`"""
    if not can_transition(current, target):
        raise ConflictError(f"Transição de status inválida: {current} -> {target}")
