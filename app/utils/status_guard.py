"""Booking status state machine."""

from datetime import date
from typing import Optional

from app.core.exceptions import ValidationError
from app.models.enums import BookingStatus

PENDING = BookingStatus.PENDING.value
CONFIRMED = BookingStatus.CONFIRMED.value
COMPLETED = BookingStatus.COMPLETED.value
CANCELLED = BookingStatus.CANCELLED.value

TERMINAL_STATUSES = (CANCELLED, COMPLETED)

BOOKING_TRANSITIONS = {
    PENDING: {PENDING, CONFIRMED, CANCELLED},
    CONFIRMED: {CONFIRMED, COMPLETED, CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}


def _value(status) -> str:
    return status.value if isinstance(status, BookingStatus) else str(status)


def ensure_transition_allowed(
    current,
    target,
    check_in: date,
    check_out: date,
    today: Optional[date] = None,
) -> None:
    """Raise ValidationError unless current -> target is legal. Date gates compare dates only."""
    current = _value(current)
    target = _value(target)
    today = today or date.today()

    if current in TERMINAL_STATUSES:
        raise ValidationError(
            f"Invalid status transition: {current} -> {target} ({current} bookings cannot be changed)"
        )

    if target not in BOOKING_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Invalid status transition: {current} -> {target}")

    if current == PENDING and target == CONFIRMED and today < check_in:
        raise ValidationError(
            f"Invalid status transition: pending -> confirmed is only allowed on or after check-in ({check_in.isoformat()})"
        )

    if current == CONFIRMED and target == COMPLETED and today < check_out:
        raise ValidationError(
            f"Invalid status transition: confirmed -> completed is only allowed on or after check-out ({check_out.isoformat()})"
        )
