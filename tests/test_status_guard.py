from datetime import date

import pytest

from app.core.exceptions import ValidationError
from app.models.enums import BookingStatus
from app.utils.status_guard import ensure_transition_allowed

CHECK_IN = date(2024, 1, 10)
CHECK_OUT = date(2024, 1, 12)


def allowed(current, target, today):
    ensure_transition_allowed(current, target, CHECK_IN, CHECK_OUT, today=today)


def test_pending_to_confirmed_before_check_in_is_rejected():
    with pytest.raises(ValidationError):
        allowed("pending", "confirmed", date(2024, 1, 9))


def test_pending_to_confirmed_on_or_after_check_in():
    allowed("pending", "confirmed", date(2024, 1, 10))
    allowed("pending", "confirmed", date(2024, 1, 11))


def test_confirmed_reconfirmation_is_allowed():
    allowed("confirmed", "confirmed", date(2024, 1, 1))


def test_confirmed_to_completed_gated_on_check_out():
    with pytest.raises(ValidationError):
        allowed("confirmed", "completed", date(2024, 1, 11))
    allowed("confirmed", "completed", date(2024, 1, 12))


def test_pending_cannot_jump_to_completed():
    with pytest.raises(ValidationError):
        allowed("pending", "completed", date(2024, 2, 1))


@pytest.mark.parametrize("current", ["pending", "confirmed"])
def test_active_bookings_can_be_cancelled(current):
    allowed(current, "cancelled", date(2024, 1, 1))


@pytest.mark.parametrize("current", ["cancelled", "completed"])
@pytest.mark.parametrize("target", ["pending", "confirmed", "completed", "cancelled"])
def test_terminal_states_never_change(current, target):
    with pytest.raises(ValidationError) as exc:
        allowed(current, target, date(2024, 3, 1))
    assert f"{current} -> {target}" in exc.value.message


def test_accepts_enum_members():
    ensure_transition_allowed(
        BookingStatus.PENDING, BookingStatus.CONFIRMED, CHECK_IN, CHECK_OUT, today=CHECK_IN
    )
