from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.enums import ACTIVE_BOOKING_STATUSES


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open [start, end) overlap. Touching ranges (a_end == b_start) do not overlap,
    so a room can be checked out of and into on the same day."""
    return a_start < b_end and a_end > b_start


def find_conflicting_booking(
    db: Session,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
):
    query = db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.deleted_at.is_(None),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )

    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)

    return query.first()


def is_room_available(
    db: Session,
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    return find_conflicting_booking(
        db, room_id, check_in, check_out, exclude_booking_id
    ) is None
