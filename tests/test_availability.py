import random
from datetime import date, timedelta

from app.models.booking import Booking
from app.models.guest import Guest
from app.utils.availability import intervals_overlap, is_room_available

D = date(2024, 1, 1)


def day(n):
    return D + timedelta(days=n)


def test_touching_intervals_do_not_overlap():
    assert not intervals_overlap(day(10), day(12), day(12), day(14))
    assert not intervals_overlap(day(12), day(14), day(10), day(12))


def test_contained_and_partial_intervals_overlap():
    assert intervals_overlap(day(10), day(12), day(11), day(13))
    assert intervals_overlap(day(10), day(20), day(12), day(13))
    assert intervals_overlap(day(12), day(13), day(10), day(20))
    assert intervals_overlap(day(10), day(12), day(10), day(12))


def test_overlap_matches_night_sets():
    rng = random.Random(1234)
    for _ in range(500):
        a_start = rng.randint(0, 30)
        a_end = a_start + rng.randint(1, 7)
        b_start = rng.randint(0, 30)
        b_end = b_start + rng.randint(1, 7)

        nights_a = set(range(a_start, a_end))
        nights_b = set(range(b_start, b_end))

        expected = bool(nights_a & nights_b)
        assert intervals_overlap(day(a_start), day(a_end), day(b_start), day(b_end)) == expected


def _booking(db, room, check_in, check_out, status="confirmed", **kwargs):
    guest = db.query(Guest).first()
    if guest is None:
        guest = Guest(first_name="A", last_name="B", email="a@example.com", phone="9811111111")
        db.add(guest)
        db.flush()
    booking = Booking(
        guest_id=guest.id,
        room_id=room.id,
        check_in=check_in,
        check_out=check_out,
        status=status,
        total_amount=0.0,
        **kwargs,
    )
    db.add(booking)
    db.commit()
    return booking


def test_active_booking_blocks_room(db, make_room):
    room = make_room()
    _booking(db, room, day(10), day(12), status="pending")

    assert not is_room_available(db, room.id, day(11), day(13))
    assert is_room_available(db, room.id, day(12), day(14))
    assert is_room_available(db, room.id, day(8), day(10))


def test_cancelled_and_completed_bookings_do_not_block(db, make_room):
    room = make_room()
    _booking(db, room, day(10), day(12), status="cancelled")
    _booking(db, room, day(10), day(12), status="completed")

    assert is_room_available(db, room.id, day(10), day(12))


def test_soft_deleted_booking_does_not_block(db, make_room):
    from datetime import datetime

    room = make_room()
    _booking(db, room, day(10), day(12), deleted_at=datetime.utcnow())

    assert is_room_available(db, room.id, day(10), day(12))


def test_exclude_own_booking(db, make_room):
    room = make_room()
    booking = _booking(db, room, day(10), day(12))

    assert not is_room_available(db, room.id, day(10), day(13))
    assert is_room_available(db, room.id, day(10), day(13), exclude_booking_id=booking.id)


def test_other_rooms_are_independent(db, make_room):
    room_a = make_room()
    room_b = make_room()
    _booking(db, room_a, day(10), day(12))

    assert is_room_available(db, room_b.id, day(10), day(12))
