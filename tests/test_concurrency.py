import threading
from datetime import date

from app.core.exceptions import ConflictError
from app.models.booking import Booking
from app.models.discounts import Coupon
from app.schemas.booking import BookingCreate
from app.services import booking_service

THREADS = 8


def _request(room_id, i, **kwargs):
    return BookingCreate(
        room_id=room_id,
        check_in=date(2024, 1, 10),
        check_out=date(2024, 1, 12),
        first_name="Guest",
        last_name=str(i),
        email=f"guest{i}@example.com",
        phone=f"98500000{i:02d}",
        **kwargs,
    )


def _run_together(session_factory, requests):
    """Submit every request from its own thread and session, released at the same moment."""
    barrier = threading.Barrier(len(requests))
    results = [None] * len(requests)

    def worker(index, data):
        session = session_factory()
        try:
            barrier.wait()
            booking, _ = booking_service.create_booking(session, data)
            results[index] = ("ok", booking.coupon_code)
        except ConflictError:
            results[index] = ("conflict", None)
        except Exception as e:
            results[index] = ("error", repr(e))
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, data)) for i, data in enumerate(requests)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    return results


def test_parallel_bookings_of_one_room_cannot_overlap(session_factory, db, make_room):
    room = make_room()

    results = _run_together(session_factory, [_request(room.id, i) for i in range(THREADS)])

    outcomes = sorted(status for status, _ in results)
    assert outcomes == ["conflict"] * (THREADS - 1) + ["ok"]
    db.expire_all()
    assert db.query(Booking).filter_by(room_id=room.id).count() == 1


def test_parallel_coupon_with_limit_one_is_redeemed_once(session_factory, db, make_room, make_coupon):
    make_coupon(code="ONCE", usage_limit=1)
    rooms = [make_room() for _ in range(THREADS)]

    results = _run_together(
        session_factory,
        [_request(room.id, i, coupon_code="ONCE") for i, room in enumerate(rooms)],
    )

    assert [status for status, _ in results] == ["ok"] * THREADS
    assert [code for _, code in results].count("ONCE") == 1
    db.expire_all()
    assert db.query(Coupon).filter_by(code="ONCE").one().used_count == 1
