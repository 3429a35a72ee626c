import math
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.exceptions import NotFoundError
from app.models.booking import Booking
from app.models.enums import BookingStatus
from app.models.guest import Guest
from app.schemas.booking import BookingFilters

MAX_PAGE_SIZE = 100


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = (
        db.query(Booking)
        .options(
            joinedload(Booking.guest),
            joinedload(Booking.room),
            selectinload(Booking.payments),
        )
        .filter(Booking.id == booking_id, Booking.deleted_at.is_(None))
        .first()
    )
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings(db: Session, filters: BookingFilters) -> dict:
    page = max(filters.page, 1)
    limit = min(max(filters.limit, 1), MAX_PAGE_SIZE)

    query = db.query(Booking).filter(Booking.deleted_at.is_(None))

    if filters.status:
        query = query.filter(Booking.status == filters.status.value)
    if filters.room_id:
        query = query.filter(Booking.room_id == filters.room_id)
    if filters.check_in:
        query = query.filter(Booking.check_in >= filters.check_in)
    if filters.check_out:
        query = query.filter(Booking.check_out <= filters.check_out)

    # Guest name search
    if filters.guest_name:
        pattern = f"%{filters.guest_name}%"
        query = query.join(Guest, Booking.guest_id == Guest.id).filter(
            or_(
                Guest.first_name.ilike(pattern),
                Guest.last_name.ilike(pattern),
                Guest.email.ilike(pattern),
            )
        )

    total = query.count()

    bookings = (
        query.options(
            joinedload(Booking.guest),
            joinedload(Booking.room),
            selectinload(Booking.payments),
        )
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total": total,
        "data": bookings,
    }


def booking_stats(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    query = db.query(Booking).filter(Booking.deleted_at.is_(None))

    if start_date and end_date:
        query = query.filter(
            Booking.created_at >= datetime.combine(start_date, time.min),
            Booking.created_at <= datetime.combine(end_date, time.max),
        )

    def count(status: BookingStatus) -> int:
        return query.filter(Booking.status == status.value).count()

    revenue = query.filter(
        Booking.status.in_([BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value])
    ).with_entities(func.coalesce(func.sum(Booking.total_amount), 0.0)).scalar()

    return {
        "totalBookings": query.count(),
        "confirmedBookings": count(BookingStatus.CONFIRMED),
        "pendingBookings": count(BookingStatus.PENDING),
        "cancelledBookings": count(BookingStatus.CANCELLED),
        "completedBookings": count(BookingStatus.COMPLETED),
        "totalRevenue": round(float(revenue or 0), 2),
    }
