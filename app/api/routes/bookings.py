import os
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_notifier, get_store
from app.core.redis import KeyValueStore
from app.models.enums import BookingStatus
from app.schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingFilters,
    BookingOut,
    BookingUpdate,
    PaymentOut,
    WorkflowLogCreate,
    WorkflowLogOut,
)
from app.services import booking_queries, booking_service
from app.services.notifications import (
    BOOKING_CANCELLED,
    BOOKING_CREATED,
    BOOKING_UPDATED,
    NotificationEmitter,
    booking_payload,
)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])

STATS_CACHE_PREFIX = "booking_stats:"
STATS_CACHE_TTL = int(os.getenv("STATS_CACHE_TTL", 60))


def _after_write(
    store: KeyValueStore,
    background: BackgroundTasks,
    notifier: NotificationEmitter,
    event: str,
    booking,
):
    # Runs once the transaction is committed; nothing here can fail the request
    store.delete_prefix(STATS_CACHE_PREFIX)
    background.add_task(notifier.emit, event, booking_payload(booking))


# ---------------------------------------------------------------------
# LIST BOOKINGS
# ---------------------------------------------------------------------
@router.get("")
def list_bookings(
    page: int = 1,
    limit: int = 10,
    status: Optional[BookingStatus] = None,
    room_id: Optional[int] = Query(default=None, alias="roomId"),
    guest_name: Optional[str] = Query(default=None, alias="guestName"),
    check_in: Optional[date] = Query(default=None, alias="checkIn"),
    check_out: Optional[date] = Query(default=None, alias="checkOut"),
    db: Session = Depends(get_db),
):
    filters = BookingFilters(
        page=page,
        limit=limit,
        status=status,
        room_id=room_id,
        guest_name=guest_name,
        check_in=check_in,
        check_out=check_out,
    )
    result = booking_queries.list_bookings(db, filters)

    return {
        "success": True,
        "currentPage": result["current_page"],
        "totalPages": result["total_pages"],
        "total": result["total"],
        "data": [BookingOut.model_validate(b) for b in result["data"]],
    }


# ---------------------------------------------------------------------
# STATS
# ---------------------------------------------------------------------
@router.get("/stats")
def booking_stats(
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    cache_key = f"{STATS_CACHE_PREFIX}{start_date}:{end_date}"

    stats = store.get(cache_key)
    if stats is None:
        stats = booking_queries.booking_stats(db, start_date, end_date)
        store.set(cache_key, stats, ttl=STATS_CACHE_TTL)

    return {"success": True, "stats": stats}


# ---------------------------------------------------------------------
# CREATE BOOKING
# ---------------------------------------------------------------------
@router.post("", status_code=201)
def create_booking(
    data: BookingCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    booking, payment = booking_service.create_booking(db, data)

    _after_write(store, background, notifier, BOOKING_CREATED, booking)

    response = {"success": True, "booking": BookingOut.model_validate(booking)}
    if payment is not None:
        response["payment"] = PaymentOut.model_validate(payment)
    return response


# ---------------------------------------------------------------------
# GET BOOKING
# ---------------------------------------------------------------------
@router.get("/{booking_id}")
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    booking = booking_queries.get_booking(db, booking_id)
    return {"success": True, "booking": BookingOut.model_validate(booking)}


# ---------------------------------------------------------------------
# UPDATE BOOKING
# ---------------------------------------------------------------------
@router.put("/{booking_id}")
def update_booking(
    booking_id: int,
    data: BookingUpdate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    booking = booking_service.update_booking(db, booking_id, data)

    event = BOOKING_CANCELLED if booking.status == BookingStatus.CANCELLED.value else BOOKING_UPDATED
    _after_write(store, background, notifier, event, booking)

    return {
        "success": True,
        "booking": BookingOut.model_validate(booking),
        "message": "Booking updated successfully",
    }


# ---------------------------------------------------------------------
# CANCEL BOOKING
# ---------------------------------------------------------------------
@router.patch("/{booking_id}/cancel")
def cancel_booking(
    booking_id: int,
    background: BackgroundTasks,
    data: Optional[BookingCancel] = None,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
    notifier: NotificationEmitter = Depends(get_notifier),
):
    reason = data.reason if data else None
    booking = booking_service.cancel_booking(db, booking_id, reason)

    _after_write(store, background, notifier, BOOKING_CANCELLED, booking)

    return {
        "success": True,
        "booking": BookingOut.model_validate(booking),
        "message": "Booking cancelled successfully",
    }


# ---------------------------------------------------------------------
# DELETE BOOKING (soft)
# ---------------------------------------------------------------------
@router.delete("/{booking_id}")
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    store: KeyValueStore = Depends(get_store),
):
    booking_service.delete_booking(db, booking_id)
    store.delete_prefix(STATS_CACHE_PREFIX)
    return {"success": True, "message": "Booking deleted successfully"}


# ---------------------------------------------------------------------
# WORKFLOW LOG (check-in / check-out / notes)
# ---------------------------------------------------------------------
@router.post("/{booking_id}/workflow", status_code=201)
def create_workflow_log(booking_id: int, data: WorkflowLogCreate, db: Session = Depends(get_db)):
    entry = booking_service.add_workflow_log(db, booking_id, data.action, data.note)
    return {"success": True, "log": WorkflowLogOut.model_validate(entry)}
