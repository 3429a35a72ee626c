from datetime import date, datetime
from typing import Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.logging_config import booking_logger, payment_logger
from app.models.booking import Booking
from app.models.discounts import Coupon, Package, Promotion
from app.models.enums import (
    INSTANT_CONFIRM_METHODS,
    BookingStatus,
    PaymentStatus,
    WorkflowAction,
)
from app.models.guest import Guest
from app.models.payment import Payment
from app.models.room import Room
from app.models.workflow_log import BookingWorkflowLog
from app.schemas.booking import BookingCreate, BookingUpdate
from app.utils.availability import find_conflicting_booking
from app.utils.pricing import is_coupon_valid, quote_booking
from app.utils.status_guard import TERMINAL_STATUSES, ensure_transition_allowed

MAX_NOTE_LENGTH = 1000

log = booking_logger()
pay_log = payment_logger()


# ---------------------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------------------
def lock_room(db: Session, room_id: int) -> None:
    """Hold a write lock covering the room until the transaction ends.

    SQLite ignores FOR UPDATE and pysqlite only opens a transaction at the first
    write, so a no-op UPDATE is issued instead. It takes the database write lock
    before the availability check runs.
    """
    if db.get_bind().dialect.name == "sqlite":
        db.execute(
            update(Room)
            .where(Room.id == room_id)
            .values(id=Room.id)
            .execution_options(synchronize_session=False)
        )


def get_room(db: Session, room_id: int, lock: bool = False) -> Room:
    if lock:
        lock_room(db, room_id)
    query = db.query(Room).filter(Room.id == room_id)
    if lock:
        # Serialises concurrent bookings of the same room until commit
        query = query.with_for_update()
    room = query.first()
    if not room:
        raise NotFoundError("Room not found")
    return room


def get_active_booking(db: Session, booking_id: int) -> Booking:
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.deleted_at.is_(None),
    ).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def check_capacity(room: Room, adults: int, children: int) -> None:
    if adults > room.max_adults:
        raise ValidationError(f"Exceeds adult capacity (max {room.max_adults})")
    if children > room.max_children:
        raise ValidationError(f"Exceeds children capacity (max {room.max_children})")
    if not room.allow_children and children > 0:
        raise ValidationError("Children not allowed in this room")


def ensure_available(db: Session, room_id: int, check_in: date, check_out: date, exclude_booking_id=None):
    conflict = find_conflicting_booking(db, room_id, check_in, check_out, exclude_booking_id)
    if conflict:
        log.info(
            f"Availability conflict | Room={room_id} | {check_in}..{check_out} | Existing={conflict.id}"
        )
        raise ConflictError("Room not available for selected dates")


def upsert_guest(db: Session, data: BookingCreate) -> Guest:
    """Reuse the guest with this email (or phone) untouched, otherwise create one."""
    guest = db.query(Guest).filter(Guest.email == data.email).first()
    if not guest:
        guest = db.query(Guest).filter(Guest.phone == data.phone).first()
    if guest:
        return guest

    guest = Guest(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        phone=data.phone,
    )
    db.add(guest)
    db.flush()
    return guest


def claim_coupon(db: Session, coupon: Coupon) -> bool:
    """Atomically bump used_count unless the limit is already reached."""
    result = db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon.id,
            or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
        )
        .values(used_count=Coupon.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.refresh(coupon)
    return result.rowcount == 1


def add_log(db: Session, booking: Booking, action, note: Optional[str] = None) -> BookingWorkflowLog:
    if note is not None:
        note = note[:MAX_NOTE_LENGTH]
    entry = BookingWorkflowLog(
        booking_id=booking.id,
        action=action.value if isinstance(action, WorkflowAction) else action,
        note=note,
    )
    db.add(entry)
    return entry


def refund_payments(db: Session, booking: Booking) -> int:
    refunded = 0
    for payment in booking.payments:
        if payment.status != PaymentStatus.REFUNDED.value:
            payment.status = PaymentStatus.REFUNDED.value
            refunded += 1
    if refunded:
        pay_log.info(f"Payments refunded | Booking={booking.id} | Count={refunded}")
    return refunded


def _load_discounts(db: Session, package_id, promotion_id, coupon_code, lock_coupon=False):
    package = db.query(Package).filter(Package.id == package_id).first() if package_id else None
    promotion = db.query(Promotion).filter(Promotion.id == promotion_id).first() if promotion_id else None

    coupon = None
    if coupon_code:
        query = db.query(Coupon).filter(Coupon.code == coupon_code.upper())
        if lock_coupon:
            query = query.with_for_update()
        coupon = query.first()

    return package, promotion, coupon


# ---------------------------------------------------------------------
# CREATE
# ---------------------------------------------------------------------
def create_booking(
    db: Session, data: BookingCreate, now: Optional[datetime] = None
) -> Tuple[Booking, Optional[Payment]]:
    now = now or datetime.utcnow()

    # ---- VALIDATION (no writes yet) ----
    room = get_room(db, data.room_id)
    check_capacity(room, data.adults, data.children)

    try:
        # ---- AVAILABILITY, UNDER THE ROOM LOCK ----
        room = get_room(db, data.room_id, lock=True)
        ensure_available(db, room.id, data.check_in, data.check_out)

        guest = upsert_guest(db, data)

        # ---- DISCOUNTS ----
        package, promotion, coupon = _load_discounts(
            db, data.package_id, data.promotion_id, data.coupon_code, lock_coupon=True
        )
        if coupon is not None:
            if not is_coupon_valid(coupon, now) or not claim_coupon(db, coupon):
                log.info(f"Coupon not applied | Code={coupon.code}")
                coupon = None

        quote = quote_booking(
            room,
            data.check_in,
            data.check_out,
            package=package,
            promotion=promotion,
            coupon=coupon,
            now=now,
            coupon_already_redeemed=True,
        )

        method = data.payment_method.value if data.payment_method else None
        instant = method in INSTANT_CONFIRM_METHODS
        special_request = (data.special_request or "").strip()[:MAX_NOTE_LENGTH] or None

        booking = Booking(
            guest_id=guest.id,
            room_id=room.id,
            check_in=data.check_in,
            check_out=data.check_out,
            adults=data.adults,
            children=data.children,
            status=BookingStatus.CONFIRMED.value if instant else BookingStatus.PENDING.value,
            total_amount=quote.price.final_amount,
            discount_amount=quote.discount.discount_amount,
            tax_amount=quote.price.tax_amount,
            package_id=quote.discount.package.id if quote.discount.package else None,
            promotion_id=quote.discount.promotion.id if quote.discount.promotion else None,
            coupon_code=quote.discount.coupon.code if quote.discount.coupon else None,
            payment_method=method,
            special_requests=special_request,
        )
        db.add(booking)
        db.flush()

        payment = None
        if instant:
            payment = Payment(
                booking_id=booking.id,
                method=method,
                amount=quote.price.final_amount,
                status=PaymentStatus.COMPLETED.value,
            )
            db.add(payment)

        if special_request:
            add_log(db, booking, WorkflowAction.SPECIAL_REQUEST, special_request)

        db.commit()

    except IntegrityError as e:
        db.rollback()
        log.warning(f"Booking insert failed on constraint: {e.orig}")
        raise ConflictError("Booking conflicts with existing data, please retry") from e
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    if payment is not None:
        db.refresh(payment)
        pay_log.info(
            f"Payment recorded | Booking={booking.id} | Method={payment.method} | Amount={payment.amount}"
        )

    log.info(
        f"Booking Created | Id={booking.id} | Guest={guest.email} | Room={room.id} | "
        f"{booking.check_in}..{booking.check_out} | Total={booking.total_amount} | Status={booking.status}"
    )
    return booking, payment


# ---------------------------------------------------------------------
# UPDATE
# ---------------------------------------------------------------------
def update_booking(
    db: Session,
    booking_id: int,
    data: BookingUpdate,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Booking:
    booking = get_active_booking(db, booking_id)

    if booking.status in TERMINAL_STATUSES:
        target = data.status.value if data.status else booking.status
        raise ValidationError(
            f"Invalid status transition: {booking.status} -> {target} ({booking.status} bookings cannot be changed)"
        )

    room_id = data.room_id or booking.room_id
    check_in = data.check_in or booking.check_in
    check_out = data.check_out or booking.check_out
    adults = data.adults if data.adults is not None else booking.adults
    children = data.children if data.children is not None else booking.children

    if check_out <= check_in:
        raise ValidationError("Check-out must be after check-in")

    if data.status is not None:
        ensure_transition_allowed(booking.status, data.status, check_in, check_out, today=today)

    stay_changed = (
        room_id != booking.room_id
        or check_in != booking.check_in
        or check_out != booking.check_out
    )
    party_changed = adults != booking.adults or children != booking.children

    changes = []
    try:
        room = get_room(db, room_id, lock=stay_changed)

        if stay_changed or party_changed:
            check_capacity(room, adults, children)

        if stay_changed:
            ensure_available(db, room.id, check_in, check_out, exclude_booking_id=booking.id)

            package, promotion, coupon = _load_discounts(
                db, booking.package_id, booking.promotion_id, booking.coupon_code
            )
            # Coupon usage was counted when the booking was created
            quote = quote_booking(
                room,
                check_in,
                check_out,
                package=package,
                promotion=promotion,
                coupon=coupon,
                now=now,
                coupon_already_redeemed=True,
            )
            booking.room_id = room.id
            booking.check_in = check_in
            booking.check_out = check_out
            booking.total_amount = quote.price.final_amount
            booking.discount_amount = quote.discount.discount_amount
            booking.tax_amount = quote.price.tax_amount
            # Discounts that no longer apply to the new stay are detached
            booking.package_id = quote.discount.package.id if quote.discount.package else None
            booking.promotion_id = quote.discount.promotion.id if quote.discount.promotion else None
            booking.coupon_code = quote.discount.coupon.code if quote.discount.coupon else None
            changes.append(f"stay={room.id}:{check_in}..{check_out}")

        if party_changed:
            booking.adults = adults
            booking.children = children
            changes.append(f"party={adults}+{children}")

        if data.status is not None and data.status.value != booking.status:
            changes.append(f"status={booking.status}->{data.status.value}")
            booking.status = data.status.value
            if booking.status == BookingStatus.CANCELLED.value:
                refund_payments(db, booking)

        if data.total_amount is not None:
            booking.total_amount = data.total_amount
            changes.append(f"totalAmount={data.total_amount}")

        booking.updated_at = datetime.utcnow()
        if changes:
            add_log(db, booking, WorkflowAction.UPDATE, ", ".join(changes))

        db.commit()

    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    log.info(f"Booking Updated | Id={booking.id} | {', '.join(changes) or 'no changes'}")
    return booking


# ---------------------------------------------------------------------
# CANCEL / DELETE
# ---------------------------------------------------------------------
def cancel_booking(db: Session, booking_id: int, reason: Optional[str] = None) -> Booking:
    booking = get_active_booking(db, booking_id)

    if booking.status == BookingStatus.CANCELLED.value:
        raise ValidationError("Booking already cancelled")

    ensure_transition_allowed(
        booking.status, BookingStatus.CANCELLED, booking.check_in, booking.check_out
    )

    try:
        booking.status = BookingStatus.CANCELLED.value
        booking.updated_at = datetime.utcnow()
        refund_payments(db, booking)
        add_log(db, booking, WorkflowAction.CANCELLATION, reason or None)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    log.info(f"Booking Cancelled | Id={booking.id} | Reason={reason or '-'}")
    return booking


def delete_booking(db: Session, booking_id: int) -> None:
    booking = get_active_booking(db, booking_id)

    try:
        booking.deleted_at = datetime.utcnow()
        refund_payments(db, booking)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log.info(f"Booking Deleted | Id={booking_id}")


def add_workflow_log(db: Session, booking_id: int, action, note: Optional[str] = None) -> BookingWorkflowLog:
    booking = get_active_booking(db, booking_id)
    try:
        entry = add_log(db, booking, action, note)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    log.info(f"Workflow Log | Booking={booking_id} | Action={entry.action}")
    return entry
