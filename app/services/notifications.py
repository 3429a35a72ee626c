import os
import smtplib
from email.message import EmailMessage
from typing import Callable, Dict, List

from dotenv import load_dotenv

from app.core.logging_config import get_logger

load_dotenv()

logger = get_logger()

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 25))
SMTP_FROM = os.getenv("SMTP_FROM", "reservations@hotel.local")

BOOKING_CREATED = "booking.created"
BOOKING_UPDATED = "booking.updated"
BOOKING_CANCELLED = "booking.cancelled"


class NotificationEmitter:
    """Fan-out of booking events to subscribed handlers.

    Handlers run after the booking transaction has committed. A failing handler is
    logged and skipped; it never affects the request outcome.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable[[dict], None]]] = {}

    def subscribe(self, event: str, handler: Callable[[dict], None]):
        self._handlers.setdefault(event, []).append(handler)

    def emit(self, event: str, payload: dict):
        logger.bind(log_type="booking").info(f"Event {event} | Booking={payload.get('id')}")
        for handler in self._handlers.get(event, []):
            try:
                handler(payload)
            except Exception as e:
                logger.error(f"Notification handler failed | Event={event} | {e}")


def booking_payload(booking) -> dict:
    guest = booking.guest
    return {
        "id": booking.id,
        "roomId": booking.room_id,
        "checkIn": booking.check_in.isoformat(),
        "checkOut": booking.check_out.isoformat(),
        "status": booking.status,
        "totalAmount": booking.total_amount,
        "guestName": f"{guest.first_name} {guest.last_name}" if guest else None,
        "guestEmail": guest.email if guest else None,
    }


def send_booking_confirmation(payload: dict):
    """Best effort. Without SMTP_HOST the email is skipped."""
    if not payload.get("guestEmail"):
        return

    if not SMTP_HOST:
        logger.info(f"SMTP not configured, skipping confirmation email | Booking={payload['id']}")
        return

    msg = EmailMessage()
    msg["Subject"] = f"Booking #{payload['id']} received"
    msg["From"] = SMTP_FROM
    msg["To"] = payload["guestEmail"]
    msg.set_content(
        f"Dear {payload['guestName']},\n\n"
        f"Your booking #{payload['id']} for {payload['checkIn']} to {payload['checkOut']} "
        f"is {payload['status']}. Total: {payload['totalAmount']:.2f}\n"
    )

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
            smtp.send_message(msg)
        logger.info(f"Confirmation email sent | Booking={payload['id']}")
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Confirmation email failed | Booking={payload['id']} | {e}")


def create_emitter() -> NotificationEmitter:
    emitter = NotificationEmitter()
    emitter.subscribe(BOOKING_CREATED, send_booking_confirmation)
    return emitter
