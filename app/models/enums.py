from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold a room for their date range
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    KHALTI = "khalti"
    ESEWA = "esewa"


# Paid at the desk, so the booking is confirmed straight away
INSTANT_CONFIRM_METHODS = (PaymentMethod.CASH.value, PaymentMethod.CARD.value)


class DiscountType(str, Enum):
    FIXED = "fixed"
    PERCENT = "percent"


class WorkflowAction(str, Enum):
    SPECIAL_REQUEST = "special_request"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    CANCELLATION = "cancellation"
    UPDATE = "update"
    NOTE = "note"
