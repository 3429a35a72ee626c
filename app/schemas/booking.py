from datetime import date, datetime
from typing import List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator, model_validator

from app.models.enums import BookingStatus, PaymentMethod, WorkflowAction
from app.schemas.base import CamelModel


class BookingDates(CamelModel):
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_date_order(self):
        if self.check_out <= self.check_in:
            raise ValueError("checkOut must be after checkIn")
        return self


class BookingCreate(BookingDates):
    room_id: int = Field(gt=0)
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)

    # Guest details, upserted by email
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=6)

    package_id: Optional[int] = None
    promotion_id: Optional[int] = None
    coupon_code: Optional[str] = None

    payment_method: Optional[PaymentMethod] = None
    special_request: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("specialRequest", "specialRequests", "special_request"),
    )

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_payment_method(cls, v):
        # Front desk sends "Cash" / "Card"
        return v.lower() if isinstance(v, str) else v

    @field_validator("coupon_code", mode="before")
    @classmethod
    def normalize_coupon_code(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v


class BookingUpdate(CamelModel):
    room_id: Optional[int] = Field(default=None, gt=0)
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    adults: Optional[int] = Field(default=None, ge=1)
    children: Optional[int] = Field(default=None, ge=0)
    status: Optional[BookingStatus] = None

    # Operator override of the computed total
    total_amount: Optional[float] = Field(default=None, ge=0)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v.lower() if isinstance(v, str) else v


class BookingCancel(CamelModel):
    reason: Optional[str] = None


class WorkflowLogCreate(CamelModel):
    action: WorkflowAction
    note: Optional[str] = None


class BookingFilters(CamelModel):
    page: int = 1
    limit: int = 10
    status: Optional[BookingStatus] = None
    room_id: Optional[int] = None
    guest_name: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None


# ---------------------------------------------------------------------
# RESPONSES
# ---------------------------------------------------------------------
class GuestOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str


class RoomOut(CamelModel):
    id: int
    room_number: str
    price: float
    max_adults: int
    max_children: int
    allow_children: bool
    status: str


class PaymentOut(CamelModel):
    id: int
    booking_id: int
    method: str
    amount: float
    status: str
    created_at: datetime


class WorkflowLogOut(CamelModel):
    id: int
    booking_id: int
    action: str
    note: Optional[str] = None
    created_at: datetime


class BookingOut(CamelModel):
    id: int
    guest_id: int
    room_id: int
    check_in: date
    check_out: date
    adults: int
    children: int
    status: str

    total_amount: float
    discount_amount: float
    tax_amount: float

    package_id: Optional[int] = None
    promotion_id: Optional[int] = None
    coupon_code: Optional[str] = None
    payment_method: Optional[str] = None
    special_requests: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    guest: Optional[GuestOut] = None
    room: Optional[RoomOut] = None
    payments: List[PaymentOut] = []
