from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Float, ForeignKey, Index, Text
from sqlalchemy.orm import relationship
from app.db.session import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)

    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)

    status = Column(String, nullable=False, default="pending")

    # Server-computed amounts
    total_amount = Column(Float, nullable=False)
    discount_amount = Column(Float, nullable=False, default=0.0)
    tax_amount = Column(Float, nullable=False, default=0.0)

    # Discounts actually applied (invalid ones are never stored)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True)
    promotion_id = Column(Integer, ForeignKey("promotions.id"), nullable=True)
    coupon_code = Column(String, ForeignKey("coupons.code"), nullable=True)

    payment_method = Column(String, nullable=True)
    special_requests = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    guest = relationship("Guest", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.id")
    workflow_logs = relationship("BookingWorkflowLog", back_populates="booking", order_by="BookingWorkflowLog.id")

    __table_args__ = (
        Index("ix_bookings_room_dates", "room_id", "check_in", "check_out"),
    )
