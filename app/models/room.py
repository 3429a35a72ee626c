from sqlalchemy import Column, Integer, String, Boolean, Float
from sqlalchemy.orm import relationship
from app.db.session import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String, unique=True, nullable=False)

    # Per-night rate
    price = Column(Float, nullable=False, default=0.0)

    max_adults = Column(Integer, nullable=False, default=2)
    max_children = Column(Integer, nullable=False, default=0)
    allow_children = Column(Boolean, nullable=False, default=True)

    status = Column(String, nullable=False, default="available")

    bookings = relationship("Booking", back_populates="room")
