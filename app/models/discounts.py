from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, Text
from app.db.session import Base


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String)

    # fixed | percent
    type = Column(String, nullable=False, default="percent")
    value = Column(Float, nullable=False, default=0.0)

    valid_from = Column(DateTime, nullable=False)
    valid_to = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=True)


class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String)

    discount_type = Column(String, nullable=False, default="percent")
    discount_value = Column(Float, nullable=False, default=0.0)

    valid_from = Column(DateTime, nullable=False)
    valid_to = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    # JSON list of room ids, NULL means every room
    applicable_rooms = Column(Text, nullable=True)


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)
    description = Column(String)

    discount_type = Column(String, nullable=False, default="percent")
    discount_value = Column(Float, nullable=False, default=0.0)

    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime, nullable=False)
    valid_to = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
