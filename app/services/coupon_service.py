from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.discounts import Coupon
from app.utils.pricing import coupon_discount_for_total


def validate_coupon(db: Session, code: str, total_amount: float, now: Optional[datetime] = None) -> dict:
    """Quote a coupon before booking. Unlike booking creation, problems are reported."""
    now = now or datetime.utcnow()

    coupon = db.query(Coupon).filter(
        Coupon.code == code.strip().upper(),
        Coupon.active.is_(True),
    ).first()
    if not coupon:
        raise NotFoundError("Invalid coupon code")

    if now < coupon.valid_from or now > coupon.valid_to:
        raise ValidationError("Coupon is not valid at this time")

    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise ValidationError("Coupon usage limit exceeded")

    return {
        "id": coupon.id,
        "code": coupon.code,
        "discountType": coupon.discount_type,
        "discountValue": coupon.discount_value,
        "discountAmount": coupon_discount_for_total(coupon, total_amount),
    }
