import json
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from dotenv import load_dotenv

from app.core.logging_config import get_logger

load_dotenv()

logger = get_logger()

TAX_RATE = float(os.getenv("TAX_RATE", "0.13"))


@dataclass
class DiscountResult:
    base_amount: float
    discount_amount: float
    discounted_amount: float

    # Only the discounts that were actually applied; None otherwise
    package: Optional[Any] = None
    promotion: Optional[Any] = None
    coupon: Optional[Any] = None


@dataclass
class PriceBreakdown:
    tax_amount: float
    final_amount: float


@dataclass
class Quote:
    nights: int
    discount: DiscountResult
    price: PriceBreakdown


def nights_between(check_in: date, check_out: date) -> int:
    return max((check_out - check_in).days, 1)


# ---------------------------------------------------------------------
# VALIDITY
# ---------------------------------------------------------------------
def _in_window(item, now: datetime) -> bool:
    if not getattr(item, "active", False):
        return False
    if item.valid_from is not None and now < item.valid_from:
        return False
    if item.valid_to is not None and now > item.valid_to:
        return False
    return True


def is_package_valid(package, now: datetime) -> bool:
    return package is not None and _in_window(package, now)


def parse_applicable_rooms(raw) -> Optional[set]:
    """Return the set of room ids a promotion is limited to, or None for all rooms."""
    if raw is None or raw == "":
        return None
    try:
        rooms = json.loads(raw) if isinstance(raw, str) else raw
        if rooms is None:
            return None
        return {int(r) for r in rooms}
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed applicableRooms {raw!r}, treating as unrestricted: {e}")
        return None


def is_promotion_valid(promotion, room_id: int, now: datetime) -> bool:
    if promotion is None or not _in_window(promotion, now):
        return False
    rooms = parse_applicable_rooms(promotion.applicable_rooms)
    return rooms is None or room_id in rooms


def is_coupon_valid(coupon, now: datetime) -> bool:
    if coupon is None or not _in_window(coupon, now):
        return False
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return False
    return True


def _discount_value(discount_type: str, value: float, base_amount: float) -> float:
    if discount_type == "percent":
        return base_amount * value / 100
    return value


# ---------------------------------------------------------------------
# DISCOUNT COMPOSER
# ---------------------------------------------------------------------
def compute_discounted_base(
    nights: int,
    room_price: float,
    room_id: int,
    package=None,
    promotion=None,
    coupon=None,
    now: Optional[datetime] = None,
    coupon_already_redeemed: bool = False,
) -> DiscountResult:
    """Apply package, then promotion, then coupon. The order is fixed.

    A package rewrites the base amount (fixed price, or percent off). Promotion and
    coupon discounts are summed against the post-package base. Anything expired,
    inactive, out of scope for the room or over its usage limit is skipped.
    """
    now = now or datetime.utcnow()

    base_amount = nights * room_price
    discount_amount = 0.0

    applied_package = None
    if is_package_valid(package, now):
        if package.type == "fixed":
            base_amount = package.value
        else:
            base_amount = base_amount * (1 - package.value / 100)
        applied_package = package

    applied_promotion = None
    if is_promotion_valid(promotion, room_id, now):
        discount_amount += _discount_value(
            promotion.discount_type, promotion.discount_value, base_amount
        )
        applied_promotion = promotion

    applied_coupon = None
    coupon_ok = (
        coupon is not None and _in_window(coupon, now)
        if coupon_already_redeemed
        else is_coupon_valid(coupon, now)
    )
    if coupon_ok:
        discount_amount += _discount_value(
            coupon.discount_type, coupon.discount_value, base_amount
        )
        applied_coupon = coupon

    return DiscountResult(
        base_amount=round(base_amount, 2),
        discount_amount=round(discount_amount, 2),
        discounted_amount=round(max(0.0, base_amount - discount_amount), 2),
        package=applied_package,
        promotion=applied_promotion,
        coupon=applied_coupon,
    )


# ---------------------------------------------------------------------
# TAX
# ---------------------------------------------------------------------
def finalize_price(discounted_amount: float, tax_rate: float = TAX_RATE) -> PriceBreakdown:
    tax_amount = discounted_amount * tax_rate
    return PriceBreakdown(
        tax_amount=round(tax_amount, 2),
        final_amount=round(discounted_amount + tax_amount, 2),
    )


def quote_booking(
    room,
    check_in: date,
    check_out: date,
    package=None,
    promotion=None,
    coupon=None,
    now: Optional[datetime] = None,
    coupon_already_redeemed: bool = False,
) -> Quote:
    nights = nights_between(check_in, check_out)
    discount = compute_discounted_base(
        nights,
        room.price,
        room.id,
        package=package,
        promotion=promotion,
        coupon=coupon,
        now=now,
        coupon_already_redeemed=coupon_already_redeemed,
    )
    return Quote(nights=nights, discount=discount, price=finalize_price(discount.discounted_amount))


def coupon_discount_for_total(coupon, total_amount: float) -> float:
    """Quote shown before booking: percent of the total, or the fixed value capped at the total."""
    if coupon.discount_type == "percent":
        amount = total_amount * coupon.discount_value / 100
    else:
        amount = min(coupon.discount_value, total_amount)
    return round(amount, 2)
