from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.schemas.coupon import CouponValidate
from app.services.coupon_service import validate_coupon

router = APIRouter(prefix="/api/coupons", tags=["Coupons"])


@router.post("/validate")
def validate(data: CouponValidate, db: Session = Depends(get_db)):
    coupon = validate_coupon(db, data.code, data.total_amount)
    return {"success": True, "coupon": coupon}
