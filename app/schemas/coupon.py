from pydantic import Field

from app.schemas.base import CamelModel


class CouponValidate(CamelModel):
    code: str = Field(min_length=1)
    total_amount: float = Field(default=0.0, ge=0)
