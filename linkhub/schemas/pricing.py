"""Pricing schemas: selections in, quotes out."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class DiscountCode(BaseModel):
    """Resolved coupon from the closed code list."""

    code: str
    percent_off: int = Field(ge=1, le=100)

    @field_validator("code")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()


class Selection(BaseModel):
    """One priceable item.

    ``action`` None means the item is listed but not selected and
    contributes nothing to the quote.
    """

    item_id: str
    base_price: int = Field(ge=0)  # minor units
    has_surcharge: bool = False
    action: Optional[str] = None


class PricingQuote(BaseModel):
    subtotal: int = 0
    discount_amount: int = 0
    total: int = 0
    item_count: int = 0
    item_ids: list[str] = []
    currency: str = "USD"
    discount_code: Optional[str] = None
    percent_off: Optional[int] = None


class CouponCheck(BaseModel):
    code: str
    valid: bool
    discount: Optional[DiscountCode] = None
    message: Optional[str] = None
