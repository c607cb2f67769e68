"""Checkout schemas — payment collaborator contract and pending orders."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from linkhub.schemas.domain import ReservationType
from linkhub.schemas.pricing import PricingQuote


class PaymentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"  # handed off to an external payment flow
    NOT_PAID = "not_paid"


class PaymentResult(BaseModel):
    status: PaymentStatus
    payment_id: Optional[str] = None
    handoff_token: Optional[str] = None
    redirect_url: Optional[str] = None


class PendingCheckout(BaseModel):
    """An order awaiting external payment confirmation (stored in Redis)."""

    id: str
    owner_id: str
    quote: PricingQuote
    handoff_token: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: datetime


class CheckoutRequest(BaseModel):
    page_ids: Optional[list[str]] = None  # None = every current draft
    discount_code: Optional[str] = None


class DomainQuoteRequest(BaseModel):
    actions: dict[str, Optional[ReservationType]]
    discount_code: Optional[str] = None


class CheckoutResult(BaseModel):
    checkout_id: str
    status: PaymentStatus
    quote: PricingQuote
    promoted: list[str] = []
    handoff_token: Optional[str] = None
    redirect_url: Optional[str] = None

