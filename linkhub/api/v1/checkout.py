"""Checkout API — quotes, coupon checks, payment and confirmation."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from linkhub.api.deps import get_coupons, get_credential, get_orchestrator, get_owner_id
from linkhub.checkout.orchestrator import CheckoutOrchestrator
from linkhub.pricing.coupons import CouponValidator
from linkhub.pricing.engine import format_price
from linkhub.schemas.checkout import (
    CheckoutRequest,
    CheckoutResult,
    DomainQuoteRequest,
)
from linkhub.schemas.pricing import CouponCheck, PricingQuote

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/checkout", tags=["checkout"])


def _with_display(quote: PricingQuote) -> dict:
    return {
        **quote.model_dump(),
        "display": {
            "subtotal": format_price(quote.subtotal, quote.currency),
            "discount_amount": format_price(quote.discount_amount, quote.currency),
            "total": format_price(quote.total, quote.currency),
        },
    }


@router.get("/quote")
async def quote_pages(
    page_ids: Optional[list[str]] = Query(None),
    discount_code: Optional[str] = Query(None),
    owner_id: str = Depends(get_owner_id),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Price the selected drafts (all drafts when none are named).

    Returns:
        The quote in minor units plus a ``display`` block of formatted prices
    """
    quote = await orchestrator.quote_pages(owner_id, page_ids, discount_code)
    return _with_display(quote)


@router.post("/domains/quote")
async def quote_domains(
    request: DomainQuoteRequest,
    owner_id: str = Depends(get_owner_id),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> dict:
    quote = await orchestrator.quote_domains(owner_id, request)
    return _with_display(quote)


@router.get("/coupons/{code}", response_model=CouponCheck)
async def check_coupon(
    code: str,
    coupons: CouponValidator = Depends(get_coupons),
) -> CouponCheck:
    return await coupons.check(code)


@router.post("", response_model=CheckoutResult)
async def checkout(
    request: CheckoutRequest,
    owner_id: str = Depends(get_owner_id),
    credential: Optional[str] = Depends(get_credential),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> CheckoutResult:
    """Charge for the selected drafts and activate them once paid."""
    return await orchestrator.checkout(owner_id, request, credential)


@router.post("/{checkout_id}/confirm", response_model=CheckoutResult)
async def confirm_checkout(
    checkout_id: str,
    owner_id: str = Depends(get_owner_id),
    credential: Optional[str] = Depends(get_credential),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> CheckoutResult:
    """Re-check a stored order with the payment service and activate it once paid.

    Any request body is ignored; the payment service alone decides ``paid``.
    """
    logger.info("payment_confirmation_requested", checkout_id=checkout_id, owner_id=owner_id)
    return await orchestrator.confirm(owner_id, checkout_id, credential)
