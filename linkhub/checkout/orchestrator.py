"""Checkout orchestrator — quote, pay, then promote exactly what was paid for.

Promotion is triggered only by a ``paid`` result from the payment
service, either synchronously from a stored payment method or later
through ``confirm``, which asks the service for the payment status.
The page ids promoted are the ``item_ids`` of the quote that was
charged, never re-read from the current draft list.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from linkhub.checkout.pending import PendingCheckoutStore
from linkhub.clients.payments import PaymentClient
from linkhub.errors import UnknownCheckoutError, UnknownPageError, ValidationError
from linkhub.pages.store import LinkPageStore, has_rotator_surcharge
from linkhub.pricing import engine
from linkhub.pricing.coupons import INVALID_CODE_MESSAGE, CouponValidator
from linkhub.schemas.checkout import (
    CheckoutRequest,
    CheckoutResult,
    DomainQuoteRequest,
    PaymentStatus,
    PendingCheckout,
)
from linkhub.schemas.link_page import LinkPage, new_id
from linkhub.schemas.pricing import DiscountCode, PricingQuote

logger = structlog.get_logger()


class CheckoutOrchestrator:
    def __init__(
        self,
        store: LinkPageStore,
        coupons: CouponValidator,
        payments: PaymentClient,
        pending: PendingCheckoutStore,
    ):
        self.store = store
        self.coupons = coupons
        self.payments = payments
        self.pending = pending

    async def quote_pages(
        self,
        owner_id: str,
        page_ids: Optional[list[str]] = None,
        discount_code: Optional[str] = None,
    ) -> PricingQuote:
        """Price draft pages. An unknown coupon simply prices without a discount."""
        drafts = await self._selected_drafts(owner_id, page_ids)
        discount = await self.coupons.resolve(discount_code)
        return engine.quote(engine.page_selections(drafts, has_rotator_surcharge), discount)

    async def quote_domains(self, owner_id: str, request: DomainQuoteRequest) -> PricingQuote:
        """Price per-page domain actions; pages with no action cost nothing."""
        known = {p.id for p in await self.store.list_pages(owner_id)}
        missing = [pid for pid in request.actions if pid not in known]
        if missing:
            raise UnknownPageError(missing)

        discount = await self.coupons.resolve(request.discount_code)
        return engine.quote(engine.domain_selections(request.actions), discount)

    async def checkout(
        self,
        owner_id: str,
        request: CheckoutRequest,
        credential: Optional[str] = None,
    ) -> CheckoutResult:
        discount = await self._require_discount(request.discount_code)
        drafts = await self._selected_drafts(owner_id, request.page_ids)
        quote = engine.quote(engine.page_selections(drafts, has_rotator_surcharge), discount)
        if quote.item_count == 0:
            raise ValidationError("Select at least one page to activate", code="empty_selection")

        payment = await self.payments.submit(
            quote.item_ids, quote.total, quote.discount_code, credential
        )
        checkout_id = new_id()
        logger.info(
            "checkout_submitted",
            checkout_id=checkout_id,
            owner_id=owner_id,
            items=quote.item_count,
            total=quote.total,
            status=payment.status.value,
            payment_id=payment.payment_id,
        )

        if payment.status == PaymentStatus.NOT_PAID:
            return CheckoutResult(checkout_id=checkout_id, status=payment.status, quote=quote)

        # A paid order stays confirmable until its pages are promoted
        pending = PendingCheckout(
            id=checkout_id,
            owner_id=owner_id,
            quote=quote,
            handoff_token=payment.handoff_token,
            payment_id=payment.payment_id,
            created_at=datetime.now(timezone.utc),
        )
        await self.pending.save(pending)

        result = CheckoutResult(
            checkout_id=checkout_id,
            status=payment.status,
            quote=quote,
            handoff_token=payment.handoff_token,
            redirect_url=payment.redirect_url,
        )
        if payment.status == PaymentStatus.PAID:
            result.promoted = await self._promote(pending)
        return result

    async def confirm(
        self, owner_id: str, checkout_id: str, credential: Optional[str] = None
    ) -> CheckoutResult:
        """Resolve a stored order against the payment service.

        The caller never vouches for the payment; only the collaborator's
        ``paid`` promotes. A still-pending payment keeps the order.
        """
        pending = await self.pending.get(checkout_id)
        if pending is None or pending.owner_id != owner_id:
            raise UnknownCheckoutError(checkout_id)

        payment = await self.payments.status(pending.handoff_token, pending.payment_id, credential)
        result = CheckoutResult(checkout_id=checkout_id, status=payment.status, quote=pending.quote)

        if payment.status == PaymentStatus.PAID:
            if payment.payment_id and not pending.payment_id:
                pending.payment_id = payment.payment_id
                await self.pending.save(pending)
            result.promoted = await self._promote(pending)
        elif payment.status == PaymentStatus.NOT_PAID:
            logger.info("checkout_not_paid", checkout_id=checkout_id, owner_id=owner_id)
            await self.pending.delete(checkout_id)
        return result

    async def _promote(self, pending: PendingCheckout) -> list[str]:
        """Activate the charged pages, then forget the order."""
        try:
            promoted = await self.store.promote_to_active(pending.owner_id, pending.quote.item_ids)
        except Exception as e:
            logger.error(
                "paid_checkout_promotion_failed",
                checkout_id=pending.id,
                owner_id=pending.owner_id,
                payment_id=pending.payment_id,
                page_ids=pending.quote.item_ids,
                error=str(e),
            )
            raise

        await self.pending.delete(pending.id)
        return [p.id for p in promoted]

    async def _selected_drafts(
        self, owner_id: str, page_ids: Optional[list[str]]
    ) -> list[LinkPage]:
        """Current drafts, or the requested subset. None selects every draft."""
        drafts = (await self.store.partition(owner_id)).drafts
        if page_ids is None:
            return drafts
        by_id = {p.id: p for p in drafts}
        missing = [pid for pid in page_ids if pid not in by_id]
        if missing:
            raise UnknownPageError(missing)
        return [by_id[pid] for pid in dict.fromkeys(page_ids)]

    async def _require_discount(self, raw_code: Optional[str]) -> Optional[DiscountCode]:
        if not raw_code or not raw_code.strip():
            return None
        discount = await self.coupons.resolve(raw_code)
        if discount is None:
            raise ValidationError(
                INVALID_CODE_MESSAGE, code="invalid_coupon", field="discount_code"
            )
        return discount
