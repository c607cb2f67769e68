"""Pricing Engine — turns priced selections and an optional coupon into a quote.

All amounts are integer minor units (cents). The engine is total over
its input: it never raises and never returns a negative total.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

import structlog

from linkhub.config import settings
from linkhub.schemas.domain import ReservationType
from linkhub.schemas.link_page import LinkPage
from linkhub.schemas.pricing import DiscountCode, PricingQuote, Selection

logger = structlog.get_logger()

PAGE_ACTION = "activate"


def discount_for(subtotal: int, percent_off: int) -> int:
    """``round(subtotal * percent_off / 100)``, half-up, in minor units."""
    amount = (Decimal(subtotal) * percent_off / 100).quantize(Decimal("1"), ROUND_HALF_UP)
    return min(int(amount), subtotal)


def quote(
    selections: Iterable[Selection],
    discount: Optional[DiscountCode] = None,
    surcharge: Optional[int] = None,
    currency: Optional[str] = None,
) -> PricingQuote:
    """Price a selection.

    1. unit price = base price + surcharge when the item has the feature
    2. subtotal = sum of unit prices over items with a non-null action
    3. discount = round(subtotal * percent_off / 100), or 0 without a code
    4. total = subtotal - discount

    ``item_count`` is for "N items" display only.
    """
    if surcharge is None:
        surcharge = settings.rotator_surcharge

    subtotal = 0
    item_ids: list[str] = []
    for selection in selections:
        if selection.action is None:
            continue
        subtotal += selection.base_price + (surcharge if selection.has_surcharge else 0)
        item_ids.append(selection.item_id)

    discount_amount = discount_for(subtotal, discount.percent_off) if discount else 0

    return PricingQuote(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
        item_count=len(item_ids),
        item_ids=item_ids,
        currency=currency or settings.currency,
        discount_code=discount.code if discount else None,
        percent_off=discount.percent_off if discount else None,
    )


def page_selections(pages: Iterable[LinkPage], has_surcharge) -> list[Selection]:
    """One selection per draft page; ``has_surcharge`` is a page predicate."""
    return [
        Selection(
            item_id=page.id,
            base_price=settings.link_price_standard,
            has_surcharge=has_surcharge(page),
            action=PAGE_ACTION,
        )
        for page in pages
    ]


def domain_selections(
    actions: dict[str, Optional[ReservationType]],
) -> list[Selection]:
    """One selection per page; pages with no domain action price at 0."""
    prices = {
        ReservationType.BUY_NEW: settings.domain_buy_price,
        ReservationType.CONNECT_OWN: settings.domain_connect_price,
    }
    return [
        Selection(
            item_id=page_id,
            base_price=prices[action] if action else 0,
            action=action.value if action else None,
        )
        for page_id, action in actions.items()
    ]


def format_price(amount: int, currency: str = "USD") -> str:
    """Format minor units for display: 6000 → "$60.00"."""
    value = Decimal(amount) / 100
    if currency.upper() == "USD":
        return f"${value:,.2f}"
    return f"{value:,.2f} {currency.upper()}"


def format_registrar_price(price: int, currency: Optional[str] = "USD") -> str:
    """Registrar prices come in micro-units: 12000000 → "$12.00"."""
    return format_price(price // 10_000, currency or "USD")
