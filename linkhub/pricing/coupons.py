"""Coupon validator — resolves a submitted code against the closed list."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from linkhub.repositories.discount_code import DiscountCodeRepository
from linkhub.schemas.pricing import CouponCheck, DiscountCode

logger = structlog.get_logger()

INVALID_CODE_MESSAGE = "Invalid code"


def normalize_code(raw: str) -> str:
    return (raw or "").strip().upper()


class CouponValidator:
    """Exact, case-insensitive match. Unknown, inactive or expired → invalid."""

    def __init__(self, repo: DiscountCodeRepository):
        self.repo = repo

    async def resolve(self, raw_code: Optional[str]) -> Optional[DiscountCode]:
        code = normalize_code(raw_code or "")
        if not code:
            return None

        record = await self.repo.find(code)
        if record is None or not record.is_active:
            return None
        if record.expires_at and record.expires_at <= datetime.now(timezone.utc):
            return None
        return DiscountCode(code=record.code, percent_off=record.percent_off)

    async def check(self, raw_code: str) -> CouponCheck:
        """User-facing check: an invalid code clears any applied discount."""
        discount = await self.resolve(raw_code)
        code = normalize_code(raw_code)
        if discount is None:
            logger.info("coupon_rejected", code=code)
            return CouponCheck(code=code, valid=False, message=INVALID_CODE_MESSAGE)
        logger.info("coupon_applied", code=code, percent_off=discount.percent_off)
        return CouponCheck(code=code, valid=True, discount=discount)
