"""Discount code lookups against the closed code list."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.models.discount_code import DiscountCodeRecord


class DiscountCodeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, code: str) -> Optional[DiscountCodeRecord]:
        """Exact match on the stored upper-case code."""
        result = await self.db.execute(
            select(DiscountCodeRecord).where(DiscountCodeRecord.code == code)
        )
        return result.scalar_one_or_none()
