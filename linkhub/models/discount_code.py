"""Discount codes — closed list managed from the admin back office."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from linkhub.models.base import Base, TimestampMixin, UUIDMixin


class DiscountCodeRecord(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "discount_codes"

    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)  # upper-case
    percent_off: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..100
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
