"""Custom domain requests, one per link page."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from linkhub.models.base import Base, TimestampMixin


class DomainRequestRecord(Base, TimestampMixin):
    __tablename__ = "domain_requests"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # = link page id
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    requested_domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    reservation_type: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True
    )  # buy_new | connect_own
    status: Mapped[str] = mapped_column(
        String(20), default="none", index=True
    )  # none | pending | active | failed

    requested_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    activated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
