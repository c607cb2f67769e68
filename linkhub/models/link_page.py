"""Active link pages — the authoritative tier for paid pages."""

from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from linkhub.models.base import Base, TimestampMixin


class LinkPageRecord(Base, TimestampMixin):
    __tablename__ = "link_pages"

    # Same id the page had as a draft
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    # Public routing
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    custom_domain: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Profile
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    profile_name: Mapped[str] = mapped_column(String(200), nullable=False)
    profile_image_ref: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    folder_tag: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    template: Mapped[str] = mapped_column(String(20), default="minimal")

    # Presentation, stored as the serialized pydantic shapes
    theme: Mapped[dict] = mapped_column(JSONB, default=dict)
    buttons: Mapped[list] = mapped_column(JSONB, default=list)  # ordered
