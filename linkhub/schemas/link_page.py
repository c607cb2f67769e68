"""Link page and button schemas shared by both persistence tiers and the API."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from linkhub.schemas.domain import DomainRequest

ROTATOR_SLOTS = 5


def new_id() -> str:
    return str(uuid.uuid4())


class LifecycleState(str, Enum):
    """Draft pages live in the offline tier; active pages are paid and routable."""

    DRAFT = "draft"
    ACTIVE = "active"


class TemplateType(str, Enum):
    MINIMAL = "minimal"
    SPLIT = "split"
    FULL = "full"


class SocialType(str, Enum):
    MESSAGING_CHANNEL = "messaging_channel"
    PHOTO_NETWORK = "photo_network"
    VIDEO_NETWORK = "video_network"
    CUSTOM = "custom"


class FontType(str, Enum):
    SANS = "sans"
    SERIF = "serif"
    MONO = "mono"
    DISPLAY = "display"


class BackgroundType(str, Enum):
    SOLID = "solid"
    GRADIENT = "gradient"


class Rotator(BaseModel):
    """Alternate destinations cycled by a messaging-channel button.

    ``alternate_urls`` always holds exactly ``ROTATOR_SLOTS`` entries;
    an empty string marks an unset slot.
    """

    enabled: bool = False
    alternate_urls: list[str] = Field(default_factory=lambda: [""] * ROTATOR_SLOTS)

    @field_validator("alternate_urls", mode="before")
    @classmethod
    def _fixed_slots(cls, value):
        slots = [url or "" for url in (value or [])][:ROTATOR_SLOTS]
        return slots + [""] * (ROTATOR_SLOTS - len(slots))


class ButtonLink(BaseModel):
    id: str = Field(default_factory=new_id)
    social_type: SocialType = SocialType.CUSTOM
    title: str = "New Button"
    target_url: str = ""

    # Style
    fill_color: str = "#333333"
    text_color: str = "#FFFFFF"
    font: FontType = FontType.SANS
    corner_radius: int = 12
    opacity: int = Field(100, ge=0, le=100)
    border_width: int = 0

    is_active: bool = True
    rotator: Rotator = Field(default_factory=Rotator)

    @property
    def has_enabled_rotator(self) -> bool:
        return self.social_type == SocialType.MESSAGING_CHANNEL and self.rotator.enabled


class Theme(BaseModel):
    border_color: str = "#333333"
    overlay_opacity: int = Field(40, ge=0, le=100)
    background_type: BackgroundType = BackgroundType.SOLID
    background_start: str = "#000000"
    background_end: str = "#1a1a1a"  # only rendered for gradients


class LinkPage(BaseModel):
    """A link-in-bio page with its ordered buttons."""

    id: str = Field(default_factory=new_id)
    owner_id: str
    lifecycle_state: LifecycleState = LifecycleState.DRAFT
    slug: Optional[str] = None
    custom_domain: Optional[str] = None

    display_name: str = "New Page"
    profile_name: str = "Name"
    profile_image_ref: Optional[str] = None
    folder_tag: Optional[str] = None
    template: TemplateType = TemplateType.MINIMAL
    theme: Theme = Field(default_factory=Theme)

    buttons: list[ButtonLink] = Field(default_factory=list)
    domain: Optional[DomainRequest] = None

    updated_at: Optional[datetime] = None

    @property
    def is_draft(self) -> bool:
        return self.lifecycle_state == LifecycleState.DRAFT


class LinkPageSeed(BaseModel):
    """Optional initial values for a new draft."""

    display_name: Optional[str] = None
    profile_name: Optional[str] = None
    profile_image_ref: Optional[str] = None
    folder_tag: Optional[str] = None
    template: Optional[TemplateType] = None
    theme: Optional[Theme] = None


class LinkPageUpdate(BaseModel):
    display_name: Optional[str] = None
    profile_name: Optional[str] = None
    profile_image_ref: Optional[str] = None
    folder_tag: Optional[str] = None
    template: Optional[TemplateType] = None
    theme: Optional[Theme] = None

    @field_validator("display_name", "profile_name")
    @classmethod
    def _not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("must not be empty")
        return value.strip() if value is not None else value


class ButtonPatch(BaseModel):
    """Partial button update; unset fields are left untouched."""

    social_type: Optional[SocialType] = None
    title: Optional[str] = None
    target_url: Optional[str] = None
    fill_color: Optional[str] = None
    text_color: Optional[str] = None
    font: Optional[FontType] = None
    corner_radius: Optional[int] = None
    opacity: Optional[int] = Field(None, ge=0, le=100)
    border_width: Optional[int] = None
    is_active: Optional[bool] = None

    @field_validator("*")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class PagePartition(BaseModel):
    drafts: list[LinkPage] = []
    active: list[LinkPage] = []
