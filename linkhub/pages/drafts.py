"""Draft store — Redis-backed offline tier for unpaid pages.

Each owner has one hash ``drafts:{owner_id}`` whose fields are page ids
and whose values are the page serialized as flat JSON.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import redis.asyncio as redis
import structlog

from linkhub.schemas.link_page import LifecycleState, LinkPage

logger = structlog.get_logger()

_LEGACY_SOCIAL_TYPES = {
    "telegram": "messaging_channel",
    "whatsapp": "messaging_channel",
    "instagram": "photo_network",
    "tiktok": "video_network",
}

_LEGACY_PAGE_KEYS = {
    "name": "display_name",
    "profileName": "profile_name",
    "profileImage": "profile_image_ref",
    "folder": "folder_tag",
}

_LEGACY_THEME_KEYS = {
    "pageBorderColor": "border_color",
    "overlayOpacity": "overlay_opacity",
    "backgroundType": "background_type",
    "backgroundStart": "background_start",
    "backgroundEnd": "background_end",
}

_LEGACY_BUTTON_KEYS = {
    "type": "social_type",
    "url": "target_url",
    "color": "fill_color",
    "textColor": "text_color",
    "borderRadius": "corner_radius",
    "borderWidth": "border_width",
    "isActive": "is_active",
}


def _rename(data: dict[str, Any], mapping: dict[str, str]) -> dict[str, Any]:
    out = dict(data)
    for old, new in mapping.items():
        if old in out:
            value = out.pop(old)
            out.setdefault(new, value)
    return out


def migrate_record(data: dict[str, Any], owner_id: str) -> dict[str, Any]:
    """Bring an older draft record up to the current shape.

    Migrations are additive: new optional fields fall back to model
    defaults (e.g. a missing background type reads as solid).
    """
    record = _rename(data, _LEGACY_PAGE_KEYS)
    record.setdefault("owner_id", owner_id)

    # Anything in the offline tier is unpaid, whatever the old status said
    record.pop("status", None)
    record["lifecycle_state"] = LifecycleState.DRAFT.value

    if isinstance(record.get("theme"), dict):
        record["theme"] = _rename(record["theme"], _LEGACY_THEME_KEYS)

    buttons = []
    for raw in record.get("buttons") or []:
        button = _rename(raw, _LEGACY_BUTTON_KEYS)
        social = button.get("social_type")
        if social in _LEGACY_SOCIAL_TYPES:
            button["social_type"] = _LEGACY_SOCIAL_TYPES[social]
        if "rotatorActive" in button or "rotatorLinks" in button:
            button.setdefault(
                "rotator",
                {
                    "enabled": bool(button.pop("rotatorActive", False)),
                    "alternate_urls": button.pop("rotatorLinks", None),
                },
            )
        buttons.append(button)
    record["buttons"] = buttons
    return record


class DraftStore:
    """CRUD for draft pages in Redis. Every write is applied before returning."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def _key(self, owner_id: str) -> str:
        return f"drafts:{owner_id}"

    def _load(self, owner_id: str, raw: str) -> LinkPage:
        return LinkPage.model_validate(migrate_record(json.loads(raw), owner_id))

    async def get(self, owner_id: str, page_id: str) -> Optional[LinkPage]:
        data = await self.redis.hget(self._key(owner_id), page_id)
        if data:
            return self._load(owner_id, data)
        return None

    async def list(self, owner_id: str) -> list[LinkPage]:
        data = await self.redis.hgetall(self._key(owner_id))
        return [self._load(owner_id, raw) for raw in (data or {}).values()]

    async def save(self, page: LinkPage) -> None:
        await self.redis.hset(
            self._key(page.owner_id), page.id, page.model_dump_json(exclude={"domain"})
        )
        logger.debug("draft_saved", owner_id=page.owner_id, page_id=page.id)

    async def delete(self, owner_id: str, *page_ids: str) -> None:
        if page_ids:
            await self.redis.hdel(self._key(owner_id), *page_ids)
