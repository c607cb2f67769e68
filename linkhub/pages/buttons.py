"""Button/rotator model — ordered button collection owned by a link page.

All functions mutate the page (or button) in place. Persisting the
result is the store's job. The editor's "selected button" pointer is
not tracked here: callers that delete a selected button clear it
themselves.
"""

from __future__ import annotations

from typing import Optional

import structlog

from linkhub.errors import ButtonIndexError
from linkhub.schemas.link_page import (
    ROTATOR_SLOTS,
    ButtonLink,
    ButtonPatch,
    LinkPage,
    SocialType,
    new_id,
)

logger = structlog.get_logger()

# Defaults applied when a button is created from a preset
SOCIAL_PRESETS: dict[SocialType, dict[str, str]] = {
    SocialType.MESSAGING_CHANNEL: {"title": "Telegram", "fill_color": "#0088cc"},
    SocialType.PHOTO_NETWORK: {"title": "Instagram", "fill_color": "#E1306C"},
    SocialType.VIDEO_NETWORK: {"title": "TikTok", "fill_color": "#000000"},
    SocialType.CUSTOM: {"title": "New Button", "fill_color": "#333333"},
}


def find_button(page: LinkPage, button_id: str) -> Optional[ButtonLink]:
    return next((b for b in page.buttons if b.id == button_id), None)


def add_button(page: LinkPage, preset: SocialType) -> str:
    """Append a button with preset-derived defaults and return its id."""
    defaults = SOCIAL_PRESETS[preset]
    button = ButtonLink(
        social_type=preset,
        title=defaults["title"],
        fill_color=defaults["fill_color"],
    )
    page.buttons.append(button)
    logger.debug("button_added", page_id=page.id, button_id=button.id, preset=preset.value)
    return button.id


def update_button(
    page: LinkPage,
    button_id: str,
    patch: ButtonPatch,
) -> Optional[ButtonLink]:
    """Merge ``patch`` into the addressed button.

    An unknown ``button_id`` is a no-op and returns None. The editor can
    fire updates for a button that was just removed, so this is not an
    error.
    """
    button = find_button(page, button_id)
    if button is None:
        logger.debug("button_update_ignored", page_id=page.id, button_id=button_id)
        return None

    for field, value in patch.model_dump(exclude_unset=True).items():
        setattr(button, field, value)
    return button


def delete_button(page: LinkPage, button_id: str) -> bool:
    """Remove a button. Returns False if it was not present."""
    before = len(page.buttons)
    page.buttons = [b for b in page.buttons if b.id != button_id]
    return len(page.buttons) < before


def duplicate_button(page: LinkPage, button_id: str) -> Optional[str]:
    """Append a copy of a button under a fresh id."""
    button = find_button(page, button_id)
    if button is None:
        return None
    copy = button.model_copy(deep=True, update={"id": new_id()})
    page.buttons.append(copy)
    return copy.id


def reorder(page: LinkPage, from_index: int, to_index: int) -> None:
    """Move one button: extract at ``from_index``, reinsert at ``to_index``.

    Every button between the two positions shifts by one. This is not a
    swap: [A, B, C, D] with (0, 2) gives [B, C, A, D].
    """
    size = len(page.buttons)
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= index < size:
            raise ButtonIndexError(
                f"{name}={index} out of range for {size} buttons on page {page.id}"
            )

    button = page.buttons.pop(from_index)
    page.buttons.insert(to_index, button)


def set_rotator_slot(button: ButtonLink, index: int, url: str) -> None:
    """Overwrite one alternate-URL slot. URL syntax is not checked."""
    if not 0 <= index < ROTATOR_SLOTS:
        raise ButtonIndexError(f"rotator slot {index} out of range 0..{ROTATOR_SLOTS - 1}")
    button.rotator.alternate_urls[index] = url


def set_rotator_enabled(button: ButtonLink, enabled: bool) -> None:
    # Slots are kept as-is so re-enabling restores them
    button.rotator.enabled = enabled
