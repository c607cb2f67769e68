"""Link Page Store — two-tier repository behind a single read API.

Draft pages live in the offline Redis tier (``DraftStore``); paid pages
live in the authoritative database tier (``ActivePageRepository``).
Reads merge both by id and the database copy wins. That overlap only
happens when a promotion committed but the draft copy was not cleared.

Every mutating method persists before it returns (write-through).
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

import structlog

from linkhub.errors import SlugConflictError, UnknownPageError
from linkhub.pages import buttons as button_model
from linkhub.pages.drafts import DraftStore
from linkhub.repositories.domain_request import DomainRequestRepository
from linkhub.repositories.link_page import ActivePageRepository
from linkhub.schemas.domain import DomainRequest, DomainStatus
from linkhub.schemas.link_page import (
    ButtonLink,
    ButtonPatch,
    LifecycleState,
    LinkPage,
    LinkPageSeed,
    LinkPageUpdate,
    PagePartition,
    SocialType,
)

logger = structlog.get_logger()

_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_REQUIRED_PAGE_FIELDS = frozenset({"display_name", "profile_name", "template", "theme"})


def merge_tiers(local: Iterable[LinkPage], remote: Iterable[LinkPage]) -> list[LinkPage]:
    """De-duplicate by id, remote first. Order: remote pages, then drafts."""
    merged: dict[str, LinkPage] = {}
    for page in remote:
        merged[page.id] = page
    for page in local:
        merged.setdefault(page.id, page)
    return list(merged.values())


def partition_by_lifecycle(pages: Iterable[LinkPage]) -> tuple[list[LinkPage], list[LinkPage]]:
    """Pure projection into ``(drafts, active)``."""
    drafts: list[LinkPage] = []
    active: list[LinkPage] = []
    for page in pages:
        (drafts if page.lifecycle_state == LifecycleState.DRAFT else active).append(page)
    return drafts, active


def has_feature(page: LinkPage, predicate: Callable[[ButtonLink], bool]) -> bool:
    """True if any button on the page satisfies ``predicate``."""
    return any(predicate(button) for button in page.buttons)


def has_rotator_surcharge(page: LinkPage) -> bool:
    """Pricing predicate: a messaging-channel button with its rotator on."""
    return has_feature(page, lambda button: button.has_enabled_rotator)


def make_slug(name: str) -> str:
    """``"My Brand"`` → ``"my-brand-x1y2z3"``."""
    base = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-") or "link"
    suffix = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(6))
    return f"{base[:80]}-{suffix}"


class LinkPageStore:
    def __init__(
        self,
        drafts: DraftStore,
        active: ActivePageRepository,
        domain_requests: DomainRequestRepository,
    ):
        self.drafts = drafts
        self.active = active
        self.domain_requests = domain_requests

    # ─── Reads ───────────────────────────────────────────────────────

    async def list_pages(self, owner_id: str) -> list[LinkPage]:
        remote = await self.active.list(owner_id)
        local = await self.drafts.list(owner_id)

        remote_ids = {p.id for p in remote}
        stale = [p.id for p in local if p.id in remote_ids]
        if stale:
            # Promotion committed but the draft copy survived; clear it now
            await self.drafts.delete(owner_id, *stale)
            logger.info("stale_drafts_cleared", owner_id=owner_id, page_ids=stale)

        pages = merge_tiers(local, remote)
        requests = await self.domain_requests.get_many([p.id for p in pages])
        for page in pages:
            page.domain = requests.get(page.id)
        return pages

    async def get_page(self, owner_id: str, page_id: str) -> Optional[LinkPage]:
        page = await self.active.get(owner_id, page_id)
        if page is None:
            page = await self.drafts.get(owner_id, page_id)
        if page is not None:
            page.domain = await self.domain_requests.get(page.id)
        return page

    async def require_page(self, owner_id: str, page_id: str) -> LinkPage:
        page = await self.get_page(owner_id, page_id)
        if page is None:
            raise UnknownPageError([page_id])
        return page

    async def partition(self, owner_id: str) -> PagePartition:
        drafts, active = partition_by_lifecycle(await self.list_pages(owner_id))
        return PagePartition(drafts=drafts, active=active)

    # ─── Page mutations ──────────────────────────────────────────────

    async def save_page(self, page: LinkPage) -> None:
        """Write a page back to whichever tier owns it."""
        page.updated_at = datetime.now(timezone.utc)
        if page.is_draft:
            await self.drafts.save(page)
        else:
            await self.active.save(page)

    async def create_draft(self, owner_id: str, seed: Optional[LinkPageSeed] = None) -> LinkPage:
        existing = await self.drafts.list(owner_id)
        values = seed.model_dump(exclude_none=True) if seed else {}
        values.setdefault("display_name", f"Link {len(existing) + 1}")

        page = LinkPage(owner_id=owner_id, lifecycle_state=LifecycleState.DRAFT, **values)
        await self.save_page(page)
        logger.info("draft_created", owner_id=owner_id, page_id=page.id)
        return page

    async def update_page(self, owner_id: str, page_id: str, patch: LinkPageUpdate) -> LinkPage:
        page = await self.require_page(owner_id, page_id)
        for field, value in patch.model_dump(exclude_unset=True).items():
            if value is None and field in _REQUIRED_PAGE_FIELDS:
                continue
            setattr(page, field, getattr(patch, field))
        await self.save_page(page)
        return page

    async def delete_page(self, owner_id: str, page_id: str) -> bool:
        """Hard delete from both tiers. The user has already confirmed."""
        removed_remote = await self.active.delete(owner_id, page_id)
        draft = await self.drafts.get(owner_id, page_id)
        if draft is not None:
            await self.drafts.delete(owner_id, page_id)
        if not removed_remote and draft is None:
            return False

        await self.domain_requests.delete(page_id)
        logger.info("page_deleted", owner_id=owner_id, page_id=page_id)
        return True

    async def promote_to_active(self, owner_id: str, page_ids: Iterable[str]) -> list[LinkPage]:
        """Flip exactly these drafts to active after confirmed payment.

        All ids are re-validated against the current draft set first. If
        any is missing the call fails and nothing changes.
        """
        requested = list(dict.fromkeys(page_ids))
        drafts = {p.id: p for p in await self.drafts.list(owner_id)}
        remote_ids = {p.id for p in await self.active.list(owner_id)}

        missing = [pid for pid in requested if pid not in drafts or pid in remote_ids]
        if missing:
            logger.error("promotion_refused", owner_id=owner_id, missing=missing)
            raise UnknownPageError(missing)

        requests = await self.domain_requests.get_many(requested)
        promoted: list[LinkPage] = []
        for page_id in requested:
            page = drafts[page_id].model_copy(deep=True)
            page.lifecycle_state = LifecycleState.ACTIVE
            page.slug = make_slug(page.display_name)
            page.updated_at = datetime.now(timezone.utc)

            domain = requests.get(page_id)
            if domain is not None and domain.status == DomainStatus.ACTIVE:
                page.custom_domain = domain.requested_domain
            page.domain = domain
            promoted.append(page)

        slugs = [p.slug for p in promoted]
        taken = await self.active.taken_slugs(slugs)
        if taken or len(set(slugs)) != len(slugs):
            raise SlugConflictError(", ".join(sorted(taken) or slugs))

        # Authoritative insert first; the draft copies are cleared after.
        # A crash in between leaves duplicates that reads resolve.
        await self.active.insert_many(promoted)
        await self.drafts.delete(owner_id, *requested)

        logger.info("pages_promoted", owner_id=owner_id, page_ids=requested)
        return promoted

    # ─── Button operations ───────────────────────────────────────────

    async def add_button(self, owner_id: str, page_id: str, preset: SocialType) -> str:
        page = await self.require_page(owner_id, page_id)
        button_id = button_model.add_button(page, preset)
        await self.save_page(page)
        return button_id

    async def update_button(
        self, owner_id: str, page_id: str, button_id: str, patch: ButtonPatch
    ) -> Optional[ButtonLink]:
        """Unknown button ids are ignored (see ``buttons.update_button``)."""
        page = await self.require_page(owner_id, page_id)
        button = button_model.update_button(page, button_id, patch)
        if button is not None:
            await self.save_page(page)
        return button

    async def delete_button(self, owner_id: str, page_id: str, button_id: str) -> bool:
        page = await self.require_page(owner_id, page_id)
        removed = button_model.delete_button(page, button_id)
        if removed:
            await self.save_page(page)
        return removed

    async def duplicate_button(self, owner_id: str, page_id: str, button_id: str) -> Optional[str]:
        page = await self.require_page(owner_id, page_id)
        new_id = button_model.duplicate_button(page, button_id)
        if new_id is not None:
            await self.save_page(page)
        return new_id

    async def reorder_buttons(
        self, owner_id: str, page_id: str, from_index: int, to_index: int
    ) -> LinkPage:
        page = await self.require_page(owner_id, page_id)
        button_model.reorder(page, from_index, to_index)
        await self.save_page(page)
        return page

    async def set_rotator_slot(
        self, owner_id: str, page_id: str, button_id: str, index: int, url: str
    ) -> Optional[ButtonLink]:
        page = await self.require_page(owner_id, page_id)
        button = button_model.find_button(page, button_id)
        if button is None:
            return None
        button_model.set_rotator_slot(button, index, url)
        await self.save_page(page)
        return button

    async def set_rotator_enabled(
        self, owner_id: str, page_id: str, button_id: str, enabled: bool
    ) -> Optional[ButtonLink]:
        page = await self.require_page(owner_id, page_id)
        button = button_model.find_button(page, button_id)
        if button is None:
            return None
        button_model.set_rotator_enabled(button, enabled)
        await self.save_page(page)
        return button

    # ─── Domain binding (used by the domain workflow) ────────────────

    async def get_domain_request(self, page_id: str) -> Optional[DomainRequest]:
        return await self.domain_requests.get(page_id)

    async def save_domain_request(self, owner_id: str, request: DomainRequest) -> None:
        await self.domain_requests.save(owner_id, request)

    async def domain_request_owner(self, page_id: str) -> Optional[str]:
        return await self.domain_requests.owner_of(page_id)

    async def bind_domain(self, page_id: str, domain: Optional[str]) -> bool:
        """Route ``domain`` to the page (or unbind with None).

        Only active pages are routable; for a draft this is a no-op and
        the binding is applied when the page is promoted.
        """
        bound = await self.active.bind_domain(page_id, domain)
        logger.info("domain_binding_updated", page_id=page_id, domain=domain, bound=bound)
        return bound
