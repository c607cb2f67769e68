"""Pages API — link page and button editing for the signed-in owner."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from linkhub.api.deps import get_owner_id, get_store
from linkhub.pages.store import LinkPageStore
from linkhub.schemas.link_page import (
    ButtonLink,
    ButtonPatch,
    LinkPage,
    LinkPageSeed,
    LinkPageUpdate,
    PagePartition,
    SocialType,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/pages", tags=["pages"])


class AddButtonBody(BaseModel):
    preset: SocialType = SocialType.CUSTOM


class ReorderBody(BaseModel):
    from_index: int
    to_index: int


class RotatorSlotBody(BaseModel):
    url: str = ""


class RotatorToggleBody(BaseModel):
    enabled: bool


@router.get("", response_model=PagePartition)
async def list_pages(
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> PagePartition:
    """All of the owner's pages, split into drafts and active pages."""
    return await store.partition(owner_id)


@router.post("", response_model=LinkPage, status_code=201)
async def create_page(
    seed: Optional[LinkPageSeed] = None,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> LinkPage:
    return await store.create_draft(owner_id, seed)


@router.get("/{page_id}", response_model=LinkPage)
async def get_page(
    page_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> LinkPage:
    page = await store.get_page(owner_id, page_id)
    if page is None:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


@router.patch("/{page_id}", response_model=LinkPage)
async def update_page(
    page_id: str,
    patch: LinkPageUpdate,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> LinkPage:
    return await store.update_page(owner_id, page_id, patch)


@router.delete("/{page_id}", status_code=204)
async def delete_page(
    page_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> None:
    if not await store.delete_page(owner_id, page_id):
        raise HTTPException(status_code=404, detail="Page not found")


# ─── Buttons ─────────────────────────────────────────────────────────


@router.post("/{page_id}/buttons", status_code=201)
async def add_button(
    page_id: str,
    body: AddButtonBody,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> dict:
    button_id = await store.add_button(owner_id, page_id, body.preset)
    return {"id": button_id}


@router.patch("/{page_id}/buttons/{button_id}")
async def update_button(
    page_id: str,
    button_id: str,
    patch: ButtonPatch,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> Optional[ButtonLink]:
    """Returns null when the button no longer exists; nothing is changed."""
    return await store.update_button(owner_id, page_id, button_id, patch)


@router.delete("/{page_id}/buttons/{button_id}", status_code=204)
async def delete_button(
    page_id: str,
    button_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> None:
    if not await store.delete_button(owner_id, page_id, button_id):
        raise HTTPException(status_code=404, detail="Button not found")


@router.post("/{page_id}/buttons/{button_id}/duplicate", status_code=201)
async def duplicate_button(
    page_id: str,
    button_id: str,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> dict:
    new_id = await store.duplicate_button(owner_id, page_id, button_id)
    if new_id is None:
        raise HTTPException(status_code=404, detail="Button not found")
    return {"id": new_id}


@router.post("/{page_id}/buttons/reorder", response_model=LinkPage)
async def reorder_buttons(
    page_id: str,
    body: ReorderBody,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> LinkPage:
    return await store.reorder_buttons(owner_id, page_id, body.from_index, body.to_index)


@router.put("/{page_id}/buttons/{button_id}/rotator/{index}", response_model=ButtonLink)
async def set_rotator_slot(
    page_id: str,
    button_id: str,
    index: int,
    body: RotatorSlotBody,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> ButtonLink:
    button = await store.set_rotator_slot(owner_id, page_id, button_id, index, body.url)
    if button is None:
        raise HTTPException(status_code=404, detail="Button not found")
    return button


@router.put("/{page_id}/buttons/{button_id}/rotator", response_model=ButtonLink)
async def set_rotator_enabled(
    page_id: str,
    button_id: str,
    body: RotatorToggleBody,
    owner_id: str = Depends(get_owner_id),
    store: LinkPageStore = Depends(get_store),
) -> ButtonLink:
    button = await store.set_rotator_enabled(owner_id, page_id, button_id, body.enabled)
    if button is None:
        raise HTTPException(status_code=404, detail="Button not found")
    return button
