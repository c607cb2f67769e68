"""Domains API — availability search and reservations for the page owner."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from linkhub.api.deps import get_credential, get_owner_id, get_workflow
from linkhub.domains.workflow import DomainWorkflow
from linkhub.schemas.domain import DomainRequest, DomainSearchResult

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/domains", tags=["domains"])


class DomainBody(BaseModel):
    domain: str


@router.get("/search", response_model=DomainSearchResult)
async def search_domain(
    q: str = Query(..., description="Domain candidate as typed by the user"),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainSearchResult:
    return await workflow.search(q)


@router.post("/{page_id}/reserve", response_model=DomainRequest)
async def reserve_domain(
    page_id: str,
    body: DomainBody,
    owner_id: str = Depends(get_owner_id),
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainRequest:
    """Search, then reserve if and only if the domain came back available."""
    result = await workflow.search(body.domain)
    return await workflow.reserve(owner_id, page_id, result, credential)


@router.post("/{page_id}/connect", response_model=DomainRequest)
async def connect_domain(
    page_id: str,
    body: DomainBody,
    owner_id: str = Depends(get_owner_id),
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainRequest:
    return await workflow.connect_own(owner_id, page_id, body.domain, credential)


@router.delete("/{page_id}/reservation", response_model=DomainRequest)
async def cancel_reservation(
    page_id: str,
    owner_id: str = Depends(get_owner_id),
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainRequest:
    return await workflow.cancel(owner_id, page_id, credential)
