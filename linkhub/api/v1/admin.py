"""Admin API — domain request review (superadmin)."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from linkhub.api.deps import get_credential, get_workflow, require_admin
from linkhub.domains.workflow import DomainWorkflow
from linkhub.schemas.domain import DnsProbe, DomainRequest, DomainStatus

logger = structlog.get_logger()

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


class RejectBody(BaseModel):
    notes: Optional[str] = None


@router.get("/domain-requests")
async def list_domain_requests(
    status: Optional[DomainStatus] = Query(None, description="Filter by status"),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> dict:
    """List domain requests, newest first.

    Returns:
        {"requests": [...], "counts": {"pending", "active", "failed", "total"}}
    """
    requests, counts = await workflow.list_requests(status)
    return {
        "requests": [
            {**r.model_dump(mode="json"), "dns_probe": _probe_json(r.dns_probe)}
            for r in requests
        ],
        "counts": counts.model_dump(),
    }


@router.post("/domain-requests/{request_id}/test", response_model=DnsProbe)
async def test_dns(
    request_id: str,
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DnsProbe:
    return await workflow.test_dns(request_id, credential)


@router.post("/domain-requests/{request_id}/activate", response_model=DomainRequest)
async def activate_domain(
    request_id: str,
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainRequest:
    return await workflow.activate(request_id, credential)


@router.post("/domain-requests/{request_id}/reject", response_model=DomainRequest)
async def reject_domain(
    request_id: str,
    body: RejectBody,
    credential: Optional[str] = Depends(get_credential),
    workflow: DomainWorkflow = Depends(get_workflow),
) -> DomainRequest:
    return await workflow.reject(request_id, body.notes, credential)


def _probe_json(probe: Optional[DnsProbe]) -> Optional[dict]:
    return probe.model_dump() if probe else None
