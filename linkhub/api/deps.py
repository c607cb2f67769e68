"""FastAPI dependencies — caller identity and per-request service wiring."""

from __future__ import annotations

import hmac
from typing import Optional

import redis.asyncio as redis
import structlog
from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from linkhub.checkout.orchestrator import CheckoutOrchestrator
from linkhub.checkout.pending import PendingCheckoutStore
from linkhub.clients.domain_admin import DomainAdminClient
from linkhub.clients.domains import DomainServiceClient
from linkhub.clients.payments import PaymentClient
from linkhub.config import settings
from linkhub.database import get_db
from linkhub.domains.workflow import DomainWorkflow
from linkhub.pages.drafts import DraftStore
from linkhub.pages.store import LinkPageStore
from linkhub.pricing.coupons import CouponValidator
from linkhub.redis_client import get_redis
from linkhub.repositories.discount_code import DiscountCodeRepository
from linkhub.repositories.domain_request import DomainRequestRepository
from linkhub.repositories.link_page import ActivePageRepository

logger = structlog.get_logger()

_domain_client: Optional[DomainServiceClient] = None
_admin_client: Optional[DomainAdminClient] = None
_payment_client: Optional[PaymentClient] = None


# ─── Identity ────────────────────────────────────────────────────────


async def get_owner_id(x_user_id: str = Header(...)) -> str:
    """The signed-in user, as asserted by the auth gateway in front of us."""
    if not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user id")
    return x_user_id.strip()


async def get_credential(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Bearer token forwarded as-is to collaborators."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    if not x_admin_token or not hmac.compare_digest(x_admin_token, settings.admin_secret_key):
        logger.warning("admin_auth_failed")
        raise HTTPException(status_code=401, detail="Admin token required")


# ─── Collaborators (one client per process) ─────────────────────────


def get_domain_client() -> DomainServiceClient:
    global _domain_client
    if _domain_client is None:
        _domain_client = DomainServiceClient()
    return _domain_client


def get_admin_client() -> DomainAdminClient:
    global _admin_client
    if _admin_client is None:
        _admin_client = DomainAdminClient()
    return _admin_client


def get_payment_client() -> PaymentClient:
    global _payment_client
    if _payment_client is None:
        _payment_client = PaymentClient()
    return _payment_client


async def close_clients() -> None:
    global _domain_client, _admin_client, _payment_client
    for client in (_domain_client, _admin_client, _payment_client):
        if client is not None:
            await client.close()
    _domain_client = _admin_client = _payment_client = None


# ─── Services ────────────────────────────────────────────────────────


async def get_store(
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
) -> LinkPageStore:
    return LinkPageStore(
        drafts=DraftStore(redis_client),
        active=ActivePageRepository(db),
        domain_requests=DomainRequestRepository(db),
    )


async def get_coupons(db: AsyncSession = Depends(get_db)) -> CouponValidator:
    return CouponValidator(DiscountCodeRepository(db))


async def get_workflow(
    store: LinkPageStore = Depends(get_store),
    domain_client: DomainServiceClient = Depends(get_domain_client),
    admin_client: DomainAdminClient = Depends(get_admin_client),
) -> DomainWorkflow:
    return DomainWorkflow(store, domain_client, admin_client)


async def get_orchestrator(
    store: LinkPageStore = Depends(get_store),
    coupons: CouponValidator = Depends(get_coupons),
    payments: PaymentClient = Depends(get_payment_client),
    redis_client: redis.Redis = Depends(get_redis),
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(store, coupons, payments, PendingCheckoutStore(redis_client))
