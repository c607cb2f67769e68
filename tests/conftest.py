"""Test fixtures and configuration."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from linkhub.checkout.orchestrator import CheckoutOrchestrator
from linkhub.checkout.pending import PendingCheckoutStore
from linkhub.domains.workflow import DomainWorkflow, clear_probe_cache
from linkhub.errors import SlugConflictError
from linkhub.pages.drafts import DraftStore
from linkhub.pages.store import LinkPageStore
from linkhub.pricing.coupons import CouponValidator
from linkhub.schemas.domain import DomainRequest, DomainRequestCounts, DomainStatus
from linkhub.schemas.link_page import (
    ButtonLink,
    LifecycleState,
    LinkPage,
    Rotator,
    SocialType,
)


class FakeRedis:
    """In-memory stand-in for the handful of Redis commands we use."""

    def __init__(self):
        self.hashes: dict[str, dict[str, str]] = {}
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = value

    async def hdel(self, key, *fields):
        bucket = self.hashes.get(key, {})
        for field in fields:
            bucket.pop(field, None)

    async def get(self, key):
        return self.values.get(key)

    async def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self.values.pop(key, None)


class FakeActiveRepo:
    """Active tier kept in a dict, with the unique-slug rule enforced."""

    def __init__(self):
        self.pages: dict[str, LinkPage] = {}
        self.insert_many = AsyncMock(side_effect=self._insert_many)

    async def get(self, owner_id, page_id):
        page = self.pages.get(page_id)
        if page and page.owner_id == owner_id:
            return page.model_copy(deep=True)
        return None

    async def list(self, owner_id):
        return [p.model_copy(deep=True) for p in self.pages.values() if p.owner_id == owner_id]

    async def taken_slugs(self, slugs):
        return {p.slug for p in self.pages.values() if p.slug in slugs}

    async def _insert_many(self, pages):
        existing = {p.slug for p in self.pages.values()}
        if any(p.slug in existing for p in pages):
            raise SlugConflictError(pages[0].slug)
        for page in pages:
            self.pages[page.id] = page.model_copy(deep=True, update={"domain": None})

    async def save(self, page):
        self.pages[page.id] = page.model_copy(deep=True, update={"domain": None})

    async def bind_domain(self, page_id, domain):
        page = self.pages.get(page_id)
        if page is None:
            return False
        page.custom_domain = domain
        return True

    async def delete(self, owner_id, page_id):
        page = self.pages.get(page_id)
        if page and page.owner_id == owner_id:
            del self.pages[page_id]
            return True
        return False


class FakeDomainRequestRepo:
    def __init__(self):
        self.requests: dict[str, DomainRequest] = {}
        self.owners: dict[str, str] = {}

    async def get(self, request_id):
        request = self.requests.get(request_id)
        return request.model_copy() if request else None

    async def owner_of(self, request_id):
        return self.owners.get(request_id)

    async def get_many(self, request_ids):
        return {rid: self.requests[rid].model_copy() for rid in request_ids if rid in self.requests}

    async def save(self, owner_id, request):
        self.requests[request.id] = request.model_copy(update={"dns_probe": None})
        self.owners.setdefault(request.id, owner_id)

    async def delete(self, request_id):
        self.requests.pop(request_id, None)
        self.owners.pop(request_id, None)

    async def list(self, status=None):
        items = [r for r in self.requests.values() if r.status != DomainStatus.NONE]
        if status:
            items = [r for r in items if r.status == status]
        return sorted(items, key=lambda r: r.requested_at or datetime.min, reverse=True)

    async def counts(self):
        items = [r for r in self.requests.values() if r.status != DomainStatus.NONE]
        by = {s: sum(1 for r in items if r.status == s) for s in DomainStatus}
        return DomainRequestCounts(
            pending=by[DomainStatus.PENDING],
            active=by[DomainStatus.ACTIVE],
            failed=by[DomainStatus.FAILED],
            total=len(items),
        )


class FakeCode:
    def __init__(self, code, percent_off, is_active=True, expires_at=None):
        self.code = code
        self.percent_off = percent_off
        self.is_active = is_active
        self.expires_at = expires_at


class FakeCodeRepo:
    def __init__(self, codes):
        self.codes = {c.code: c for c in codes}

    async def find(self, code: str) -> Optional[FakeCode]:
        return self.codes.get(code)


@pytest.fixture(autouse=True)
def _reset_probe_cache():
    clear_probe_cache()
    yield
    clear_probe_cache()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def draft_store(fake_redis):
    return DraftStore(fake_redis)


@pytest.fixture
def active_repo():
    return FakeActiveRepo()


@pytest.fixture
def domain_repo():
    return FakeDomainRequestRepo()


@pytest.fixture
def store(draft_store, active_repo, domain_repo):
    return LinkPageStore(draft_store, active_repo, domain_repo)


@pytest.fixture
def code_repo():
    return FakeCodeRepo([FakeCode("PRO20", 20), FakeCode("WELCOME10", 10)])


@pytest.fixture
def coupons(code_repo):
    return CouponValidator(code_repo)


@pytest.fixture
def domain_client():
    client = AsyncMock()
    client.search = AsyncMock(
        return_value={
            "success": True,
            "result": [
                {"name": "mybrand.com", "available": True, "price": 12000000, "currency": "USD"}
            ],
        }
    )
    client.submit_reservation = AsyncMock(return_value=None)
    client.cancel_reservation = AsyncMock(return_value=None)
    return client


@pytest.fixture
def admin_client():
    client = AsyncMock()
    client.activate = AsyncMock(return_value=None)
    client.reject = AsyncMock(return_value=None)
    return client


@pytest.fixture
def workflow(store, domain_client, admin_client):
    return DomainWorkflow(store, domain_client, admin_client)


@pytest.fixture
def payment_client():
    return AsyncMock()


@pytest.fixture
def orchestrator(store, coupons, payment_client, fake_redis):
    return CheckoutOrchestrator(store, coupons, payment_client, PendingCheckoutStore(fake_redis))


def make_page(
    owner_id: str = "user-1",
    name: str = "My Page",
    rotator: bool = False,
    state: LifecycleState = LifecycleState.DRAFT,
) -> LinkPage:
    button = ButtonLink(
        social_type=SocialType.MESSAGING_CHANNEL,
        title="Telegram",
        target_url="https://t.me/me",
        rotator=Rotator(enabled=rotator),
    )
    return LinkPage(owner_id=owner_id, display_name=name, lifecycle_state=state, buttons=[button])


@pytest.fixture
def page_factory():
    return make_page
