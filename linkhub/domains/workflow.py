"""Domain reservation workflow — search, reserve, connect and admin review.

Each action checks the transition first, then makes at most one
collaborator call, and persists the new state only after that call is
confirmed. A collaborator failure propagates and the stored request is
left exactly as it was.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from cachetools import TTLCache
from pydantic import ValidationError as PydanticValidationError

from linkhub.clients.domain_admin import DomainAdminClient
from linkhub.clients.domains import DomainServiceClient
from linkhub.config import settings
from linkhub.domains.normalize import normalize_domain, prepare_domain, validate_domain
from linkhub.domains.state_machine import DomainEvent, Rejected, transition
from linkhub.errors import CollaboratorError, DomainValidationError, InvalidTransitionError
from linkhub.pages.store import LinkPageStore
from linkhub.pricing.engine import format_registrar_price
from linkhub.schemas.domain import (
    AvailabilityResponse,
    DnsProbe,
    DomainRequest,
    DomainRequestCounts,
    DomainSearchResult,
    DomainStatus,
    ReservationType,
    SearchOutcome,
)

logger = structlog.get_logger()

# DNS probes are advisory; cached for the admin screen, never persisted
_probe_cache: TTLCache[str, DnsProbe] = TTLCache(
    maxsize=1024, ttl=settings.dns_probe_cache_ttl_seconds
)


def clear_probe_cache() -> None:
    _probe_cache.clear()


def classify_search(
    query: str, domain: str, suffix_added: bool, payload: Any
) -> DomainSearchResult:
    """Map a raw availability payload onto one of the four search outcomes."""
    base = {"query": query, "domain": domain, "suffix_added": suffix_added}
    try:
        response = AvailabilityResponse.model_validate(payload)
    except PydanticValidationError:
        return DomainSearchResult(
            **base,
            outcome=SearchOutcome.CONNECTION_ERROR,
            message="Unexpected response from the domain service",
        )

    if not response.success or not response.result:
        return DomainSearchResult(**base, outcome=SearchOutcome.TAKEN)

    entry = next((e for e in response.result if e.name.lower() == domain), response.result[0])
    if entry.reserved:
        return DomainSearchResult(
            **base,
            outcome=SearchOutcome.RESERVED_BY_OTHER,
            message="This domain is already reserved by another user",
        )
    if entry.available:
        return DomainSearchResult(
            **base,
            outcome=SearchOutcome.AVAILABLE,
            price=entry.price,
            currency=entry.currency,
            display_price=(
                format_registrar_price(entry.price, entry.currency)
                if entry.price is not None
                else None
            ),
        )
    return DomainSearchResult(**base, outcome=SearchOutcome.TAKEN)


class DomainWorkflow:
    def __init__(
        self,
        store: LinkPageStore,
        domain_client: DomainServiceClient,
        admin_client: DomainAdminClient,
    ):
        self.store = store
        self.domain_client = domain_client
        self.admin_client = admin_client

    # ─── User side ───────────────────────────────────────────────────

    async def search(self, candidate: str) -> DomainSearchResult:
        """Normalize, validate, then ask the availability service.

        Validation failures raise before any network call. Transport
        failures come back as a ``connection_error`` outcome. Never
        touches any stored request.
        """
        normalized = normalize_domain(candidate)
        validate_domain(normalized)

        try:
            payload = await self.domain_client.search(normalized.value)
        except CollaboratorError as e:
            logger.warning("domain_search_failed", domain=normalized.value, error=e.message)
            return DomainSearchResult(
                query=candidate,
                domain=normalized.value,
                suffix_added=normalized.suffix_added,
                outcome=SearchOutcome.CONNECTION_ERROR,
                message="Could not reach the domain service. Try again.",
            )

        result = classify_search(candidate, normalized.value, normalized.suffix_added, payload)
        logger.info("domain_searched", domain=result.domain, outcome=result.outcome.value)
        return result

    async def reserve(
        self,
        owner_id: str,
        page_id: str,
        search_result: DomainSearchResult,
        credential: Optional[str] = None,
    ) -> DomainRequest:
        """Reserve a domain that a search just reported as available."""
        current = await self._current(owner_id, page_id)
        target = self._check(current, DomainEvent.RESERVE)

        if search_result.outcome != SearchOutcome.AVAILABLE:
            raise DomainValidationError(
                "Only an available domain can be reserved", code="not_available", field="domain"
            )
        domain = prepare_domain(search_result.domain).value

        await self.domain_client.submit_reservation(
            page_id, domain, ReservationType.BUY_NEW, credential
        )
        return await self._record_request(
            owner_id, current, target, domain, ReservationType.BUY_NEW
        )

    async def connect_own(
        self,
        owner_id: str,
        page_id: str,
        candidate: str,
        credential: Optional[str] = None,
    ) -> DomainRequest:
        """Link a domain the user already owns. No availability search."""
        current = await self._current(owner_id, page_id)
        target = self._check(current, DomainEvent.CONNECT_OWN)
        domain = prepare_domain(candidate).value

        await self.domain_client.submit_reservation(
            page_id, domain, ReservationType.CONNECT_OWN, credential
        )
        return await self._record_request(
            owner_id, current, target, domain, ReservationType.CONNECT_OWN
        )

    async def cancel(
        self, owner_id: str, page_id: str, credential: Optional[str] = None
    ) -> DomainRequest:
        current = await self._current(owner_id, page_id)
        target = self._check(current, DomainEvent.CANCEL)
        if target == current.status:
            return current

        await self.domain_client.cancel_reservation(page_id, credential)
        cleared = DomainRequest(id=page_id, status=target)
        await self.store.save_domain_request(owner_id, cleared)
        _probe_cache.pop(page_id, None)

        logger.info(
            "domain_reservation_cancelled", page_id=page_id, domain=current.requested_domain
        )
        return cleared

    # ─── Admin side ──────────────────────────────────────────────────

    async def test_dns(self, request_id: str, credential: Optional[str] = None) -> DnsProbe:
        """Run the advisory DNS probe. The result never gates a transition."""
        probe = await self.admin_client.test_dns(request_id, credential)
        _probe_cache[request_id] = probe
        logger.info("dns_probe_completed", request_id=request_id, configured=probe.configured)
        return probe

    def cached_probe(self, request_id: str) -> Optional[DnsProbe]:
        return _probe_cache.get(request_id)

    async def activate(self, request_id: str, credential: Optional[str] = None) -> DomainRequest:
        owner_id, current = await self._admin_current(request_id)
        target = self._check(current, DomainEvent.ACTIVATE)
        if target == current.status:
            logger.info("domain_activate_noop", request_id=request_id)
            return current

        await self.admin_client.activate(request_id, credential)
        updated = current.model_copy(
            update={"status": target, "activated_at": datetime.now(timezone.utc)}
        )
        await self.store.save_domain_request(owner_id, updated)
        await self.store.bind_domain(request_id, updated.requested_domain)

        logger.info("domain_activated", request_id=request_id, domain=updated.requested_domain)
        return self._with_probe(updated)

    async def reject(
        self,
        request_id: str,
        notes: Optional[str] = None,
        credential: Optional[str] = None,
    ) -> DomainRequest:
        owner_id, current = await self._admin_current(request_id)
        target = self._check(current, DomainEvent.REJECT)
        if target == current.status:
            logger.info("domain_reject_noop", request_id=request_id)
            return current

        await self.admin_client.reject(request_id, notes, credential)
        updated = current.model_copy(
            update={"status": target, "notes": notes, "activated_at": None}
        )
        await self.store.save_domain_request(owner_id, updated)
        if current.status == DomainStatus.ACTIVE:
            # Revoked: the page falls back to its default slug
            await self.store.bind_domain(request_id, None)

        logger.info(
            "domain_rejected",
            request_id=request_id,
            revoked=current.status == DomainStatus.ACTIVE,
            notes=notes,
        )
        return self._with_probe(updated)

    async def list_requests(
        self, status: Optional[DomainStatus] = None
    ) -> tuple[list[DomainRequest], DomainRequestCounts]:
        """Admin listing with per-status counts and any cached probes."""
        repo = self.store.domain_requests
        requests = [self._with_probe(r) for r in await repo.list(status)]
        return requests, await repo.counts()

    # ─── Helpers ─────────────────────────────────────────────────────

    async def _current(self, owner_id: str, page_id: str) -> DomainRequest:
        page = await self.store.require_page(owner_id, page_id)
        return page.domain or DomainRequest(id=page_id)

    async def _admin_current(self, request_id: str) -> tuple[str, DomainRequest]:
        current = await self.store.get_domain_request(request_id)
        if current is None:
            # Nothing requested yet; the transition check rejects it
            return "", DomainRequest(id=request_id)
        owner_id = await self.store.domain_request_owner(request_id)
        return owner_id or "", current

    @staticmethod
    def _check(current: DomainRequest, event: DomainEvent) -> DomainStatus:
        outcome = transition(current.status, event)
        if isinstance(outcome, Rejected):
            logger.info(
                "domain_transition_rejected",
                request_id=current.id,
                state=current.status.value,
                event=event.value,
            )
            raise InvalidTransitionError(outcome.reason)
        return outcome

    async def _record_request(
        self,
        owner_id: str,
        current: DomainRequest,
        target: DomainStatus,
        domain: str,
        reservation_type: ReservationType,
    ) -> DomainRequest:
        updated = current.model_copy(
            update={
                "requested_domain": domain,
                "reservation_type": reservation_type,
                "status": target,
                "requested_at": datetime.now(timezone.utc),
                "activated_at": None,
                "notes": None,
            }
        )
        await self.store.save_domain_request(owner_id, updated)
        logger.info(
            "domain_reserved",
            page_id=current.id,
            domain=domain,
            reservation_type=reservation_type.value,
        )
        return updated

    def _with_probe(self, request: DomainRequest) -> DomainRequest:
        probe = _probe_cache.get(request.id)
        if probe is None:
            return request
        return request.model_copy(update={"dns_probe": probe})
