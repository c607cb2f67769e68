"""Tests for the HTTP collaborator clients."""

import json

import httpx
import pytest
import respx

from linkhub.clients.domain_admin import DomainAdminClient
from linkhub.clients.domains import DomainServiceClient
from linkhub.clients.payments import PaymentClient
from linkhub.errors import CollaboratorError, ConflictError, DomainConflictError
from linkhub.schemas.checkout import PaymentStatus
from linkhub.schemas.domain import ReservationType

BASE = "http://collab.test"


class TestDomainServiceClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_search_returns_raw_payload(self):
        payload = {"success": True, "result": [{"name": "mybrand.com", "available": True}]}
        route = respx.get(f"{BASE}/api/domains/search").mock(
            return_value=httpx.Response(200, json=payload)
        )
        client = DomainServiceClient(BASE)

        assert await client.search("mybrand.com") == payload
        assert route.calls.last.request.url.params["q"] == "mybrand.com"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_timeout_is_collaborator_error(self):
        respx.get(f"{BASE}/api/domains/search").mock(side_effect=httpx.ConnectTimeout("slow"))
        client = DomainServiceClient(BASE)

        with pytest.raises(CollaboratorError) as exc_info:
            await client.search("mybrand.com")
        assert exc_info.value.retryable
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_search_server_error(self):
        respx.get(f"{BASE}/api/domains/search").mock(return_value=httpx.Response(502))
        client = DomainServiceClient(BASE)

        with pytest.raises(CollaboratorError):
            await client.search("mybrand.com")
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_reservation_body_and_bearer(self):
        route = respx.post(f"{BASE}/api/domains/request").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        client = DomainServiceClient(BASE)

        await client.submit_reservation("page-1", "mybrand.com", ReservationType.BUY_NEW, "tok")

        request = route.calls.last.request
        assert json.loads(request.content) == {
            "linkId": "page-1",
            "domain": "mybrand.com",
            "reservationType": "buy_new",
        }
        assert request.headers["Authorization"] == "Bearer tok"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_reservation_conflict_message_verbatim(self):
        respx.post(f"{BASE}/api/domains/request").mock(
            return_value=httpx.Response(409, json={"error": "Domain already reserved"})
        )
        client = DomainServiceClient(BASE)

        with pytest.raises(DomainConflictError) as exc_info:
            await client.submit_reservation("page-1", "mybrand.com", ReservationType.BUY_NEW)
        assert exc_info.value.message == "Domain already reserved"
        await client.close()


class TestDomainAdminClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_dns_probe(self):
        respx.post(f"{BASE}/api/admin/domain-requests/page-1/test").mock(
            return_value=httpx.Response(
                200, json={"configured": True, "message": "ok", "addresses": ["1.2.3.4"]}
            )
        )
        client = DomainAdminClient(BASE)

        probe = await client.test_dns("page-1")

        assert probe.configured is True
        assert probe.addresses == ["1.2.3.4"]
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_reject_sends_notes(self):
        route = respx.post(f"{BASE}/api/admin/domain-requests/page-1/reject").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        client = DomainAdminClient(BASE)

        await client.reject("page-1", "domain mismatch")

        assert json.loads(route.calls.last.request.content) == {
            "requestId": "page-1",
            "notes": "domain mismatch",
        }
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_activate_rejected(self):
        respx.post(f"{BASE}/api/admin/domain-requests/page-1/activate").mock(
            return_value=httpx.Response(400, json={"error": "Request not found"})
        )
        client = DomainAdminClient(BASE)

        with pytest.raises(ConflictError, match="Request not found"):
            await client.activate("page-1")
        await client.close()


class TestPaymentClient:
    @pytest.mark.asyncio
    @respx.mock
    async def test_paid(self):
        route = respx.post(f"{BASE}/api/payments/checkout").mock(
            return_value=httpx.Response(200, json={"status": "paid", "paymentId": "pay-1"})
        )
        client = PaymentClient(BASE)

        result = await client.submit(["a", "b"], 12000, "PRO20")

        assert result.status == PaymentStatus.PAID
        assert result.payment_id == "pay-1"
        assert json.loads(route.calls.last.request.content) == {
            "selection": ["a", "b"],
            "amount": 12000,
            "discountCode": "PRO20",
        }
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_handoff(self):
        respx.post(f"{BASE}/api/payments/checkout").mock(
            return_value=httpx.Response(
                200,
                json={"status": "pending", "handoffToken": "h-1", "redirectUrl": "https://pay"},
            )
        )
        client = PaymentClient(BASE)

        result = await client.submit(["a"], 6000)

        assert result.status == PaymentStatus.PENDING
        assert result.handoff_token == "h-1"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_response(self):
        respx.post(f"{BASE}/api/payments/checkout").mock(
            return_value=httpx.Response(200, json={"unexpected": True})
        )
        client = PaymentClient(BASE)

        with pytest.raises(CollaboratorError):
            await client.submit(["a"], 6000)
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_status_lookup(self):
        route = respx.get(f"{BASE}/api/payments/status").mock(
            return_value=httpx.Response(200, json={"status": "paid", "paymentId": "pay-1"})
        )
        client = PaymentClient(BASE)

        result = await client.status(handoff_token="h-1", credential="tok")

        assert result.status == PaymentStatus.PAID
        assert route.calls.last.request.url.params["handoffToken"] == "h-1"
        assert route.calls.last.request.headers["Authorization"] == "Bearer tok"
        await client.close()

    @pytest.mark.asyncio
    async def test_status_needs_a_reference(self):
        client = PaymentClient(BASE)

        with pytest.raises(ConflictError):
            await client.status()
        await client.close()
