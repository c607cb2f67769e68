"""Tests for the checkout orchestrator."""

import pytest

from linkhub.checkout.orchestrator import CheckoutOrchestrator
from linkhub.errors import (
    CollaboratorError,
    SlugConflictError,
    UnknownCheckoutError,
    UnknownPageError,
    ValidationError,
)
from linkhub.schemas.checkout import (
    CheckoutRequest,
    DomainQuoteRequest,
    PaymentResult,
    PaymentStatus,
    PendingCheckout,
)
from linkhub.schemas.domain import ReservationType
from linkhub.schemas.link_page import LifecycleState
from tests.conftest import make_page


async def _seed_drafts(draft_store, *pages):
    for page in pages:
        await draft_store.save(page)
    return pages


class TestQuote:
    @pytest.mark.asyncio
    async def test_quote_all_drafts_with_coupon(self, orchestrator: CheckoutOrchestrator,
                                                draft_store):
        await _seed_drafts(draft_store, make_page(rotator=True), make_page())

        quote = await orchestrator.quote_pages("user-1", discount_code="pro20")

        assert (quote.subtotal, quote.discount_amount, quote.total) == (15000, 3000, 12000)

    @pytest.mark.asyncio
    async def test_invalid_coupon_prices_without_discount(
        self, orchestrator: CheckoutOrchestrator, draft_store
    ):
        await _seed_drafts(draft_store, make_page())

        quote = await orchestrator.quote_pages("user-1", discount_code="BOGUS")

        assert quote.discount_amount == 0
        assert quote.total == quote.subtotal == 6000
        assert quote.discount_code is None

    @pytest.mark.asyncio
    async def test_quote_subset(self, orchestrator: CheckoutOrchestrator, draft_store):
        a, b = await _seed_drafts(draft_store, make_page(), make_page(rotator=True))

        quote = await orchestrator.quote_pages("user-1", [b.id])

        assert quote.item_ids == [b.id]
        assert quote.subtotal == 9000

    @pytest.mark.asyncio
    async def test_quote_unknown_page(self, orchestrator: CheckoutOrchestrator):
        with pytest.raises(UnknownPageError):
            await orchestrator.quote_pages("user-1", ["nope"])

    @pytest.mark.asyncio
    async def test_domain_quote(self, orchestrator: CheckoutOrchestrator, draft_store):
        a, b = await _seed_drafts(draft_store, make_page(), make_page())

        quote = await orchestrator.quote_domains(
            "user-1",
            DomainQuoteRequest(
                actions={a.id: ReservationType.BUY_NEW, b.id: None},
                discount_code="WELCOME10",
            ),
        )

        assert quote.subtotal == 7499
        assert quote.discount_amount == 750
        assert quote.total == 6749


class TestCheckout:
    @pytest.mark.asyncio
    async def test_paid_promotes_priced_set(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store
    ):
        a, b = await _seed_drafts(draft_store, make_page(rotator=True), make_page())
        payment_client.submit.return_value = PaymentResult(status=PaymentStatus.PAID)

        result = await orchestrator.checkout(
            "user-1", CheckoutRequest(discount_code="PRO20"), credential="tok"
        )

        payment_client.submit.assert_awaited_once_with([a.id, b.id], 12000, "PRO20", "tok")
        assert result.status == PaymentStatus.PAID
        assert set(result.promoted) == {a.id, b.id}
        partition = await store.partition("user-1")
        assert partition.drafts == []
        assert all(p.lifecycle_state == LifecycleState.ACTIVE for p in partition.active)

    @pytest.mark.asyncio
    async def test_not_paid_promotes_nothing(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(status=PaymentStatus.NOT_PAID)

        result = await orchestrator.checkout("user-1", CheckoutRequest())

        assert result.promoted == []
        assert len((await store.partition("user-1")).drafts) == 1

    @pytest.mark.asyncio
    async def test_invalid_coupon_blocks_payment(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client
    ):
        await _seed_drafts(draft_store, make_page())

        with pytest.raises(ValidationError):
            await orchestrator.checkout("user-1", CheckoutRequest(discount_code="NOPE"))
        payment_client.submit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_selection(self, orchestrator: CheckoutOrchestrator, payment_client):
        with pytest.raises(ValidationError):
            await orchestrator.checkout("user-1", CheckoutRequest())
        payment_client.submit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_payment_transport_failure_changes_nothing(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.side_effect = CollaboratorError("payments", "timeout")

        with pytest.raises(CollaboratorError):
            await orchestrator.checkout("user-1", CheckoutRequest())

        assert len((await store.partition("user-1")).drafts) == 1


class TestHandoff:
    @pytest.mark.asyncio
    async def test_pending_then_paid_promotes_original_selection(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store
    ):
        a, = await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1", redirect_url="https://pay"
        )

        result = await orchestrator.checkout("user-1", CheckoutRequest())
        assert result.status == PaymentStatus.PENDING
        assert result.handoff_token == "hand-1"
        assert result.promoted == []

        # a draft created after pricing is not part of the order
        await draft_store.save(make_page(name="Later"))
        payment_client.status.return_value = PaymentResult(
            status=PaymentStatus.PAID, payment_id="pay-1"
        )

        confirmed = await orchestrator.confirm("user-1", result.checkout_id, credential="tok")

        payment_client.status.assert_awaited_once_with("hand-1", None, "tok")
        assert confirmed.status == PaymentStatus.PAID
        assert confirmed.promoted == [a.id]
        partition = await store.partition("user-1")
        assert [p.id for p in partition.active] == [a.id]
        assert len(partition.drafts) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reported", [PaymentStatus.PENDING, PaymentStatus.NOT_PAID])
    async def test_confirm_without_paid_status_promotes_nothing(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store,
        active_repo, reported
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1"
        )
        result = await orchestrator.checkout("user-1", CheckoutRequest())
        payment_client.status.return_value = PaymentResult(status=reported)

        confirmed = await orchestrator.confirm("user-1", result.checkout_id)

        assert confirmed.status == reported
        assert confirmed.promoted == []
        active_repo.insert_many.assert_not_awaited()
        assert (await store.partition("user-1")).active == []

    @pytest.mark.asyncio
    async def test_still_pending_keeps_order(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client
    ):
        a, = await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1"
        )
        result = await orchestrator.checkout("user-1", CheckoutRequest())

        payment_client.status.return_value = PaymentResult(status=PaymentStatus.PENDING)
        await orchestrator.confirm("user-1", result.checkout_id)

        payment_client.status.return_value = PaymentResult(status=PaymentStatus.PAID)
        confirmed = await orchestrator.confirm("user-1", result.checkout_id)

        assert confirmed.promoted == [a.id]

    @pytest.mark.asyncio
    async def test_confirm_not_paid_discards_order(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1"
        )
        result = await orchestrator.checkout("user-1", CheckoutRequest())
        payment_client.status.return_value = PaymentResult(status=PaymentStatus.NOT_PAID)

        await orchestrator.confirm("user-1", result.checkout_id)

        with pytest.raises(UnknownCheckoutError):
            await orchestrator.confirm("user-1", result.checkout_id)

    @pytest.mark.asyncio
    async def test_confirm_for_other_owner(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1"
        )
        result = await orchestrator.checkout("user-1", CheckoutRequest())

        with pytest.raises(UnknownCheckoutError):
            await orchestrator.confirm("user-2", result.checkout_id)
        payment_client.status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_draft_fails_promotion(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store
    ):
        a, b = await _seed_drafts(draft_store, make_page(), make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PENDING, handoff_token="hand-1"
        )
        result = await orchestrator.checkout("user-1", CheckoutRequest())
        await store.delete_page("user-1", b.id)
        payment_client.status.return_value = PaymentResult(status=PaymentStatus.PAID)

        with pytest.raises(UnknownPageError):
            await orchestrator.confirm("user-1", result.checkout_id)

        assert (await store.partition("user-1")).active == []


class TestPaidPromotionFailure:
    @pytest.mark.asyncio
    async def test_paid_order_survives_failed_promotion(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, store,
        active_repo, fake_redis
    ):
        a, = await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PAID, payment_id="pay-1"
        )
        active_repo.insert_many.side_effect = SlugConflictError("my-page-abc123")

        with pytest.raises(SlugConflictError):
            await orchestrator.checkout("user-1", CheckoutRequest())

        key = next(k for k in fake_redis.values if k.startswith("checkout:"))
        stored = PendingCheckout.model_validate_json(fake_redis.values[key])
        assert stored.payment_id == "pay-1"
        assert stored.quote.item_ids == [a.id]

        active_repo.insert_many.side_effect = active_repo._insert_many
        payment_client.status.return_value = PaymentResult(
            status=PaymentStatus.PAID, payment_id="pay-1"
        )
        confirmed = await orchestrator.confirm("user-1", stored.id)

        payment_client.status.assert_awaited_once_with(None, "pay-1", None)
        assert confirmed.promoted == [a.id]
        assert key not in fake_redis.values

    @pytest.mark.asyncio
    async def test_successful_paid_checkout_leaves_no_order(
        self, orchestrator: CheckoutOrchestrator, draft_store, payment_client, fake_redis
    ):
        await _seed_drafts(draft_store, make_page())
        payment_client.submit.return_value = PaymentResult(
            status=PaymentStatus.PAID, payment_id="pay-1"
        )

        await orchestrator.checkout("user-1", CheckoutRequest())

        assert not any(k.startswith("checkout:") for k in fake_redis.values)
