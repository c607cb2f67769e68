"""Pending checkout store — Redis CRUD for orders awaiting payment."""

from typing import Optional

import redis.asyncio as redis
import structlog

from linkhub.config import settings
from linkhub.schemas.checkout import PendingCheckout

logger = structlog.get_logger()


class PendingCheckoutStore:
    """Remembers exactly which pages were priced while payment is handed off."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client
        self.ttl = settings.pending_checkout_ttl_seconds

    def _key(self, checkout_id: str) -> str:
        return f"checkout:{checkout_id}"

    async def get(self, checkout_id: str) -> Optional[PendingCheckout]:
        data = await self.redis.get(self._key(checkout_id))
        if data:
            return PendingCheckout.model_validate_json(data)
        return None

    async def save(self, checkout: PendingCheckout) -> None:
        await self.redis.setex(self._key(checkout.id), self.ttl, checkout.model_dump_json())
        logger.debug(
            "pending_checkout_saved",
            checkout_id=checkout.id,
            owner_id=checkout.owner_id,
            items=checkout.quote.item_count,
        )

    async def delete(self, checkout_id: str) -> None:
        await self.redis.delete(self._key(checkout_id))
