"""Payment collaborator client."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from linkhub.clients.base import ServiceClient
from linkhub.config import settings
from linkhub.errors import CollaboratorError, ConflictError
from linkhub.schemas.checkout import PaymentResult

logger = structlog.get_logger()


class PaymentClient(ServiceClient):
    service_name = "payments"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(base_url or settings.payment_api_url, timeout)

    async def submit(
        self,
        selection: list[str],
        amount: int,
        discount_code: Optional[str] = None,
        credential: Optional[str] = None,
    ) -> PaymentResult:
        """Charge a stored method (``paid``) or get a handoff (``pending``)."""
        body: dict = {"selection": selection, "amount": amount}
        if discount_code:
            body["discountCode"] = discount_code

        resp = await self._request(
            "POST", "/api/payments/checkout", json=body, headers=self._auth(credential)
        )
        result = self._parse(resp)
        logger.info("payment_submitted", items=len(selection), amount=amount, status=result.status.value)
        return result

    async def status(
        self,
        handoff_token: Optional[str] = None,
        payment_id: Optional[str] = None,
        credential: Optional[str] = None,
    ) -> PaymentResult:
        """Ask where a payment stands. The answer is the only proof of ``paid``."""
        params = {}
        if payment_id:
            params["paymentId"] = payment_id
        if handoff_token:
            params["handoffToken"] = handoff_token
        if not params:
            raise ConflictError("Payment reference is missing")

        resp = await self._request(
            "GET", "/api/payments/status", params=params, headers=self._auth(credential)
        )
        result = self._parse(resp)
        logger.info("payment_status_checked", payment_id=result.payment_id, status=result.status.value)
        return result

    def _parse(self, resp: httpx.Response) -> PaymentResult:
        if not resp.is_success:
            raise ConflictError(self.error_message(resp))

        try:
            data = resp.json()
            return PaymentResult(
                status=data["status"],
                payment_id=data.get("paymentId"),
                handoff_token=data.get("handoffToken"),
                redirect_url=data.get("redirectUrl"),
            )
        except (ValueError, KeyError, TypeError, PydanticValidationError) as e:
            raise CollaboratorError(self.service_name, "malformed payment response") from e
