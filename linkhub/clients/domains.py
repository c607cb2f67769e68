"""Domain service client — availability search and reservations."""

from __future__ import annotations

from typing import Any, Optional

import structlog

from linkhub.clients.base import ServiceClient
from linkhub.config import settings
from linkhub.errors import CollaboratorError, DomainConflictError
from linkhub.schemas.domain import ReservationType

logger = structlog.get_logger()


class DomainServiceClient(ServiceClient):
    service_name = "domain_service"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(base_url or settings.domain_api_url, timeout)

    async def search(self, query: str) -> Any:
        """Raw availability payload; shape checking is the caller's job."""
        resp = await self._request("GET", "/api/domains/search", params={"q": query})
        try:
            return resp.json()
        except ValueError as e:
            raise CollaboratorError(self.service_name, "search returned non-JSON body") from e

    async def submit_reservation(
        self,
        link_id: str,
        domain: str,
        reservation_type: ReservationType,
        credential: Optional[str] = None,
    ) -> None:
        """Check-and-set on the server. A rejection raises ``DomainConflictError``."""
        resp = await self._request(
            "POST",
            "/api/domains/request",
            json={
                "linkId": link_id,
                "domain": domain,
                "reservationType": reservation_type.value,
            },
            headers=self._auth(credential),
        )
        if not resp.is_success:
            message = self.error_message(resp)
            logger.info("reservation_rejected", link_id=link_id, domain=domain, error=message)
            raise DomainConflictError(message)

    async def cancel_reservation(self, link_id: str, credential: Optional[str] = None) -> None:
        resp = await self._request(
            "DELETE",
            f"/api/domains/reservation/{link_id}",
            headers=self._auth(credential),
        )
        if not resp.is_success:
            raise DomainConflictError(self.error_message(resp))
