"""Admin-side domain collaborator — DNS probe, activate, reject."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from linkhub.clients.base import ServiceClient
from linkhub.config import settings
from linkhub.errors import CollaboratorError, ConflictError
from linkhub.schemas.domain import DnsProbe


class DomainAdminClient(ServiceClient):
    service_name = "domain_admin"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(base_url or settings.dns_api_url, timeout)

    async def test_dns(self, request_id: str, credential: Optional[str] = None) -> DnsProbe:
        resp = await self._request(
            "POST",
            f"/api/admin/domain-requests/{request_id}/test",
            json={"requestId": request_id},
            headers=self._auth(credential),
        )
        if not resp.is_success:
            raise ConflictError(self.error_message(resp))
        try:
            return DnsProbe.model_validate(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise CollaboratorError(self.service_name, "malformed DNS probe response") from e

    async def activate(self, request_id: str, credential: Optional[str] = None) -> None:
        await self._admin_action(request_id, "activate", {"requestId": request_id}, credential)

    async def reject(
        self,
        request_id: str,
        notes: Optional[str] = None,
        credential: Optional[str] = None,
    ) -> None:
        body = {"requestId": request_id}
        if notes:
            body["notes"] = notes
        await self._admin_action(request_id, "reject", body, credential)

    async def _admin_action(
        self, request_id: str, action: str, body: dict, credential: Optional[str]
    ) -> None:
        resp = await self._request(
            "POST",
            f"/api/admin/domain-requests/{request_id}/{action}",
            json=body,
            headers=self._auth(credential),
        )
        if not resp.is_success:
            raise ConflictError(self.error_message(resp))
