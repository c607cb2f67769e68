"""Shared httpx plumbing for external collaborators."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from linkhub.config import settings
from linkhub.errors import CollaboratorError

logger = structlog.get_logger()


class ServiceClient:
    """Lazily created ``httpx.AsyncClient`` with transport-error mapping.

    Network failures, timeouts and 5xx responses raise
    ``CollaboratorError``. Other responses go back to the caller, which
    decides what a 4xx means for its contract.
    """

    service_name = "service"

    def __init__(self, base_url: str, timeout: Optional[float] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or settings.collaborator_timeout_seconds
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    @staticmethod
    def _auth(credential: Optional[str]) -> dict[str, str]:
        return {"Authorization": f"Bearer {credential}"} if credential else {}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        client = await self._get_client()
        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(
                "collaborator_transport_error",
                service=self.service_name,
                path=path,
                error=str(e) or e.__class__.__name__,
            )
            raise CollaboratorError(self.service_name, str(e) or e.__class__.__name__) from e

        if resp.status_code >= 500:
            logger.warning(
                "collaborator_server_error",
                service=self.service_name,
                path=path,
                status=resp.status_code,
            )
            raise CollaboratorError(self.service_name, f"HTTP {resp.status_code}")
        return resp

    @staticmethod
    def error_message(resp: httpx.Response) -> str:
        """The ``{"error": ...}`` body of a rejection, or the raw text."""
        try:
            body = resp.json()
        except ValueError:
            return resp.text or f"HTTP {resp.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP {resp.status_code}"

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
