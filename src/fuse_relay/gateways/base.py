from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from ..errors import ConnectivityError


class HttpGateway:
    """Shared httpx plumbing for the OPC and Fuse gateways.

    No retries here: a failed call simply fails the current scheduler cycle
    and the next tick tries again.
    """

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            )
            logger.debug(f"{self.name} gateway started ({self.base_url})")

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.name} gateway stopped")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        """POST and require a 2xx; anything else is a ConnectivityError."""
        if self._client is None:
            await self.start()
        try:
            resp = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise ConnectivityError(f"{self.name} {path}: {type(e).__name__}: {e}") from e
        if not resp.is_success:
            raise ConnectivityError(f"{self.name} {path}: HTTP {resp.status_code} {resp.text[:200]}")
        return resp

    async def _post_ok(self, path: str, payload: dict[str, Any]) -> bool:
        """POST where the caller only needs accepted / not accepted."""
        try:
            await self._post(path, payload)
        except ConnectivityError as e:
            logger.error(str(e))
            return False
        return True
