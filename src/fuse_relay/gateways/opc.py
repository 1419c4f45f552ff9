from __future__ import annotations

from typing import Any, Optional

import httpx

from ..parsing import parse_new_record_flag
from .base import HttpGateway


class OpcGateway(HttpGateway):
    """Upstream controller facade.

    Every request names the OPC host and server it targets; the JSON schema of
    the answers is owned by the facade.
    """

    name = "opc"

    def __init__(
        self,
        base_url: str,
        *,
        host_name: str,
        server_name: str,
        new_record_path: str = "/new-record",
        fetch_path: str = "/pier-data",
        ack_path: str = "/write-confirmation",
        backlog_path: str = "/gpv-delay",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.host_name = host_name
        self.server_name = server_name
        self.new_record_path = new_record_path
        self.fetch_path = fetch_path
        self.ack_path = ack_path
        self.backlog_path = backlog_path

    def _body(self, **extra: Any) -> dict[str, Any]:
        return {"hostName": self.host_name, "serverName": self.server_name, **extra}

    async def poll_new_record_available(self) -> bool:
        resp = await self._post(self.new_record_path, self._body())
        return parse_new_record_flag(resp.text)

    async def fetch_record(self) -> str:
        resp = await self._post(self.fetch_path, self._body())
        return resp.text

    async def send_ack(self, value: bool) -> bool:
        return await self._post_ok(self.ack_path, self._body(value=bool(value)))

    async def report_backlog(self, delayed: bool) -> bool:
        return await self._post_ok(self.backlog_path, self._body(value=bool(delayed)))
