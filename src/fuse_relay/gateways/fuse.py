from __future__ import annotations

from typing import Optional

import httpx

from ..models import FuseSubmission
from .base import HttpGateway


class FuseGateway(HttpGateway):
    """Downstream aggregation endpoint; a 2xx means the record was committed."""

    name = "fuse"

    def __init__(
        self,
        base_url: str,
        *,
        submit_path: str = "/data",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.submit_path = submit_path

    async def submit(self, submission: FuseSubmission) -> bool:
        return await self._post_ok(self.submit_path, submission.to_json())
