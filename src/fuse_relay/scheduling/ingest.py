from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from ..flag import AckToggle
from ..metrics import RELAY_ACKS_TOTAL
from ..parsing import parse_source_payload
from ..types import FlagStore, PendingStoreLike, SourceGateway
from .base import Clock, PeriodicTask, Waiter


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IngestScheduler(PeriodicTask):
    """Pull records from the controller into the pending store.

    One cycle is the handshake poll -> fetch -> store -> ack. The ack value is
    a toggle: the negation of the last value the controller confirmed. It is
    persisted only after the controller accepts it, so a failed ack is resent
    with the same value. A stuck ack does not block the next poll.
    """

    name = "ingest"

    def __init__(
        self,
        interval,
        *,
        source: SourceGateway,
        store: PendingStoreLike,
        flag: FlagStore,
        clock: Clock = time.monotonic,
        waiter: Optional[Waiter] = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(interval, clock=clock, waiter=waiter)
        self._source = source
        self._store = store
        self._toggle = AckToggle(flag)
        self._now = now

    async def run_cycle(self) -> str:
        captured_at = self._now()

        if not await self._source.poll_new_record_available():
            self.log.info("No record available at the controller")
            return "idle"
        self.log.info("New record available at the controller")

        raw = await self._source.fetch_record()
        record = parse_source_payload(raw, captured_at)

        inserted = await self._store.insert(record)
        if inserted <= 0:
            # the controller keeps offering the record; it is re-read next tick
            self.log.error("Record was not saved to the store (0 rows inserted)")
            return "insert_failed"
        self.log.info("Record saved to the store")
        self.log.debug(f"{inserted} row(s) inserted: {record.payload}")

        return await self._acknowledge()

    async def _acknowledge(self) -> str:
        candidate = self._toggle.candidate()
        if await self._source.send_ack(candidate):
            self._toggle.confirm(candidate)
            RELAY_ACKS_TOTAL.labels("success").inc()
            self.log.debug(f"Write confirmation sent. Value sent: {candidate}")
            return "ok"
        RELAY_ACKS_TOTAL.labels("failure").inc()
        self.log.error(f"Failed to send write confirmation to the controller. Attempted value: {candidate}")
        return "ack_failed"
