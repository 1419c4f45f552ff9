from __future__ import annotations

import time
from typing import Optional

from ..errors import ConfigurationError
from ..metrics import RELAY_BACKLOG_DELAYED, RELAY_PENDING_RECORDS, RELAY_SUBMISSIONS_TOTAL
from ..parsing import to_submission
from ..types import PendingStoreLike, SinkGateway, SourceGateway
from .backlog import BacklogState
from .base import Clock, PeriodicTask, Waiter


class RelayScheduler(PeriodicTask):
    """Drain the pending store into Fuse and report the backlog upstream.

    At most one record (the oldest Pending) is relayed per tick, which bounds
    the downstream load to one submission per interval. A record whose submit
    fails stays Pending and is picked again next tick. The backlog check runs
    every tick whatever the drain step did.
    """

    name = "relay"

    def __init__(
        self,
        interval,
        *,
        store: PendingStoreLike,
        sink: SinkGateway,
        source: SourceGateway,
        pending_limit: int,
        host_name: str,
        server_name: str,
        clock: Clock = time.monotonic,
        waiter: Optional[Waiter] = None,
    ) -> None:
        super().__init__(interval, clock=clock, waiter=waiter)
        if isinstance(pending_limit, bool) or not isinstance(pending_limit, int) or pending_limit < 1:
            raise ConfigurationError(f"pending limit must be a positive integer, got {pending_limit!r}")
        self._store = store
        self._sink = sink
        self._source = source
        self.pending_limit = pending_limit
        self.host_name = host_name
        self.server_name = server_name

    async def run_cycle(self) -> str:
        try:
            outcome = await self._drain()
        except Exception as exc:
            outcome = self._failure_outcome("Drain", exc)
        await self._check_backlog()
        return outcome

    async def _drain(self) -> str:
        record = await self._store.oldest_pending()
        if record is None:
            self.log.info("No pending records to sync with Fuse")
            return "idle"

        submission = to_submission(record, host_name=self.host_name, server_name=self.server_name)
        self.log.info(f"Record {record.id} to be sent to Fuse (captured {record.captured_at.isoformat()})")
        self.log.debug(f"Fuse request body: {submission.to_json()}")

        if not await self._sink.submit(submission):
            RELAY_SUBMISSIONS_TOTAL.labels("failure").inc()
            self.log.warning(f"Fuse did not accept record {record.id}; it stays pending")
            return "submit_failed"
        RELAY_SUBMISSIONS_TOTAL.labels("success").inc()

        if await self._store.mark_done(record):
            self.log.info(f"Record {record.id} marked as sent (done)")
            return "ok"
        self.log.warning(f"Record {record.id} was missing or already done when marking it sent")
        return "mark_failed"

    async def _check_backlog(self) -> BacklogState:
        state = BacklogState(pending_count=await self._store.count_pending(), limit=self.pending_limit)
        RELAY_PENDING_RECORDS.set(state.pending_count)
        RELAY_BACKLOG_DELAYED.set(1 if state.delayed else 0)
        if state.delayed:
            self.log.info(
                f"{state.pending_count} records pending for Fuse "
                f"(limit {state.limit}, {state.utilization:.0%})"
            )
        if not await self._source.report_backlog(state.delayed):
            self.log.error(f"Failed to report backlog state (delayed={state.delayed}) to the controller")
        return state
