from __future__ import annotations

import asyncio
import itertools
from typing import Optional

from ..models import Record, RecordStatus


class MemoryPendingStore:
    """In-memory PendingStore with the same contract as the Postgres one.

    Ids come from a monotonic counter. An asyncio.Lock makes each operation
    atomic with respect to the other scheduler's calls.
    """

    def __init__(self) -> None:
        self._rows: dict[int, Record] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    @property
    def records(self) -> list[Record]:
        """Snapshot of every stored record in insertion order."""
        return list(self._rows.values())

    async def health(self) -> bool:
        return True

    async def insert(self, record: Record) -> int:
        async with self._lock:
            rid = next(self._ids)
            self._rows[rid] = record.model_copy(update={"id": rid, "status": RecordStatus.PENDING})
            return 1

    async def oldest_pending(self) -> Optional[Record]:
        async with self._lock:
            pending = [r for r in self._rows.values() if r.status is RecordStatus.PENDING]
            if not pending:
                return None
            return min(pending, key=lambda r: (r.captured_at, r.id))

    async def mark_done(self, record: Record) -> bool:
        async with self._lock:
            current = self._rows.get(record.id) if record.id is not None else None
            if current is None or current.status is not RecordStatus.PENDING:
                return False
            self._rows[record.id] = current.model_copy(update={"status": RecordStatus.DONE})
            return True

    async def count_pending(self) -> int:
        async with self._lock:
            return sum(1 for r in self._rows.values() if r.status is RecordStatus.PENDING)
