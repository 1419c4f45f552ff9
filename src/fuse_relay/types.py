"""
Collaborator contracts for the schedulers.

Schedulers depend only on these protocols, so tests can substitute in-memory
implementations for the database, the flag file and both HTTP APIs.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from .models import FuseSubmission, Record


@runtime_checkable
class PendingStoreLike(Protocol):
    """Durable ordered buffer of records tagged Pending or Done.

    Connectivity failures raise ConnectivityError; ``None`` and ``0`` are
    valid empty results, not errors.
    """

    async def insert(self, record: Record) -> int:
        """Append with status Pending; return the number of rows persisted."""
        ...

    async def oldest_pending(self) -> Optional[Record]:
        """Oldest Pending record by capture order, or None."""
        ...

    async def mark_done(self, record: Record) -> bool:
        """Pending -> Done for exactly one record; False if missing or already Done."""
        ...

    async def count_pending(self) -> int:
        ...

    async def health(self) -> bool:
        ...


@runtime_checkable
class SourceGateway(Protocol):
    """Upstream controller facade (OPC)."""

    async def poll_new_record_available(self) -> bool:
        ...

    async def fetch_record(self) -> str:
        ...

    async def send_ack(self, value: bool) -> bool:
        ...

    async def report_backlog(self, delayed: bool) -> bool:
        ...


@runtime_checkable
class SinkGateway(Protocol):
    """Downstream aggregation endpoint (Fuse)."""

    async def submit(self, submission: FuseSubmission) -> bool:
        ...


@runtime_checkable
class FlagStore(Protocol):
    """Single durable boolean under a fixed namespace and key."""

    def get(self) -> bool:
        ...

    def set(self, value: bool) -> None:
        ...
