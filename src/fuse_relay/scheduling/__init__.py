"""Ingest and relay schedulers.

Two independent periodic loops that share nothing in-process and coordinate
only through the pending store and the acknowledgment flag:

- IngestScheduler: OPC facade -> pending store (poll, fetch, store, ack)
- RelayScheduler: pending store -> Fuse, plus backlog reporting to OPC
"""

from .backlog import BacklogState, backlog_delayed
from .base import PeriodicTask
from .ingest import IngestScheduler
from .relay import RelayScheduler

__all__ = [
    "BacklogState",
    "backlog_delayed",
    "PeriodicTask",
    "IngestScheduler",
    "RelayScheduler",
]
