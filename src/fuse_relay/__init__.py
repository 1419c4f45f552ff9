"""
OPC -> Fuse store-and-forward relay.

Polls an industrial controller through its OPC HTTP facade, buffers each
record in a durable pending/done table, and forwards the buffered records to
the Fuse aggregation API while reporting the backlog back to the controller.

Usage:
    from fuse_relay import IngestScheduler, RelayScheduler, MemoryPendingStore

    store = MemoryPendingStore()
    ingest = IngestScheduler("00:00:30", source=opc, store=store, flag=flag)
    relay = RelayScheduler("00:00:30", store=store, sink=fuse, source=opc,
                           pending_limit=10, host_name="clp-01", server_name="OPC.Server")
"""

from .errors import ConfigurationError, ConnectivityError, DataError, RelayError
from .flag import AckToggle, FileFlagStore, MemoryFlagStore
from .models import FuseSubmission, Record, RecordStatus
from .scheduling import BacklogState, IngestScheduler, RelayScheduler
from .store import MemoryPendingStore, PendingStore

__version__ = "1.0.0"
__all__ = [
    "RelayError",
    "ConfigurationError",
    "ConnectivityError",
    "DataError",
    "AckToggle",
    "FileFlagStore",
    "MemoryFlagStore",
    "Record",
    "RecordStatus",
    "FuseSubmission",
    "BacklogState",
    "IngestScheduler",
    "RelayScheduler",
    "PendingStore",
    "MemoryPendingStore",
]
