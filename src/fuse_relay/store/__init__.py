"""
Pending/done record buffer between the OPC and Fuse sides.

Usage:
    from fuse_relay.store import PendingStore

    async with PendingStore({"dsn": "postgresql://..."}) as store:
        await store.insert(record)
        oldest = await store.oldest_pending()
"""

from .client import PendingStore, StoreConfig
from .memory import MemoryPendingStore

__all__ = ["PendingStore", "StoreConfig", "MemoryPendingStore"]
