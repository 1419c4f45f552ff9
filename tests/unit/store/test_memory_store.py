"""
Unit tests for the pending/done store contract (in-memory implementation).
"""

import asyncio

import pytest

from fuse_relay.models import RecordStatus
from fuse_relay.store import MemoryPendingStore


@pytest.mark.asyncio
async def test_insert_assigns_ids_and_pending_status(make_record):
    store = MemoryPendingStore()
    assert await store.insert(make_record(0)) == 1
    assert await store.insert(make_record(1)) == 1

    ids = [r.id for r in store.records]
    assert ids == [1, 2]
    assert all(r.status is RecordStatus.PENDING for r in store.records)


@pytest.mark.asyncio
async def test_empty_store_returns_none_and_zero():
    store = MemoryPendingStore()
    assert await store.oldest_pending() is None
    assert await store.count_pending() == 0


@pytest.mark.asyncio
async def test_oldest_pending_follows_capture_order(make_record):
    """R1 (t1) before R2 (t2 > t1), regardless of insertion order."""
    store = MemoryPendingStore()
    await store.insert(make_record(5, name="R2"))
    await store.insert(make_record(1, name="R1"))

    first = await store.oldest_pending()
    assert first.payload == {"name": "R1"}

    assert await store.mark_done(first) is True
    second = await store.oldest_pending()
    assert second.payload == {"name": "R2"}


@pytest.mark.asyncio
async def test_equal_capture_times_break_ties_by_id(make_record):
    store = MemoryPendingStore()
    await store.insert(make_record(0, name="a"))
    await store.insert(make_record(0, name="b"))

    assert (await store.oldest_pending()).payload == {"name": "a"}


@pytest.mark.asyncio
async def test_mark_done_is_one_way_and_idempotent(make_record):
    store = MemoryPendingStore()
    await store.insert(make_record(0))
    await store.insert(make_record(1))
    record = await store.oldest_pending()

    assert await store.count_pending() == 2
    assert await store.mark_done(record) is True
    assert await store.count_pending() == 1

    # second call reports False and leaves the count alone
    assert await store.mark_done(record) is False
    assert await store.count_pending() == 1
    assert store.records[0].status is RecordStatus.DONE


@pytest.mark.asyncio
async def test_mark_done_unknown_or_unsaved_record(make_record):
    store = MemoryPendingStore()
    await store.insert(make_record(0))

    assert await store.mark_done(make_record(3)) is False  # never stored, no id
    ghost = (await store.oldest_pending()).model_copy(update={"id": 999})
    assert await store.mark_done(ghost) is False
    assert await store.count_pending() == 1


@pytest.mark.asyncio
async def test_concurrent_inserts_and_reads_stay_consistent(make_record):
    store = MemoryPendingStore()

    async def producer():
        for i in range(50):
            await store.insert(make_record(i))
            await asyncio.sleep(0)

    async def consumer():
        done = 0
        while done < 50:
            record = await store.oldest_pending()
            if record is None:
                await asyncio.sleep(0)
                continue
            if await store.mark_done(record):
                done += 1

    await asyncio.wait_for(asyncio.gather(producer(), consumer()), timeout=5)
    assert await store.count_pending() == 0
    assert len(store.records) == 50
