from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional, TypedDict

import psycopg
from psycopg import sql as psql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from ..errors import map_db_error
from ..models import Record, RecordStatus
from . import sql as q


class StoreConfig(TypedDict, total=False):
    dsn: str
    app_name: str
    connect_timeout: float
    statement_timeout_ms: int
    pool_min: int
    pool_max: int


DEFAULTS: StoreConfig = {
    "app_name": "fuse_relay",
    "connect_timeout": 10.0,
    "pool_min": 1,
    "pool_max": 4,
}


class PendingStore:
    """PostgreSQL-backed pending/done buffer.

    Every operation is a single autocommitted statement, so each one is atomic
    on its own and concurrent schedulers see read-committed results. No lock
    is held across calls.
    """

    def __init__(self, cfg: StoreConfig, *, pool: Optional[AsyncConnectionPool] = None):
        self.cfg: StoreConfig = {**DEFAULTS, **(cfg or {})}
        if not self.cfg.get("dsn"):
            raise ValueError("dsn required")
        self.pool = pool or AsyncConnectionPool(
            conninfo=self.cfg["dsn"],
            min_size=self.cfg["pool_min"],
            max_size=self.cfg["pool_max"],
            timeout=self.cfg["connect_timeout"],
            kwargs={"autocommit": True},
            open=False,
        )
        self.app_name = self.cfg.get("app_name")
        self.statement_timeout_ms = self.cfg.get("statement_timeout_ms")

    async def open(self) -> None:
        try:
            await self.pool.open(wait=True, timeout=self.cfg["connect_timeout"])
        except psycopg.Error as e:
            raise map_db_error(e) from e

    async def aclose(self) -> None:
        await self.pool.close()

    async def __aenter__(self) -> "PendingStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @asynccontextmanager
    async def _conn(self):
        async with self.pool.connection() as conn:
            if self.app_name:
                await conn.execute(
                    psql.SQL("SET application_name = {}").format(psql.Literal(self.app_name))
                )
            if self.statement_timeout_ms:
                await conn.execute(
                    psql.SQL("SET statement_timeout = {}").format(
                        psql.Literal(int(self.statement_timeout_ms))
                    )
                )
            yield conn

    @staticmethod
    def _record(row: dict[str, Any]) -> Record:
        return Record(
            id=row["id"],
            captured_at=row["captured_at"],
            payload=row["payload"],
            status=RecordStatus(row["status"]),
        )

    # ---------- health ----------

    async def health(self) -> bool:
        try:
            async with self._conn() as conn:
                await conn.execute(q.HEALTH)
                return True
        except psycopg.Error as e:
            raise map_db_error(e) from e

    # ---------- writes ----------

    async def insert(self, record: Record) -> int:
        params = {"captured_at": record.captured_at, "payload": Jsonb(record.payload)}
        try:
            async with self._conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(q.INSERT_PENDING, params)
                    return max(cur.rowcount, 0)
        except psycopg.Error as e:
            raise map_db_error(e) from e

    async def mark_done(self, record: Record) -> bool:
        if record.id is None:
            return False
        try:
            async with self._conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(q.MARK_DONE, {"id": record.id})
                    return cur.rowcount == 1
        except psycopg.Error as e:
            raise map_db_error(e) from e

    # ---------- reads ----------

    async def oldest_pending(self) -> Optional[Record]:
        try:
            async with self._conn() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(q.OLDEST_PENDING)
                    row = await cur.fetchone()
                    return self._record(row) if row else None
        except psycopg.Error as e:
            raise map_db_error(e) from e

    async def count_pending(self) -> int:
        try:
            async with self._conn() as conn:
                async with conn.cursor() as cur:
                    await cur.execute(q.COUNT_PENDING)
                    row = await cur.fetchone()
                    return int(row[0]) if row else 0
        except psycopg.Error as e:
            raise map_db_error(e) from e
