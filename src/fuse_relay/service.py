"""
Process wiring: settings -> store, gateways, flag -> schedulers.

Startup is fail-fast: configuration is validated and the database is probed
before any scheduler starts.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import psycopg
from loguru import logger
from psycopg.conninfo import conninfo_to_dict

from .config import Settings
from .errors import ConnectivityError
from .flag import ACK_KEY, ACK_NAMESPACE, FileFlagStore
from .gateways import FuseGateway, OpcGateway
from .scheduling import IngestScheduler, PeriodicTask, RelayScheduler
from .store import PendingStore


def describe_dsn(dsn: str) -> str:
    """Database host for logging, without credentials."""
    try:
        params = conninfo_to_dict(dsn)
    except psycopg.ProgrammingError:
        return "<unparseable dsn>"
    return params.get("host") or "<local>"


class RelayService:
    """Owns the collaborators and runs the selected schedulers until stopped."""

    def __init__(self, settings: Settings, *, ingest: bool = True, relay: bool = True) -> None:
        if not (ingest or relay):
            raise ValueError("at least one scheduler must be enabled")
        self.settings = settings
        self.store = PendingStore(
            {"dsn": settings.DATABASE_URL, "connect_timeout": settings.DB_CONNECT_TIMEOUT}
        )
        self.opc = OpcGateway(
            settings.OPC_API_URL,
            host_name=settings.HOST_NAME,
            server_name=settings.SERVER_NAME,
            new_record_path=settings.OPC_NEW_RECORD_PATH,
            fetch_path=settings.OPC_FETCH_PATH,
            ack_path=settings.OPC_ACK_PATH,
            backlog_path=settings.OPC_BACKLOG_PATH,
            timeout=settings.HTTP_TIMEOUT,
        )
        self.fuse: Optional[FuseGateway] = None
        self.schedulers: list[PeriodicTask] = []

        if ingest:
            self.schedulers.append(
                IngestScheduler(
                    settings.SCHEDULER_INTERVAL,
                    source=self.opc,
                    store=self.store,
                    flag=FileFlagStore(settings.FLAG_FILE, ACK_NAMESPACE, ACK_KEY),
                )
            )
        if relay:
            self.fuse = FuseGateway(
                settings.FUSE_API_URL,
                submit_path=settings.FUSE_SUBMIT_PATH,
                timeout=settings.HTTP_TIMEOUT,
            )
            self.schedulers.append(
                RelayScheduler(
                    settings.SCHEDULER_INTERVAL,
                    store=self.store,
                    sink=self.fuse,
                    source=self.opc,
                    pending_limit=settings.PENDING_LIMIT,
                    host_name=settings.HOST_NAME,
                    server_name=settings.SERVER_NAME,
                )
            )

    async def open(self) -> None:
        logger.info(f"Connecting to database: {describe_dsn(self.settings.DATABASE_URL)}")
        await self.store.open()
        if not await self.store.health():
            raise ConnectivityError("could not establish a database connection")
        await self.opc.start()
        if self.fuse is not None:
            await self.fuse.start()
        logger.info(f"Interval between requests: {self.settings.SCHEDULER_INTERVAL}")

    async def close(self) -> None:
        if self.fuse is not None:
            await self.fuse.stop()
        await self.opc.stop()
        await self.store.aclose()

    def request_stop(self) -> None:
        logger.info("Shutdown requested")
        for s in self.schedulers:
            s.request_stop()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops: Ctrl+C arrives as KeyboardInterrupt instead
                pass

    async def run(self) -> None:
        """Open collaborators, run every scheduler until stopped, then clean up."""
        try:
            await self.open()
        except Exception:
            await self.close()
            raise
        try:
            self._install_signal_handlers()
            tasks = [s.start() for s in self.schedulers]
            await asyncio.gather(*tasks)
        finally:
            for s in self.schedulers:
                await s.stop()
            await self.close()
            logger.info("Relay service stopped")
