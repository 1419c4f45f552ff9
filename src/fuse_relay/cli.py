import asyncio
import subprocess
import sys
from pathlib import Path

import typer
from loguru import logger

from fuse_relay.config import Settings, get_settings
from fuse_relay.errors import ConfigurationError, ConnectivityError
from fuse_relay.flag import ACK_KEY, ACK_NAMESPACE, FileFlagStore
from fuse_relay.log import configure_logging
from fuse_relay.metrics import start_metrics_server
from fuse_relay.scheduling import backlog_delayed
from fuse_relay.service import RelayService
from fuse_relay.store import PendingStore

app = typer.Typer(help="OPC -> Fuse store-and-forward relay (schedulers, migrations, status)")


def _settings() -> Settings:
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    return settings


def _serve(*, ingest: bool, relay: bool) -> None:
    settings = _settings()
    try:
        service = RelayService(settings, ingest=ingest, relay=relay)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=1)
    start_metrics_server(settings.METRICS_PORT)
    try:
        asyncio.run(service.run())
    except ConnectivityError as e:
        logger.error(f"Could not establish a database connection: {e}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


@app.command()
def run():
    """Run the ingest and relay schedulers together."""
    _serve(ingest=True, relay=True)


@app.command()
def ingest():
    """Run only the OPC -> store scheduler."""
    _serve(ingest=True, relay=False)


@app.command()
def relay():
    """Run only the store -> Fuse scheduler (with backlog reporting)."""
    _serve(ingest=False, relay=True)


@app.command()
def migrate(target: str = "head"):
    """Run Alembic migrations to the specified target (default: head)."""
    _settings()
    try:
        logger.info(f"Running migrations to {target}")
        result = subprocess.run(
            ["alembic", "upgrade", target],
            capture_output=True,
            text=True,
            cwd=Path(__file__).parent.parent.parent,
        )
        if result.returncode == 0:
            logger.success(f"Successfully migrated to {target}")
            if result.stdout:
                logger.info(f"Migration output: {result.stdout}")
        else:
            logger.error(f"Migration failed: {result.stderr}")
            sys.exit(1)
    except OSError as e:
        logger.error(f"Failed to run migrations: {e}")
        sys.exit(1)


async def _count_pending(settings: Settings) -> int:
    cfg = {"dsn": settings.DATABASE_URL, "connect_timeout": settings.DB_CONNECT_TIMEOUT}
    async with PendingStore(cfg) as store:
        return await store.count_pending()


@app.command()
def status():
    """Show the pending backlog and the last acknowledgment value sent."""
    settings = _settings()
    flag = FileFlagStore(settings.FLAG_FILE, ACK_NAMESPACE, ACK_KEY)
    try:
        pending = asyncio.run(_count_pending(settings))
    except ConnectivityError as e:
        logger.error(f"Could not establish a database connection: {e}")
        raise typer.Exit(code=1)
    delayed = backlog_delayed(pending, settings.PENDING_LIMIT)
    typer.echo(f"pending={pending} limit={settings.PENDING_LIMIT} delayed={str(delayed).lower()}")
    typer.echo(f"last_ack_sent={str(flag.get()).lower()}")


if __name__ == "__main__":
    app()
