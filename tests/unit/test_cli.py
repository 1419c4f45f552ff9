"""
CLI tests (typer CliRunner); the database and the service loop are stubbed.
"""

import subprocess

import pytest
from typer.testing import CliRunner

import fuse_relay.cli as cli
from fuse_relay.config import get_settings
from fuse_relay.errors import ConnectivityError
from fuse_relay.flag import FileFlagStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file: None)
    yield
    get_settings.cache_clear()


def test_invalid_interval_exits_with_error(settings_env, monkeypatch):
    monkeypatch.setenv("SCHEDULER_INTERVAL", "00:00:01")
    result = runner.invoke(cli.app, ["run"])
    assert result.exit_code == 1


def test_missing_setting_exits_with_error(settings_env, monkeypatch):
    monkeypatch.delenv("FUSE_API_URL")
    result = runner.invoke(cli.app, ["relay"])
    assert result.exit_code == 1


@pytest.mark.parametrize("pending, delayed", [(10, "false"), (11, "true")])
def test_status_reports_backlog(settings_env, monkeypatch, pending, delayed):
    async def fake_count(settings):
        return pending

    monkeypatch.setattr(cli, "_count_pending", fake_count)
    FileFlagStore(settings_env["FLAG_FILE"]).set(True)

    result = runner.invoke(cli.app, ["status"])

    assert result.exit_code == 0
    assert f"pending={pending} limit=10 delayed={delayed}" in result.stdout
    assert "last_ack_sent=true" in result.stdout


def test_status_database_unreachable(settings_env, monkeypatch):
    async def fake_count(settings):
        raise ConnectivityError("connection refused")

    monkeypatch.setattr(cli, "_count_pending", fake_count)
    result = runner.invoke(cli.app, ["status"])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "command, ingest, relay",
    [("run", True, True), ("ingest", True, False), ("relay", False, True)],
)
def test_serve_commands_select_schedulers(settings_env, monkeypatch, command, ingest, relay):
    seen = {}

    class FakeService:
        def __init__(self, settings, *, ingest, relay):
            seen.update(ingest=ingest, relay=relay, interval=settings.interval_seconds)

        async def run(self):
            return None

    monkeypatch.setattr(cli, "RelayService", FakeService)
    result = runner.invoke(cli.app, [command])

    assert result.exit_code == 0
    assert seen == {"ingest": ingest, "relay": relay, "interval": 30.0}


def test_serve_fails_fast_when_database_down(settings_env, monkeypatch):
    class DownService:
        def __init__(self, settings, **kw):
            pass

        async def run(self):
            raise ConnectivityError("could not establish a database connection")

    monkeypatch.setattr(cli, "RelayService", DownService)
    result = runner.invoke(cli.app, ["run"])
    assert result.exit_code == 1


def test_migrate_failure_exits_nonzero(settings_env, monkeypatch):
    calls = []

    def fake_run(args, **kw):
        calls.append(args)
        return subprocess.CompletedProcess(args, returncode=1, stdout="", stderr="boom")

    monkeypatch.setattr(cli.subprocess, "run", fake_run)
    result = runner.invoke(cli.app, ["migrate"])

    assert result.exit_code == 1
    assert calls == [["alembic", "upgrade", "head"]]
