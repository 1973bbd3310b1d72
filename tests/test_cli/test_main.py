import asyncio

import pytest
from typer.testing import CliRunner

import runwatch.config as config_module
import runwatch.main as main_module
from runwatch import __version__
from runwatch.config import Config, get_config
from runwatch.data_source import RelevantRunSpecsDataSource
from runwatch.exceptions import RemoteQueryError
from runwatch.main import build_data_source, cli, run_watch
from runwatch.models import RelevantRun
from runwatch.remote import CloudGraphQLClient, RemoteQueryRequest, RemoteQueryResult


@pytest.fixture
def watch_calls(tmp_path, monkeypatch):
    """Run ``watch`` without touching the network or the real log setup."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    calls: list[Config] = []

    async def _fake_run_watch(cfg: Config) -> None:
        calls.append(cfg)

    monkeypatch.setattr(main_module, "run_watch", _fake_run_watch)
    monkeypatch.setattr(main_module, "configure_logging", lambda config=None: None)
    return calls


@pytest.fixture
def closed_clients(monkeypatch):
    closed: list[bool] = []

    async def _close(self) -> None:
        closed.append(True)

    monkeypatch.setattr(CloudGraphQLClient, "close", _close)
    return closed


def test_version_command_prints_version():
    result = CliRunner().invoke(cli, ["version"])

    assert result.exit_code == 0
    assert f"runwatch v{__version__}" in result.output


def test_build_data_source_wires_config():
    cfg = Config()
    cfg.project.slug = "abc123"
    cfg.runs.current = 9
    cfg.polling.default_interval_seconds = 12

    source = build_data_source(cfg)

    assert isinstance(source.ctx.cloud, CloudGraphQLClient)
    assert source.ctx.relevant_runs.runs == RelevantRun(current=9)
    assert source.polling_interval == 12
    assert source.ctx.config is cfg


def test_watch_applies_overrides_and_starts_watching(watch_calls):
    result = CliRunner().invoke(
        cli,
        ["watch", "--project", "abc123", "--current", "5", "--next", "6", "--interval", "7.5"],
    )

    assert result.exit_code == 0, result.output
    assert len(watch_calls) == 1
    cfg = watch_calls[0]
    assert cfg.project.slug == "abc123"
    assert (cfg.runs.current, cfg.runs.next) == (5, 6)
    assert cfg.polling.default_interval_seconds == 7.5
    assert get_config() is cfg


def test_watch_reads_explicit_config_file(watch_calls, tmp_path):
    config_path = tmp_path / "watch.yaml"
    config_path.write_text("project:\n  slug: from-file\nruns:\n  current: 3\n")

    result = CliRunner().invoke(cli, ["watch", "-c", str(config_path)])

    assert result.exit_code == 0, result.output
    assert watch_calls[0].project.slug == "from-file"
    assert watch_calls[0].runs.current == 3


@pytest.mark.parametrize("interval", ["0", "-5", "inf"])
def test_watch_rejects_non_positive_interval(watch_calls, interval):
    result = CliRunner().invoke(
        cli, ["watch", "--project", "abc", "--current", "5", f"--interval={interval}"]
    )

    assert result.exit_code == 2
    assert "--interval" in result.output
    assert watch_calls == []


def test_watch_fails_on_missing_config_file(watch_calls, tmp_path):
    result = CliRunner().invoke(cli, ["watch", "-c", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 2
    assert "Config file not found" in result.output
    assert watch_calls == []


def test_watch_fails_on_invalid_config_file(watch_calls, tmp_path):
    config_path = tmp_path / "watch.yaml"
    config_path.write_text("polling:\n  default_interval_seconds: 0\n")

    result = CliRunner().invoke(cli, ["watch", "-c", str(config_path)])

    assert result.exit_code == 2
    assert "Failed to load config" in result.output
    assert watch_calls == []


@pytest.mark.asyncio
async def test_run_watch_closes_client_when_polling_cannot_start(monkeypatch, closed_clients):
    def _broken_poll(self):
        raise RuntimeError("no poller")

    monkeypatch.setattr(RelevantRunSpecsDataSource, "poll_for_specs", _broken_poll)
    cfg = Config()
    cfg.project.slug = "abc123"
    cfg.runs.current = 5

    with pytest.raises(RuntimeError):
        await run_watch(cfg)

    assert closed_clients == [True]


@pytest.mark.asyncio
async def test_run_watch_cancel_stops_polling_and_closes_client(monkeypatch, closed_clients):
    requests: list[RemoteQueryRequest] = []

    async def _execute(self, request: RemoteQueryRequest) -> RemoteQueryResult:
        requests.append(request)
        return RemoteQueryResult(error=RemoteQueryError("offline"))

    monkeypatch.setattr(CloudGraphQLClient, "execute_remote_graphql", _execute)
    cfg = Config()
    cfg.project.slug = "abc123"
    cfg.runs.current = 5

    task = asyncio.create_task(run_watch(cfg))

    async def _first_request() -> None:
        while not requests:
            await asyncio.sleep(0)

    await asyncio.wait_for(_first_request(), timeout=1.0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert closed_clients == [True]
    assert len(requests) == 1
