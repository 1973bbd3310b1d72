"""Main entry point for runwatch."""

import asyncio
import json
import os
import sys
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from runwatch.config import Config, PollingConfig, set_config
from runwatch.context import DataContext
from runwatch.data_source import RelevantRunSpecsDataSource
from runwatch.events import RunEvent
from runwatch.exceptions import ConfigurationError
from runwatch.logging import configure_logging, log
from runwatch.models import RelevantRun
from runwatch.project import RelevantRunsState, StaticProjectResolver
from runwatch.remote import CloudGraphQLClient

cli = typer.Typer(help="runwatch - Watch spec progress of relevant cloud runs")


def build_data_source(cfg: Config) -> RelevantRunSpecsDataSource:
    """Wire a data source to the configured cloud endpoint and project."""
    ctx = DataContext(
        project=StaticProjectResolver(cfg.project.slug),
        cloud=CloudGraphQLClient(cfg.cloud),
        relevant_runs=RelevantRunsState(RelevantRun(current=cfg.runs.current, next=cfg.runs.next)),
        config=cfg,
    )
    return RelevantRunSpecsDataSource(ctx)


async def run_watch(cfg: Config) -> None:
    """Poll until cancelled, logging every change."""
    source = build_data_source(cfg)
    emitter = source.ctx.emitter

    def _on_specs() -> None:
        log.info("Specs changed", snapshot=json.dumps(source.cached.to_dict()))

    def _on_run(runs: RelevantRun) -> None:
        log.info(
            "Run changed",
            current=runs.current,
            next=runs.next,
            statuses=json.dumps(source.cached.to_dict()["statuses"]),
        )

    emitter.on(RunEvent.RELEVANT_RUN_SPEC_CHANGE, _on_specs)
    emitter.on(RunEvent.RELEVANT_RUN_CHANGE, _on_run)

    try:
        handle = source.poll_for_specs()
        log.info(
            "Watching runs",
            project=cfg.project.slug,
            current=cfg.runs.current,
            next=cfg.runs.next,
            interval=source.polling_interval,
        )
        await handle.wait_closed()
    finally:
        source.stop_polling()
        await source.ctx.cloud.close()


def load_config(
    config: str = "",
    project: str = "",
    current: int | None = None,
    next_run: int | None = None,
    interval: float | None = None,
) -> Config:
    """Load the config file and apply command line overrides.

    Raises:
        ConfigurationError: if the file is missing, unreadable or invalid,
            or an override is out of range.
    """
    try:
        if config:
            config_path = Path(config).expanduser()
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            cfg = Config.from_yaml(config_path)
        else:
            cfg = Config.load()
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Failed to load config {config or 'file'}: {e}") from e

    if project:
        cfg.project.slug = project
    if current is not None:
        cfg.runs.current = current
    if next_run is not None:
        cfg.runs.next = next_run
    if interval is not None:
        try:
            cfg.polling = PollingConfig(default_interval_seconds=interval)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid --interval {interval}: must be greater than 0") from e

    return cfg


def main(
    config: str = "",
    project: str = "",
    current: int | None = None,
    next_run: int | None = None,
    interval: float | None = None,
    verbose: bool = False,
) -> None:
    """Start watching the relevant runs."""
    if verbose:
        os.environ["RUNWATCH_LOGGING__LEVEL"] = "DEBUG"

    try:
        cfg = load_config(config, project, current, next_run, interval)
        configure_logging(cfg.logging)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    set_config(cfg)

    if not cfg.project.slug:
        log.warning("No project slug configured; polling will return empty snapshots")

    try:
        asyncio.run(run_watch(cfg))
    except KeyboardInterrupt:
        log.info("Shutting down...")
        sys.exit(0)


def version() -> None:
    """Show version information."""
    from runwatch import __version__
    print(f"runwatch v{__version__}")


@cli.command()
def watch(
    config: str = typer.Option("", "-c", "--config", help="Path to config file"),
    project: str = typer.Option("", "-p", "--project", help="Cloud project slug"),
    current: int | None = typer.Option(None, "--current", help="Current run number"),
    next_run: int | None = typer.Option(None, "--next", help="Next run number"),
    interval: float | None = typer.Option(None, "-i", "--interval", help="Initial poll interval (seconds)"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
) -> None:
    main(config, project, current, next_run, interval, verbose)


@cli.command("version")
def ver() -> None:
    version()


if __name__ == "__main__":
    cli()
