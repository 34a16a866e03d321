"""CLI entry point for the price collector service.

Provide Typer commands to run the minute-by-minute collector, execute a
single collection cycle, prune old records, and print the latest stored
prices.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from price_collector.apps.collector.collector import PriceCollector
from price_collector.apps.collector.config import STORE_BACKENDS, CollectorConfig
from price_collector.core.config import ConfigError, ConfigLoader, get_config
from price_collector.core.exceptions import StoreError
from price_collector.core.models import CollectionOutcome

app = typer.Typer(help="Collect BTC/USD and USD/BRL prices once per minute")

ConfigDirOption = Annotated[
    Path | None,
    typer.Option(help="Directory holding settings.yaml (defaults to the packaged config)"),
]
DbUrlOption = Annotated[
    str | None,
    typer.Option(help="SQLAlchemy async DB URL, overrides store.db_url"),
]
BackendOption = Annotated[
    str | None,
    typer.Option(help=f"Store backend: {', '.join(STORE_BACKENDS)}"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]


def _configure_logging(verbose: bool) -> None:  # noqa: FBT001
    """Configure root logging for console output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_config(
    config_dir: Path | None,
    db_url: str | None,
    backend: str | None,
    retention_hours: float | None = None,
) -> CollectorConfig:
    """Load settings and apply CLI overrides, exiting with code 1 on errors."""
    try:
        loader = get_config() if config_dir is None else ConfigLoader(config_dir)
        loaded = CollectorConfig.from_loader(loader)
        return loaded.with_overrides(
            db_url=db_url,
            store_backend=backend,
            retention_hours=retention_hours,
        )
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _exit_on_store_error(exc: StoreError) -> NoReturn:
    """Report a store failure and exit with code 1."""
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@app.command()
def run(
    config_dir: ConfigDirOption = None,
    db_url: DbUrlOption = None,
    backend: BackendOption = None,
    verbose: VerboseOption = False,  # noqa: FBT002
) -> None:
    """Run the collector until interrupted.

    Collect immediately, align to the next minute boundary, then collect
    once per interval. SIGINT or SIGTERM stops it cleanly with status 0.
    """
    _configure_logging(verbose)
    config = _load_config(config_dir, db_url, backend)
    typer.echo(f"Starting price collector (backend: {config.store_backend}, db: {config.db_url})")
    collector = PriceCollector(config)
    try:
        asyncio.run(collector.run())
    except StoreError as exc:
        _exit_on_store_error(exc)


@app.command()
def once(
    config_dir: ConfigDirOption = None,
    db_url: DbUrlOption = None,
    backend: BackendOption = None,
    verbose: VerboseOption = False,  # noqa: FBT002
) -> None:
    """Run a single collection cycle for the current minute and exit."""
    _configure_logging(verbose)
    config = _load_config(config_dir, db_url, backend)
    collector = PriceCollector(config)
    try:
        outcome = asyncio.run(collector.collect_once())
    except StoreError as exc:
        _exit_on_store_error(exc)
    typer.echo(f"Collection {outcome.value}")
    if outcome is CollectionOutcome.FAILED:
        raise typer.Exit(code=1)


@app.command()
def prune(
    retention_hours: Annotated[
        float | None,
        typer.Option(help="Delete records older than this many hours"),
    ] = None,
    config_dir: ConfigDirOption = None,
    db_url: DbUrlOption = None,
    backend: BackendOption = None,
    verbose: VerboseOption = False,  # noqa: FBT002
) -> None:
    """Delete records older than the retention window."""
    _configure_logging(verbose)
    config = _load_config(config_dir, db_url, backend, retention_hours)
    if config.retention_hours is None:
        typer.echo("Retention is unbounded; nothing to prune")
        return
    collector = PriceCollector(config)
    try:
        deleted = asyncio.run(collector.prune())
    except StoreError as exc:
        _exit_on_store_error(exc)
    typer.echo(f"Deleted {deleted} records older than {config.retention_hours:g}h")


@app.command()
def latest(
    limit: Annotated[int, typer.Option(min=1, help="Number of records to show")] = 10,
    config_dir: ConfigDirOption = None,
    db_url: DbUrlOption = None,
    backend: BackendOption = None,
    verbose: VerboseOption = False,  # noqa: FBT002
) -> None:
    """Print the most recently stored prices, newest first."""
    _configure_logging(verbose)
    config = _load_config(config_dir, db_url, backend)
    collector = PriceCollector(config)
    try:
        records, total = asyncio.run(collector.latest(limit))
    except StoreError as exc:
        _exit_on_store_error(exc)
    if not records:
        typer.echo("No prices stored")
        return
    for record in records:
        typer.echo(f"[{record.timestamp}] BTC/USD={record.btc_usd} | USD/BRL={record.usd_brl}")
    typer.echo(f"{len(records)} of {total} records")


def main() -> None:
    """Run the price collector CLI application."""
    app()


if __name__ == "__main__":
    main()
