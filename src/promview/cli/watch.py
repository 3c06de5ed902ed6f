"""``promview watch``: live terminal view of a process's metrics."""

from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.live import Live

from promview._internal.config import load_config, validate_config
from promview._internal.errors import PromViewError
from promview._internal.logging import get_logger, setup_logging
from promview.metrics.store import SnapshotStore
from promview.scrape.scraper import Scraper, ScrapeLoop
from promview.view.dashboard import Dashboard

if TYPE_CHECKING:
    from promview._internal.config import PromViewConfig

console = Console(stderr=True)
logger = get_logger("cli.watch")

# Shared by every command that talks to a target.
HOST_ARGUMENT = typer.Argument(..., help="host:port of the process exposing /metrics.")
HISTOGRAM_OPTION = typer.Option(
    [],
    "--histogram",
    "-H",
    help="Histogram family to chart (repeatable). '_bucket' is appended if missing.",
)
CONTROLLER_OPTION = typer.Option(
    None,
    "--controller",
    "-c",
    help="Entity to chart histograms for. Defaults to the first one discovered.",
)
SCHEME_OPTION = typer.Option(None, "--scheme", help="http or https.")
METRICS_PATH_OPTION = typer.Option(None, "--metrics-path", help="Metrics endpoint path.")
SCRAPE_TIMEOUT_OPTION = typer.Option(
    None, "--scrape-timeout", help="Scrape timeout in seconds.", min=0.001
)
ENTITY_LABEL_OPTION = typer.Option(
    None, "--entity-label", help="Label naming the monitored entities (default: controller)."
)
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose (DEBUG) logging.")


def resolve_config(**overrides: object) -> PromViewConfig:
    """Load the environment configuration and apply non-None CLI overrides.

    Raises:
        typer.Exit: With code 1 if the resulting configuration is invalid.
    """
    try:
        config = load_config()
        changes = {k: v for k, v in overrides.items() if v is not None}
        return validate_config(dataclasses.replace(config, **changes))
    except PromViewError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def watch_cmd(
    host: str = HOST_ARGUMENT,
    histogram: list[str] = HISTOGRAM_OPTION,
    controller: str | None = CONTROLLER_OPTION,
    scheme: str | None = SCHEME_OPTION,
    metrics_path: str | None = METRICS_PATH_OPTION,
    scrape_interval: float | None = typer.Option(
        None, "--scrape-interval", help="Seconds between scrapes.", min=0.01
    ),
    scrape_timeout: float | None = SCRAPE_TIMEOUT_OPTION,
    refresh_interval: float | None = typer.Option(
        None, "--refresh-interval", help="Seconds between redraws.", min=0.01
    ),
    entity_label: str | None = ENTITY_LABEL_OPTION,
    log_file: Path | None = typer.Option(
        None, "--log-file", help="Write logs here instead of stderr.", dir_okay=False
    ),
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Scrape HOST continuously and redraw its metrics until Ctrl-C."""
    config = resolve_config(
        scheme=scheme,
        metrics_path=metrics_path,
        scrape_interval=scrape_interval,
        scrape_timeout=scrape_timeout,
        refresh_interval=refresh_interval,
        entity_label=entity_label,
    )
    setup_logging(logging.DEBUG if verbose else logging.INFO, log_file=log_file)

    store = SnapshotStore(entity_label=config.entity_label)
    scraper = Scraper(store, host, config)
    loop = ScrapeLoop(scraper, interval=config.scrape_interval)
    dashboard = Dashboard(
        store,
        host,
        histograms=histogram,
        entity=controller,
        health=lambda: loop.health,
    )

    logger.info("Watching %s every %.1fs", scraper.url, config.scrape_interval)
    loop.start()
    try:
        with console.status(f"Waiting for first scrape of {scraper.url}..."):
            loop.wait_for_first_scrape(timeout=config.scrape_interval + config.scrape_timeout)

        with Live(dashboard.render(), console=console, screen=True, auto_refresh=False) as live:
            while True:
                time.sleep(config.refresh_interval)
                live.update(dashboard.render(), refresh=True)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping")
    finally:
        loop.stop()
