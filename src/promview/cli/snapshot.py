"""``promview snapshot`` and ``promview entities``: single-scrape commands."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from promview._internal.logging import setup_logging
from promview.cli.watch import (
    CONTROLLER_OPTION,
    ENTITY_LABEL_OPTION,
    HISTOGRAM_OPTION,
    HOST_ARGUMENT,
    METRICS_PATH_OPTION,
    SCHEME_OPTION,
    SCRAPE_TIMEOUT_OPTION,
    VERBOSE_OPTION,
    resolve_config,
)
from promview.metrics.store import SnapshotStore
from promview.scrape.scraper import scrape_once
from promview.view.dashboard import Dashboard

console = Console()
err_console = Console(stderr=True)


def _scrape(host: str, verbose: bool, **overrides: object) -> SnapshotStore:
    config = resolve_config(**overrides)
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    store = SnapshotStore(entity_label=config.entity_label)
    health = scrape_once(store, host, config)
    if health.health != "up":
        err_console.print(f"[red]Scrape failed:[/red] {health.last_error}")
        raise typer.Exit(code=1)
    return store


def snapshot_cmd(
    host: str = HOST_ARGUMENT,
    histogram: list[str] = HISTOGRAM_OPTION,
    controller: str | None = CONTROLLER_OPTION,
    scheme: str | None = SCHEME_OPTION,
    metrics_path: str | None = METRICS_PATH_OPTION,
    scrape_timeout: float | None = SCRAPE_TIMEOUT_OPTION,
    entity_label: str | None = ENTITY_LABEL_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Scrape HOST once and print its metrics and histograms."""
    store = _scrape(
        host,
        verbose,
        scheme=scheme,
        metrics_path=metrics_path,
        scrape_timeout=scrape_timeout,
        entity_label=entity_label,
    )
    dashboard = Dashboard(store, host, histograms=histogram, entity=controller)
    console.print(dashboard.render())


def entities_cmd(
    host: str = HOST_ARGUMENT,
    scheme: str | None = SCHEME_OPTION,
    metrics_path: str | None = METRICS_PATH_OPTION,
    scrape_timeout: float | None = SCRAPE_TIMEOUT_OPTION,
    entity_label: str | None = ENTITY_LABEL_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Scrape HOST once and list the entity names found in its labels."""
    store = _scrape(
        host,
        verbose,
        scheme=scheme,
        metrics_path=metrics_path,
        scrape_timeout=scrape_timeout,
        entity_label=entity_label,
    )
    for name in store.entity_names():
        console.print(name, highlight=False)
