"""Rich renderables for the promview terminal view."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from rich.bar import Bar
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from promview.metrics.histogram import HistogramData
    from promview.metrics.models import Bucket, Sample
    from promview.scrape.scraper import TargetHealth

_BAR_WIDTH = 40

_HEALTH_STYLES = {"up": "bold green", "down": "bold red", "unknown": "yellow"}


def series_table(samples: Iterable[Sample]) -> Table:
    """Build a table of the latest value of every live series.

    Stale (NaN) series are left out. Rows are ordered by series key.

    Args:
        samples: Point-in-time copy of the store contents.

    Returns:
        Formatted Rich Table.
    """
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Series", style="bold", overflow="fold")
    table.add_column("Value", justify="right")

    live = sorted((s for s in samples if not s.is_stale), key=lambda s: s.series_key)
    for sample in live:
        name, _, value = sample.display().rpartition(" ")
        table.add_row(name, value)

    if not live:
        table.add_row("[dim]no samples yet[/dim]", "")

    return table


def entity_table(names: list[str], selected: str | None, label: str) -> Table:
    """Build the list of discovered sub-entities, marking the selected one.

    Args:
        names: Sorted entity names.
        selected: Currently selected entity, if any.
        label: Name of the sub-entity label, used as the column header.

    Returns:
        Formatted Rich Table.
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column(label.capitalize())
    for name in names:
        if name == selected:
            table.add_row(Text(f"> {name}", style="bold reverse"))
        else:
            table.add_row(f"  {name}")
    if not names:
        table.add_row("[dim]none discovered[/dim]")
    return table


def charted_buckets(histogram: HistogramData) -> list[Bucket]:
    """Walk the histogram cursor from the start and collect charted buckets."""
    histogram.reset()
    buckets: list[Bucket] = []
    while histogram.has_next():
        bucket = histogram.next()
        if bucket:
            buckets.append(bucket)
    return buckets


def histogram_panel(histogram: HistogramData, title: str) -> Panel:
    """Draw one horizontal bar per charted bucket, scaled to the largest count.

    Args:
        histogram: Freshly built histogram.
        title: Panel title, usually the metric and entity.

    Returns:
        Panel containing the bar chart.
    """
    scale = histogram.max()
    table = Table(show_header=True, header_style="bold cyan", box=None, expand=True)
    table.add_column("le", justify="right", style="bold")
    table.add_column("", ratio=1)
    table.add_column("count", justify="right")

    buckets = charted_buckets(histogram)
    for bucket in buckets:
        table.add_row(
            bucket.label,
            Bar(size=scale, begin=0, end=bucket.value, width=_BAR_WIDTH, color="cyan"),
            str(bucket.value),
        )
    if not buckets:
        table.add_row("", "[dim]no observations[/dim]", "")

    return Panel(table, title=title, border_style="cyan", subtitle=f"total {scale}")


def error_panel(message: str) -> Panel:
    """Red banner shown in place of a chart that could not be built."""
    return Panel(Text(message, style="red"), title="Error", border_style="red")


def health_line(target: str, health: TargetHealth) -> Text:
    """One-line summary of the scrape target's health."""
    text = Text()
    text.append(f"{target} ", style="bold")
    text.append(health.health, style=_HEALTH_STYLES.get(health.health, ""))
    if health.last_scrape is not None:
        when = datetime.datetime.fromtimestamp(health.last_scrape).strftime("%H:%M:%S")
        text.append(f"  last scrape {when} ({health.last_duration * 1000:.0f}ms)")
    if health.last_error:
        text.append(f"  {health.last_error}", style="red")
    return text
