"""One refresh tick of the promview terminal view."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.columns import Columns
from rich.console import Group

from promview._internal.errors import HistogramError
from promview._internal.logging import get_logger
from promview.metrics.histogram import HistogramData, histogram_metric_name
from promview.view.render import (
    entity_table,
    error_panel,
    health_line,
    histogram_panel,
    series_table,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from rich.console import RenderableType

    from promview.metrics.store import MetricStore
    from promview.scrape.scraper import TargetHealth

logger = get_logger("view.dashboard")


class Dashboard:
    """Turns the current store contents into a renderable, once per tick.

    Nothing is cached between ticks except each chart's bucket count, which
    is compared against the new build to tell a reshaped histogram (its
    bounds changed) from an updated one.

    Attributes:
        target: ``host:port`` shown in the header.
        histograms: Bucket series names to chart for the selected entity.
        entity: Entity requested by the user, or None for the first one found.
    """

    def __init__(
        self,
        store: MetricStore,
        target: str,
        *,
        histograms: Iterable[str] = (),
        entity: str | None = None,
        health: Callable[[], TargetHealth] | None = None,
    ) -> None:
        self._store = store
        self._health = health
        self.target = target
        self.histograms = [histogram_metric_name(h) for h in histograms]
        self.entity = entity
        self._bucket_counts: dict[str, int] = {}

    def selected_entity(self, names: list[str]) -> str | None:
        """Return the requested entity, or the first discovered one."""
        if self.entity is not None:
            return self.entity
        return names[0] if names else None

    def build_histogram(self, metric: str, entity: str) -> HistogramData:
        """Build one histogram and note whether its shape changed.

        Raises:
            HistogramError: If the bucket series are malformed.
        """
        histogram = HistogramData.from_store(
            self._store,
            metric,
            entity,
            entity_label=self._store.entity_label,
        )
        count = histogram.bucket_count()
        previous = self._bucket_counts.get(metric)
        if previous is not None and previous != count:
            logger.info("Histogram %s changed shape: %d -> %d buckets", metric, previous, count)
        self._bucket_counts[metric] = count
        return histogram

    def render(self) -> RenderableType:
        """Read the store once and lay out the whole view."""
        names = self._store.entity_names()
        selected = self.selected_entity(names)

        parts: list[RenderableType] = []
        if self._health is not None:
            parts.append(health_line(self.target, self._health()))

        charts: list[RenderableType] = []
        for metric in self.histograms:
            if selected is None:
                charts.append(error_panel(f"{metric}: no {self._store.entity_label} discovered"))
                continue
            title = f"{metric} {{{self._store.entity_label}={selected}}}"
            try:
                charts.append(histogram_panel(self.build_histogram(metric, selected), title))
            except HistogramError as exc:
                logger.warning("Skipping chart %s: %s", metric, exc)
                charts.append(error_panel(f"{title}: {exc}"))

        parts.append(Columns([entity_table(names, selected, self._store.entity_label), *charts]))
        parts.append(series_table(self._store.samples()))
        return Group(*parts)
