"""Thread-safe snapshot storage for scraped samples.

The store keeps only the most recent sample per series. The scrape loop
writes into it and the refresh loop queries it, each from its own thread;
one ``threading.Lock`` guards the backing dict and every read hands back a
copy so renderers never iterate over live state.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from promview._internal.errors import AmbiguousMatchError
from promview.metrics.labels import DEFAULT_ENTITY_LABEL, LabelSet, series_identity
from promview.metrics.models import Sample

if TYPE_CHECKING:
    from promview._internal.types import LabelsLike, SeriesHandle


class MetricStore(ABC):
    """Interface shared by the scrape loop (writer) and refresh loop (reader).

    Attributes:
        entity_label: Label whose values name the monitored sub-entities.
            Readers use it for both :meth:`entity_names` and per-entity
            queries.
    """

    entity_label: str = DEFAULT_ENTITY_LABEL

    @abstractmethod
    def write(
        self,
        labels: LabelsLike | LabelSet,
        timestamp: int,
        value: float,
    ) -> SeriesHandle:
        """Record *value* as the latest sample of the series named by *labels*.

        Args:
            labels: Full label set, including ``__name__``.
            timestamp: Sample timestamp in milliseconds.
            value: Sample value; NaN marks the series stale.

        Returns:
            Opaque handle for the series.
        """

    @abstractmethod
    def query(
        self,
        metric_name: str,
        predicate: LabelsLike | None = None,
    ) -> list[Sample]:
        """Return every stored sample of *metric_name* matching *predicate*.

        Args:
            metric_name: Required value of ``__name__``.
            predicate: Label pairs that must all match exactly. None or
                empty filters by metric name only.

        Returns:
            A new list in unspecified order; empty when nothing matches.
        """

    @abstractmethod
    def entity_names(self) -> list[str]:
        """Return the sorted, distinct values of the sub-entity label."""

    @abstractmethod
    def samples(self) -> list[Sample]:
        """Return a copy of every stored sample, stale ones included."""


class SnapshotStore(MetricStore):
    """In-memory latest-value store keyed by series identity.

    A write for an identity that is already present replaces the old sample
    outright. Nothing is ever deleted; a series that disappears from the
    target is overwritten with a NaN sample by the scraper.

    Attributes:
        entity_label: Label whose values name the monitored sub-entities.
    """

    def __init__(self, entity_label: str = DEFAULT_ENTITY_LABEL) -> None:
        """Initialize an empty store.

        Args:
            entity_label: Label scanned by :meth:`entity_names`.
        """
        self.entity_label = entity_label
        self._data: dict[int, Sample] = {}
        self._lock = threading.Lock()

    def write(
        self,
        labels: LabelsLike | LabelSet,
        timestamp: int,
        value: float,
    ) -> SeriesHandle:
        label_set = LabelSet.of(labels)
        identity = series_identity(label_set)
        sample = Sample(labels=label_set, timestamp=int(timestamp), value=float(value))
        with self._lock:
            self._data[identity] = sample
        return identity

    def query(
        self,
        metric_name: str,
        predicate: LabelsLike | None = None,
    ) -> list[Sample]:
        # Materialise once so a one-shot iterator can be matched against every sample.
        terms = LabelSet.of(predicate) if predicate else None
        with self._lock:
            samples = list(self._data.values())
        return [
            s for s in samples if s.labels.metric_name == metric_name and s.labels.matches(terms)
        ]

    def query_one(
        self,
        metric_name: str,
        predicate: LabelsLike | None = None,
    ) -> Sample | None:
        """Return the single sample matching the query, if any.

        Raises:
            AmbiguousMatchError: If more than one series matches.
        """
        found = self.query(metric_name, predicate)
        if len(found) > 1:
            keys = ", ".join(sorted(s.series_key for s in found))
            msg = f"expected at most one series for {metric_name}, found {len(found)}: {keys}"
            raise AmbiguousMatchError(msg)
        return found[0] if found else None

    def entity_names(self) -> list[str]:
        with self._lock:
            samples = list(self._data.values())
        names = {s.labels.get(self.entity_label) for s in samples}
        names.discard("")
        return sorted(names)

    def samples(self) -> list[Sample]:
        """Return a point-in-time copy of every stored sample."""
        with self._lock:
            return list(self._data.values())

    def __len__(self) -> int:
        """Return the number of distinct series stored."""
        with self._lock:
            return len(self._data)
