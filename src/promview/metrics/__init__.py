"""Latest-value metric storage and histogram reconstruction.

This package holds the only state shared between the scrape loop and the
refresh loop: a :class:`SnapshotStore` keeping the newest sample per series,
and :class:`HistogramData`, which turns cumulative ``_bucket`` series back
into an ordered, chartable histogram.
"""

from __future__ import annotations

from promview.metrics.histogram import HistogramData, histogram_metric_name
from promview.metrics.labels import LabelSet, series_identity
from promview.metrics.models import Bucket, Sample
from promview.metrics.store import MetricStore, SnapshotStore

__all__ = [
    "Bucket",
    "HistogramData",
    "LabelSet",
    "MetricStore",
    "Sample",
    "SnapshotStore",
    "histogram_metric_name",
    "series_identity",
]
