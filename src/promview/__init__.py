"""promview: a live terminal view of one process's Prometheus metrics."""

from __future__ import annotations

from promview.metrics.histogram import HistogramData
from promview.metrics.labels import LabelSet
from promview.metrics.models import Bucket, Sample
from promview.metrics.store import MetricStore, SnapshotStore

__version__ = "0.1.0"

__all__ = [
    "Bucket",
    "HistogramData",
    "LabelSet",
    "MetricStore",
    "Sample",
    "SnapshotStore",
]
