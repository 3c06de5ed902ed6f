"""Sample and bucket records for promview."""

from __future__ import annotations

import math
from dataclasses import dataclass

from promview.metrics.labels import (
    INSTANCE_LABEL,
    JOB_LABEL,
    METRIC_NAME_LABEL,
    LabelSet,
)

__all__ = [
    "EMPTY_BUCKET",
    "Bucket",
    "Sample",
]

# Labels attached to every series by the scraper; not worth showing per row.
_HIDDEN_LABELS = (METRIC_NAME_LABEL, INSTANCE_LABEL, JOB_LABEL)


@dataclass(frozen=True)
class Sample:
    """Latest observed value of one series.

    Attributes:
        labels: Full label set of the series, including ``__name__``.
        timestamp: Producer-supplied timestamp in milliseconds.
        value: Observed value. NaN marks a series that has gone stale.
    """

    labels: LabelSet
    timestamp: int
    value: float

    @property
    def metric_name(self) -> str:
        """Metric name taken from the ``__name__`` label."""
        return self.labels.metric_name

    @property
    def is_stale(self) -> bool:
        """True when the value is the NaN staleness marker."""
        return math.isnan(self.value)

    @property
    def series_key(self) -> str:
        """Canonical ``name{a="1",b="2"}`` key, used to order rows."""
        rest = self.labels.without(METRIC_NAME_LABEL)
        return f"{self.metric_name}{rest}" if rest else self.metric_name

    def display(self) -> str:
        """Human-readable ``name{a=1,b=2} value`` line without instance and job."""
        pairs = ",".join(f"{n}={v}" for n, v in self.labels.without(*_HIDDEN_LABELS).pairs)
        return f"{self.metric_name}{{{pairs}}} {self.value:f}"


@dataclass(frozen=True)
class Bucket:
    """One cumulative histogram bucket.

    Attributes:
        label: Raw ``le`` label value, e.g. ``"0.05"`` or ``"+Inf"``.
        value: Cumulative observation count, truncated to an integer.
    """

    label: str = ""
    value: int = 0

    def __bool__(self) -> bool:
        return bool(self.label)


# Returned by HistogramData.next() when no charted bucket remains.
EMPTY_BUCKET = Bucket()
