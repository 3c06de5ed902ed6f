"""Reassembly of cumulative histogram buckets for charting.

A Prometheus histogram is exposed as one ``<name>_bucket`` series per upper
bound, each carrying the bound in its ``le`` label and the count of
observations at or below it. :class:`HistogramData` gathers those series
for one sub-entity from a :class:`~promview.metrics.store.MetricStore`,
orders them by numeric bound and walks them with a restartable cursor.

The cursor deliberately stops before the last (highest-bound) bucket,
which holds the total count rather than a chartable bucket, and skips
buckets whose count is zero. :meth:`HistogramData.max` still looks at
every bucket.
"""

from __future__ import annotations

import math
import sys
from typing import TYPE_CHECKING

from promview._internal.errors import BucketBoundError, MalformedBucketError
from promview._internal.logging import get_logger
from promview.metrics.labels import BUCKET_LABEL, DEFAULT_ENTITY_LABEL
from promview.metrics.models import EMPTY_BUCKET, Bucket

if TYPE_CHECKING:
    from collections.abc import Iterable

    from promview.metrics.models import Sample
    from promview.metrics.store import MetricStore

logger = get_logger("metrics.histogram")

INF_BOUND = "+Inf"
_BUCKET_SUFFIX = "_bucket"


def histogram_metric_name(family: str) -> str:
    """Return the bucket series name for a histogram family name.

    ``"reconcile_time_seconds"`` becomes ``"reconcile_time_seconds_bucket"``;
    a name that already ends in ``_bucket`` is returned unchanged.
    """
    return family if family.endswith(_BUCKET_SUFFIX) else family + _BUCKET_SUFFIX


def bucket_bound(label: str) -> float:
    """Return the numeric upper bound of a bucket label.

    Args:
        label: Raw ``le`` value.

    Returns:
        ``sys.float_info.max`` for ``"+Inf"``, the parsed float otherwise.

    Raises:
        BucketBoundError: If the label is not a number, or is NaN.
    """
    if label == INF_BOUND:
        return sys.float_info.max
    try:
        bound = float(label)
    except ValueError:
        msg = f"bucket bound is not a number: le={label!r}"
        raise BucketBoundError(msg) from None
    if math.isnan(bound):
        msg = f"bucket bound is NaN: le={label!r}"
        raise BucketBoundError(msg)
    return bound


def bucket_from_sample(sample: Sample) -> Bucket:
    """Convert one ``_bucket`` sample into a :class:`Bucket`.

    Stale (NaN) and infinite values count as zero.

    Raises:
        MalformedBucketError: If the sample has no ``le`` label.
    """
    if BUCKET_LABEL not in sample.labels:
        msg = f"bucket sample has no {BUCKET_LABEL!r} label: {sample.series_key}"
        raise MalformedBucketError(msg)
    value = int(sample.value) if math.isfinite(sample.value) else 0
    return Bucket(label=sample.labels[BUCKET_LABEL], value=value)


class HistogramData:
    """Ordered buckets of one histogram plus a forward-only cursor.

    Instances are built fresh on every refresh tick and belong to the caller
    that built them.

    Example::

        hist = HistogramData.from_store(store, "reconcile_time_seconds_bucket", "pods")
        while hist.has_next():
            bucket = hist.next()
            if bucket:
                draw(bucket.label, bucket.value, scale=hist.max())
    """

    def __init__(self, buckets: Iterable[Bucket] = ()) -> None:
        """Sort *buckets* by numeric bound and rewind the cursor.

        Raises:
            BucketBoundError: If any bucket label is not numeric.
        """
        keyed = [(bucket_bound(b.label), b) for b in buckets]
        keyed.sort(key=lambda pair: pair[0])
        self._buckets: tuple[Bucket, ...] = tuple(b for _, b in keyed)
        self._cur_idx = 0

    @classmethod
    def from_store(
        cls,
        store: MetricStore,
        metric: str,
        entity: str,
        *,
        entity_label: str = DEFAULT_ENTITY_LABEL,
    ) -> HistogramData:
        """Build the histogram of *metric* for one sub-entity.

        Args:
            store: Store to query.
            metric: Bucket series name, e.g. ``"foo_seconds_bucket"``.
            entity: Value the sub-entity label must have.
            entity_label: Name of the sub-entity label.

        Returns:
            A new HistogramData; empty when no bucket series match.

        Raises:
            MalformedBucketError: If a matching sample has no ``le`` label.
            BucketBoundError: If a matching sample's ``le`` is not numeric.
        """
        samples = store.query(metric, {entity_label: entity})
        buckets = [bucket_from_sample(s) for s in samples]
        logger.debug(
            "Built histogram %s{%s=%s}: %d buckets",
            metric,
            entity_label,
            entity,
            len(buckets),
        )
        return cls(buckets)

    @property
    def buckets(self) -> tuple[Bucket, ...]:
        """All buckets in ascending bound order, including the last one."""
        return self._buckets

    def reset(self) -> None:
        """Rewind the cursor to the first bucket."""
        self._cur_idx = 0

    def has_next(self) -> bool:
        """Return True while buckets before the last one remain."""
        return self._cur_idx < len(self._buckets) - 1

    def next(self) -> Bucket:
        """Advance to and return the next bucket with a non-zero count.

        Returns:
            The bucket, or :data:`EMPTY_BUCKET` when only zero-count buckets
            (or nothing) remain before the last bucket.
        """
        while self.has_next():
            bucket = self._buckets[self._cur_idx]
            self._cur_idx += 1
            if bucket.value != 0:
                return bucket
        return EMPTY_BUCKET

    def max(self) -> int:
        """Return the largest count over every bucket, or 0 when empty."""
        return max((b.value for b in self._buckets), default=0)

    def bucket_count(self) -> int:
        """Return how many buckets are held, the last one included."""
        return len(self._buckets)
