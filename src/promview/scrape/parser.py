"""Parsing of the Prometheus text exposition format."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client.parser import text_string_to_metric_families

from promview._internal.errors import ScrapeError
from promview.metrics.labels import METRIC_NAME_LABEL, LabelSet

if TYPE_CHECKING:
    from collections.abc import Mapping

# (labels, timestamp in milliseconds, value)
ParsedSample = tuple[LabelSet, int, float]


def parse_exposition(
    text: str,
    *,
    timestamp_ms: int,
    target_labels: Mapping[str, str] | None = None,
) -> list[ParsedSample]:
    """Parse a text-format metrics payload into labelled samples.

    Every sample's name is stored under ``__name__``. Histogram and summary
    families expand into their ``_bucket``/``_sum``/``_count`` samples.

    Args:
        text: Payload as returned by a ``/metrics`` endpoint.
        timestamp_ms: Timestamp for samples that carry none of their own.
        target_labels: Labels added to every sample. A label already present
            in the payload keeps its payload value.

    Returns:
        Samples in payload order.

    Raises:
        ScrapeError: If the payload is not valid exposition format.
    """
    extra = dict(target_labels or {})
    parsed: list[ParsedSample] = []
    try:
        for family in text_string_to_metric_families(text):
            for sample in family.samples:
                labels = LabelSet({**sample.labels, METRIC_NAME_LABEL: sample.name})
                ts = timestamp_ms if sample.timestamp is None else round(sample.timestamp * 1000)
                parsed.append((labels.with_labels(extra), ts, float(sample.value)))
    except ValueError as exc:
        msg = f"invalid exposition payload: {exc}"
        raise ScrapeError(msg) from exc
    return parsed
