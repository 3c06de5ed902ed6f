"""Tests for Sample and Bucket records."""

from __future__ import annotations

import math

from promview.metrics.labels import LabelSet
from promview.metrics.models import EMPTY_BUCKET, Bucket, Sample


def _sample(value: float = 1.5) -> Sample:
    labels = LabelSet(
        {
            "__name__": "reconcile_total",
            "controller": "pods",
            "instance": "localhost:8080",
            "job": "promview",
        }
    )
    return Sample(labels=labels, timestamp=1, value=value)


class TestSample:
    def test_metric_name(self):
        assert _sample().metric_name == "reconcile_total"

    def test_is_stale(self):
        assert not _sample().is_stale
        assert _sample(math.nan).is_stale

    def test_display_hides_instance_and_job(self):
        assert _sample().display() == "reconcile_total{controller=pods} 1.500000"

    def test_series_key(self):
        key = _sample().series_key
        assert key.startswith('reconcile_total{controller="pods"')
        assert 'job="promview"' in key

    def test_series_key_without_labels(self):
        sample = Sample(LabelSet({"__name__": "up"}), 1, 1.0)
        assert sample.series_key == "up"


class TestBucket:
    def test_empty_bucket(self):
        assert EMPTY_BUCKET == Bucket()
        assert EMPTY_BUCKET.label == ""
        assert EMPTY_BUCKET.value == 0
