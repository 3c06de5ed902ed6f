"""Custom exception hierarchy for promview."""

from __future__ import annotations


class PromViewError(Exception):
    """Base exception for all promview errors.

    Every error raised by promview inherits from this class, so callers
    such as the refresh loop can catch anything promview-specific with a
    single except clause.
    """


class ConfigError(PromViewError):
    """Raised when configuration is invalid.

    Examples:
        - An environment variable holds a non-numeric interval.
        - The scrape timeout is longer than the scrape interval.
    """


class ScrapeError(PromViewError):
    """Raised when a metrics endpoint cannot be fetched or parsed.

    Examples:
        - The target refuses the connection or times out.
        - The endpoint answers with a non-2xx status.
        - The payload is not valid text exposition format.
    """


class HistogramError(PromViewError):
    """Raised when bucket samples cannot be assembled into a histogram."""


class MalformedBucketError(HistogramError):
    """Raised when a bucket sample carries no ``le`` label."""


class BucketBoundError(HistogramError):
    """Raised when a bucket's ``le`` label is not a usable number."""


class AmbiguousMatchError(PromViewError):
    """Raised when a single-series lookup matches more than one series."""
