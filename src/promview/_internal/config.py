"""Configuration loading for promview."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from promview._internal.errors import ConfigError

_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class PromViewConfig:
    """Global promview configuration.

    Attributes:
        scheme: URL scheme used to reach the metrics endpoint.
        metrics_path: HTTP path of the metrics endpoint.
        job_name: Value of the ``job`` label attached to scraped series.
        scrape_interval: Seconds between two scrapes.
        scrape_timeout: Seconds before a scrape request is abandoned.
        refresh_interval: Seconds between two redraws of the terminal view.
        entity_label: Label that names the monitored sub-entity
            (e.g. a controller).
    """

    scheme: str = "http"
    metrics_path: str = "/metrics"
    job_name: str = "promview"
    scrape_interval: float = 1.0
    scrape_timeout: float = 0.5
    refresh_interval: float = 1.0
    entity_label: str = "controller"


def _read_seconds(var: str, default: str) -> float:
    raw = os.environ.get(var, default)
    try:
        value = float(raw)
    except ValueError:
        msg = f"{var} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None
    if not math.isfinite(value):
        msg = f"{var} must be a finite number, got: {raw!r}"
        raise ConfigError(msg)
    return value


def validate_config(config: PromViewConfig) -> PromViewConfig:
    """Check a configuration for out-of-range values.

    Args:
        config: Configuration to check, typically one built from CLI overrides.

    Returns:
        The same configuration, unchanged.

    Raises:
        ConfigError: If any field is out of range.
    """
    if config.scheme not in _SCHEMES:
        msg = f"scheme must be one of {', '.join(_SCHEMES)}, got: {config.scheme!r}"
        raise ConfigError(msg)

    if not config.metrics_path.startswith("/"):
        msg = f"metrics_path must start with '/', got: {config.metrics_path!r}"
        raise ConfigError(msg)

    for name in ("scrape_interval", "scrape_timeout", "refresh_interval"):
        value = getattr(config, name)
        if not math.isfinite(value) or value <= 0:
            msg = f"{name} must be positive and finite, got: {value}"
            raise ConfigError(msg)

    if config.scrape_timeout > config.scrape_interval:
        msg = (
            f"scrape_timeout ({config.scrape_timeout}s) must not exceed "
            f"scrape_interval ({config.scrape_interval}s)"
        )
        raise ConfigError(msg)

    if not config.entity_label:
        msg = "entity_label must not be empty"
        raise ConfigError(msg)

    return config


def load_config() -> PromViewConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        PROMVIEW_SCHEME: ``http`` or ``https`` (default: http).
        PROMVIEW_METRICS_PATH: Metrics endpoint path (default: /metrics).
        PROMVIEW_JOB_NAME: ``job`` label value (default: promview).
        PROMVIEW_SCRAPE_INTERVAL: Seconds between scrapes (default: 1.0).
        PROMVIEW_SCRAPE_TIMEOUT: Scrape timeout in seconds (default: 0.5).
        PROMVIEW_REFRESH_INTERVAL: Seconds between redraws (default: 1.0).
        PROMVIEW_ENTITY_LABEL: Sub-entity label name (default: controller).

    Returns:
        Populated PromViewConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    config = PromViewConfig(
        scheme=os.environ.get("PROMVIEW_SCHEME", "http"),
        metrics_path=os.environ.get("PROMVIEW_METRICS_PATH", "/metrics"),
        job_name=os.environ.get("PROMVIEW_JOB_NAME", "promview"),
        scrape_interval=_read_seconds("PROMVIEW_SCRAPE_INTERVAL", "1.0"),
        scrape_timeout=_read_seconds("PROMVIEW_SCRAPE_TIMEOUT", "0.5"),
        refresh_interval=_read_seconds("PROMVIEW_REFRESH_INTERVAL", "1.0"),
        entity_label=os.environ.get("PROMVIEW_ENTITY_LABEL", "controller"),
    )
    return validate_config(config)
