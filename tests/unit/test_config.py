"""Tests for configuration loading."""

from __future__ import annotations

import dataclasses

import pytest

from promview._internal.config import PromViewConfig, load_config, validate_config
from promview._internal.errors import ConfigError

_ENV_VARS = (
    "PROMVIEW_SCHEME",
    "PROMVIEW_METRICS_PATH",
    "PROMVIEW_JOB_NAME",
    "PROMVIEW_SCRAPE_INTERVAL",
    "PROMVIEW_SCRAPE_TIMEOUT",
    "PROMVIEW_REFRESH_INTERVAL",
    "PROMVIEW_ENTITY_LABEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestPromViewConfig:
    """Tests for the PromViewConfig dataclass."""

    def test_defaults(self):
        config = PromViewConfig()
        assert config.scheme == "http"
        assert config.metrics_path == "/metrics"
        assert config.job_name == "promview"
        assert config.scrape_interval == 1.0
        assert config.scrape_timeout == 0.5
        assert config.refresh_interval == 1.0
        assert config.entity_label == "controller"

    def test_frozen(self):
        config = PromViewConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.scheme = "https"  # type: ignore[misc]


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_defaults_from_env(self):
        assert load_config() == PromViewConfig()

    def test_values_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PROMVIEW_SCHEME", "https")
        monkeypatch.setenv("PROMVIEW_METRICS_PATH", "/custom")
        monkeypatch.setenv("PROMVIEW_JOB_NAME", "operator")
        monkeypatch.setenv("PROMVIEW_SCRAPE_INTERVAL", "5")
        monkeypatch.setenv("PROMVIEW_SCRAPE_TIMEOUT", "2.5")
        monkeypatch.setenv("PROMVIEW_REFRESH_INTERVAL", "0.5")
        monkeypatch.setenv("PROMVIEW_ENTITY_LABEL", "name")

        config = load_config()
        assert config.scheme == "https"
        assert config.metrics_path == "/custom"
        assert config.job_name == "operator"
        assert config.scrape_interval == 5.0
        assert config.scrape_timeout == 2.5
        assert config.refresh_interval == 0.5
        assert config.entity_label == "name"

    def test_non_numeric_interval(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PROMVIEW_SCRAPE_INTERVAL", "soon")
        with pytest.raises(ConfigError, match="PROMVIEW_SCRAPE_INTERVAL must be a number"):
            load_config()

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
    def test_non_finite_interval(self, monkeypatch: pytest.MonkeyPatch, raw: str):
        monkeypatch.setenv("PROMVIEW_SCRAPE_INTERVAL", raw)
        with pytest.raises(ConfigError, match="PROMVIEW_SCRAPE_INTERVAL must be a finite number"):
            load_config()

    def test_zero_refresh_interval(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PROMVIEW_REFRESH_INTERVAL", "0")
        with pytest.raises(ConfigError, match="refresh_interval must be positive"):
            load_config()

    def test_timeout_longer_than_interval(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PROMVIEW_SCRAPE_TIMEOUT", "3")
        with pytest.raises(ConfigError, match="must not exceed"):
            load_config()

    def test_bad_scheme(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PROMVIEW_SCHEME", "ftp")
        with pytest.raises(ConfigError, match="scheme"):
            load_config()


class TestValidateConfig:
    def test_returns_valid_config(self):
        config = PromViewConfig()
        assert validate_config(config) is config

    def test_relative_metrics_path(self):
        with pytest.raises(ConfigError, match="metrics_path"):
            validate_config(PromViewConfig(metrics_path="metrics"))

    def test_empty_entity_label(self):
        with pytest.raises(ConfigError, match="entity_label"):
            validate_config(PromViewConfig(entity_label=""))

    def test_negative_timeout(self):
        with pytest.raises(ConfigError, match="scrape_timeout must be positive"):
            validate_config(PromViewConfig(scrape_timeout=-1.0))

    @pytest.mark.parametrize(
        "field", ["scrape_interval", "scrape_timeout", "refresh_interval"]
    )
    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_seconds(self, field: str, value: float):
        config = dataclasses.replace(PromViewConfig(), **{field: value})
        with pytest.raises(ConfigError, match=f"{field} must be positive and finite"):
            validate_config(config)
