"""Unit tests for environment-driven CollectorSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from instrumentation_score.enums.enum_log_level import EnumLogLevel
from instrumentation_score.settings import CollectorSettings

pytestmark = pytest.mark.unit

_ENV_VARS = (
    "URL",
    "LOGIN",
    "CONCURRENT_METRICS",
    "CONCURRENT_JOBS",
    "CONCURRENT_LABEL_CARDINALITY",
    "RETRY_COUNT",
    "REQUEST_TIMEOUT_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)


class TestCollectorSettings:
    def test_defaults(self) -> None:
        settings = CollectorSettings()
        assert settings.url is None
        assert settings.concurrent_metrics == 5
        assert settings.concurrent_jobs == 3
        assert settings.concurrent_label_cardinality == 50
        assert settings.retry_count == 2
        assert settings.log_level is EnumLogLevel.INFO

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("url", "http://prom:9090")
        monkeypatch.setenv("login", "alice:secret")
        monkeypatch.setenv("CONCURRENT_METRICS", "8")
        monkeypatch.setenv("RETRY_COUNT", "0")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = CollectorSettings()

        assert settings.url == "http://prom:9090"
        assert settings.concurrent_metrics == 8
        assert settings.retry_count == 0
        assert settings.log_level is EnumLogLevel.DEBUG
        assert "secret" not in repr(settings)

    @pytest.mark.parametrize(
        ("name", "value"),
        [("CONCURRENT_JOBS", "0"), ("RETRY_COUNT", "-1"), ("CONCURRENT_METRICS", "x")],
    )
    def test_invalid_values(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            CollectorSettings()


class TestToClientConfig:
    def test_url_required(self) -> None:
        with pytest.raises(ValueError, match="url environment variable is required"):
            CollectorSettings().to_client_config()

    def test_retry_override(self) -> None:
        settings = CollectorSettings(url="http://prom:9090", login="a:b", retry_count=4)
        assert settings.to_client_config().max_retries == 4
        config = settings.to_client_config(retry_count=0)
        assert config.max_retries == 0
        assert config.base_url == "http://prom:9090"
        assert config.login == "a:b"


class TestToCollectorConfig:
    def test_settings_used_when_no_override(self) -> None:
        settings = CollectorSettings(concurrent_metrics=7, concurrent_jobs=2)
        config = settings.to_collector_config(query_filters='env="prod"')
        assert config.max_concurrent_metrics == 7
        assert config.max_concurrent_jobs == 2
        assert config.max_concurrent_label_cardinality == 50
        assert config.query_filters == 'env="prod"'
        assert config.collect_label_cardinality is False

    def test_overrides_win(self) -> None:
        config = CollectorSettings().to_collector_config(
            concurrent_metrics=1,
            concurrent_jobs=1,
            concurrent_label_cardinality=9,
            collect_label_cardinality=True,
        )
        assert (
            config.max_concurrent_metrics,
            config.max_concurrent_jobs,
            config.max_concurrent_label_cardinality,
        ) == (1, 1, 9)
        assert config.collect_label_cardinality is True
