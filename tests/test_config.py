"""Tests for client configuration."""

import logging

import pytest

from soron_ads.config import DEFAULT_API_BASE, SoronConfig, configure_logging
from soron_ads.exceptions import ConfigurationError
from soron_ads.models import RequestMode


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("SORON_API_KEY", raising=False)
    monkeypatch.delenv("SORON_ADS_DEBUG", raising=False)


def test_defaults():
    config = SoronConfig(api_key="k")
    assert config.api_base == DEFAULT_API_BASE
    assert config.timeout_ms == 10_000
    assert config.max_retries == 0
    assert config.retry_delay_ms == 1_000
    assert config.mode is RequestMode.USER_QUERY
    assert config.platform == "web"
    assert config.location == "US"


def test_api_key_falls_back_to_env(monkeypatch):
    monkeypatch.setenv("SORON_API_KEY", "env-key")
    assert SoronConfig().api_key == "env-key"
    assert SoronConfig(api_key="explicit").api_key == "explicit"


def test_missing_api_key_is_none():
    assert SoronConfig(api_key="").api_key is None


def test_from_options_accepts_camel_case():
    config = SoronConfig.from_options(
        "k", apiBase="https://staging.soron.ai", timeoutMs=500, maxRetries=2,
        retryDelayMs=250, mode="agent-response", debugLogging=True,
    )
    assert config.api_base == "https://staging.soron.ai"
    assert config.timeout_ms == 500
    assert config.max_retries == 2
    assert config.retry_delay_ms == 250
    assert config.mode is RequestMode.AGENT_RESPONSE
    assert config.debug_logging is True


def test_from_options_rejects_unknown():
    with pytest.raises(ConfigurationError, match="Unknown option"):
        SoronConfig.from_options("k", colour="blue")


@pytest.mark.parametrize("field, value", [("timeout_ms", 0), ("max_retries", -1), ("retry_delay_ms", -5)])
def test_invalid_numbers(field, value):
    with pytest.raises(ConfigurationError):
        SoronConfig(api_key="k", **{field: value})


def test_invalid_mode():
    with pytest.raises(ValueError):
        SoronConfig(api_key="k", mode="banner")


@pytest.fixture
def package_logger():
    logger = logging.getLogger("soron_ads")
    saved = logger.level
    yield logger
    logger.setLevel(saved)


def test_debug_enabled(monkeypatch):
    monkeypatch.delenv("SORON_ADS_DEBUG", raising=False)
    assert SoronConfig(api_key="k").debug_enabled is False
    assert SoronConfig(api_key="k", debug_logging=True).debug_enabled is True
    monkeypatch.setenv("SORON_ADS_DEBUG", "true")
    assert SoronConfig(api_key="k").debug_enabled is True


def test_configure_logging_debug(package_logger):
    package_logger.setLevel(logging.WARNING)
    configure_logging(True)
    assert package_logger.level == logging.DEBUG


def test_configure_logging_leaves_host_level(package_logger):
    package_logger.setLevel(logging.ERROR)
    configure_logging(False)
    assert package_logger.level == logging.ERROR
    assert logging.getLogger("soron_ads.delivery.engine").getEffectiveLevel() == logging.ERROR
