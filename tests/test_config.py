from __future__ import annotations

import pytest

from payaware.config import PayAwareConfig
from payaware.exceptions import ConfigError


def test_defaults() -> None:
    config = PayAwareConfig()

    assert config.base_url == "https://api.pay-aware.ru"
    assert config.request_timeout == 5.0
    assert config.recheck_interval == 900
    assert config.credentials_path is None


def test_from_env_reads_payaware_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYAWARE_BASE_URL", "http://localhost:8080/")
    monkeypatch.setenv("PAYAWARE_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("PAYAWARE_RECHECK_INTERVAL", "60")

    config = PayAwareConfig.from_env()

    assert config.base_url == "http://localhost:8080"
    assert config.request_timeout == 2.5
    assert config.recheck_interval == 60.0


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYAWARE_RECHECK_INTERVAL", "60")
    monkeypatch.setenv("PAYAWARE_COALESCE_WINDOW", "not-a-number")

    config = PayAwareConfig.from_env(recheck_interval=0, coalesce_window=1.0)

    assert config.recheck_interval == 0
    assert config.coalesce_window == 1.0


def test_from_env_rejects_non_numeric_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PAYAWARE_REQUEST_TIMEOUT", "soon")

    with pytest.raises(ConfigError, match="PAYAWARE_REQUEST_TIMEOUT"):
        PayAwareConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"request_timeout": 0},
        {"recheck_interval": -1},
        {"coalesce_window": -0.5},
    ],
)
def test_invalid_values_raise_config_error(kwargs: dict[str, float]) -> None:
    with pytest.raises(ConfigError):
        PayAwareConfig(**kwargs)
