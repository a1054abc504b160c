from __future__ import annotations

import pytest

from bluepresence.config import PresenceConfig
from bluepresence.exceptions import PresenceConfigError


def test_defaults() -> None:
    config = PresenceConfig()

    assert config.notification_base == 1001
    assert config.notification_range == 1000
    assert config.unknown_event_kind == "unknown"
    assert config.log_max_lines is None
    assert config.mqtt_tls is True


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLUEPRESENCE_TAG_ID", " tag-7 ")
    monkeypatch.setenv("BLUEPRESENCE_NOTIFICATION_RANGE", "50")
    monkeypatch.setenv("BLUEPRESENCE_LOG_MAX_LINES", "200")
    monkeypatch.setenv("BLUEPRESENCE_MQTT_HOST", "broker.local")
    monkeypatch.setenv("BLUEPRESENCE_MQTT_TLS", "off")

    config = PresenceConfig.from_env()

    assert config.tag_id == "tag-7"
    assert config.notification_range == 50
    assert config.log_max_lines == 200
    assert config.mqtt_host == "broker.local"
    assert config.mqtt_tls is False


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLUEPRESENCE_MQTT_PORT", "1883")
    monkeypatch.setenv("BLUEPRESENCE_MQTT_TLS", "false")

    config = PresenceConfig.from_env(mqtt_port=8884, mqtt_tls=True)

    assert config.mqtt_port == 8884
    assert config.mqtt_tls is True


def test_invalid_int_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLUEPRESENCE_NOTIFICATION_BASE", "many")

    with pytest.raises(PresenceConfigError):
        PresenceConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"notification_range": 0},
        {"notification_base": -1},
        {"log_max_lines": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, int]) -> None:
    with pytest.raises(PresenceConfigError):
        PresenceConfig(**kwargs)
