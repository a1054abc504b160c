"""Runtime configuration for bluepresence."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from bluepresence.exceptions import PresenceConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise PresenceConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class PresenceConfig:
    """Library configuration.

    Parameters
    ----------
    notification_base : int
        Lowest notification identity handed out for beacon events.
    notification_range : int
        Number of identity slots above ``notification_base``.
    unknown_event_kind : str
        Placeholder used in the identity key when a beacon event has no kind.
    log_max_lines : int or None
        Maximum number of lines kept per log stream. ``None`` keeps
        everything.
    tag_id : str or None
        When set, only snapshot entries for this tag are tracked.
    mqtt_host : str or None
        Broker host for :class:`~bluepresence._mqtt.MqttSnapshotSource`.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic carrying region-change and beacon messages.
    mqtt_username : str or None
        Broker username.
    mqtt_password : str or None
        Broker password.
    mqtt_tls : bool
        Enable TLS towards the broker.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    sse_url : str or None
        Event-stream URL for :class:`~bluepresence._sse.SseSnapshotSource`.
    """

    notification_base: int = 1001
    notification_range: int = 1000
    unknown_event_kind: str = "unknown"
    log_max_lines: int | None = None
    tag_id: str | None = None
    mqtt_host: str | None = None
    mqtt_port: int = 8883
    mqtt_topic: str = "bluegps/regions"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = True
    mqtt_keepalive: int = 120
    sse_url: str | None = None

    def __post_init__(self) -> None:
        if self.notification_range <= 0:
            raise PresenceConfigError("notification_range must be positive")
        if self.notification_base < 0:
            raise PresenceConfigError("notification_base must be non-negative")
        if self.log_max_lines is not None and self.log_max_lines <= 0:
            raise PresenceConfigError("log_max_lines must be positive when set")

    @classmethod
    def from_env(cls, **overrides: Any) -> PresenceConfig:
        """Create configuration from ``BLUEPRESENCE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "BLUEPRESENCE_UNKNOWN_EVENT_KIND": "unknown_event_kind",
            "BLUEPRESENCE_TAG_ID": "tag_id",
            "BLUEPRESENCE_MQTT_HOST": "mqtt_host",
            "BLUEPRESENCE_MQTT_TOPIC": "mqtt_topic",
            "BLUEPRESENCE_MQTT_USERNAME": "mqtt_username",
            "BLUEPRESENCE_MQTT_PASSWORD": "mqtt_password",
            "BLUEPRESENCE_SSE_URL": "sse_url",
        }
        _ENV_INT_MAP = {
            "BLUEPRESENCE_NOTIFICATION_BASE": "notification_base",
            "BLUEPRESENCE_NOTIFICATION_RANGE": "notification_range",
            "BLUEPRESENCE_LOG_MAX_LINES": "log_max_lines",
            "BLUEPRESENCE_MQTT_PORT": "mqtt_port",
            "BLUEPRESENCE_MQTT_KEEPALIVE": "mqtt_keepalive",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip() and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("BLUEPRESENCE_MQTT_TLS"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
