"""MQTT snapshot source: parsing and runtime helpers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from bluepresence._redact import redact_for_log
from bluepresence.config import PresenceConfig
from bluepresence.exceptions import PresenceConfigError, PresencePayloadError, PresenceSubscriptionError
from bluepresence.ingestion.dispatch import deliver
from bluepresence.subscription import SnapshotSink, Subscription


@dataclass(frozen=True)
class MqttEndpoint:
    """Broker/topic data required to connect."""

    host: str
    port: int
    topic: str
    username: str | None = None
    password: str | None = None
    tls: bool = True

    @classmethod
    def from_config(cls, config: PresenceConfig) -> MqttEndpoint:
        host = (config.mqtt_host or "").strip()
        if not host:
            raise PresenceConfigError("mqtt_host is required for the MQTT snapshot source")
        return cls(
            host=host,
            port=config.mqtt_port,
            topic=config.mqtt_topic,
            username=config.mqtt_username,
            password=config.mqtt_password,
            tls=config.mqtt_tls,
        )


@dataclass(frozen=True)
class MqttEvent:
    """Decoded MQTT message envelope."""

    event: str
    topic: str
    data: Any


def decode_mqtt_payload(payload: bytes) -> dict[str, Any]:
    """Decode MQTT payload bytes into a JSON object."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PresencePayloadError(f"MQTT payload is not JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise PresencePayloadError("MQTT payload decoded to non-object JSON")
    return parsed


ClientFactory = Callable[[], mqtt.Client]


def _default_client() -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        protocol=mqtt.MQTTv5,
    )


class PresenceMqttRuntime:
    """Threaded paho-mqtt runtime that emits decoded events onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_event: Callable[[MqttEvent], None],
        on_disconnect: Callable[[str], None],
        keepalive: int = 120,
        logger: logging.Logger | None = None,
        client_factory: ClientFactory = _default_client,
    ) -> None:
        self._loop = loop
        self._on_event = on_event
        self._on_disconnect = on_disconnect
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client_factory = client_factory
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, endpoint: MqttEndpoint) -> None:
        """Connect (asynchronously) and subscribe once the broker accepts."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            endpoint.host,
            endpoint.port,
            endpoint.topic,
        )

        client = self._client_factory()
        client.enable_logger(self._logger)
        if endpoint.username is not None:
            client.username_pw_set(endpoint.username, endpoint.password)
        if endpoint.tls:
            client.tls_set()

        self._topic = endpoint.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                parsed = decode_mqtt_payload(msg.payload)
            except PresencePayloadError:
                self._logger.debug("MQTT payload parse failure", exc_info=True)
                return
            self._logger.debug("Received PUBLISH topic=%s parsed=%s", msg.topic, redact_for_log(parsed))
            event = MqttEvent(
                event=str(parsed.get("event") or ""),
                topic=msg.topic,
                data=parsed.get("data"),
            )
            self._loop.call_soon_threadsafe(self._on_event, event)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)
                self._loop.call_soon_threadsafe(self._on_disconnect, f"MQTT disconnected: {reason_code}")

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect_async(endpoint.host, endpoint.port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")


class MqttSnapshotSource:
    """Snapshot source backed by an MQTT topic.

    Messages are JSON envelopes ``{"event": "regionChanges", "data": {...}}``
    or ``{"event": "beacon", "data": {...}}``. Each subscription owns its own
    broker connection; cancelling it stops the network thread.
    """

    def __init__(
        self,
        config: PresenceConfig,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
        client_factory: ClientFactory = _default_client,
    ) -> None:
        self._endpoint = MqttEndpoint.from_config(config)
        self._keepalive = config.mqtt_keepalive
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._client_factory = client_factory

    def subscribe(self, sink: SnapshotSink) -> Subscription:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as exc:
                raise PresenceSubscriptionError("MQTT source needs a running event loop") from exc

        def on_event(event: MqttEvent) -> None:
            try:
                deliver(sink, event.event, event.data)
            except PresencePayloadError:
                self._logger.debug("Dropping undecodable %s message", event.event, exc_info=True)

        runtime = PresenceMqttRuntime(
            loop=loop,
            on_event=on_event,
            on_disconnect=sink.on_terminated,
            keepalive=self._keepalive,
            logger=self._logger,
            client_factory=self._client_factory,
        )
        runtime.start(self._endpoint)
        return Subscription(runtime.stop, name=f"mqtt:{self._endpoint.topic}")
