from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

import pytest

from bluepresence._mqtt import MqttSnapshotSource, decode_mqtt_payload
from bluepresence.config import PresenceConfig
from bluepresence.exceptions import PresenceConfigError, PresencePayloadError, PresenceSubscriptionError
from bluepresence.models.beacon import BeaconLocation


@dataclass
class FakeMqttClient:
    credentials: tuple[str, str | None] | None = None
    tls: bool = False
    connected_to: tuple[str, int, int] | None = None
    subscriptions: list[str] = field(default_factory=list)
    loop_started: bool = False
    loop_stopped: bool = False
    disconnected: bool = False
    on_connect: Any = None
    on_message: Any = None
    on_disconnect: Any = None

    def enable_logger(self, _logger: Any) -> None:
        pass

    def username_pw_set(self, username: str, password: str | None) -> None:
        self.credentials = (username, password)

    def tls_set(self) -> None:
        self.tls = True

    def connect_async(self, host: str, port: int, keepalive: int) -> None:
        self.connected_to = (host, port, keepalive)

    def loop_start(self) -> None:
        self.loop_started = True

    def loop_stop(self) -> None:
        self.loop_stopped = True

    def subscribe(self, topic: str, qos: int = 0) -> None:
        self.subscriptions.append(topic)

    def disconnect(self) -> None:
        self.disconnected = True


@dataclass
class RecordingSink:
    snapshots: list[Any] = field(default_factory=list)
    beacons: list[BeaconLocation] = field(default_factory=list)
    terminations: list[str] = field(default_factory=list)

    def on_snapshot(self, snapshot: Any) -> None:
        self.snapshots.append(snapshot)

    def on_beacon(self, beacon: BeaconLocation) -> None:
        self.beacons.append(beacon)

    def on_terminated(self, reason: str) -> None:
        self.terminations.append(reason)


def _message(payload: Any, topic: str = "bluegps/regions") -> SimpleNamespace:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return SimpleNamespace(topic=topic, payload=body)


async def _settle() -> None:
    for _ in range(3):
        await asyncio.sleep(0)


def test_decode_mqtt_payload() -> None:
    assert decode_mqtt_payload(b'{"event": "beacon"}') == {"event": "beacon"}
    with pytest.raises(PresencePayloadError):
        decode_mqtt_payload(b"\xff\xfe")
    with pytest.raises(PresencePayloadError):
        decode_mqtt_payload(b"[1, 2]")


def test_source_requires_host() -> None:
    with pytest.raises(PresenceConfigError):
        MqttSnapshotSource(PresenceConfig())


def test_subscribe_outside_loop_rejected() -> None:
    source = MqttSnapshotSource(PresenceConfig(mqtt_host="broker.local"), client_factory=FakeMqttClient)

    with pytest.raises(PresenceSubscriptionError):
        source.subscribe(RecordingSink())


@pytest.mark.asyncio
async def test_messages_are_delivered_on_the_loop() -> None:
    client = FakeMqttClient()
    config = PresenceConfig(mqtt_host="broker.local", mqtt_username="user", mqtt_password="pw", mqtt_keepalive=30)
    source = MqttSnapshotSource(config, client_factory=lambda: client)
    sink = RecordingSink()

    subscription = source.subscribe(sink)

    assert client.connected_to == ("broker.local", 8883, 30)
    assert client.credentials == ("user", "pw")
    assert client.tls and client.loop_started

    client.on_connect(client, None, None, SimpleNamespace(value=0), None)
    assert client.subscriptions == ["bluegps/regions"]

    client.on_message(client, None, _message({"event": "regionChanges", "data": {"tag-1": [{"name": "Lobby"}]}}))
    client.on_message(client, None, _message(b"garbage"))
    client.on_message(client, None, _message({"event": "regionChanges", "data": "oops"}))
    client.on_message(client, None, _message({"event": "beacon", "data": {"id": "b1", "message": "Desk"}}))
    await _settle()

    assert list(sink.snapshots[0]) == ["tag-1"]
    assert len(sink.snapshots) == 1
    assert [b.id for b in sink.beacons] == ["b1"]

    client.on_disconnect(client, None, None, "keepalive timeout", None)
    await _settle()
    assert sink.terminations == ["MQTT disconnected: keepalive timeout"]

    subscription.cancel()
    assert client.disconnected and client.loop_stopped


@pytest.mark.asyncio
async def test_failed_connect_does_not_subscribe() -> None:
    client = FakeMqttClient()
    source = MqttSnapshotSource(PresenceConfig(mqtt_host="broker.local", mqtt_tls=False), client_factory=lambda: client)

    source.subscribe(RecordingSink())
    client.on_connect(client, None, None, SimpleNamespace(value=135), None)

    assert client.subscriptions == []
    assert client.tls is False
    assert client.credentials is None
