"""Serialized presence monitor.

Owns:
- the inbox every snapshot, beacon event and clear request goes through
- the single consumer task that applies them to the tracker and the logs
- the subscriptions attached to snapshot sources
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from bluepresence._redact import redact_for_log
from bluepresence.config import PresenceConfig
from bluepresence.exceptions import PresenceSubscriptionError
from bluepresence.identity import NotificationIdentityAssigner
from bluepresence.ingestion.snapshot import RegionSnapshot, filter_snapshot
from bluepresence.log import EventLogAccumulator, LogStream
from bluepresence.models.beacon import BeaconLocation
from bluepresence.state.events import TransitionEvent
from bluepresence.state.tracker import PresenceTracker
from bluepresence.subscription import SnapshotSource, Subscription

_logger = logging.getLogger(__name__)

NotifyCallback = Callable[[int, BeaconLocation], None]
TransitionsCallback = Callable[[list[TransitionEvent]], None]


@dataclass(frozen=True, slots=True)
class _SnapshotMessage:
    snapshot: RegionSnapshot


@dataclass(frozen=True, slots=True)
class _BeaconMessage:
    beacon: BeaconLocation


@dataclass(frozen=True, slots=True)
class _ClearMessage:
    stream: LogStream


_Message = _SnapshotMessage | _BeaconMessage | _ClearMessage


class PresenceMonitor:
    """Feed snapshots from any number of sources through one serialized inbox.

    Usage::

        async with PresenceMonitor.from_config(config) as monitor:
            monitor.attach(source)
            ...

    Every ``submit_*``/``clear_*`` call may come from any thread; the
    messages are applied in arrival order by a single consumer task, so
    the tracker only ever has one writer. Cancelling a subscription, or
    stopping the monitor, leaves the tracker state untouched; only
    :meth:`clear_region_logs` resets it.
    """

    def __init__(
        self,
        *,
        tracker: PresenceTracker | None = None,
        log: EventLogAccumulator | None = None,
        assigner: NotificationIdentityAssigner | None = None,
        tags: Iterable[str] | None = None,
        on_notify: NotifyCallback | None = None,
        on_transitions: TransitionsCallback | None = None,
    ) -> None:
        self._tracker = tracker if tracker is not None else PresenceTracker()
        self._log = log if log is not None else EventLogAccumulator(tracker=self._tracker)
        self._assigner = assigner if assigner is not None else NotificationIdentityAssigner()
        self._tags = frozenset(tags) if tags is not None else None
        self._on_notify = on_notify
        self._on_transitions = on_transitions
        self._loop: asyncio.AbstractEventLoop | None = None
        self._inbox: asyncio.Queue[_Message] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._subscriptions: list[Subscription] = []
        self._last_identity: int | None = None

    @classmethod
    def from_config(
        cls,
        config: PresenceConfig,
        *,
        on_notify: NotifyCallback | None = None,
        on_transitions: TransitionsCallback | None = None,
    ) -> PresenceMonitor:
        """Wire tracker, log and identity assigner from *config*."""
        tracker = PresenceTracker()
        return cls(
            tracker=tracker,
            log=EventLogAccumulator(tracker=tracker, max_lines=config.log_max_lines),
            assigner=NotificationIdentityAssigner(
                base=config.notification_base,
                size=config.notification_range,
                unknown_event_kind=config.unknown_event_kind,
            ),
            tags=[config.tag_id] if config.tag_id else None,
            on_notify=on_notify,
            on_transitions=on_transitions,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def tracker(self) -> PresenceTracker:
        return self._tracker

    @property
    def log(self) -> EventLogAccumulator:
        return self._log

    @property
    def assigner(self) -> NotificationIdentityAssigner:
        return self._assigner

    @property
    def last_identity(self) -> int | None:
        """Notification identity of the most recently handled beacon event."""
        return self._last_identity

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PresenceMonitor:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Start the consumer task on the running loop."""
        if self.is_running:
            raise PresenceSubscriptionError("Monitor already started")
        self._loop = asyncio.get_running_loop()
        self._inbox = asyncio.Queue()
        self._consumer = self._loop.create_task(self._consume(self._inbox))
        _logger.debug("Presence monitor started")

    async def stop(self) -> None:
        """Cancel attached subscriptions, apply what is queued, stop consuming."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.cancel()

        consumer = self._consumer
        if consumer is None:
            return
        if not consumer.done():
            await self.drain()
        consumer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await consumer
        self._consumer = None
        self._inbox = None
        self._loop = None
        _logger.debug("Presence monitor stopped")

    async def drain(self) -> None:
        """Wait until every message queued so far has been applied."""
        if self._inbox is None:
            return
        await self._flush_posts()
        await self._inbox.join()

    async def _flush_posts(self) -> None:
        # Posts from other threads are still loop callbacks until they run;
        # call_soon is FIFO, so this resolves after every earlier one.
        if self._loop is None:
            return
        flushed = self._loop.create_future()
        self._loop.call_soon(flushed.set_result, None)
        await flushed

    def attach(self, source: SnapshotSource) -> Subscription:
        """Subscribe this monitor to *source*; returns the cancellation handle."""
        self._require_running()
        subscription = source.subscribe(self)
        self._subscriptions.append(subscription)
        return subscription

    # ------------------------------------------------------------------
    # SnapshotSink
    # ------------------------------------------------------------------

    def on_snapshot(self, snapshot: RegionSnapshot) -> None:
        self.submit_snapshot(snapshot)

    def on_beacon(self, beacon: BeaconLocation) -> None:
        self.submit_beacon(beacon)

    def on_terminated(self, reason: str) -> None:
        _logger.error("Snapshot subscription terminated: %s", reason)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def submit_snapshot(self, snapshot: RegionSnapshot) -> None:
        self._post(_SnapshotMessage(snapshot))

    def submit_beacon(self, beacon: BeaconLocation) -> None:
        self._post(_BeaconMessage(beacon))

    def clear_region_logs(self) -> None:
        """Clear the region log and reset presence memory, in inbox order."""
        self._post(_ClearMessage(LogStream.REGION))

    def clear_beacon_logs(self) -> None:
        self._post(_ClearMessage(LogStream.BEACON))

    def _require_running(self) -> tuple[asyncio.AbstractEventLoop, asyncio.Queue[_Message]]:
        if self._loop is None or self._inbox is None or not self.is_running:
            raise PresenceSubscriptionError("Monitor not running. Use 'async with PresenceMonitor(...) as monitor:'")
        return self._loop, self._inbox

    def _post(self, message: _Message) -> None:
        loop, inbox = self._require_running()
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            inbox.put_nowait(message)
        else:
            loop.call_soon_threadsafe(inbox.put_nowait, message)

    async def _consume(self, inbox: asyncio.Queue[_Message]) -> None:
        while True:
            message = await inbox.get()
            try:
                self._handle(message)
            except Exception:
                _logger.error("Failed to apply %s", type(message).__name__, exc_info=True)
            finally:
                inbox.task_done()

    def _handle(self, message: _Message) -> None:
        if isinstance(message, _SnapshotMessage):
            self._handle_snapshot(message.snapshot)
        elif isinstance(message, _BeaconMessage):
            self._handle_beacon(message.beacon)
        else:
            self._log.clear(message.stream)

    def _handle_snapshot(self, snapshot: RegionSnapshot) -> None:
        _logger.debug("Applying snapshot %s", redact_for_log(snapshot))
        events = self._tracker.apply_snapshot(filter_snapshot(snapshot, self._tags))
        if not events:
            return
        self._log.extend(LogStream.REGION, [event.log_line for event in events])
        if self._on_transitions is not None:
            self._on_transitions(events)

    def _handle_beacon(self, beacon: BeaconLocation) -> None:
        self._log.append(LogStream.BEACON, beacon.log_line)
        identity = self._assigner.identity_for(beacon.id, beacon.event)
        self._last_identity = identity
        _logger.debug("Beacon %s %s -> notification %d", beacon.id, beacon.event, identity)
        if self._on_notify is not None:
            self._on_notify(identity, beacon)
