"""Subscription interface between snapshot sources and their consumers.

A source delivers region snapshots and beacon events into a
:class:`SnapshotSink` and hands back a :class:`Subscription` the caller
uses to tear the feed down.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from bluepresence.ingestion.snapshot import RegionSnapshot
from bluepresence.models.beacon import BeaconLocation

_logger = logging.getLogger(__name__)


class SnapshotSink(Protocol):
    """Receiver side of a subscription.

    Implementations must accept calls from any thread.
    """

    def on_snapshot(self, snapshot: RegionSnapshot) -> None:
        ...

    def on_beacon(self, beacon: BeaconLocation) -> None:
        ...

    def on_terminated(self, reason: str) -> None:
        ...


class Subscription:
    """Cancellation handle returned by :meth:`SnapshotSource.subscribe`.

    ``cancel()`` runs the teardown callback at most once.
    """

    def __init__(self, teardown: Callable[[], object] | None = None, *, name: str = "") -> None:
        self._teardown = teardown
        self._name = name
        self._lock = threading.Lock()
        self._cancelled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            teardown, self._teardown = self._teardown, None
        _logger.debug("Subscription %s cancelled", self._name or hex(id(self)))
        if teardown is not None:
            teardown()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<Subscription {self._name!r} {state}>"


class SnapshotSource(Protocol):
    """Anything that can feed snapshots into a sink."""

    def subscribe(self, sink: SnapshotSink) -> Subscription:
        ...
