"""Append-only event logs published to observers.

Two independent streams are kept, one for beacon scan events and one for
region ENTER/EXIT transitions. Every change publishes a complete, immutable
:class:`LogState`, so observers never see half of an append.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import StrEnum

from bluepresence.exceptions import PresenceConfigError
from bluepresence.state.tracker import PresenceTracker

_logger = logging.getLogger(__name__)


class LogStream(StrEnum):
    BEACON = "beacon"
    REGION = "region"


@dataclass(frozen=True)
class LogState:
    """Published view of both log buffers."""

    beacon_status: str = ""
    region_status: str = ""

    def text(self, stream: LogStream) -> str:
        if stream == LogStream.BEACON:
            return self.beacon_status
        return self.region_status


LogObserver = Callable[[LogState], None]


def _single_line(line: str) -> str:
    # One appended entry must stay one buffer line for max_lines to hold.
    return " ".join(line.splitlines())


def _field_for(stream: LogStream) -> str:
    return "beacon_status" if stream == LogStream.BEACON else "region_status"


class EventLogAccumulator:
    """Accumulate log lines per stream and publish them to observers.

    Clearing the region stream also resets the attached
    :class:`PresenceTracker`, so the next snapshot is diffed against an
    empty baseline rather than replaying exits nobody saw entering.
    """

    def __init__(
        self,
        *,
        tracker: PresenceTracker | None = None,
        max_lines: int | None = None,
    ) -> None:
        if max_lines is not None and max_lines <= 0:
            raise PresenceConfigError("max_lines must be positive when set")
        self._tracker = tracker
        self._max_lines = max_lines
        self._lock = threading.RLock()
        self._state = LogState()
        self._observers: list[LogObserver] = []

    @property
    def state(self) -> LogState:
        """Latest published state."""
        return self._state

    def text(self, stream: LogStream) -> str:
        return self._state.text(stream)

    def subscribe(self, observer: LogObserver) -> Callable[[], None]:
        """Register *observer*; returns a callable that unregisters it."""
        with self._lock:
            self._observers.append(observer)

        def unsubscribe() -> None:
            with self._lock:
                self._observers = [o for o in self._observers if o is not observer]

        return unsubscribe

    def append(self, stream: LogStream | str, line: str) -> None:
        """Append one line (a newline is added) and publish.

        Embedded line breaks in *line* are replaced by spaces.
        """
        self.extend(stream, [line])

    def extend(self, stream: LogStream | str, lines: Iterable[str]) -> None:
        """Append several lines as a single publication."""
        stream = LogStream(stream)
        chunk = "".join(f"{_single_line(line)}\n" for line in lines)
        if not chunk:
            return
        with self._lock:
            field = _field_for(stream)
            text = self._bounded(getattr(self._state, field) + chunk)
            self._state = replace(self._state, **{field: text})
            self._publish()

    def clear(self, stream: LogStream | str) -> None:
        """Empty *stream* and publish; clearing REGION also resets the tracker."""
        stream = LogStream(stream)
        with self._lock:
            if stream == LogStream.REGION and self._tracker is not None:
                self._tracker.reset()
            self._state = replace(self._state, **{_field_for(stream): ""})
            _logger.debug("Cleared %s log", stream.value)
            self._publish()

    def _bounded(self, text: str) -> str:
        if self._max_lines is None:
            return text
        lines = text.split("\n")[:-1]
        if len(lines) <= self._max_lines:
            return text
        return "".join(f"{line}\n" for line in lines[-self._max_lines :])

    def _publish(self) -> None:
        # Called with the lock held so observers see states in order.
        state = self._state
        for observer in list(self._observers):
            try:
                observer(state)
            except Exception:
                _logger.error("Log observer %r failed", observer, exc_info=True)
