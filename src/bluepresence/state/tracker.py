"""Presence-change diffing engine.

This is the only component allowed to mutate per-entity region memory.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from bluepresence.ingestion.normalize import region_names
from bluepresence.state.events import TransitionEvent, TransitionKind

_logger = logging.getLogger(__name__)


def _events(key: str, regions: tuple[str, ...], kind: TransitionKind) -> list[TransitionEvent]:
    return [TransitionEvent(key=key, region=region, kind=kind) for region in regions]


class PresenceTracker:
    """Diff region-membership snapshots into ENTER/EXIT events.

    The tracker remembers, per entity key, the regions the entity was in at
    the last snapshot. A key is only remembered while that set is non-empty;
    an entity reporting no regions and an entity missing from the snapshot
    are handled identically (every remembered region exits).

    Given the same sequence of snapshots (with the same iteration order)
    the tracker produces the same events. Calls are serialized by an
    internal lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._regions_by_key: dict[str, tuple[str, ...]] = {}

    def apply_snapshot(self, snapshot: Mapping[str, Any] | None) -> list[TransitionEvent]:
        """Apply one snapshot and return the transitions it implies.

        Per key, ENTER events come before EXIT events. Keys appear in
        snapshot order, followed by the keys that disappeared.
        """
        if not isinstance(snapshot, Mapping):
            snapshot = {}

        events: list[TransitionEvent] = []
        with self._lock:
            for key, memberships in snapshot.items():
                current = region_names(memberships)
                previous = self._regions_by_key.get(key, ())

                entered = tuple(name for name in current if name not in previous)
                exited = tuple(name for name in previous if name not in current)
                events.extend(_events(key, entered, TransitionKind.ENTER))
                events.extend(_events(key, exited, TransitionKind.EXIT))

                if not current:
                    self._regions_by_key.pop(key, None)
                elif entered or exited:
                    self._regions_by_key[key] = current

            disappeared = [key for key in self._regions_by_key if key not in snapshot]
            for key in disappeared:
                events.extend(_events(key, self._regions_by_key.pop(key), TransitionKind.EXIT))

        if events:
            _logger.debug("Snapshot produced %d transition(s): %s", len(events), [e.log_line for e in events])
        return events

    def reset(self) -> None:
        """Forget every remembered region without emitting events."""
        with self._lock:
            self._regions_by_key.clear()
        _logger.debug("Presence state reset")

    def regions_for(self, key: str) -> frozenset[str]:
        """Regions *key* was in at the last snapshot (empty if untracked)."""
        with self._lock:
            return frozenset(self._regions_by_key.get(key, ()))

    @property
    def tracked_keys(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._regions_by_key)

    def snapshot(self) -> dict[str, frozenset[str]]:
        """Copy of the current per-key region memory."""
        with self._lock:
            return {key: frozenset(regions) for key, regions in self._regions_by_key.items()}

    def __len__(self) -> int:
        with self._lock:
            return len(self._regions_by_key)
