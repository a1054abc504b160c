"""Route decoded transport messages to a sink."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bluepresence.ingestion.beacon import parse_beacon_event
from bluepresence.ingestion.snapshot import parse_snapshot_payload

if TYPE_CHECKING:
    from bluepresence.subscription import SnapshotSink

_logger = logging.getLogger(__name__)

REGION_CHANGES_EVENT = "regionChanges"
BEACON_EVENT = "beacon"


def deliver(sink: SnapshotSink, event_name: str, data: Any) -> bool:
    """Decode *data* according to *event_name* and hand it to *sink*.

    Returns ``True`` when something was delivered. Unknown event names and
    beacon payloads missing their id or message are ignored.

    Raises
    ------
    PresencePayloadError
        If a region-change payload is not an object.
    """
    if event_name == REGION_CHANGES_EVENT:
        sink.on_snapshot(parse_snapshot_payload(data))
        return True
    if event_name == BEACON_EVENT:
        beacon = parse_beacon_event(data)
        if beacon is None:
            return False
        sink.on_beacon(beacon)
        return True
    _logger.debug("Ignoring event %r", event_name)
    return False
