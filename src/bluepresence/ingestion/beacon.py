"""Beacon event decoding."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from bluepresence.models.beacon import BeaconLocation

_logger = logging.getLogger(__name__)


def parse_beacon_event(fields: Mapping[str, Any] | None) -> BeaconLocation | None:
    """Build a :class:`BeaconLocation` from primitive beacon fields.

    Accepts ``beacon_id``/``beacon_message``/``beacon_data``/
    ``beacon_event_name`` (or their short ``id``/``message``/``data``/
    ``event`` forms). Returns ``None`` when the id or the message is
    missing. Unknown event names produce a beacon with ``event=None``.
    """
    if not isinstance(fields, Mapping):
        _logger.warning("Invalid beacon data received: %r", type(fields).__name__)
        return None
    try:
        return BeaconLocation.model_validate(dict(fields))
    except ValidationError:
        _logger.warning("Invalid beacon data received", exc_info=True)
        return None
