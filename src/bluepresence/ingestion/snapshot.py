"""Snapshot payload decoding.

Transports deliver decoded JSON documents; this module turns them into the
``{key: [RegionMembership, ...]}`` shape accepted by the tracker.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from bluepresence.exceptions import PresencePayloadError
from bluepresence.models.region import RegionMembership

_logger = logging.getLogger(__name__)

RegionSnapshot = Mapping[str, Iterable[Any] | None]
"""Mapping from entity key to the memberships observed for it."""


def _parse_membership(item: Any) -> RegionMembership:
    if isinstance(item, RegionMembership):
        return item
    if isinstance(item, str):
        return RegionMembership(name=item)
    if isinstance(item, Mapping):
        try:
            return RegionMembership.model_validate(dict(item))
        except ValidationError:
            _logger.debug("Dropping malformed membership %r", item)
    return RegionMembership()


def parse_snapshot_payload(payload: Any) -> dict[str, list[RegionMembership]]:
    """Decode a region-change document into a snapshot.

    Accepts either the bare ``{key: [{"name": ...}, ...]}`` mapping or an
    envelope ``{"event": ..., "data": {...}}``. Entries whose value is not a list are kept
    with an empty membership list so the tracker treats them as "inside
    nothing".

    Raises
    ------
    PresencePayloadError
        If *payload* is not a JSON object.
    """
    if not isinstance(payload, Mapping):
        raise PresencePayloadError(f"Snapshot payload must be an object, got {type(payload).__name__}")

    body: Any = payload
    # A tag may legitimately be called "data"; only unwrap object envelopes.
    if "data" in payload and set(payload.keys()) <= {"event", "data"}:
        inner = payload["data"]
        if inner is None or isinstance(inner, Mapping):
            body = inner or {}

    snapshot: dict[str, list[RegionMembership]] = {}
    for key, memberships in body.items():
        if not isinstance(memberships, list):
            snapshot[str(key)] = []
            continue
        snapshot[str(key)] = [_parse_membership(item) for item in memberships]
    return snapshot


def filter_snapshot(snapshot: RegionSnapshot, tags: Iterable[str] | None) -> RegionSnapshot:
    """Keep only the entries whose key is listed in *tags*.

    ``None`` means "all tags"; the snapshot is returned unchanged.
    """
    if tags is None:
        return snapshot
    wanted = set(tags)
    return {key: value for key, value in snapshot.items() if key in wanted}
