"""Helpers for safe debug logging.

Decoded MQTT envelopes and snapshots are logged at DEBUG. Broker
credentials and bearer tokens are masked, and long strings (beacon data
blobs) are truncated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

_MASK = "<redacted>"
_MAX_DEPTH = 8

# Compared case-insensitively.
_CREDENTIAL_KEYS: frozenset[str] = frozenset({"password", "mqtt_password", "token", "authorization"})


def _is_credential(key: str) -> bool:
    return key.lower() in _CREDENTIAL_KEYS


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with credentials masked, for debug logs.

    Pydantic models are dumped without their ``raw`` payload. Values that
    are not JSON-like are rendered with ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _truncate(value, max_string)
    if isinstance(value, BaseModel):
        value = value.model_dump(exclude={"raw"})

    def nested(item: Any) -> Any:
        return redact_for_log(item, max_string=max_string, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {str(k): _MASK if _is_credential(str(k)) else nested(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, frozenset, set)):
        return [nested(item) for item in value]
    return _truncate(repr(value), max_string)
