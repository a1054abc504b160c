"""Deterministic notification identities for beacon events.

Repeated events for the same beacon and kind map to the same identity so a
displayed notification is updated instead of duplicated. Distinct beacons
usually land in distinct slots; collisions inside the bounded range are
accepted.
"""

from __future__ import annotations

from enum import Enum

from bluepresence.exceptions import PresenceConfigError

FNV32_OFFSET_BASIS = 0x811C9DC5
FNV32_PRIME = 0x01000193
_MASK32 = 0xFFFFFFFF

DEFAULT_NOTIFICATION_BASE = 1001
DEFAULT_NOTIFICATION_RANGE = 1000
DEFAULT_UNKNOWN_EVENT_KIND = "unknown"


def fnv1a_32(value: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 encoding of *value*.

    Parameters
    ----------
    value : str
        The string to hash.

    Returns
    -------
    int
        Unsigned hash in ``[0, 2**32)``.
    """
    hashed = FNV32_OFFSET_BASIS
    for byte_val in value.encode("utf-8"):
        hashed ^= byte_val
        hashed = (hashed * FNV32_PRIME) & _MASK32
    return hashed


class NotificationIdentityAssigner:
    """Map ``(raw_id, event_kind)`` to an integer in ``[base, base + size)``."""

    def __init__(
        self,
        *,
        base: int = DEFAULT_NOTIFICATION_BASE,
        size: int = DEFAULT_NOTIFICATION_RANGE,
        unknown_event_kind: str = DEFAULT_UNKNOWN_EVENT_KIND,
    ) -> None:
        if size <= 0:
            raise PresenceConfigError("Identity range must be positive")
        if base < 0:
            raise PresenceConfigError("Identity base must be non-negative")
        self._base = base
        self._size = size
        self._unknown = unknown_event_kind

    @property
    def bounds(self) -> tuple[int, int]:
        """Half-open ``(lowest, highest + 1)`` range of identities."""
        return self._base, self._base + self._size

    def composite_key(self, raw_id: str, event_kind: str | Enum | None) -> str:
        if isinstance(event_kind, Enum):
            event_kind = str(event_kind.value)
        kind = event_kind or self._unknown
        return f"{raw_id}_{kind}"

    def identity_for(self, raw_id: str, event_kind: str | Enum | None = None) -> int:
        """Identity for a beacon event; identical inputs always give the same value."""
        return self._base + fnv1a_32(self.composite_key(raw_id, event_kind)) % self._size
