"""Beacon event models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from bluepresence.models._base import PresenceBaseModel


class BeaconEventKind(StrEnum):
    ENTER = "ENTER"
    EXIT = "EXIT"


_HEADLINES: dict[BeaconEventKind | None, str] = {
    BeaconEventKind.ENTER: "Entered area",
    BeaconEventKind.EXIT: "Exited area",
    None: "Beacon detected",
}


class BeaconLocation(PresenceBaseModel):
    """A beacon scan event forwarded by the positioning service."""

    id: str = Field(..., validation_alias=AliasChoices("id", "beacon_id", "beaconId"))
    """Beacon identifier."""

    message: str = Field(..., validation_alias=AliasChoices("message", "beacon_message", "beaconMessage"))
    """Human readable location text."""

    data: str | None = Field(default=None, validation_alias=AliasChoices("data", "beacon_data", "beaconData"))
    """Optional opaque payload attached to the beacon."""

    event: BeaconEventKind | None = Field(
        default=None,
        validation_alias=AliasChoices("event", "beacon_event_name", "beaconEventName"),
    )
    """ENTER/EXIT, or ``None`` for kinds the backend does not map."""

    @field_validator("id", "message", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("must be non-empty")
        return text

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_data(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @field_validator("event", mode="before")
    @classmethod
    def _coerce_event(cls, value: Any) -> BeaconEventKind | None:
        # Names are case sensitive; "enter" is an unmapped kind.
        if isinstance(value, BeaconEventKind):
            return value
        if value in (BeaconEventKind.ENTER.value, BeaconEventKind.EXIT.value):
            return BeaconEventKind(value)
        return None

    @property
    def headline(self) -> str:
        """Short notification title for this event."""
        return _HEADLINES[self.event]

    @property
    def log_line(self) -> str:
        """Line appended to the beacon log stream."""
        kind = self.event.value if self.event is not None else "UNKNOWN"
        return f"{kind}: {self.message}"
