"""Region membership model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from bluepresence.models._base import PresenceBaseModel


class RegionMembership(PresenceBaseModel):
    """One region an entity is inside at the instant a snapshot was taken."""

    name: str | None = None
    """Region label. Blank names are dropped during validation."""

    id: str | None = None
    """Backend region identifier, when the payload carries one."""

    @field_validator("name", "id", mode="before")
    @classmethod
    def _coerce_str(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None
