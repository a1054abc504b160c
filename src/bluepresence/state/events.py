"""Transition events emitted by the presence tracker."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TransitionKind(StrEnum):
    ENTER = "ENTER"
    EXIT = "EXIT"


class TransitionEvent(BaseModel):
    """A single ENTER or EXIT occurrence for one entity/region pair."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Tracked entity key (e.g. a tag id)")
    region: str = Field(..., min_length=1, description="Region name")
    kind: TransitionKind

    @property
    def log_line(self) -> str:
        """Line appended to the region log stream."""
        return f"{self.kind.value}: {self.region}"
