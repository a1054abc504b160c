from __future__ import annotations

import pytest
from pydantic import ValidationError

from bluepresence.models.beacon import BeaconEventKind, BeaconLocation
from bluepresence.models.region import RegionMembership
from bluepresence.state.events import TransitionEvent, TransitionKind


def test_region_membership_trims_and_keeps_raw() -> None:
    membership = RegionMembership.model_validate({"name": "  Lobby ", "id": "r-1", "floor": 2})

    assert membership.name == "Lobby"
    assert membership.id == "r-1"
    assert membership.raw["floor"] == 2


def test_region_membership_blank_name_is_none() -> None:
    assert RegionMembership.model_validate({"name": "   "}).name is None


def test_beacon_camel_case_fields() -> None:
    beacon = BeaconLocation.model_validate(
        {"beaconId": "b9", "beaconMessage": "Atrium", "beaconData": 42, "beaconEventName": "EXIT"}
    )

    assert beacon.id == "b9"
    assert beacon.data == "42"
    assert beacon.event == BeaconEventKind.EXIT
    assert beacon.headline == "Exited area"


def test_beacon_requires_message() -> None:
    with pytest.raises(ValidationError):
        BeaconLocation.model_validate({"id": "b1"})


def test_transition_event_is_frozen_and_renders() -> None:
    event = TransitionEvent(key="tagA", region="Lobby", kind=TransitionKind.EXIT)

    assert event.log_line == "EXIT: Lobby"
    with pytest.raises(ValidationError):
        event.region = "Hall"  # type: ignore[misc]


def test_transition_event_rejects_empty_region() -> None:
    with pytest.raises(ValidationError):
        TransitionEvent(key="tagA", region="", kind=TransitionKind.ENTER)


def test_beacon_event_names_are_case_sensitive() -> None:
    lower = BeaconLocation.model_validate({"id": "b1", "message": "Desk", "event": "enter"})
    padded = BeaconLocation.model_validate({"id": "b1", "message": "Desk", "event": " EXIT "})

    assert lower.event is None
    assert padded.event is None
    assert lower.log_line == "UNKNOWN: Desk"
    assert lower.headline == "Beacon detected"
