"""Payload models."""

from bluepresence.models.beacon import BeaconEventKind, BeaconLocation
from bluepresence.models.region import RegionMembership

__all__ = [
    "BeaconEventKind",
    "BeaconLocation",
    "RegionMembership",
]
