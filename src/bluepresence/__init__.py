"""bluepresence - Region presence diffing and beacon notification identities."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("bluepresence")
except PackageNotFoundError:
    __version__ = "0+local"
from bluepresence.config import PresenceConfig
from bluepresence.exceptions import (
    PresenceConfigError,
    PresenceError,
    PresencePayloadError,
    PresenceSubscriptionError,
    PresenceTransportError,
)
from bluepresence.identity import NotificationIdentityAssigner, fnv1a_32
from bluepresence.log import EventLogAccumulator, LogState, LogStream
from bluepresence.models import BeaconEventKind, BeaconLocation, RegionMembership
from bluepresence.monitor import PresenceMonitor
from bluepresence.state.events import TransitionEvent, TransitionKind
from bluepresence.state.tracker import PresenceTracker
from bluepresence.subscription import SnapshotSink, SnapshotSource, Subscription

__all__ = [
    "__version__",
    "BeaconEventKind",
    "BeaconLocation",
    "EventLogAccumulator",
    "LogState",
    "LogStream",
    "NotificationIdentityAssigner",
    "PresenceConfig",
    "PresenceConfigError",
    "PresenceError",
    "PresenceMonitor",
    "PresencePayloadError",
    "PresenceSubscriptionError",
    "PresenceTracker",
    "PresenceTransportError",
    "RegionMembership",
    "SnapshotSink",
    "SnapshotSource",
    "Subscription",
    "TransitionEvent",
    "TransitionKind",
    "fnv1a_32",
]
