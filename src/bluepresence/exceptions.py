"""Custom exception hierarchy for bluepresence."""

from __future__ import annotations


class PresenceError(Exception):
    """Base exception for all bluepresence errors."""


class PresenceConfigError(PresenceError):
    """Invalid or missing configuration."""


class PresencePayloadError(PresenceError):
    """A transport payload could not be decoded into a snapshot or beacon event."""


class PresenceTransportError(PresenceError):
    """Transport-level failure (network, non-200, broker refused)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class PresenceSubscriptionError(PresenceError):
    """The monitor was used outside its running lifetime.

    Raised when messages are submitted to a monitor that was never started
    or has already been stopped, or when ``start()`` is called twice.
    """
