"""Error taxonomy for the event engines."""

from __future__ import annotations


class KiokuError(Exception):
    """Base class for all engine errors."""


class StorageCorrupt(KiokuError, ValueError):
    """Persisted bytes could not be decoded into an event mapping."""


class StorageWriteFailed(KiokuError, OSError):
    """The blob store rejected a write."""


class NotificationRegistrationFailed(KiokuError):
    """The notification service refused to register one trigger."""

    def __init__(self, notification_id: str, reason: str = "") -> None:
        message = f"Could not register notification '{notification_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.notification_id = notification_id


class ValidationFailed(KiokuError, ValueError):
    """Caller input was rejected before any store mutation."""
