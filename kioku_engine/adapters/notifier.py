"""Notification service contract and an in-memory backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


class NotificationService(Protocol):
    def schedule(self, identifier: str, title: str, body: str, fires_at: datetime, data: dict) -> bool:
        ...

    def cancel(self, identifier: str) -> bool:
        ...

    def list_scheduled(self) -> list[str]:
        ...


@dataclass
class ScheduledNotification:
    identifier: str
    title: str
    body: str
    fires_at: datetime
    data: dict[str, Any] = field(default_factory=dict)


class MemoryNotificationService:
    """Keeps scheduled notifications in a dict keyed by identifier.

    Scheduling an existing identifier replaces it. ``fail_ids`` makes
    ``schedule`` refuse the listed identifiers, for exercising failure paths.
    """

    def __init__(self, fail_ids: set[str] | None = None) -> None:
        self.scheduled: dict[str, ScheduledNotification] = {}
        self.cancelled: list[str] = []
        self.fail_ids = set(fail_ids or ())

    def schedule(self, identifier: str, title: str, body: str, fires_at: datetime, data: dict) -> bool:
        if identifier in self.fail_ids:
            return False
        self.scheduled[identifier] = ScheduledNotification(identifier, title, body, fires_at, dict(data))
        return True

    def cancel(self, identifier: str) -> bool:
        self.cancelled.append(identifier)
        return self.scheduled.pop(identifier, None) is not None

    def list_scheduled(self) -> list[str]:
        return list(self.scheduled)
