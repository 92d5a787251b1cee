"""Core data schema for calendar events, occurrences and reminders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

EVENT_TYPES = ("Birthday", "Anniversary", "Death Anniversary", "Other")
YEARLY_RECURRING_TYPES = frozenset({"Birthday", "Anniversary", "Death Anniversary"})

SAME_DAY = "sameDay"
ONE_DAY_BEFORE = "oneDayBefore"
ONE_WEEK_BEFORE = "oneWeekBefore"
REMINDER_KINDS = (SAME_DAY, ONE_DAY_BEFORE, ONE_WEEK_BEFORE)

SYNTHETIC_ID_SEPARATOR = "::"


def is_recurring_type(event_type: str | None) -> bool:
    return event_type in YEARLY_RECURRING_TYPES


def is_synthetic_id(event_id: str) -> bool:
    """True for composite ids of synthesized recurring instances."""

    return SYNTHETIC_ID_SEPARATOR in str(event_id)


@dataclass
class Reminders:
    """Which reminder kinds are enabled for an event."""

    same_day: bool = True
    one_day_before: bool = True
    one_week_before: bool = False

    def enabled_kinds(self) -> list[str]:
        flags = (self.same_day, self.one_day_before, self.one_week_before)
        return [kind for kind, on in zip(REMINDER_KINDS, flags) if on]

    def any(self) -> bool:
        return bool(self.enabled_kinds())

    def to_dict(self) -> dict:
        return {
            SAME_DAY: self.same_day,
            ONE_DAY_BEFORE: self.one_day_before,
            ONE_WEEK_BEFORE: self.one_week_before,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Reminders":
        return cls(
            same_day=bool(payload.get(SAME_DAY)),
            one_day_before=bool(payload.get(ONE_DAY_BEFORE)),
            one_week_before=bool(payload.get(ONE_WEEK_BEFORE)),
        )


@dataclass
class Event:
    """A stored calendar event anchored at one date-key."""

    id: str
    title: str
    type: str = "Other"
    description: str = ""
    reminders: Reminders = field(default_factory=Reminders)
    notification_ids: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_recurring(self) -> bool:
        return is_recurring_type(self.type)


EventMap = dict[str, list[Event]]


@dataclass
class DatedEvent:
    """A stored event paired with the date-key it lives under."""

    date: str
    event: Event


@dataclass
class Occurrence:
    """An event as it appears on a queried date."""

    event: Event
    source_date: str
    occurrence_date: str
    original_id: str
    is_recurring_instance: bool

    @property
    def id(self) -> str:
        if self.is_recurring_instance:
            return f"{self.original_id}{SYNTHETIC_ID_SEPARATOR}{self.occurrence_date}"
        return self.original_id


@dataclass
class ReminderTrigger:
    """One future point-in-time reminder for an event/kind pair."""

    kind: str
    fires_at: datetime
    notification_id: str


@dataclass
class SearchResult:
    item: DatedEvent
    score: float
