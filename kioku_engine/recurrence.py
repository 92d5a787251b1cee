"""Yearly recurrence: month-day index and per-date occurrence resolution."""

from __future__ import annotations

import calendar
import hashlib
from dataclasses import dataclass
from typing import Optional

from kioku_engine.adapters import json_adapter
from kioku_engine.schema import Event, EventMap, Occurrence
from kioku_engine.store import validate_date_key

LEAP_DAY = "02-29"


@dataclass
class RecurringEntry:
    event: Event
    source_date: str
    original_id: str


RecurringIndex = dict[str, list[RecurringEntry]]


def build_index(events: EventMap) -> RecurringIndex:
    """Group yearly-recurring events by the "MM-DD" of the date they are stored under."""

    index: RecurringIndex = {}
    for date_key, items in events.items():
        month_day = date_key[5:]
        for event in items:
            if not event.is_recurring:
                continue
            index.setdefault(month_day, []).append(
                RecurringEntry(event=event, source_date=date_key, original_id=event.id)
            )
    return index


def _month_days_for(date_key: str) -> list[str]:
    month_day = date_key[5:]
    # Feb 29 events fall back to Feb 28 in non-leap years.
    if month_day == "02-28" and not calendar.isleap(int(date_key[:4])):
        return [month_day, LEAP_DAY]
    return [month_day]


def resolve(events: EventMap, date_key: str, index: Optional[RecurringIndex] = None) -> list[Occurrence]:
    """Events stored on ``date_key`` followed by recurring instances from other years."""

    date_key = validate_date_key(date_key)
    if index is None:
        index = build_index(events)

    exact = [
        Occurrence(
            event=event,
            source_date=date_key,
            occurrence_date=date_key,
            original_id=event.id,
            is_recurring_instance=False,
        )
        for event in events.get(date_key, [])
    ]

    seen = {occ.original_id for occ in exact}
    instances: list[Occurrence] = []
    for month_day in _month_days_for(date_key):
        for entry in index.get(month_day, []):
            if entry.source_date == date_key or entry.original_id in seen:
                continue
            seen.add(entry.original_id)
            instances.append(
                Occurrence(
                    event=entry.event,
                    source_date=entry.source_date,
                    occurrence_date=date_key,
                    original_id=entry.original_id,
                    is_recurring_instance=True,
                )
            )

    return exact + instances


def fingerprint(events: EventMap) -> str:
    return hashlib.sha1(json_adapter.dumps(events)).hexdigest()


class RecurringIndexCache:
    """Recomputes the index whenever the store content hash changes."""

    def __init__(self) -> None:
        self._key: str | None = None
        self._index: RecurringIndex = {}

    def get(self, events: EventMap) -> RecurringIndex:
        key = fingerprint(events)
        if key != self._key:
            self._index = build_index(events)
            self._key = key
        return self._index
