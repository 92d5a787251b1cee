"""Event store: date-keyed event lists persisted as one blob."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Mapping, Optional

from kioku_engine.adapters import json_adapter
from kioku_engine.adapters.blob_store import BlobStore
from kioku_engine.config import DEFAULT_SETTINGS, Settings
from kioku_engine.errors import StorageCorrupt, StorageWriteFailed, ValidationFailed
from kioku_engine.schema import EVENT_TYPES, DatedEvent, Event, EventMap, Reminders, is_synthetic_id

logger = logging.getLogger(__name__)


def validate_date_key(date_key: object) -> str:
    if not json_adapter.is_date_key(date_key):
        raise ValidationFailed(f"A date in YYYY-MM-DD form is required, got {date_key!r}")
    return str(date_key)


def validate_stored_id(event_id: object) -> str:
    if not event_id:
        raise ValidationFailed("An event id is required")
    if is_synthetic_id(str(event_id)):
        raise ValidationFailed(f"'{event_id}' is an occurrence id; pass the stored event's original id")
    return str(event_id)


def _coerce_reminders(value: Any) -> Reminders:
    if isinstance(value, Reminders):
        return replace(value)
    if isinstance(value, Mapping):
        return Reminders.from_dict(dict(value))
    raise ValidationFailed("reminders must be a Reminders instance or a mapping of kind -> bool")


def _validate_fields(fields: Mapping[str, Any], creating: bool) -> None:
    if "title" in fields or creating:
        title = fields.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationFailed("Event title is required")
    if "type" in fields and fields["type"] not in EVENT_TYPES:
        raise ValidationFailed(f"Unknown event type '{fields['type']}'")


def _merge(event: Event, fields: Mapping[str, Any]) -> Event:
    merged = replace(event, reminders=replace(event.reminders), notification_ids=list(event.notification_ids))
    merged.extra = dict(event.extra)
    for key, value in fields.items():
        if key == "id":
            continue
        if key == "title":
            merged.title = value.strip()
        elif key == "type":
            merged.type = value
        elif key == "description":
            merged.description = str(value or "")
        elif key == "reminders":
            merged.reminders = _coerce_reminders(value)
        elif key == "notification_ids":
            merged.notification_ids = [str(v) for v in (value or [])]
        else:
            merged.extra[key] = value
    return merged


def find_event(events: EventMap, event_id: str) -> Optional[DatedEvent]:
    for date_key, items in events.items():
        for event in items:
            if event.id == event_id:
                return DatedEvent(date=date_key, event=event)
    return None


def flatten(events: EventMap) -> list[DatedEvent]:
    """Every stored event paired with its date-key, in mapping then insertion order."""

    return [DatedEvent(date=date_key, event=event) for date_key, items in events.items() for event in items]


class EventStore:
    """Load-modify-save event store over a blob store.

    Every mutation reloads the full mapping, applies the change and saves it
    back while holding an in-process lock, so concurrent callers never write
    over each other with a stale copy.
    """

    def __init__(self, blobs: BlobStore, settings: Settings = DEFAULT_SETTINGS) -> None:
        self.blobs = blobs
        self.key = settings.storage_key
        self._lock = threading.RLock()

    def load(self) -> EventMap:
        with self._lock:
            try:
                raw = self.blobs.get(self.key)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Could not read stored events, starting empty: %s", exc)
                return {}
            try:
                return json_adapter.loads(raw)
            except StorageCorrupt as exc:
                logger.warning("Stored events are corrupt, starting empty: %s", exc)
                return {}

    def save(self, events: EventMap) -> None:
        with self._lock:
            try:
                ok = self.blobs.set(self.key, json_adapter.dumps(events))
            except Exception as exc:  # noqa: BLE001
                raise StorageWriteFailed(f"Could not save events under '{self.key}'") from exc
            if not ok:
                raise StorageWriteFailed(f"Blob store rejected write of '{self.key}'")

    def upsert(
        self,
        date_key: str,
        fields: Mapping[str, Any],
        existing_id: str | None = None,
    ) -> tuple[EventMap, Event]:
        """Create an event under ``date_key`` or move/merge an existing one there."""

        date_key = validate_date_key(date_key)
        if existing_id is not None:
            existing_id = validate_stored_id(existing_id)
        _validate_fields(fields, creating=existing_id is None)

        with self._lock:
            events = self.load()
            found = find_event(events, existing_id) if existing_id else None
            if found is None and existing_id:
                _validate_fields(fields, creating=True)

            if found is not None:
                remaining = [e for e in events[found.date] if e.id != existing_id]
                if remaining:
                    events[found.date] = remaining
                else:
                    del events[found.date]
                event = _merge(found.event, fields)
            else:
                if existing_id:
                    logger.info("Event %s not found, creating a new event instead", existing_id)
                event = _merge(Event(id=json_adapter.new_event_id(), title=""), fields)

            events.setdefault(date_key, []).append(event)
            self.save(events)
            return events, event

    def update_notification_ids(self, date_key: str, event_id: str, notification_ids: list[str]) -> EventMap:
        event_id = validate_stored_id(event_id)
        with self._lock:
            events = self.load()
            for event in events.get(date_key, []):
                if event.id == event_id:
                    event.notification_ids = list(notification_ids or [])
                    self.save(events)
                    break
            else:
                logger.debug("No event %s under %s, notification ids not stored", event_id, date_key)
            return events

    def delete(self, date_key: str, event_id: str) -> EventMap:
        event_id = validate_stored_id(event_id)
        with self._lock:
            events = self.load()
            items = events.get(date_key, [])
            remaining = [e for e in items if e.id != event_id]
            if len(remaining) == len(items):
                logger.debug("No event %s under %s, nothing to delete", event_id, date_key)
                return events
            if remaining:
                events[date_key] = remaining
            else:
                del events[date_key]
            self.save(events)
            return events
