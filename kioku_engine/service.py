"""High-level event flows: submit, delete, day view, search and startup."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union

from kioku_engine.adapters.blob_store import BlobStore
from kioku_engine.adapters.notifier import NotificationService
from kioku_engine.config import DEFAULT_SETTINGS, Settings
from kioku_engine.errors import ValidationFailed
from kioku_engine.reconcile import ReconcileReport, reconcile_all
from kioku_engine.recurrence import RecurringIndexCache, resolve
from kioku_engine.scheduling import cancel_reminder, schedule_smart_reminders
from kioku_engine.schema import EVENT_TYPES, DatedEvent, Event, EventMap, Occurrence, Reminders
from kioku_engine.search import search_events
from kioku_engine.store import EventStore, find_event, validate_date_key, validate_stored_id
from kioku_engine.summary import build_event_summary

logger = logging.getLogger(__name__)

SUBMIT_DEFAULT_REMINDERS = Reminders(same_day=True, one_day_before=False, one_week_before=False)

DeleteTarget = Union[str, DatedEvent, Occurrence]


class EventService:
    """Keeps the event store and registered reminders in step."""

    def __init__(self, store: EventStore, notifier: NotificationService, settings: Settings = DEFAULT_SETTINGS) -> None:
        self.store = store
        self.notifier = notifier
        self.settings = settings
        self._index_cache = RecurringIndexCache()

    @classmethod
    def from_blob_store(
        cls, blobs: BlobStore, notifier: NotificationService, settings: Settings = DEFAULT_SETTINGS
    ) -> "EventService":
        return cls(EventStore(blobs, settings), notifier, settings)

    def startup(self, now: Optional[datetime] = None) -> ReconcileReport:
        return reconcile_all(self.store, self.notifier, now=now, settings=self.settings)

    def submit_event(
        self,
        date_key: str,
        fields: Mapping[str, Any],
        existing_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> tuple[EventMap, Event]:
        """Create or edit an event, then cancel and reschedule its reminders."""

        date_key = validate_date_key(date_key)
        if existing_id is not None:
            existing_id = validate_stored_id(existing_id)
        title = fields.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationFailed("Event title is required")

        event_type = fields.get("type") or "Other"
        if event_type not in EVENT_TYPES:
            raise ValidationFailed(f"Unknown event type '{event_type}'")

        payload = {
            "title": title.strip(),
            "type": event_type,
            "description": (fields.get("description") or "").strip(),
            "reminders": fields.get("reminders") or SUBMIT_DEFAULT_REMINDERS,
            "notification_ids": [],
        }

        if existing_id:
            found = find_event(self.store.load(), existing_id)
            if found is not None:
                cancel_reminder(found.event, self.notifier, self.settings)

        events, event = self.store.upsert(date_key, payload, existing_id)
        if event.reminders.any():
            ids = schedule_smart_reminders(event, date_key, self.notifier, now=now, settings=self.settings)
            events = self.store.update_notification_ids(date_key, event.id, ids)
            stored = find_event(events, event.id)
            if stored is None:
                logger.warning("Event %s was removed before its reminders were stored", event.id)
            else:
                event = stored.event
        return events, event

    def _locate(self, target: DeleteTarget) -> Optional[DatedEvent]:
        if isinstance(target, Occurrence):
            date_key, event_id = target.source_date, target.original_id
        elif isinstance(target, DatedEvent):
            date_key, event_id = target.date, target.event.id
        else:
            date_key, event_id = None, validate_stored_id(target)

        found = find_event(self.store.load(), event_id)
        if found is None or (date_key is not None and found.date != date_key):
            return None
        return found

    def delete_event(self, target: DeleteTarget) -> EventMap:
        """Cancel an event's reminders and remove it; unknown targets are a no-op."""

        found = self._locate(target)
        if found is None:
            logger.debug("Delete target %r not found", target)
            return self.store.load()
        cancel_reminder(found.event, self.notifier, self.settings)
        return self.store.delete(found.date, found.event.id)

    def events_for_date(self, date_key: str) -> list[Occurrence]:
        events = self.store.load()
        return resolve(events, date_key, self._index_cache.get(events))

    def summary_for_date(self, date_key: str) -> str:
        return build_event_summary(
            self.events_for_date(date_key),
            max_items=self.settings.summary_max_items,
            empty_label=self.settings.summary_empty_label,
        )

    def search(self, query: str) -> list[DatedEvent]:
        return search_events(self.store.load(), query)
