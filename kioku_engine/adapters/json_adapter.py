"""JSON codec for the persisted event mapping."""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import date

from kioku_engine.errors import StorageCorrupt
from kioku_engine.schema import Event, EventMap, Reminders

logger = logging.getLogger(__name__)

_DATE_KEY = re.compile(r"\d{4}-\d{2}-\d{2}")

_KNOWN_FIELDS = {"id", "title", "type", "description", "reminders", "reminder", "notificationIds"}


def new_event_id() -> str:
    return uuid.uuid4().hex


def stable_event_id(date_key: str, index: int, title: str) -> str:
    """Id for a stored record that lacks one; the same record always maps to the same id."""

    return uuid.uuid5(uuid.NAMESPACE_URL, f"kioku:{date_key}:{index}:{title}").hex


def is_date_key(value: object) -> bool:
    if not isinstance(value, str) or not _DATE_KEY.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def _parse_reminders(item: dict) -> Reminders:
    raw = item.get("reminders")
    if isinstance(raw, dict):
        return Reminders.from_dict(raw)
    # Legacy records carry a single "reminder" flag meaning same-day.
    return Reminders(same_day=item.get("reminder") is not False, one_day_before=False, one_week_before=False)


def _parse_item(item: object, date_key: str, index: int) -> Event:
    if not isinstance(item, dict):
        raise StorageCorrupt(f"{date_key} item {index}: expected an object, got {type(item).__name__}")

    title = str(item.get("title") or "")
    event_id = item.get("id")
    if not event_id:
        event_id = stable_event_id(date_key, index, title)
        logger.warning("%s item %d: missing id, assigned %s", date_key, index, event_id)

    notification_ids = item.get("notificationIds")
    if not isinstance(notification_ids, list):
        notification_ids = []

    return Event(
        id=str(event_id),
        title=title,
        type=str(item.get("type") or "Other"),
        description=str(item.get("description") or ""),
        reminders=_parse_reminders(item),
        notification_ids=[str(v) for v in notification_ids],
        extra={key: value for key, value in item.items() if key not in _KNOWN_FIELDS},
    )


def event_to_dict(event: Event) -> dict:
    payload = dict(event.extra)
    payload.update(
        {
            "id": event.id,
            "title": event.title,
            "type": event.type,
            "description": event.description,
            "reminders": event.reminders.to_dict(),
            "notificationIds": list(event.notification_ids),
        }
    )
    return payload


def decode(payload: object) -> EventMap:
    """Normalize a decoded JSON payload into an event mapping."""

    if not isinstance(payload, dict):
        raise StorageCorrupt("JSON payload must be an object keyed by date")

    events: EventMap = {}
    for date_key, items in payload.items():
        if not is_date_key(date_key):
            logger.warning("Skipping entries under invalid date key '%s'", date_key)
            continue
        if items is None:
            continue
        if not isinstance(items, list):
            logger.warning("%s: expected a list of events, skipping", date_key)
            continue
        parsed = []
        for i, item in enumerate(items, start=1):
            try:
                parsed.append(_parse_item(item, date_key, i))
            except StorageCorrupt as exc:
                logger.warning("Skipping %s", exc)
        if parsed:
            events[date_key] = parsed
    return events


def encode(events: EventMap) -> dict:
    return {date_key: [event_to_dict(e) for e in items] for date_key, items in events.items()}


def loads(data: bytes | str | None) -> EventMap:
    """Parse serialized bytes into an event mapping; absent data is an empty store."""

    if not data:
        return {}
    try:
        payload = json.loads(data)
    except (TypeError, ValueError) as exc:
        raise StorageCorrupt("Stored events are not valid JSON") from exc
    return decode(payload)


def dumps(events: EventMap) -> bytes:
    return json.dumps(encode(events), ensure_ascii=False, sort_keys=True).encode("utf-8")
