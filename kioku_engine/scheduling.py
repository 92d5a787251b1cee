"""Smart reminder scheduling: same day, one day before and one week before."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from kioku_engine.adapters.notifier import NotificationService
from kioku_engine.config import DEFAULT_SETTINGS, Settings
from kioku_engine.errors import NotificationRegistrationFailed
from kioku_engine.schema import (
    ONE_DAY_BEFORE,
    ONE_WEEK_BEFORE,
    REMINDER_KINDS,
    SAME_DAY,
    Event,
    ReminderTrigger,
)
from kioku_engine.store import validate_date_key

logger = logging.getLogger(__name__)

OFFSET_DAYS = {SAME_DAY: 0, ONE_DAY_BEFORE: -1, ONE_WEEK_BEFORE: -7}

_TITLE_PREFIX = {SAME_DAY: "Today", ONE_DAY_BEFORE: "Tomorrow", ONE_WEEK_BEFORE: "In 1 week"}
_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def reminder_identifier(event_id: str, kind: str, settings: Settings = DEFAULT_SETTINGS) -> str:
    return f"{settings.notification_prefix}{event_id}-{kind}"


def _next_fire_time(trigger_at: datetime, now: datetime, recurring: bool) -> Optional[datetime]:
    if trigger_at > now:
        return trigger_at
    if not recurring:
        return None
    years = max(1, now.year - trigger_at.year)
    while True:
        # relativedelta clamps Feb 29 to Feb 28 in non-leap years.
        candidate = trigger_at + relativedelta(years=years)
        if candidate > now:
            return candidate
        years += 1


def compute_triggers(
    event: Event,
    anchor_date_key: str,
    now: datetime,
    settings: Settings = DEFAULT_SETTINGS,
) -> list[ReminderTrigger]:
    """Return the future triggers for every enabled reminder kind of ``event``."""

    anchor = date.fromisoformat(validate_date_key(anchor_date_key))
    at = time(settings.reminder_hour, settings.reminder_minute)

    triggers: list[ReminderTrigger] = []
    for kind in event.reminders.enabled_kinds():
        trigger_at = datetime.combine(anchor + timedelta(days=OFFSET_DAYS[kind]), at)
        fires_at = _next_fire_time(trigger_at, now, event.is_recurring)
        if fires_at is None:
            continue
        triggers.append(
            ReminderTrigger(
                kind=kind,
                fires_at=fires_at,
                notification_id=reminder_identifier(event.id, kind, settings),
            )
        )
    return triggers


def format_date_display(date_key: str) -> str:
    year, month, day = date_key.split("-")
    return f"{_MONTH_ABBR[int(month) - 1]} {int(day)}, {year}"


def _register(notifier: NotificationService, event: Event, anchor_date_key: str, trigger: ReminderTrigger) -> None:
    title = f"{_TITLE_PREFIX[trigger.kind]}: {event.title}"
    body = f"{event.type or 'Other'} - {format_date_display(anchor_date_key)}"
    data = {"eventId": event.id, "date": anchor_date_key}
    try:
        ok = notifier.schedule(trigger.notification_id, title, body, trigger.fires_at, data)
    except Exception as exc:  # noqa: BLE001
        raise NotificationRegistrationFailed(trigger.notification_id, str(exc)) from exc
    if ok is False:
        raise NotificationRegistrationFailed(trigger.notification_id, "rejected by notification service")


def schedule_smart_reminders(
    event: Event,
    anchor_date_key: str,
    notifier: NotificationService,
    now: Optional[datetime] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> list[str]:
    """Register the event's future triggers and return the ids that were registered.

    A failed registration is logged and left out of the result; the other
    kinds are still attempted.
    """

    now = now or datetime.now()
    registered: list[str] = []
    for trigger in compute_triggers(event, anchor_date_key, now, settings):
        try:
            _register(notifier, event, anchor_date_key, trigger)
        except NotificationRegistrationFailed as exc:
            logger.warning("%s", exc)
            continue
        registered.append(trigger.notification_id)
    return registered


def cancel_reminder(event: Event, notifier: NotificationService, settings: Settings = DEFAULT_SETTINGS) -> None:
    """Cancel stored handles plus every well-known handle for the event id."""

    identifiers = list(event.notification_ids)
    if event.id:
        identifiers.extend(reminder_identifier(event.id, kind, settings) for kind in REMINDER_KINDS)

    for identifier in dict.fromkeys(identifiers):
        try:
            notifier.cancel(identifier)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Cancel of %s ignored: %s", identifier, exc)
