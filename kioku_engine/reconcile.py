"""Startup reconciliation of registered reminders against the event store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from kioku_engine.adapters.notifier import NotificationService
from kioku_engine.config import DEFAULT_SETTINGS, Settings
from kioku_engine.errors import StorageWriteFailed
from kioku_engine.scheduling import schedule_smart_reminders
from kioku_engine.store import EventStore, flatten

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    cancelled: int = 0
    events_scheduled: int = 0
    notifications_registered: int = 0
    persist_failures: list[str] = field(default_factory=list)


def sweep_namespace(notifier: NotificationService, settings: Settings = DEFAULT_SETTINGS) -> int:
    """Cancel every registered notification in our identifier namespace."""

    cancelled = 0
    for identifier in notifier.list_scheduled():
        if not identifier or not identifier.startswith(settings.notification_prefix):
            continue
        try:
            notifier.cancel(identifier)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Cancel of %s ignored: %s", identifier, exc)
            continue
        cancelled += 1
    return cancelled


def reconcile_all(
    store: EventStore,
    notifier: NotificationService,
    now: Optional[datetime] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> ReconcileReport:
    """Drop all of our notifications, then reschedule every event that wants reminders.

    Safe to run repeatedly: identifiers are derived from event id and kind, so
    a second pass registers the same handles again.
    """

    now = now or datetime.now()
    report = ReconcileReport(cancelled=sweep_namespace(notifier, settings))

    for item in flatten(store.load()):
        if not item.event.reminders.any():
            continue
        ids = schedule_smart_reminders(item.event, item.date, notifier, now=now, settings=settings)
        report.events_scheduled += 1
        report.notifications_registered += len(ids)
        try:
            store.update_notification_ids(item.date, item.event.id, ids)
        except StorageWriteFailed as exc:
            logger.warning("Could not persist notification ids for %s: %s", item.event.id, exc)
            report.persist_failures.append(item.event.id)

    logger.info(
        "Reconciled reminders: cancelled=%d events=%d registered=%d",
        report.cancelled,
        report.events_scheduled,
        report.notifications_registered,
    )
    return report
