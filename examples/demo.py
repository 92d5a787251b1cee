"""Demo script for kioku-engine."""

import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from kioku_engine.adapters.blob_store import MemoryBlobStore
from kioku_engine.adapters.notifier import MemoryNotificationService
from kioku_engine.schema import Reminders
from kioku_engine.service import EventService


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    notifier = MemoryNotificationService()
    service = EventService.from_blob_store(MemoryBlobStore(), notifier)
    now = datetime(2024, 3, 1, 12, 0)

    _, mom = service.submit_event(
        "2024-03-15",
        {"title": "Mom's Birthday", "type": "Birthday", "reminders": Reminders(True, True, False)},
        now=now,
    )
    service.submit_event("2024-03-15", {"title": "Dentist", "description": "Cleaning"}, now=now)

    print("Scheduled:", sorted(notifier.list_scheduled()))
    print("2025-03-15:", [occ.id for occ in service.events_for_date("2025-03-15")])
    print("Summary 2024-03-15:", service.summary_for_date("2024-03-15"))
    print("Search 'birthday':", [item.event.title for item in service.search("birthday")])
    print("Startup:", service.startup(now=datetime(2024, 3, 20, 8, 0)))
    print("Stored ids:", [item.event.notification_ids for item in service.search(mom.title)])


if __name__ == "__main__":
    main()
