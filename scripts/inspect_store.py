"""Print day occurrences or search results from a stored events file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from kioku_engine.adapters.blob_store import FileBlobStore
from kioku_engine.config import load_settings
from kioku_engine.recurrence import resolve
from kioku_engine.search import rank_events
from kioku_engine.store import EventStore


def _occurrences(events, date_key: str) -> list[dict]:
    return [
        {
            "id": occ.id,
            "originalId": occ.original_id,
            "title": occ.event.title,
            "type": occ.event.type,
            "sourceDate": occ.source_date,
            "isRecurringInstance": occ.is_recurring_instance,
        }
        for occ in resolve(events, date_key)
    ]


def _results(events, query: str) -> list[dict]:
    return [
        {"date": r.item.date, "id": r.item.event.id, "title": r.item.event.title, "score": r.score}
        for r in rank_events(events, query)
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect a kioku events store")
    parser.add_argument("--data-dir", help="Directory holding the events blob (defaults to KIOKU_DATA_DIR)")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--date", help="Resolve occurrences for a YYYY-MM-DD date")
    group.add_argument("--search", help="Rank events against a search query")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    settings = load_settings()
    data_dir = Path(args.data_dir) if args.data_dir else settings.data_dir
    events = EventStore(FileBlobStore(data_dir), settings).load()

    report = _occurrences(events, args.date) if args.date else _results(events, args.search)
    print(json.dumps(report, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
