"""Day summaries and per-type listings."""

from __future__ import annotations

from typing import Iterable, Optional

from kioku_engine.config import DEFAULT_SETTINGS
from kioku_engine.schema import DatedEvent, EventMap, Occurrence
from kioku_engine.store import flatten


def _display_name(occurrence: Optional[Occurrence]) -> Optional[str]:
    if occurrence is None:
        return None
    title = (occurrence.event.title or "").strip()
    if title:
        return title
    return (occurrence.event.type or "").strip() or None


def build_event_summary(
    occurrences: Iterable[Optional[Occurrence]],
    max_items: int = DEFAULT_SETTINGS.summary_max_items,
    empty_label: str = DEFAULT_SETTINGS.summary_empty_label,
) -> str:
    """Short label for a day, e.g. ``"Mom's Birthday • Wedding +2"``."""

    names = [name for name in map(_display_name, occurrences or []) if name]
    if not names:
        return empty_label

    shown = names[:max_items]
    remaining = len(names) - len(shown)
    label = " • ".join(shown)
    return f"{label} +{remaining}" if remaining > 0 else label


def events_by_type(events: EventMap, event_type: str) -> list[DatedEvent]:
    """All stored events of one type, ordered by date."""

    selected = [item for item in flatten(events) if (item.event.type or "Other") == event_type]
    return sorted(selected, key=lambda item: item.date)
