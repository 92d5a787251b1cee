"""Relevance-ranked search over title, type, description and date."""

from __future__ import annotations

import re

import numpy as np

from kioku_engine.schema import DatedEvent, EventMap, SearchResult
from kioku_engine.store import flatten

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)
MONTH_ABBR = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")

CRITERIA = (
    "title_exact",
    "title_partial",
    "title_tokens",
    "type_partial",
    "type_tokens",
    "description_partial",
    "description_tokens",
    "date_digits",
    "date_token",
)
WEIGHTS = np.array([100, 50, 30, 25, 15, 20, 10, 40, 5], dtype=float)

_NON_DIGIT = re.compile(r"\D")


def _digits(value: str) -> str:
    return _NON_DIGIT.sub("", value)


def tokenize(query: str) -> list[str]:
    return query.strip().lower().split()


def _searchable(item: DatedEvent) -> tuple[str, str]:
    event = item.event
    text = " ".join([event.title or "", event.type or "", event.description or "", item.date]).lower()
    return text, _digits(item.date)


def _month_index(token: str, names: tuple[str, ...]) -> int:
    for index, name in enumerate(names):
        if name.startswith(token) or token.startswith(name):
            return index
    return -1


def _token_matches(token: str, item: DatedEvent, text: str, date_digits: str) -> bool:
    if token in text:
        return True
    token_digits = _digits(token)
    if token_digits and token_digits in date_digits:
        return True
    month = int(item.date[5:7])
    for names in (MONTH_NAMES, MONTH_ABBR):
        index = _month_index(token, names)
        if index >= 0 and month == index + 1:
            return True
    return False


def matches(item: DatedEvent, query: str) -> bool:
    q = query.strip()
    if not q:
        return False
    tokens = tokenize(q)
    text, date_digits = _searchable(item)
    if tokens and all(_token_matches(t, item, text, date_digits) for t in tokens):
        return True
    if q.lower() in text:
        return True
    q_digits = _digits(q)
    return bool(q_digits) and q_digits in date_digits


def _field_flags(value: str, q_lower: str, tokens: list[str]) -> tuple[float, float]:
    value = (value or "").lower()
    if not value:
        return 0.0, 0.0
    if q_lower in value:
        return 1.0, 0.0
    if all(t in value for t in tokens):
        return 0.0, 1.0
    return 0.0, 0.0


def criteria_row(item: DatedEvent, query: str) -> list[float]:
    """One row of 0/1 flags, aligned with ``CRITERIA``."""

    q = query.strip()
    q_lower = q.lower()
    tokens = tokenize(q)
    event = item.event

    title = (event.title or "").lower()
    title_flags = [0.0, 0.0, 0.0]
    if title:
        if title == q_lower:
            title_flags[0] = 1.0
        elif q_lower in title:
            title_flags[1] = 1.0
        elif all(t in title for t in tokens):
            title_flags[2] = 1.0

    q_digits = _digits(q)
    date_flags = [0.0, 0.0]
    # Compared against the date digits, so "2024-03-15" and "20240315" score alike.
    if q_digits and q_digits in _digits(item.date):
        date_flags[0] = 1.0
    elif any(t in item.date for t in tokens):
        date_flags[1] = 1.0

    return [
        *title_flags,
        *_field_flags(event.type, q_lower, tokens),
        *_field_flags(event.description, q_lower, tokens),
        *date_flags,
    ]


def rank_events(events: EventMap, query: str) -> list[SearchResult]:
    """Matching events with scores, best first; ties keep flatten order."""

    if not (query or "").strip():
        return []

    matched = [item for item in flatten(events) if matches(item, query)]
    if not matched:
        return []

    table = np.asarray([criteria_row(item, query) for item in matched], dtype=float)
    scores = table @ WEIGHTS
    order = np.argsort(-scores, kind="stable")
    return [SearchResult(item=matched[i], score=float(scores[i])) for i in order]


def search_events(events: EventMap, query: str) -> list[DatedEvent]:
    return [result.item for result in rank_events(events, query)]
