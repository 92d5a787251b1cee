"""Runtime settings with environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    storage_key: str = "@kioku_events"
    notification_prefix: str = "kioku-"
    reminder_hour: int = 5
    reminder_minute: int = 0
    summary_max_items: int = 2
    summary_empty_label: str = "Not a Special Day"
    data_dir: Path = Path("data")


DEFAULT_SETTINGS = Settings()


def _int_env(name: str, default: int, low: int, high: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from exc
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")
    return value


def load_settings(base: Settings = DEFAULT_SETTINGS) -> Settings:
    """Apply KIOKU_* environment overrides on top of ``base``."""

    data_dir = os.getenv("KIOKU_DATA_DIR")
    return replace(
        base,
        storage_key=os.getenv("KIOKU_STORAGE_KEY") or base.storage_key,
        data_dir=Path(data_dir).expanduser() if data_dir else base.data_dir,
        reminder_hour=_int_env("KIOKU_REMINDER_HOUR", base.reminder_hour, 0, 23),
        reminder_minute=_int_env("KIOKU_REMINDER_MINUTE", base.reminder_minute, 0, 59),
    )
