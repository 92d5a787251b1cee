import json
import threading

import pytest

from kioku_engine.adapters.blob_store import MemoryBlobStore
from kioku_engine.errors import StorageWriteFailed, ValidationFailed
from kioku_engine.schema import Reminders
from kioku_engine.store import EventStore, find_event, flatten


class FailingBlobStore(MemoryBlobStore):
    def __init__(self, raise_error=False):
        super().__init__()
        self.raise_error = raise_error

    def set(self, key, data):
        if self.raise_error:
            raise OSError("disk full")
        return False


class BrokenReadBlobStore(MemoryBlobStore):
    def get(self, key):
        raise OSError("unreadable")


def make_store():
    return EventStore(MemoryBlobStore())


def test_upsert_then_load_roundtrip():
    store = make_store()
    _, created = store.upsert(
        "2024-03-15",
        {
            "title": "Mom's Birthday",
            "type": "Birthday",
            "description": "Call her",
            "reminders": Reminders(same_day=True, one_day_before=False, one_week_before=True),
        },
    )
    loaded = store.load()
    assert list(loaded) == ["2024-03-15"]
    stored = loaded["2024-03-15"][0]
    assert stored == created
    assert stored.reminders.one_week_before is True


def test_upsert_generates_unique_ids_and_appends():
    store = make_store()
    _, first = store.upsert("2024-03-15", {"title": "One"})
    events, second = store.upsert("2024-03-15", {"title": "Two"})
    assert first.id != second.id
    assert [e.title for e in events["2024-03-15"]] == ["One", "Two"]


def test_edit_moves_event_and_preserves_fields():
    store = make_store()
    _, created = store.upsert("2024-03-15", {"title": "Wedding", "type": "Anniversary", "description": "Venue"})
    store.update_notification_ids("2024-03-15", created.id, ["kioku-x-sameDay"])

    events, edited = store.upsert("2024-04-02", {"title": "Wedding day"}, existing_id=created.id)

    assert "2024-03-15" not in events
    assert edited.id == created.id
    assert edited.description == "Venue"
    assert edited.type == "Anniversary"
    assert edited.notification_ids == ["kioku-x-sameDay"]
    reloaded = store.load()
    assert reloaded["2024-04-02"][0].title == "Wedding day"
    assert find_event(reloaded, created.id).date == "2024-04-02"


def test_edit_can_overwrite_notification_ids():
    store = make_store()
    _, created = store.upsert("2024-03-15", {"title": "A"})
    store.update_notification_ids("2024-03-15", created.id, ["old"])
    _, edited = store.upsert("2024-03-15", {"notification_ids": []}, existing_id=created.id)
    assert edited.notification_ids == []


def test_edit_of_unknown_id_creates_new_event():
    store = make_store()
    events, event = store.upsert("2024-03-15", {"title": "Fresh"}, existing_id="missing")
    assert event.id != "missing"
    assert events["2024-03-15"] == [event]


@pytest.mark.parametrize(
    "date_key, fields",
    [
        ("2024-03-15", {"title": "   "}),
        ("2024-03-15", {}),
        ("", {"title": "No date"}),
        ("2024-02-30", {"title": "Bad date"}),
        ("2024-03-15", {"title": "Bad type", "type": "Holiday"}),
    ],
)
def test_upsert_validation_rejects_before_writing(date_key, fields):
    blobs = MemoryBlobStore()
    store = EventStore(blobs)
    with pytest.raises(ValidationFailed):
        store.upsert(date_key, fields)
    assert blobs.blobs == {}


def test_synthetic_ids_are_rejected():
    store = make_store()
    _, created = store.upsert("2024-03-15", {"title": "A", "type": "Birthday"})
    synthetic = f"{created.id}::2025-03-15"
    with pytest.raises(ValidationFailed):
        store.delete("2024-03-15", synthetic)
    with pytest.raises(ValidationFailed):
        store.upsert("2025-03-15", {"title": "B"}, existing_id=synthetic)
    with pytest.raises(ValidationFailed):
        store.update_notification_ids("2024-03-15", synthetic, [])


def test_delete_prunes_empty_date_key():
    store = make_store()
    _, first = store.upsert("2024-03-15", {"title": "One"})
    _, second = store.upsert("2024-03-15", {"title": "Two"})

    events = store.delete("2024-03-15", first.id)
    assert [e.id for e in events["2024-03-15"]] == [second.id]

    events = store.delete("2024-03-15", second.id)
    assert events == {}
    assert store.load() == {}


def test_missing_targets_are_noops():
    store = make_store()
    _, created = store.upsert("2024-03-15", {"title": "One"})
    assert store.delete("2024-03-16", created.id)["2024-03-15"][0].id == created.id
    events = store.update_notification_ids("2024-03-15", "nope", ["x"])
    assert events["2024-03-15"][0].notification_ids == []


def test_corrupt_or_unreadable_storage_loads_empty():
    blobs = MemoryBlobStore({"@kioku_events": b"{broken"})
    assert EventStore(blobs).load() == {}
    assert EventStore(BrokenReadBlobStore()).load() == {}


@pytest.mark.parametrize("raise_error", [False, True])
def test_write_failures_surface(raise_error):
    store = EventStore(FailingBlobStore(raise_error=raise_error))
    with pytest.raises(StorageWriteFailed):
        store.upsert("2024-03-15", {"title": "One"})


def test_flatten_pairs_events_with_dates():
    store = make_store()
    store.upsert("2024-03-15", {"title": "One"})
    store.upsert("2024-01-02", {"title": "Two"})
    flat = flatten(store.load())
    assert sorted((item.date, item.event.title) for item in flat) == [("2024-01-02", "Two"), ("2024-03-15", "One")]


def test_concurrent_upserts_do_not_lose_writes():
    blobs = MemoryBlobStore()
    store = EventStore(blobs)

    def worker(n):
        for i in range(10):
            store.upsert("2024-03-15", {"title": f"w{n}-{i}"})

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.load()["2024-03-15"]) == 40
    assert len(json.loads(blobs.blobs["@kioku_events"])["2024-03-15"]) == 40


def test_bad_date_key_does_not_wipe_valid_events_on_next_write():
    stored = {
        "2024-03-15": [{"id": "a1", "title": "Mom's Birthday", "type": "Birthday"}],
        "undefined": [],
    }
    blobs = MemoryBlobStore({"@kioku_events": json.dumps(stored).encode()})
    store = EventStore(blobs)

    store.upsert("2024-04-01", {"title": "Trip"})

    persisted = json.loads(blobs.blobs["@kioku_events"])
    assert sorted(persisted) == ["2024-03-15", "2024-04-01"]
    assert persisted["2024-03-15"][0]["id"] == "a1"
