"""Tests for the in-memory schedule store."""

from __future__ import annotations

import threading
from datetime import date

import pytest

from dayof.domain.bus import EventBus
from dayof.domain.events import DayRemoved, EventsImported, ScheduleChanged
from dayof.domain.models import (
    DEFAULT_SCHEDULE_DAY_NAMES,
    MAX_SCHEDULE_DAYS,
    BulkEventItem,
    Rejected,
    RejectionReason,
    ScheduleDayPatch,
    ScheduleEventPatch,
)
from dayof.repos.memory import ProjectRepository, ScheduleStore
from dayof.services.timeutil import to_minutes


@pytest.fixture()
def store() -> ScheduleStore:
    return ScheduleStore("project-1")


@pytest.fixture()
def day(store):
    return store.add_day("Hochzeitstag", date(2026, 6, 20))


def _assert_rejected(result, reason: RejectionReason) -> None:
    assert isinstance(result, Rejected)
    assert result.reason == reason


# ---------------------------------------------------------------------------
# Days
# ---------------------------------------------------------------------------


def test_day_limit(store):
    for i in range(MAX_SCHEDULE_DAYS):
        day = store.add_day(f"Tag {i}")
        assert day.sort_order == i

    result = store.add_day("Vierter Tag")
    _assert_rejected(result, RejectionReason.DAY_LIMIT_EXCEEDED)
    assert len(store.list_days()) == MAX_SCHEDULE_DAYS


def test_day_name_required(store):
    _assert_rejected(store.add_day("   "), RejectionReason.MISSING_TITLE)
    assert store.list_days() == []


def test_day_without_date(store):
    day = store.add_day("Polterabend")
    assert day.date is None


def test_update_day_patch_semantics(store, day):
    renamed = store.update_day(day.id, ScheduleDayPatch(name="Trauung"))
    assert renamed.name == "Trauung"
    assert renamed.date == date(2026, 6, 20)

    cleared = store.update_day(day.id, ScheduleDayPatch(date=None))
    assert cleared.name == "Trauung"
    assert cleared.date is None

    _assert_rejected(store.update_day(day.id, ScheduleDayPatch(name="")), RejectionReason.MISSING_TITLE)
    _assert_rejected(store.update_day("nope", ScheduleDayPatch(name="x")), RejectionReason.NOT_FOUND)


def test_days_ordered_by_sort_order_then_creation(store):
    first = store.add_day("Eins")
    second = store.add_day("Zwei")
    store.remove_day(first.id)
    third = store.add_day("Drei")  # gets sort_order 1, same as "Zwei"

    assert third.sort_order == second.sort_order
    assert [d.name for d in store.list_days()] == ["Zwei", "Drei"]


def test_reorder_days(store):
    a = store.add_day("A")
    b = store.add_day("B")
    c = store.add_day("C")

    result = store.reorder_days([c.id, a.id])
    assert [d.name for d in result] == ["C", "A", "B"]
    _assert_rejected(store.reorder_days(["missing"]), RejectionReason.NOT_FOUND)
    assert [d.id for d in store.list_days()] == [c.id, a.id, b.id]


def test_remove_day_cascades(store, day):
    other = store.add_day("Brunch")
    kept = store.add_event(other.id, "Frühstück", "10:00")
    ids = [store.add_event(day.id, f"E{i}", f"1{i}:00").id for i in range(3)]

    removed = store.remove_day(day.id)
    assert removed.id == day.id

    _assert_rejected(store.list_events(day.id), RejectionReason.NOT_FOUND)
    assert all(store.get_event(i) is None for i in ids)
    assert store.get_event(kept.id) is not None
    _assert_rejected(store.remove_day(day.id), RejectionReason.NOT_FOUND)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def test_add_event_validation(store, day):
    _assert_rejected(store.add_event("nope", "Trauung", "14:00"), RejectionReason.NOT_FOUND)
    _assert_rejected(store.add_event(day.id, "", "14:00"), RejectionReason.MISSING_TITLE)
    _assert_rejected(store.add_event(day.id, "Trauung", "2pm"), RejectionReason.INVALID_TIME_FORMAT)
    _assert_rejected(
        store.add_event(day.id, "Trauung", "14:00", end_time="14:75"),
        RejectionReason.INVALID_TIME_FORMAT,
    )
    assert store.list_events(day.id) == []


def test_add_event_assigns_increasing_sort_order(store, day):
    first = store.add_event(day.id, "Trauung", "14:00", end_time="14:45", location="Standesamt")
    second = store.add_event(day.id, "Sektempfang", "15:00")
    assert (first.sort_order, second.sort_order) == (0, 1)
    assert first.location == "Standesamt"
    assert second.end_time is None


def test_sort_order_counter_does_not_reuse_after_delete(store, day):
    a = store.add_event(day.id, "A", "10:00")
    b = store.add_event(day.id, "B", "10:00")
    store.remove_event(a.id)
    c = store.add_event(day.id, "C", "10:00")
    assert c.sort_order == 2
    assert [e.id for e in store.list_events(day.id)] == [b.id, c.id]


def test_list_events_order(store, day):
    store.add_event(day.id, "Party", "21:15", end_time="02:00")
    store.add_event(day.id, "Trauung", "14:00")
    store.add_event(day.id, "Fotos", "14:00")
    store.add_event(day.id, "Getting Ready", "09:00")

    events = store.list_events(day.id)
    assert [e.title for e in events] == ["Getting Ready", "Trauung", "Fotos", "Party"]
    keys = [(to_minutes(e.start_time), e.sort_order) for e in events]
    assert keys == sorted(keys)


def test_list_events_returns_copies(store, day):
    event = store.add_event(day.id, "Trauung", "14:00")
    listed = store.list_events(day.id)
    listed[0].title = "changed"
    assert store.get_event(event.id).title == "Trauung"


def test_update_event_keeps_omitted_fields(store, day):
    event = store.add_event(
        day.id, "Trauung", "14:00", end_time="14:45", location="Kirche", owner="Planer"
    )
    updated = store.update_event(event.id, ScheduleEventPatch(start_time="14:15"))
    assert updated.start_time == "14:15"
    assert updated.end_time == "14:45"
    assert updated.location == "Kirche"
    assert updated.owner == "Planer"


def test_update_event_clears_optional_fields(store, day):
    event = store.add_event(
        day.id, "Trauung", "14:00", end_time="14:45", location="Kirche", description="Ringe!"
    )
    updated = store.update_event(event.id, ScheduleEventPatch(end_time=None, location=""))
    assert updated.end_time is None
    assert updated.location is None
    assert updated.description == "Ringe!"


def test_update_event_rejections(store, day):
    event = store.add_event(day.id, "Trauung", "14:00")
    _assert_rejected(store.update_event(event.id, ScheduleEventPatch(title="")), RejectionReason.MISSING_TITLE)
    _assert_rejected(store.update_event(event.id, ScheduleEventPatch(title=None)), RejectionReason.MISSING_TITLE)
    _assert_rejected(
        store.update_event(event.id, ScheduleEventPatch(start_time=None)),
        RejectionReason.INVALID_TIME_FORMAT,
    )
    _assert_rejected(
        store.update_event(event.id, ScheduleEventPatch(end_time="25:00")),
        RejectionReason.INVALID_TIME_FORMAT,
    )
    _assert_rejected(store.update_event("nope", ScheduleEventPatch(title="x")), RejectionReason.NOT_FOUND)
    assert store.get_event(event.id).title == "Trauung"


def test_remove_event_leaves_siblings(store, day):
    a = store.add_event(day.id, "A", "10:00")
    b = store.add_event(day.id, "B", "11:00")
    assert store.remove_event(a.id).id == a.id
    assert [e.id for e in store.list_events(day.id)] == [b.id]
    assert store.get_day(day.id) is not None
    _assert_rejected(store.remove_event(a.id), RejectionReason.NOT_FOUND)


def test_reorder_events_breaks_ties_only(store, day):
    a = store.add_event(day.id, "A", "10:00")
    b = store.add_event(day.id, "B", "10:00")
    c = store.add_event(day.id, "C", "09:00")

    result = store.reorder_events(day.id, [b.id, a.id, c.id])
    assert [e.title for e in result] == ["C", "B", "A"]

    other = store.add_day("Brunch")
    foreign = store.add_event(other.id, "X", "10:00")
    _assert_rejected(store.reorder_events(day.id, [foreign.id]), RejectionReason.NOT_FOUND)


# ---------------------------------------------------------------------------
# Bulk import
# ---------------------------------------------------------------------------


def test_bulk_import_continues_sort_order(store, day):
    store.add_event(day.id, "Vorher 1", "08:00")
    store.add_event(day.id, "Vorher 2", "08:30")

    created = store.create_bulk_events(
        day.id,
        [
            BulkEventItem(title="e1", start_time="12:00"),
            BulkEventItem(title="e2", start_time="12:00", end_time="13:00"),
            BulkEventItem(title="e3", start_time="11:00", location="Garten"),
        ],
    )
    assert [e.sort_order for e in created] == [2, 3, 4]
    assert [e.title for e in created] == ["e1", "e2", "e3"]

    titles = [e.title for e in store.list_events(day.id)]
    assert titles == ["Vorher 1", "Vorher 2", "e3", "e1", "e2"]


def test_bulk_import_is_all_or_nothing(store, day):
    result = store.create_bulk_events(
        day.id,
        [
            BulkEventItem(title="ok", start_time="12:00"),
            BulkEventItem(title="broken", start_time="12:99"),
        ],
    )
    _assert_rejected(result, RejectionReason.INVALID_TIME_FORMAT)
    assert "item 1" in result.detail
    assert store.list_events(day.id) == []

    # The counter was not advanced by the failed batch.
    created = store.create_bulk_events(day.id, [BulkEventItem(title="ok", start_time="12:00")])
    assert created[0].sort_order == 0


def test_bulk_import_unknown_day(store):
    _assert_rejected(
        store.create_bulk_events("nope", [BulkEventItem(title="x", start_time="10:00")]),
        RejectionReason.NOT_FOUND,
    )


# ---------------------------------------------------------------------------
# Change events, revisions and concurrency
# ---------------------------------------------------------------------------


def test_mutations_publish_change_events():
    bus = EventBus()
    seen: list[ScheduleChanged] = []
    bus.subscribe(ScheduleChanged, seen.append)
    store = ScheduleStore("p", bus=bus)

    day = store.add_day("Hochzeitstag")
    store.create_bulk_events(day.id, [BulkEventItem(title="x", start_time="10:00")])
    store.add_day("")  # rejected, publishes nothing
    store.remove_day(day.id)

    assert [type(e).__name__ for e in seen] == ["DayCreated", "EventsImported", "DayRemoved"]
    assert isinstance(seen[1], EventsImported)
    assert isinstance(seen[2], DayRemoved)
    assert len(seen[2].removed_event_ids) == 1


def test_revision_changes_on_write(store, day):
    before = store.revision(day.id)
    store.add_event(day.id, "A", "10:00")
    assert store.revision(day.id) == before + 1
    store.list_events(day.id)
    assert store.revision(day.id) == before + 1


def test_concurrent_adds_get_unique_sort_orders(store, day):
    def worker(n: int) -> None:
        for i in range(25):
            store.add_event(day.id, f"w{n}-{i}", "10:00")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    orders = [e.sort_order for e in store.list_events(day.id)]
    assert sorted(orders) == list(range(100))


def test_project_repository_scopes_stores():
    repo = ProjectRepository(max_days=1)
    a = repo.get("a")
    assert repo.get("a") is a
    assert not isinstance(a.add_day("Tag"), Rejected)
    assert not isinstance(repo.get("b").add_day("Tag"), Rejected)
    _assert_rejected(a.add_day("Noch einer"), RejectionReason.DAY_LIMIT_EXCEEDED)


def test_find_does_not_create_stores():
    repo = ProjectRepository()
    assert repo.find("a") is None
    a = repo.get("a")
    assert repo.find("a") is a
    assert repo.find("b") is None


# ---------------------------------------------------------------------------
# Default days
# ---------------------------------------------------------------------------


def test_add_default_days(store):
    created = store.add_default_days()
    assert [d.name for d in created] == DEFAULT_SCHEDULE_DAY_NAMES
    assert [d.sort_order for d in created] == [0, 1, 2]
    assert store.add_default_days() == []


def test_add_default_days_skips_existing_names(store, day):
    created = store.add_default_days()
    assert "Hochzeitstag" not in [d.name for d in created]
    assert [d.name for d in store.list_days()] == [
        "Hochzeitstag", "Polterabend", "Brunch am Tag danach",
    ]


def test_add_default_days_stops_at_limit():
    store = ScheduleStore("project-1", max_days=2)
    store.add_day("Standesamt")
    created = store.add_default_days()
    assert [d.name for d in created] == ["Polterabend"]
    _assert_rejected(store.add_default_days(), RejectionReason.DAY_LIMIT_EXCEEDED)
