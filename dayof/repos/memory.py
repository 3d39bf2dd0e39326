"""In-memory schedule store and change-log repositories."""

from __future__ import annotations

import datetime as dt
import logging
import threading
from collections import defaultdict, deque
from itertools import count

from dayof.domain.bus import EventBus
from dayof.domain.events import (
    DayCreated,
    DayRemoved,
    DayUpdated,
    EventCreated,
    EventRemoved,
    EventsImported,
    EventUpdated,
    ScheduleChanged,
    ScheduleReordered,
)
from dayof.domain.models import (
    DEFAULT_SCHEDULE_DAY_NAMES,
    MAX_SCHEDULE_DAYS,
    BulkEventItem,
    ChangeLogEntry,
    Rejected,
    RejectionReason,
    ScheduleDay,
    ScheduleDayPatch,
    ScheduleEvent,
    ScheduleEventPatch,
)
from dayof.services.timeutil import InvalidTimeFormat, to_minutes

logger = logging.getLogger(__name__)

_CLEARABLE_EVENT_FIELDS = ("end_time", "location", "description", "owner", "visibility")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _reject(reason: RejectionReason, detail: str) -> Rejected:
    logger.warning("rejected %s: %s", reason, detail)
    return Rejected(reason=reason, detail=detail)


def _check_time(value: str, field: str) -> Rejected | None:
    try:
        to_minutes(value)
    except InvalidTimeFormat as exc:
        return _reject(RejectionReason.INVALID_TIME_FORMAT, f"{field}: {exc}")
    return None


def _event_order_key(event: ScheduleEvent) -> tuple[int, int]:
    return (to_minutes(event.start_time), event.sort_order)


def _day_order_key(day: ScheduleDay) -> tuple[int, int]:
    return (day.sort_order, day.created_seq)


class ScheduleStore:
    """Days and events of one project.

    All writes run under one lock, so ``sort_order`` counters never race.
    Reads copy records under the same lock and hand out copies, so callers
    never see a half-applied write and cannot mutate stored state.
    """

    def __init__(
        self,
        project_id: str,
        max_days: int = MAX_SCHEDULE_DAYS,
        bus: EventBus | None = None,
    ) -> None:
        self.project_id = project_id
        self.max_days = max_days
        self.bus = bus
        self._lock = threading.RLock()
        self._days: dict[str, ScheduleDay] = {}
        self._events: dict[str, ScheduleEvent] = {}
        self._day_seq = count()
        # Per-day monotonic counter for new event sort orders.
        self._next_event_order: dict[str, int] = defaultdict(int)
        # Bumped on every write touching a day; lets readers detect stale views.
        self._revisions: dict[str, int] = defaultdict(int)

    def _commit(self, event: ScheduleChanged, *day_ids: str) -> None:
        # Called with the lock held so the revision bump and the published
        # change are seen together.
        for day_id in day_ids or ((event.day_id,) if event.day_id else ()):
            self._revisions[day_id] += 1
        if self.bus is not None:
            self.bus.publish(event)

    def revision(self, day_id: str) -> int:
        with self._lock:
            return self._revisions[day_id]

    def _events_of(self, day_id: str) -> list[ScheduleEvent]:
        return [e for e in self._events.values() if e.day_id == day_id]

    # ------------------------------------------------------------------
    # Days
    # ------------------------------------------------------------------
    def add_day(self, name: str, date: dt.date | None = None) -> ScheduleDay | Rejected:
        if _blank(name):
            return _reject(RejectionReason.MISSING_TITLE, "Day name must not be empty")
        with self._lock:
            if len(self._days) >= self.max_days:
                return _reject(
                    RejectionReason.DAY_LIMIT_EXCEEDED,
                    f"A project holds at most {self.max_days} days",
                )
            day = ScheduleDay(
                project_id=self.project_id,
                name=name.strip(),
                date=date,
                sort_order=len(self._days),
                created_seq=next(self._day_seq),
            )
            self._days[day.id] = day
            logger.info("day %s (%s) added to project %s", day.id, day.name, self.project_id)
            self._commit(DayCreated(project_id=self.project_id, day_id=day.id))
            return day.model_copy()

    def update_day(self, day_id: str, patch: ScheduleDayPatch) -> ScheduleDay | Rejected:
        fields = patch.model_fields_set
        if "name" in fields and _blank(patch.name):
            return _reject(RejectionReason.MISSING_TITLE, "Day name must not be empty")
        with self._lock:
            day = self._days.get(day_id)
            if day is None:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            if "name" in fields:
                day.name = patch.name.strip()
            if "date" in fields:
                day.date = patch.date
            self._commit(DayUpdated(project_id=self.project_id, day_id=day_id))
            return day.model_copy()

    def remove_day(self, day_id: str) -> ScheduleDay | Rejected:
        """Delete a day together with all of its events."""
        with self._lock:
            day = self._days.pop(day_id, None)
            if day is None:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            removed = [e.id for e in self._events_of(day_id)]
            for eid in removed:
                del self._events[eid]
            self._next_event_order.pop(day_id, None)
            logger.info("day %s removed with %d events", day_id, len(removed))
            self._commit(
                DayRemoved(project_id=self.project_id, day_id=day_id, removed_event_ids=removed)
            )
            return day

    def get_day(self, day_id: str) -> ScheduleDay | None:
        with self._lock:
            day = self._days.get(day_id)
            return day.model_copy() if day else None

    def list_days(self) -> list[ScheduleDay]:
        with self._lock:
            days = [d.model_copy() for d in self._days.values()]
        return sorted(days, key=_day_order_key)

    def reorder_days(self, ordered_ids: list[str]) -> list[ScheduleDay] | Rejected:
        """Give days the order of *ordered_ids*; unlisted days follow in their old order."""
        with self._lock:
            unknown = [i for i in ordered_ids if i not in self._days]
            if unknown:
                return _reject(RejectionReason.NOT_FOUND, f"Unknown day ids: {unknown}")
            listed = [self._days[i] for i in dict.fromkeys(ordered_ids)]
            rest = [
                d for d in sorted(self._days.values(), key=_day_order_key)
                if d.id not in ordered_ids
            ]
            for position, day in enumerate(listed + rest):
                day.sort_order = position
            self._commit(
                ScheduleReordered(project_id=self.project_id, ordered_ids=ordered_ids),
                *self._days,
            )
            return self.list_days()

    def add_default_days(self) -> list[ScheduleDay] | Rejected:
        """Create the standard wedding days that are not there yet.

        Days are added in the default order until the day limit is reached.
        Returns the created days; an empty list when nothing was missing.
        """
        with self._lock:
            present = {d.name for d in self._days.values()}
            missing = [n for n in DEFAULT_SCHEDULE_DAY_NAMES if n not in present]
            if missing and len(self._days) >= self.max_days:
                return _reject(
                    RejectionReason.DAY_LIMIT_EXCEEDED,
                    f"A project holds at most {self.max_days} days",
                )
            created = []
            for name in missing[: self.max_days - len(self._days)]:
                created.append(self.add_day(name))
            return created

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event(
        self,
        day_id: str,
        title: str,
        start_time: str,
        end_time: str | None = None,
        location: str | None = None,
        description: str | None = None,
        owner: str | None = None,
        visibility: str | None = None,
    ) -> ScheduleEvent | Rejected:
        with self._lock:
            if day_id not in self._days:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            invalid = self._validate_new(title, start_time, end_time)
            if invalid is not None:
                return invalid
            event = ScheduleEvent(
                day_id=day_id,
                title=title.strip(),
                start_time=start_time,
                end_time=end_time or None,
                location=location or None,
                description=description or None,
                owner=owner or None,
                visibility=visibility or None,
                sort_order=self._take_order(day_id),
            )
            self._events[event.id] = event
            logger.info(
                "event %s (%s %s) added to day %s",
                event.id, event.start_time, event.title, day_id,
            )
            self._commit(EventCreated(project_id=self.project_id, day_id=day_id, event_id=event.id))
            return event.model_copy()

    def update_event(self, event_id: str, patch: ScheduleEventPatch) -> ScheduleEvent | Rejected:
        """Apply the fields set on *patch*; see ScheduleEventPatch for clearing rules."""
        fields = patch.model_fields_set
        if "title" in fields and _blank(patch.title):
            return _reject(RejectionReason.MISSING_TITLE, "Title cannot be cleared")
        if "start_time" in fields:
            if _blank(patch.start_time):
                return _reject(RejectionReason.INVALID_TIME_FORMAT, "start_time cannot be cleared")
            invalid = _check_time(patch.start_time, "start_time")
            if invalid is not None:
                return invalid
        if "end_time" in fields and not _blank(patch.end_time):
            invalid = _check_time(patch.end_time, "end_time")
            if invalid is not None:
                return invalid

        with self._lock:
            event = self._events.get(event_id)
            if event is None:
                return _reject(RejectionReason.NOT_FOUND, f"Event {event_id} not found")
            if "title" in fields:
                event.title = patch.title.strip()
            if "start_time" in fields:
                event.start_time = patch.start_time
            for name in _CLEARABLE_EVENT_FIELDS:
                if name in fields:
                    setattr(event, name, getattr(patch, name) or None)
            self._commit(
                EventUpdated(
                    project_id=self.project_id,
                    day_id=event.day_id,
                    event_id=event_id,
                    changed_fields=sorted(fields),
                )
            )
            return event.model_copy()

    def remove_event(self, event_id: str) -> ScheduleEvent | Rejected:
        with self._lock:
            event = self._events.pop(event_id, None)
            if event is None:
                return _reject(RejectionReason.NOT_FOUND, f"Event {event_id} not found")
            logger.info("event %s removed from day %s", event_id, event.day_id)
            self._commit(
                EventRemoved(project_id=self.project_id, day_id=event.day_id, event_id=event_id)
            )
            return event

    def get_event(self, event_id: str) -> ScheduleEvent | None:
        with self._lock:
            event = self._events.get(event_id)
            return event.model_copy() if event else None

    def list_events(self, day_id: str) -> list[ScheduleEvent] | Rejected:
        """Events of a day in display order ``(start_time, sort_order)``.

        The order is computed on every call; insertion order carries no meaning.
        """
        with self._lock:
            if day_id not in self._days:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            events = [e.model_copy() for e in self._events_of(day_id)]
        return sorted(events, key=_event_order_key)

    def snapshot(self, day_id: str) -> tuple[ScheduleDay, list[ScheduleEvent], int] | Rejected:
        """Day, its ordered events and its revision, read as one consistent unit."""
        with self._lock:
            day = self._days.get(day_id)
            if day is None:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            events = self.list_events(day_id)
            return day.model_copy(), events, self._revisions[day_id]

    def create_bulk_events(
        self, day_id: str, items: list[BulkEventItem]
    ) -> list[ScheduleEvent] | Rejected:
        """Append *items* to a day in input order, all or nothing."""
        with self._lock:
            if day_id not in self._days:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            for index, item in enumerate(items):
                invalid = self._validate_new(item.title, item.start_time, item.end_time)
                if invalid is not None:
                    return Rejected(reason=invalid.reason, detail=f"item {index}: {invalid.detail}")
            created = [
                ScheduleEvent(
                    day_id=day_id,
                    title=item.title.strip(),
                    start_time=item.start_time,
                    end_time=item.end_time or None,
                    location=item.location or None,
                    sort_order=self._take_order(day_id),
                )
                for item in items
            ]
            for event in created:
                self._events[event.id] = event
            logger.info("imported %d events into day %s", len(created), day_id)
            self._commit(
                EventsImported(
                    project_id=self.project_id,
                    day_id=day_id,
                    event_ids=[e.id for e in created],
                )
            )
            return [e.model_copy() for e in created]

    def reorder_events(self, day_id: str, ordered_ids: list[str]) -> list[ScheduleEvent] | Rejected:
        """Reassign ``sort_order`` of a day's events by position in *ordered_ids*.

        Start time still leads the display order; this only settles ties.
        """
        with self._lock:
            if day_id not in self._days:
                return _reject(RejectionReason.NOT_FOUND, f"Day {day_id} not found")
            own = self._events_of(day_id)
            own_ids = {e.id for e in own}
            unknown = [i for i in ordered_ids if i not in own_ids]
            if unknown:
                return _reject(RejectionReason.NOT_FOUND, f"Unknown event ids for day: {unknown}")
            listed = [self._events[i] for i in dict.fromkeys(ordered_ids)]
            rest = sorted(
                (e for e in own if e.id not in ordered_ids),
                key=lambda e: e.sort_order,
            )
            for position, event in enumerate(listed + rest):
                event.sort_order = position
            self._next_event_order[day_id] = len(own)
            self._commit(
                ScheduleReordered(project_id=self.project_id, day_id=day_id, ordered_ids=ordered_ids)
            )
            return self.list_events(day_id)

    # ------------------------------------------------------------------
    # Helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _validate_new(
        self, title: str, start_time: str, end_time: str | None
    ) -> Rejected | None:
        if _blank(title):
            return _reject(RejectionReason.MISSING_TITLE, "Event title must not be empty")
        invalid = _check_time(start_time, "start_time")
        if invalid is None and end_time:
            invalid = _check_time(end_time, "end_time")
        return invalid

    def _take_order(self, day_id: str) -> int:
        order = self._next_event_order[day_id]
        self._next_event_order[day_id] = order + 1
        return order


class ProjectRepository:
    """Hands out one ScheduleStore per project id."""

    def __init__(self, bus: EventBus | None = None, max_days: int = MAX_SCHEDULE_DAYS) -> None:
        self.bus = bus
        self.max_days = max_days
        self._lock = threading.Lock()
        self._stores: dict[str, ScheduleStore] = {}

    def get(self, project_id: str) -> ScheduleStore:
        """Return the project's store, creating it on first write."""
        with self._lock:
            store = self._stores.get(project_id)
            if store is None:
                store = ScheduleStore(project_id, max_days=self.max_days, bus=self.bus)
                self._stores[project_id] = store
            return store

    def find(self, project_id: str) -> ScheduleStore | None:
        with self._lock:
            return self._stores.get(project_id)

    def clear(self) -> None:
        with self._lock:
            self._stores.clear()


class ChangeLogRepository:
    """Keeps the newest change-log entries of each project."""

    def __init__(self, max_entries_per_project: int = 500) -> None:
        self.max_entries_per_project = max_entries_per_project
        self._lock = threading.Lock()
        self._entries: dict[str, deque[ChangeLogEntry]] = {}

    def add(self, entry: ChangeLogEntry) -> None:
        with self._lock:
            entries = self._entries.get(entry.project_id)
            if entries is None:
                entries = deque(maxlen=self.max_entries_per_project)
                self._entries[entry.project_id] = entries
            entries.append(entry)

    def list_for_project(self, project_id: str) -> list[ChangeLogEntry]:
        with self._lock:
            entries = list(self._entries.get(project_id, ()))
        return sorted(entries, key=lambda e: e.timestamp)

    def list_for_day(self, project_id: str, day_id: str) -> list[ChangeLogEntry]:
        return [e for e in self.list_for_project(project_id) if e.day_id == day_id]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
