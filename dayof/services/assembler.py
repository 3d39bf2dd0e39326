"""Builds the annotated day views shared by the screen and print paths."""

from __future__ import annotations

import logging
import threading

from dayof.domain.models import (
    DaySnapshot,
    DayView,
    EventSnapshot,
    Rejected,
    ScheduleDay,
    ScheduleEvent,
    TimelineEntryView,
    TimeSpan,
)
from dayof.repos.memory import ScheduleStore
from dayof.services.conflicts import conflict_pairs
from dayof.services.gaps import detect_gaps
from dayof.services.timeutil import (
    format_day_date_short,
    format_duration,
    minutes_diff,
    to_minutes,
)

logger = logging.getLogger(__name__)


def _time_span(events: list[ScheduleEvent]) -> TimeSpan | None:
    if not events:
        return None
    last = events[-1]
    return TimeSpan(start=events[0].start_time, end=last.end_time or last.start_time)


def assemble_day(
    day: ScheduleDay,
    events: list[ScheduleEvent],
    detect_conflicts: bool = True,
    min_gap_minutes: int = 30,
) -> DayView:
    """Sort *events*, run conflict detection once and attach durations.

    With ``detect_conflicts=False`` the detector is not called at all and no
    entry is flagged. The result holds frozen copies, so neither later
    store writes nor readers of a shared view can change it.
    """
    ordered = sorted(
        (EventSnapshot.of(e) for e in events),
        key=lambda e: (to_minutes(e.start_time), e.sort_order),
    )
    pairs = conflict_pairs(ordered) if detect_conflicts else []
    flagged = {eid for pair in pairs for eid in pair}

    entries = []
    for event in ordered:
        duration = minutes_diff(event.start_time, event.end_time) if event.end_time else None
        entries.append(
            TimelineEntryView(
                event=event,
                duration_minutes=duration,
                duration_label=format_duration(duration) if duration is not None else None,
                has_conflict=event.id in flagged,
            )
        )

    return DayView(
        day=DaySnapshot.of(day),
        date_short_label=format_day_date_short(day.date) if day.date else None,
        entries=tuple(entries),
        conflicts_checked=detect_conflicts,
        conflict_count=len(pairs),
        gaps=tuple(detect_gaps(ordered, min_gap_minutes)),
        time_span=_time_span(ordered),
    )


class TimelineCache:
    """Assembled views keyed by ``(day_id, detect_conflicts)``.

    A cached view is only served while the day's store revision is
    unchanged; change handlers also drop entries as soon as a day is written.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._views: dict[tuple[str, bool], tuple[int, DayView]] = {}

    def get(self, day_id: str, detect_conflicts: bool, revision: int) -> DayView | None:
        with self._lock:
            cached = self._views.get((day_id, detect_conflicts))
        if cached is None or cached[0] != revision:
            return None
        return cached[1]

    def put(self, day_id: str, detect_conflicts: bool, revision: int, view: DayView) -> None:
        with self._lock:
            current = self._views.get((day_id, detect_conflicts))
            if current is None or current[0] <= revision:
                self._views[(day_id, detect_conflicts)] = (revision, view)

    def invalidate(self, day_id: str) -> None:
        with self._lock:
            dropped = [key for key in self._views if key[0] == day_id]
            for key in dropped:
                del self._views[key]
        if dropped:
            logger.debug("dropped %d cached views for day %s", len(dropped), day_id)

    def clear(self) -> None:
        with self._lock:
            self._views.clear()


def assemble_store_day(
    store: ScheduleStore,
    day_id: str,
    detect_conflicts: bool = True,
    min_gap_minutes: int = 30,
    cache: TimelineCache | None = None,
) -> DayView | Rejected:
    snap = store.snapshot(day_id)
    if isinstance(snap, Rejected):
        return snap
    day, events, revision = snap
    if cache is not None:
        cached = cache.get(day_id, detect_conflicts, revision)
        if cached is not None:
            return cached
    view = assemble_day(day, events, detect_conflicts, min_gap_minutes)
    if cache is not None:
        cache.put(day_id, detect_conflicts, revision, view)
    return view


def assemble_timeline(
    store: ScheduleStore,
    day_ids: list[str] | None = None,
    detect_conflicts: bool = True,
    min_gap_minutes: int = 30,
    cache: TimelineCache | None = None,
) -> list[DayView]:
    """Assemble every day of the store in display order.

    *day_ids* filters the days; unknown ids are ignored, matching a print
    request for a subset of days.
    """
    wanted = set(day_ids) if day_ids else None
    views = []
    for day in store.list_days():
        if wanted is not None and day.id not in wanted:
            continue
        view = assemble_store_day(store, day.id, detect_conflicts, min_gap_minutes, cache)
        # A day removed between listing and assembly is skipped.
        if not isinstance(view, Rejected):
            views.append(view)
    return views
