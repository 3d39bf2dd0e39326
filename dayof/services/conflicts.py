"""Service for detecting time overlaps between events of one schedule day."""

from __future__ import annotations

from itertools import combinations
from typing import Iterable, NamedTuple

from dayof.domain.models import ScheduleEvent
from dayof.services.timeutil import MINUTES_PER_DAY, minutes_diff, to_minutes


class _Slot(NamedTuple):
    event_id: str
    start: int
    end: int

    @property
    def is_instant(self) -> bool:
        return self.start == self.end

    def segments(self) -> list[tuple[int, int]]:
        # An overnight slot is also compared in its shifted form so it meets
        # the early-morning events of the same day.
        segs = [(self.start, self.end)]
        if self.end > MINUTES_PER_DAY:
            segs.append((self.start - MINUTES_PER_DAY, self.end - MINUTES_PER_DAY))
        return segs


def _to_slot(event: ScheduleEvent) -> _Slot:
    start = to_minutes(event.start_time)
    duration = minutes_diff(event.start_time, event.end_time) if event.end_time else 0
    return _Slot(event.id, start, start + duration)


def _overlaps(a: _Slot, b: _Slot) -> bool:
    if a.is_instant and b.is_instant:
        return False
    if a.is_instant or b.is_instant:
        point, span = (a, b) if a.is_instant else (b, a)
        return any(s < point.start < e for s, e in span.segments())
    return any(
        a_start < b_end and b_start < a_end
        for a_start, a_end in a.segments()
        for b_start, b_end in b.segments()
    )


def conflict_pairs(events: Iterable[ScheduleEvent]) -> list[tuple[str, str]]:
    """Return every pair of event ids whose time ranges overlap.

    Overlap rule: ``a.start < b.end AND b.start < a.end`` on half-open
    ranges, so back-to-back events (end == start) do not conflict. An
    event without end time is an instant that only conflicts when it lies
    strictly inside another event's range. Pairs keep input order.
    """
    slots = [_to_slot(e) for e in events]
    return [
        (a.event_id, b.event_id)
        for a, b in combinations(slots, 2)
        if _overlaps(a, b)
    ]


def detect_conflicts(events: Iterable[ScheduleEvent]) -> set[str]:
    """Return the ids of all events that overlap at least one other event."""
    flagged: set[str] = set()
    for a, b in conflict_pairs(events):
        flagged.add(a)
        flagged.add(b)
    return flagged
