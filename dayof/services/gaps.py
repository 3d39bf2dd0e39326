"""Service for finding free time between consecutive events."""

from __future__ import annotations

from dayof.domain.models import Gap, ScheduleEvent
from dayof.services.timeutil import to_minutes


def detect_gaps(events: list[ScheduleEvent], min_gap_minutes: int = 30) -> list[Gap]:
    """Return idle stretches of at least *min_gap_minutes* between events.

    Only events with an end time take part. Gaps are measured from the end
    of one event to the start of the next one in start-time order;
    overlapping or back-to-back neighbours produce no gap.
    """
    timed = sorted(
        (e for e in events if e.end_time),
        key=lambda e: (to_minutes(e.start_time), e.sort_order),
    )
    gaps: list[Gap] = []
    for current, following in zip(timed, timed[1:]):
        current_end = to_minutes(current.end_time)
        if current_end < to_minutes(current.start_time):
            # Runs past midnight; nothing after it on this day is free.
            continue
        diff = to_minutes(following.start_time) - current_end
        if diff >= min_gap_minutes:
            gaps.append(
                Gap(
                    after_event_id=current.id,
                    minutes=diff,
                    start_time=current.end_time,
                    end_time=following.start_time,
                )
            )
    return gaps
