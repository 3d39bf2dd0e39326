"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging

from dayof.domain.bus import EventBus
from dayof.domain.events import ScheduleChanged, ScheduleReordered
from dayof.domain.models import ChangeLogEntry
from dayof.repos.memory import ChangeLogRepository
from dayof.services.assembler import TimelineCache

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires schedule-change handlers to the bus."""

    def __init__(
        self,
        bus: EventBus,
        change_log_repo: ChangeLogRepository,
        timeline_cache: TimelineCache,
    ) -> None:
        self.bus = bus
        self.change_log_repo = change_log_repo
        self.timeline_cache = timeline_cache
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ScheduleChanged, self.on_schedule_changed)
        self.bus.subscribe(ScheduleReordered, self.on_schedule_reordered)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_schedule_changed(self, event: ScheduleChanged) -> None:
        # 1. Drop stale views of the touched day
        if event.day_id is not None:
            self.timeline_cache.invalidate(event.day_id)

        # 2. Change log
        payload = event.model_dump(exclude={"project_id", "day_id"})
        self.change_log_repo.add(
            ChangeLogEntry(
                project_id=event.project_id,
                day_id=event.day_id,
                type=event.change_type,
                payload=payload,
            )
        )
        logger.debug("logged %s for project %s", event.change_type, event.project_id)

    def on_schedule_reordered(self, event: ScheduleReordered) -> None:
        # Day reorders carry no day id; every listed day's view is stale.
        if event.day_id is None:
            for day_id in event.ordered_ids:
                self.timeline_cache.invalidate(day_id)
