"""Domain events emitted by the schedule store after each committed write."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, Field

from dayof.domain.models import ChangeType


class ScheduleChanged(BaseModel):
    """Base for all change events. ``day_id`` is ``None`` for project-wide changes."""

    change_type: ClassVar[ChangeType]

    project_id: str
    day_id: str | None = None


class DayCreated(ScheduleChanged):
    change_type = ChangeType.DAY_CREATED


class DayUpdated(ScheduleChanged):
    change_type = ChangeType.DAY_UPDATED


class DayRemoved(ScheduleChanged):
    """Fired after a day and all of its events are gone."""

    change_type = ChangeType.DAY_REMOVED

    removed_event_ids: list[str] = Field(default_factory=list)


class EventCreated(ScheduleChanged):
    change_type = ChangeType.EVENT_CREATED

    event_id: str


class EventUpdated(ScheduleChanged):
    change_type = ChangeType.EVENT_UPDATED

    event_id: str
    changed_fields: list[str] = Field(default_factory=list)


class EventRemoved(ScheduleChanged):
    change_type = ChangeType.EVENT_REMOVED

    event_id: str


class EventsImported(ScheduleChanged):
    """Fired once per bulk import, carrying the new ids in input order."""

    change_type = ChangeType.EVENTS_IMPORTED

    event_ids: list[str]


class ScheduleReordered(ScheduleChanged):
    change_type = ChangeType.REORDERED

    ordered_ids: list[str]
