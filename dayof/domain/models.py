"""Domain models for the day-of schedule."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

MAX_SCHEDULE_DAYS = 3

DEFAULT_SCHEDULE_DAY_NAMES = [
    "Polterabend",
    "Hochzeitstag",
    "Brunch am Tag danach",
]

VENDOR_CATEGORY_LABELS: dict[str, str] = {
    "LOCATION": "Location",
    "FOTO_VIDEO": "Foto / Video",
    "MUSIK_DJ": "Musik / DJ",
    "FLORISTIK": "Floristik",
    "CATERING": "Catering",
    "STYLING": "Styling (Hair/Make-up)",
    "PAPETERIE": "Papeterie",
    "DEKO_VERLEIH": "Deko / Verleih",
    "TRANSPORT": "Transport",
    "UNTERKUNFT": "Unterkunft",
    "TRAUREDNER": "Trauredner:in",
    "SONSTIGES": "Sonstiges",
}


class RejectionReason(StrEnum):
    INVALID_TIME_FORMAT = "invalid_time_format"
    MISSING_TITLE = "missing_title"
    DAY_LIMIT_EXCEEDED = "day_limit_exceeded"
    NOT_FOUND = "not_found"


class ChangeType(StrEnum):
    DAY_CREATED = "day_created"
    DAY_UPDATED = "day_updated"
    DAY_REMOVED = "day_removed"
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_REMOVED = "event_removed"
    EVENTS_IMPORTED = "events_imported"
    REORDERED = "reordered"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class ScheduleDay(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str
    name: str
    date: dt.date | None = None
    sort_order: int = 0
    created_seq: int = 0
    created_at: dt.datetime = Field(default_factory=_utcnow)


class ScheduleEvent(BaseModel):
    """One timed entry of a day.

    ``start_time`` and ``end_time`` stay ``HH:MM`` strings; an ``end_time``
    earlier than ``start_time`` means the event runs past midnight.
    """

    id: str = Field(default_factory=_new_id)
    day_id: str
    title: str
    start_time: str
    end_time: str | None = None
    location: str | None = None
    description: str | None = None
    owner: str | None = None
    visibility: str | None = None
    sort_order: int = 0


class Rejected(BaseModel):
    """Recoverable refusal returned by the schedule store instead of raising."""

    reason: RejectionReason
    detail: str


class ChangeLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    project_id: str
    day_id: str | None = None
    timestamp: dt.datetime = Field(default_factory=_utcnow)
    type: ChangeType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Patches and request DTOs
# ---------------------------------------------------------------------------


class ScheduleDayPatch(BaseModel):
    """Partial day update. Only fields that were explicitly set are applied."""

    name: str | None = None
    date: dt.date | None = None


class ScheduleEventPatch(BaseModel):
    """Partial event update.

    A field missing from the patch keeps its value; a field set to ``None``
    or ``""`` clears it (not allowed for ``title`` and ``start_time``).
    """

    title: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    description: str | None = None
    owner: str | None = None
    visibility: str | None = None


class BulkEventItem(BaseModel):
    title: str
    start_time: str
    end_time: str | None = None
    location: str | None = None


class CreateDayRequest(BaseModel):
    name: str
    date: str | None = None


class UpdateDayRequest(BaseModel):
    name: str | None = None
    date: str | None = None


class CreateEventRequest(BaseModel):
    title: str
    start_time: str
    end_time: str | None = None
    location: str | None = None
    description: str | None = None
    owner: str | None = None
    visibility: str | None = None


class BulkImportRequest(BaseModel):
    events: list[BulkEventItem]


class ReorderRequest(BaseModel):
    ids: list[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Assembled (read-only) views
# ---------------------------------------------------------------------------


class Gap(BaseModel):
    model_config = ConfigDict(frozen=True)

    after_event_id: str
    minutes: int
    start_time: str
    end_time: str


class TimeSpan(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class DaySnapshot(ScheduleDay):
    """Read-only copy of a day held by assembled views."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, day: ScheduleDay) -> DaySnapshot:
        return cls.model_validate(day.model_dump())


class EventSnapshot(ScheduleEvent):
    """Read-only copy of an event held by assembled views."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, event: ScheduleEvent) -> EventSnapshot:
        return cls.model_validate(event.model_dump())


class TimelineEntryView(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: EventSnapshot
    duration_minutes: int | None = None
    duration_label: str | None = None
    has_conflict: bool = False


class DayView(BaseModel):
    """Snapshot of one day, sorted and annotated for a single render pass."""

    model_config = ConfigDict(frozen=True)

    day: DaySnapshot
    date_short_label: str | None = None
    entries: tuple[TimelineEntryView, ...] = ()
    conflicts_checked: bool = True
    conflict_count: int = 0
    gaps: tuple[Gap, ...] = ()
    time_span: TimeSpan | None = None

    @property
    def conflict_ids(self) -> frozenset[str]:
        return frozenset(e.event.id for e in self.entries if e.has_conflict)


# ---------------------------------------------------------------------------
# Print document
# ---------------------------------------------------------------------------


class PrintOptions(BaseModel):
    detail: bool = False
    contacts: bool = False
    conflicts: bool = True


class PrintMeta(BaseModel):
    couple_name: str = ""
    wedding_date: dt.date | None = None
    location: str | None = None


class VendorContact(BaseModel):
    name: str
    category: str
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None


class PrintRequest(BaseModel):
    meta: PrintMeta = Field(default_factory=PrintMeta)
    vendors: list[VendorContact] = Field(default_factory=list)


class PrintHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    couple_name: str | None = None
    date_label: str | None = None
    location: str | None = None
    timestamp_label: str


class PrintEventRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str
    start_time: str
    end_time: str | None = None
    duration_label: str | None = None
    title: str
    conflict_badge: str | None = None
    location: str | None = None
    owner: str | None = None
    notes: str | None = None


class PrintDaySection(BaseModel):
    model_config = ConfigDict(frozen=True)

    day_id: str
    heading: str
    date_label: str | None = None
    rows: tuple[PrintEventRow, ...] = ()
    empty_label: str | None = None
    continued: bool = False


class VendorRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    name: str
    contact_name: str
    contact: str


class VendorTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    heading: str
    columns: tuple[str, ...]
    rows: tuple[VendorRow, ...]


class PrintDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    header: PrintHeader
    sections: tuple[PrintDaySection, ...] = ()
    vendor_table: VendorTable | None = None
    footer: str


class PrintPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    sections: tuple[PrintDaySection, ...] = ()
    vendor_table: VendorTable | None = None
