"""FastAPI application — entry point for the day-of timeline service."""

from __future__ import annotations

import datetime as dt
from typing import TypeVar

from fastapi import FastAPI, HTTPException, Query, Response

from dayof.core.config import get_settings
from dayof.core.logging import configure_logging
from dayof.domain.bus import EventBus
from dayof.domain.handlers import HandlerRegistry
from dayof.domain.models import (
    BulkImportRequest,
    ChangeLogEntry,
    CreateDayRequest,
    CreateEventRequest,
    DayView,
    PrintDocument,
    PrintOptions,
    PrintPage,
    PrintRequest,
    Rejected,
    RejectionReason,
    ReorderRequest,
    ScheduleDay,
    ScheduleDayPatch,
    ScheduleEvent,
    ScheduleEventPatch,
    UpdateDayRequest,
)
from dayof.repos.memory import ChangeLogRepository, ProjectRepository, ScheduleStore
from dayof.services.assembler import TimelineCache, assemble_store_day, assemble_timeline
from dayof.services.export import csv_filename, export_day_csv
from dayof.services.printer import paginate, project_print
from dayof.services.templates import TIMELINE_TEMPLATES, TimelineTemplate, get_template
from dayof.services.timeutil import parse_day_date

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_title)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
project_repo = ProjectRepository(bus=event_bus, max_days=settings.max_schedule_days)
change_log_repo = ChangeLogRepository(max_entries_per_project=settings.change_log_limit)
timeline_cache = TimelineCache()

handler_registry = HandlerRegistry(
    bus=event_bus,
    change_log_repo=change_log_repo,
    timeline_cache=timeline_cache,
)

_STATUS_FOR_REASON = {
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.DAY_LIMIT_EXCEEDED: 409,
    RejectionReason.INVALID_TIME_FORMAT: 422,
    RejectionReason.MISSING_TITLE: 422,
}

T = TypeVar("T")


def _unwrap(result: T | Rejected) -> T:
    """Turn a store rejection into the matching HTTP error."""
    if isinstance(result, Rejected):
        raise HTTPException(
            status_code=_STATUS_FOR_REASON[result.reason],
            detail={"reason": result.reason.value, "detail": result.detail},
        )
    return result


def _parse_date_field(raw: str | None) -> dt.date | None:
    try:
        return parse_day_date(raw)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _existing_store(project_id: str) -> ScheduleStore:
    """Store of a project that has been written to; reads never create one."""
    store = project_repo.find(project_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return store


# ── Days ──────────────────────────────────────────────────────────────


@app.get("/projects/{project_id}/days", response_model=list[ScheduleDay])
def list_days(project_id: str) -> list[ScheduleDay]:
    store = project_repo.find(project_id)
    return store.list_days() if store is not None else []


@app.post("/projects/{project_id}/days", response_model=ScheduleDay, status_code=201)
def create_day(project_id: str, body: CreateDayRequest) -> ScheduleDay:
    date = _parse_date_field(body.date)
    return _unwrap(project_repo.get(project_id).add_day(body.name, date))


@app.patch("/projects/{project_id}/days/{day_id}", response_model=ScheduleDay)
def update_day(project_id: str, day_id: str, body: UpdateDayRequest) -> ScheduleDay:
    """Partial update; send ``"date": null`` or ``""`` to clear the date."""
    changes = {}
    if "name" in body.model_fields_set:
        changes["name"] = body.name
    if "date" in body.model_fields_set:
        changes["date"] = _parse_date_field(body.date)
    patch = ScheduleDayPatch(**changes)
    return _unwrap(project_repo.get(project_id).update_day(day_id, patch))


@app.delete("/projects/{project_id}/days/{day_id}", status_code=204)
def delete_day(project_id: str, day_id: str) -> Response:
    _unwrap(project_repo.get(project_id).remove_day(day_id))
    return Response(status_code=204)


@app.post(
    "/projects/{project_id}/days/defaults",
    response_model=list[ScheduleDay],
    status_code=201,
)
def create_default_days(project_id: str) -> list[ScheduleDay]:
    """Add the standard wedding days that the project does not have yet."""
    return _unwrap(project_repo.get(project_id).add_default_days())


@app.post("/projects/{project_id}/days/reorder", response_model=list[ScheduleDay])
def reorder_days(project_id: str, body: ReorderRequest) -> list[ScheduleDay]:
    return _unwrap(project_repo.get(project_id).reorder_days(body.ids))


# ── Events ────────────────────────────────────────────────────────────


@app.get("/projects/{project_id}/days/{day_id}/events", response_model=list[ScheduleEvent])
def list_events(project_id: str, day_id: str) -> list[ScheduleEvent]:
    return _unwrap(_existing_store(project_id).list_events(day_id))


@app.post(
    "/projects/{project_id}/days/{day_id}/events",
    response_model=ScheduleEvent,
    status_code=201,
)
def create_event(project_id: str, day_id: str, body: CreateEventRequest) -> ScheduleEvent:
    store = project_repo.get(project_id)
    return _unwrap(store.add_event(day_id, **body.model_dump()))


@app.patch("/projects/{project_id}/events/{event_id}", response_model=ScheduleEvent)
def update_event(project_id: str, event_id: str, body: ScheduleEventPatch) -> ScheduleEvent:
    return _unwrap(project_repo.get(project_id).update_event(event_id, body))


@app.delete("/projects/{project_id}/events/{event_id}", status_code=204)
def delete_event(project_id: str, event_id: str) -> Response:
    _unwrap(project_repo.get(project_id).remove_event(event_id))
    return Response(status_code=204)


@app.post(
    "/projects/{project_id}/days/{day_id}/events/reorder",
    response_model=list[ScheduleEvent],
)
def reorder_events(project_id: str, day_id: str, body: ReorderRequest) -> list[ScheduleEvent]:
    return _unwrap(project_repo.get(project_id).reorder_events(day_id, body.ids))


@app.post(
    "/projects/{project_id}/days/{day_id}/events/bulk",
    response_model=list[ScheduleEvent],
    status_code=201,
)
def bulk_import(project_id: str, day_id: str, body: BulkImportRequest) -> list[ScheduleEvent]:
    """Append all events at once, or none if any of them is invalid."""
    return _unwrap(project_repo.get(project_id).create_bulk_events(day_id, body.events))


# ── Templates ─────────────────────────────────────────────────────────


@app.get("/templates", response_model=list[TimelineTemplate])
def list_templates() -> list[TimelineTemplate]:
    return TIMELINE_TEMPLATES


@app.post(
    "/projects/{project_id}/days/{day_id}/templates/{template_id}",
    response_model=list[ScheduleEvent],
    status_code=201,
)
def apply_template(project_id: str, day_id: str, template_id: str) -> list[ScheduleEvent]:
    template = get_template(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return _unwrap(project_repo.get(project_id).create_bulk_events(day_id, template.events))


# ── Read views ────────────────────────────────────────────────────────


@app.get("/projects/{project_id}/timeline", response_model=list[DayView])
def get_timeline(
    project_id: str,
    day_ids: list[str] | None = Query(default=None),
    conflicts: bool = True,
) -> list[DayView]:
    store = project_repo.find(project_id)
    if store is None:
        return []
    return assemble_timeline(
        store,
        day_ids=day_ids,
        detect_conflicts=conflicts,
        min_gap_minutes=settings.min_gap_minutes,
        cache=timeline_cache,
    )


@app.get("/projects/{project_id}/days/{day_id}/timeline", response_model=DayView)
def get_day_timeline(project_id: str, day_id: str, conflicts: bool = True) -> DayView:
    return _unwrap(
        assemble_store_day(
            _existing_store(project_id),
            day_id,
            detect_conflicts=conflicts,
            min_gap_minutes=settings.min_gap_minutes,
            cache=timeline_cache,
        )
    )


@app.get("/projects/{project_id}/days/{day_id}/export.csv")
def export_csv(project_id: str, day_id: str) -> Response:
    store = _existing_store(project_id)
    view = _unwrap(assemble_store_day(store, day_id, cache=timeline_cache))
    return Response(
        content=export_day_csv(view),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(view.day)}"'},
    )


def _print_document(
    project_id: str,
    body: PrintRequest,
    day_ids: list[str] | None,
    options: PrintOptions,
) -> PrintDocument:
    store = project_repo.find(project_id)
    views = []
    if store is not None:
        views = assemble_timeline(
            store,
            day_ids=day_ids,
            detect_conflicts=options.conflicts,
            min_gap_minutes=settings.min_gap_minutes,
            cache=timeline_cache,
        )
    return project_print(
        views,
        meta=body.meta,
        vendors=body.vendors,
        options=options,
        locale=settings.default_locale,
    )


@app.post("/projects/{project_id}/print", response_model=PrintDocument)
def print_schedule(
    project_id: str,
    body: PrintRequest,
    day_ids: list[str] | None = Query(default=None),
    detail: bool = False,
    contacts: bool = False,
    conflicts: bool = True,
) -> PrintDocument:
    options = PrintOptions(detail=detail, contacts=contacts, conflicts=conflicts)
    return _print_document(project_id, body, day_ids, options)


@app.post("/projects/{project_id}/print/pages", response_model=list[PrintPage])
def print_schedule_pages(
    project_id: str,
    body: PrintRequest,
    day_ids: list[str] | None = Query(default=None),
    detail: bool = False,
    contacts: bool = False,
    conflicts: bool = True,
) -> list[PrintPage]:
    options = PrintOptions(detail=detail, contacts=contacts, conflicts=conflicts)
    document = _print_document(project_id, body, day_ids, options)
    return paginate(document, settings.rows_per_page)


@app.get("/projects/{project_id}/changes", response_model=list[ChangeLogEntry])
def list_changes(project_id: str) -> list[ChangeLogEntry]:
    return change_log_repo.list_for_project(project_id)


@app.get("/projects/{project_id}/days/{day_id}/changes", response_model=list[ChangeLogEntry])
def list_day_changes(project_id: str, day_id: str) -> list[ChangeLogEntry]:
    return change_log_repo.list_for_day(project_id, day_id)
