"""Projects assembled day views into a static, printable document."""

from __future__ import annotations

import datetime as dt

from dayof.domain.models import (
    VENDOR_CATEGORY_LABELS,
    DayView,
    PrintDaySection,
    PrintDocument,
    PrintEventRow,
    PrintHeader,
    PrintMeta,
    PrintOptions,
    PrintPage,
    TimelineEntryView,
    VendorContact,
    VendorRow,
    VendorTable,
)
from dayof.services.timeutil import format_day_date

DOCUMENT_TITLE = "Hochzeit - Ablaufplan"
CONFLICT_BADGE = "Zeitkonflikt"
EMPTY_DAY_LABEL = "Keine Programmpunkte."
VENDOR_HEADING = "Kontaktdaten Dienstleister"
VENDOR_COLUMNS = ("Kategorie", "Name", "Ansprechpartner", "Kontakt")
FOOTER = "Erstellt mit MarryBetter.com"
MISSING = "—"


def _timestamp_label(generated_at: dt.datetime) -> str:
    return f"Stand: {generated_at:%d.%m.%Y, %H:%M}"


def _row(entry: TimelineEntryView, options: PrintOptions) -> PrintEventRow:
    event = entry.event
    show_duration = entry.duration_minutes is not None and entry.duration_minutes > 0
    return PrintEventRow(
        event_id=event.id,
        start_time=event.start_time,
        end_time=event.end_time,
        duration_label=f"({entry.duration_label})" if show_duration else None,
        title=event.title,
        conflict_badge=CONFLICT_BADGE if options.conflicts and entry.has_conflict else None,
        location=event.location,
        owner=event.owner if options.detail else None,
        notes=event.description if options.detail else None,
    )


def _section(view: DayView, options: PrintOptions, locale: str) -> PrintDaySection:
    rows = tuple(_row(entry, options) for entry in view.entries)
    return PrintDaySection(
        day_id=view.day.id,
        heading=view.day.name,
        date_label=format_day_date(view.day.date, locale) if view.day.date else None,
        rows=rows,
        empty_label=None if rows else EMPTY_DAY_LABEL,
    )


def _vendor_table(vendors: list[VendorContact]) -> VendorTable:
    rows = tuple(
        VendorRow(
            category=VENDOR_CATEGORY_LABELS.get(v.category, v.category),
            name=v.name,
            contact_name=v.contact_name or MISSING,
            contact=" | ".join(c for c in (v.phone, v.email) if c) or MISSING,
        )
        for v in vendors
    )
    return VendorTable(heading=VENDOR_HEADING, columns=VENDOR_COLUMNS, rows=rows)


def project_print(
    day_views: list[DayView],
    meta: PrintMeta,
    vendors: list[VendorContact],
    options: PrintOptions,
    generated_at: dt.datetime | None = None,
    day_ids: list[str] | None = None,
    locale: str = "de",
) -> PrintDocument:
    """Build the print document from already assembled day views.

    Conflict badges come from the flags in *day_views*; detection is never
    re-run here. Vendors are rendered in the given order without filtering.
    """
    if day_ids:
        wanted = set(day_ids)
        day_views = [v for v in day_views if v.day.id in wanted]

    header = PrintHeader(
        title=DOCUMENT_TITLE,
        couple_name=meta.couple_name or None,
        date_label=format_day_date(meta.wedding_date, locale) if meta.wedding_date else None,
        location=meta.location or None,
        timestamp_label=_timestamp_label(generated_at or dt.datetime.now()),
    )
    vendor_table = _vendor_table(vendors) if options.contacts and vendors else None
    return PrintDocument(
        header=header,
        sections=tuple(_section(v, options, locale) for v in day_views),
        vendor_table=vendor_table,
        footer=FOOTER,
    )


def paginate(document: PrintDocument, rows_per_page: int = 25) -> list[PrintPage]:
    """Split a document into pages of at most *rows_per_page* rows.

    A day that does not fit continues on the next page as a section marked
    ``continued``. Empty days and the vendor table count as one row per
    line; the vendor table is never split and starts a new page when the
    current one cannot hold it.
    """
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be at least 1")

    pages: list[PrintPage] = []
    current: list[PrintDaySection] = []
    used = 0

    def flush() -> None:
        nonlocal current, used
        if current:
            pages.append(PrintPage(number=len(pages) + 1, sections=tuple(current)))
        current, used = [], 0

    for section in document.sections:
        if not section.rows:
            if used + 1 > rows_per_page:
                flush()
            current.append(section)
            used += 1
            continue
        remaining = list(section.rows)
        continued = False
        while remaining:
            if used >= rows_per_page:
                flush()
            take = rows_per_page - used
            chunk, remaining = remaining[:take], remaining[take:]
            current.append(
                section.model_copy(update={"rows": tuple(chunk), "continued": continued})
            )
            used += len(chunk)
            continued = True

    table = document.vendor_table
    if table is not None:
        needed = max(1, len(table.rows))
        if current and used + needed > rows_per_page:
            flush()
        pages.append(
            PrintPage(number=len(pages) + 1, sections=tuple(current), vendor_table=table)
        )
        current, used = [], 0
    flush()
    if not pages:
        pages.append(PrintPage(number=1))
    return pages
