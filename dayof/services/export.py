"""CSV export of a single assembled day."""

from __future__ import annotations

import csv
import io

from dayof.domain.models import DayView, ScheduleDay

CSV_HEADER = ["Startzeit", "Endzeit", "Titel", "Ort", "Beschreibung", "Verantwortlich"]
_BOM = "\ufeff"  # lets spreadsheet tools detect UTF-8


def export_day_csv(view: DayView) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for entry in view.entries:
        event = entry.event
        writer.writerow(
            [
                event.start_time,
                event.end_time or "",
                event.title,
                event.location or "",
                event.description or "",
                event.owner or "",
            ]
        )
    return _BOM + buffer.getvalue()


def csv_filename(day: ScheduleDay) -> str:
    return "Ablaufplan_" + "_".join(day.name.split()) + ".csv"
