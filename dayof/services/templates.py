"""Built-in day timelines that can be bulk-imported into a schedule day."""

from __future__ import annotations

from pydantic import BaseModel

from dayof.domain.models import BulkEventItem


class TimelineTemplate(BaseModel):
    id: str
    name: str
    description: str
    events: list[BulkEventItem]


def _items(*rows: tuple[str, str, str]) -> list[BulkEventItem]:
    return [BulkEventItem(title=t, start_time=s, end_time=e) for t, s, e in rows]


TIMELINE_TEMPLATES: list[TimelineTemplate] = [
    TimelineTemplate(
        id="classic",
        name="Klassische Hochzeit",
        description="Typischer Tagesablauf mit Trauung, Empfang und Feier",
        events=_items(
            ("Getting Ready Braut", "09:00", "12:00"),
            ("Getting Ready Bräutigam", "10:00", "12:00"),
            ("First Look", "12:30", "13:00"),
            ("Paarshooting", "13:00", "14:00"),
            ("Standesamtliche Trauung", "14:00", "14:45"),
            ("Sektempfang", "15:00", "16:00"),
            ("Kaffee und Kuchen", "16:00", "17:00"),
            ("Gruppenfoto", "17:00", "17:30"),
            ("Abendessen", "18:00", "19:30"),
            ("Eröffnungstanz", "20:00", "20:15"),
            ("Reden und Spiele", "20:15", "21:30"),
            ("Party und Tanz", "21:30", "02:00"),
        ),
    ),
    TimelineTemplate(
        id="intimate",
        name="Intime Feier",
        description="Kompakter Ablauf für kleine Hochzeiten",
        events=_items(
            ("Getting Ready", "11:00", "13:00"),
            ("Freie Trauung", "14:00", "15:00"),
            ("Empfang und Fotos", "15:00", "16:30"),
            ("Dinner", "17:00", "19:00"),
            ("Reden", "19:00", "19:30"),
            ("Eröffnungstanz", "19:30", "19:45"),
            ("Abendprogramm", "20:00", "00:00"),
        ),
    ),
    TimelineTemplate(
        id="brunch",
        name="Brunch am Sonntag",
        description="Entspannter Morgen nach der Hochzeit",
        events=_items(
            ("Brunch-Empfang", "10:30", "11:00"),
            ("Gemeinsames Frühstück", "11:00", "13:00"),
            ("Verabschiedung", "13:00", "14:00"),
        ),
    ),
]


def get_template(template_id: str) -> TimelineTemplate | None:
    return next((t for t in TIMELINE_TEMPLATES if t.id == template_id), None)
