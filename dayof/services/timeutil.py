"""Minute arithmetic and formatting for ``HH:MM`` wall-clock strings."""

from __future__ import annotations

import datetime as dt
import re

import dateparser

MINUTES_PER_DAY = 1440

_TIME_RE = re.compile(r"([0-9]{2}):([0-9]{2})")

_WEEKDAYS = {
    "de": ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}
_MONTHS = {
    "de": [
        "Januar", "Februar", "März", "April", "Mai", "Juni",
        "Juli", "August", "September", "Oktober", "November", "Dezember",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}


class InvalidTimeFormat(ValueError):
    """Raised when a string is not a valid 24h ``HH:MM`` time."""


def to_minutes(t: str) -> int:
    """Return minutes since local midnight for an ``HH:MM`` string."""
    match = _TIME_RE.fullmatch(t) if isinstance(t, str) else None
    if match is None:
        raise InvalidTimeFormat(f"Expected HH:MM, got {t!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(f"Time out of range: {t!r}")
    return hours * 60 + minutes


def minutes_diff(start: str, end: str) -> int:
    """Minutes from *start* to *end*, wrapping past midnight.

    An *end* earlier than *start* is an overnight span
    (``"21:15"`` -> ``"02:00"`` is 285). Equal times are a zero-length
    event, never a full day.
    """
    if start == end:
        return 0
    return (to_minutes(end) - to_minutes(start)) % MINUTES_PER_DAY


def format_duration(minutes: int) -> str:
    """Render a minute count as ``"45 Min"``, ``"2 Std"`` or ``"4 Std 45 Min"``.

    Zero renders as ``"0 Min"`` so it stays distinguishable from a missing
    end time.
    """
    if minutes < 0:
        raise ValueError(f"Duration must not be negative, got {minutes}")
    if minutes < 60:
        return f"{minutes} Min"
    hours, rest = divmod(minutes, 60)
    return f"{hours} Std {rest} Min" if rest else f"{hours} Std"


def format_day_date(date: dt.date, locale: str = "de") -> str:
    """Long date, e.g. ``"Samstag, 20. Juni 2026"``."""
    if locale not in _WEEKDAYS:
        locale = "de"
    weekday = _WEEKDAYS[locale][date.weekday()]
    month = _MONTHS[locale][date.month - 1]
    if locale == "en":
        return f"{weekday}, {month} {date.day}, {date.year}"
    return f"{weekday}, {date.day}. {month} {date.year}"


def format_day_date_short(date: dt.date) -> str:
    return f"{date.day:02d}.{date.month:02d}."


def parse_day_date(raw: str | None) -> dt.date | None:
    """Parse a user-entered day date (ISO, ``20.06.2026``, ``20. Juni 2026``).

    Blank input means "no date yet". Raises ``ValueError`` when the text
    cannot be read as a date.
    """
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        pass
    settings = {
        "DATE_ORDER": "DMY",
        "PREFER_DAY_OF_MONTH": "first",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(text, languages=["de", "en"], settings=settings)
    if result is None:
        raise ValueError(f"Could not parse date {raw!r}")
    return result.date()
