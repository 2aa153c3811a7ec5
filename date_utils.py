"""
Calendar date formats used by the scheduler.
Canonical (storage/comparison): YYYYMMDD. Human search input: DD.MM.YYYY.
"""
from __future__ import annotations

import re
from datetime import date, datetime

from errors import ValidationError

DATE_FORMAT = "%Y%m%d"
HUMAN_DATE_FORMAT = "%d.%m.%Y"

# strptime accepts short fields ("2024011"), so the shape is checked first
_CANONICAL_DATE = re.compile(r"^\d{8}$")
_HUMAN_DATE = re.compile(r"^\d{2}\.\d{2}\.\d{4}$")


def today() -> date:
    return date.today()


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(value: str | None) -> date:
    """Parse a canonical YYYYMMDD string. Raises ValidationError on bad syntax or a non-existent day."""
    raw = (value or "").strip()
    if not _CANONICAL_DATE.match(raw):
        raise ValidationError(f"Invalid date format: {value!r} (expected YYYYMMDD)")
    try:
        return datetime.strptime(raw, DATE_FORMAT).date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r}") from e


def is_canonical_date(value: str | None) -> bool:
    try:
        parse_date(value)
    except ValidationError:
        return False
    return True


def parse_human_date(value: str | None) -> date | None:
    """
    Parse a DD.MM.YYYY search string.
    Returns None when the value is not a date so the caller can fall back to text search.
    """
    raw = (value or "").strip()
    if not _HUMAN_DATE.match(raw):
        return None
    try:
        return datetime.strptime(raw, HUMAN_DATE_FORMAT).date()
    except ValueError:
        return None


def human_to_canonical(value: str | None) -> str | None:
    d = parse_human_date(value)
    return format_date(d) if d else None
