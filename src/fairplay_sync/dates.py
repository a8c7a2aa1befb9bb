"""Turning the portal's relative day labels into calendar dates."""

from __future__ import annotations

import re
from datetime import date, datetime

from .errors import AmbiguousDate

_TRAILING_DAY_RE = re.compile(r"(\d{1,2})\s*$")


def day_of_month(label: str) -> int:
    """Return the trailing day number of a label such as ``"Fr 27"``."""
    match = _TRAILING_DAY_RE.search(label or "")
    if not match:
        raise AmbiguousDate(f"Day label {label!r} does not end with a day number")
    return int(match.group(1))


def resolve_date(label: str, reference: date | datetime) -> date:
    """
    Resolve a day label against ``reference``.

    The portal only shows today and the following week, so a day number
    smaller than the reference day belongs to the next month. December rolls
    over into January of the next year.
    """
    if isinstance(reference, datetime):
        reference = reference.date()
    day = day_of_month(label)

    year, month = reference.year, reference.month
    if day < reference.day:
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)

    try:
        return date(year, month, day)
    except ValueError as exc:
        raise AmbiguousDate(f"Day label {label!r} has no match in {year:04d}-{month:02d}") from exc


def resolve_iso_date(label: str, reference: date | datetime) -> str:
    """ISO ``YYYY-MM-DD`` form of :func:`resolve_date`."""
    return resolve_date(label, reference).isoformat()
