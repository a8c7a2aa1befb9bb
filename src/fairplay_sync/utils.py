"""Utility helpers for scraping and parsing."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

LOGGER = structlog.get_logger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2})\s*[hH:.]\s*(\d{2})?$")


def get_zone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo instance, defaulting to UTC on failure."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("timezone.unknown", timezone=timezone_name, fallback="UTC")
        return ZoneInfo("UTC")


def now_in_timezone(timezone_name: str) -> datetime:
    """Current datetime in the configured timezone."""
    return datetime.now(tz=get_zone(timezone_name))


def normalise_whitespace(text: str) -> str:
    """Collapse repeated whitespace into single spaces."""
    return re.sub(r"\s+", " ", text or "").strip()


def normalise_time(raw: str) -> Optional[str]:
    """Turn the portal's hour notation ("8h", "08h30") into ``HH:MM``."""
    match = _TIME_RE.match(normalise_whitespace(raw))
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2) or 0)
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def add_one_hour(time_value: str) -> str:
    """``HH:MM`` one hour later, wrapping past midnight."""
    hours, _, minutes = time_value.partition(":")
    return f"{(int(hours) + 1) % 24:02d}:{int(minutes or 0):02d}"
