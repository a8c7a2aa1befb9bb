"""Fetch, parse and reconcile in one call, as used by the API and the CLI."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import httpx
import structlog

from .config import Settings
from .errors import MissingIdentity
from .fetcher import fetch_schedule_html
from .models import AvailabilityModel, ReconcileResult, Sport
from .parser import parse_schedule
from .reconcile import reconcile
from .storage import BookingStore
from .utils import now_in_timezone

LOGGER = structlog.get_logger(__name__)

DEFAULT_SPORT = Sport.TENNIS_INT


def coerce_sport(raw: Optional[str]) -> Sport:
    """Map a user-supplied sport id to a Sport, defaulting to indoor tennis."""
    try:
        return Sport(raw) if raw else DEFAULT_SPORT
    except ValueError:
        LOGGER.info("sport.unknown", requested=raw, fallback=DEFAULT_SPORT.value)
        return DEFAULT_SPORT


async def load_availability(
    settings: Settings,
    sport: Sport,
    date_token: Optional[str] = None,
    display_name: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AvailabilityModel:
    html = await fetch_schedule_html(settings, sport, date_token, transport=transport)
    return parse_schedule(html, sport, display_name=display_name, base_url=settings.base_url)


async def sync_bookings(
    settings: Settings,
    store: BookingStore,
    sport: Sport,
    display_name: Optional[str],
    date_token: Optional[str] = None,
    now: Optional[datetime] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ReconcileResult:
    """Fetch one sport/day and reconcile the user's bookings into ``store``."""
    if not display_name or not display_name.strip():
        raise MissingIdentity("A display name is required to reconcile bookings")
    model = await load_availability(settings, sport, date_token, display_name, transport=transport)
    reference = now or now_in_timezone(settings.timezone)
    return await asyncio.to_thread(reconcile, model, sport, display_name, store, reference)
