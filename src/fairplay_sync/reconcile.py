"""Merge the user's bookings from a parsed schedule into the booking store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from .dates import resolve_iso_date
from .errors import AmbiguousDate, MissingIdentity, StorageFailure
from .models import AvailabilityModel, BookingRecord, ReconcileResult, Slot, Sport
from .ownership import extract_partner
from .storage import BookingStore

LOGGER = structlog.get_logger(__name__)


def reconcile(
    model: AvailabilityModel,
    sport: Sport,
    display_name: Optional[str],
    store: BookingStore,
    now: Optional[datetime] = None,
) -> ReconcileResult:
    """
    Insert or refresh one record per "mine" slot of ``model``.

    ``now`` is the reference instant used both to resolve the active day label
    and as ``last_seen_at``. The first storage error aborts the run; records
    written before it are kept.
    """
    if not display_name or not display_name.strip():
        raise MissingIdentity("A display name is required to reconcile bookings")
    display_name = display_name.strip()
    sport = Sport(sport)

    active = model.active_day
    if active is None:
        raise AmbiguousDate("No active day in the schedule; cannot date the bookings")

    now = now or datetime.now(timezone.utc)
    iso_date = resolve_iso_date(active.label, now)

    mine = model.mine()
    if not mine:
        LOGGER.info("reconcile.nothing_to_do", sport=sport.value, date=iso_date)
        return ReconcileResult(resolved_date=iso_date)

    inserted = updated = 0
    for slot in mine:
        if _apply(slot, sport, iso_date, display_name, store, now):
            inserted += 1
        else:
            updated += 1

    LOGGER.info(
        "reconcile.complete",
        sport=sport.value,
        date=iso_date,
        inserted=inserted,
        updated=updated,
    )
    return ReconcileResult(
        inserted=inserted,
        updated=updated,
        resolved_date=iso_date,
        total_considered=len(mine),
    )


def _apply(
    slot: Slot,
    sport: Sport,
    iso_date: str,
    display_name: str,
    store: BookingStore,
    now: datetime,
) -> bool:
    """Upsert one slot; return True when it was not stored before."""
    partner = extract_partner(slot.occupants, display_name) if slot.occupants else None
    try:
        existing = store.find(sport, slot.court, iso_date, slot.start_time)
        if existing is not None:
            record = existing.model_copy(
                update={"occupants": slot.occupants, "partner": partner, "last_seen_at": now}
            )
        else:
            record = BookingRecord(
                sport=sport,
                court=slot.court,
                date=iso_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                occupants=slot.occupants,
                partner=partner,
                last_seen_at=now,
            )
        store.upsert(record)
    except StorageFailure:
        raise
    except Exception as exc:
        LOGGER.error("reconcile.storage_error", court=slot.court, start_time=slot.start_time, error=str(exc))
        raise StorageFailure(f"Storing {slot.court} {iso_date} {slot.start_time} failed: {exc}") from exc
    return existing is None
