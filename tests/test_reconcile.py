from datetime import datetime, timezone

import pytest

from conftest import REFERENCE, cell, render_schedule

from fairplay_sync.errors import AmbiguousDate, MissingIdentity, StorageFailure
from fairplay_sync.models import AvailabilityModel, DayNav, Slot, SlotStatus, Sport
from fairplay_sync.parser import parse_schedule
from fairplay_sync.reconcile import reconcile


def _model(*slots, active="Fr 27"):
    days = [DayNav(label=active, active=True)] if active else [DayNav(label="Fr 27")]
    return AvailabilityModel(display_date=active or "", days=days, slots=list(slots))


def _mine(court="Court 1", start="19:00", occupants="C Berchier / P Dupont"):
    return Slot(
        court=court,
        start_time=start,
        end_time=f"{int(start[:2]) + 1:02d}:00",
        status=SlotStatus.MINE,
        occupants=occupants,
    )


def test_end_to_end_inserts_one_record(recording_store):
    html = render_schedule(
        [
            (
                "Court 1",
                [
                    cell("tennis_int_libre", onclick="window.location='reservation1.php?d=MTIz'"),
                    cell("tennis_int_reserve", title="C Berchier"),
                ],
            )
        ]
    )
    model = parse_schedule(html, Sport.TENNIS_INT, display_name="Berchier")

    result = reconcile(model, Sport.TENNIS_INT, "Berchier", recording_store, now=REFERENCE)

    assert result.inserted == 1
    assert result.updated == 0
    assert result.resolved_date == "2026-02-27"
    assert result.total_considered == 1
    (record,) = recording_store.rows.values()
    assert record.key == ("tennis_int", "Court 1", "2026-02-27", "09:00")
    assert record.end_time == "10:00"
    assert record.occupants == "C Berchier"
    assert record.partner is None
    assert record.last_seen_at == REFERENCE


def test_second_run_only_updates(recording_store):
    model = _model(_mine(start="18:00"), _mine(court="Court 2", start="19:00"))

    first = reconcile(model, Sport.SQUASH, "Berchier", recording_store, now=REFERENCE)
    later = datetime(2026, 2, 25, 8, 0, tzinfo=timezone.utc)
    second = reconcile(model, Sport.SQUASH, "Berchier", recording_store, now=later)

    assert (first.inserted, first.updated) == (2, 0)
    assert (second.inserted, second.updated) == (0, first.total_considered)
    assert len(recording_store.rows) == 2
    assert all(record.last_seen_at == later for record in recording_store.rows.values())
    # The day label was resolved against the later reference: 27 >= 25, same month.
    assert second.resolved_date == "2026-02-27"


def test_update_refreshes_occupants_and_partner(recording_store):
    reconcile(_model(_mine(occupants="C Berchier")), Sport.PADEL, "Berchier", recording_store, now=REFERENCE)
    result = reconcile(
        _model(_mine(occupants="C Berchier / A Martin")), Sport.PADEL, "Berchier", recording_store, now=REFERENCE
    )

    assert result.updated == 1
    (record,) = recording_store.rows.values()
    assert record.occupants == "C Berchier / A Martin"
    assert record.partner == "A Martin"


def test_no_mine_slots_does_not_touch_the_store(recording_store):
    free = Slot(court="Court 1", start_time="08:00", end_time="09:00", status=SlotStatus.FREE)
    result = reconcile(_model(free), Sport.TENNIS_INT, "Berchier", recording_store, now=REFERENCE)

    assert (result.inserted, result.updated, result.total_considered) == (0, 0, 0)
    assert result.resolved_date == "2026-02-27"
    assert recording_store.calls == []


@pytest.mark.parametrize("name", [None, "", "   "])
def test_missing_display_name(recording_store, name):
    with pytest.raises(MissingIdentity):
        reconcile(_model(_mine()), Sport.TENNIS_INT, name, recording_store, now=REFERENCE)
    assert recording_store.calls == []


def test_no_active_day(recording_store):
    with pytest.raises(AmbiguousDate):
        reconcile(_model(_mine(), active=None), Sport.TENNIS_INT, "Berchier", recording_store, now=REFERENCE)
    assert recording_store.calls == []


def test_storage_failure_aborts_the_batch(recording_store):
    recording_store.fail_on_upsert = 2
    model = _model(_mine(start="17:00"), _mine(start="18:00"), _mine(start="19:00"))

    with pytest.raises(StorageFailure):
        reconcile(model, Sport.TENNIS_INT, "Berchier", recording_store, now=REFERENCE)

    assert len(recording_store.rows) == 1
    assert recording_store.calls.count("upsert") == 2


def test_unexpected_store_error_is_wrapped(recording_store):
    def broken_find(*args):
        raise ConnectionError("connection reset")

    recording_store.find = broken_find
    with pytest.raises(StorageFailure) as excinfo:
        reconcile(_model(_mine()), Sport.TENNIS_INT, "Berchier", recording_store, now=REFERENCE)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
