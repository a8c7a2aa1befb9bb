from __future__ import annotations

from datetime import datetime, timezone
from html import escape
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from fairplay_sync.errors import StorageFailure
from fairplay_sync.models import BookingRecord, Sport
from fairplay_sync.storage import SqlBookingStore

REFERENCE = datetime(2026, 2, 24, 18, 30, tzinfo=timezone.utc)


def cell(classes: str, title: Optional[str] = None, onclick: Optional[str] = None, kind: str = "cases") -> str:
    """Render one grid cell the way the portal does."""
    attrs = [f'class="{kind} {classes}"']
    if title is not None:
        attrs.append(f'title="{escape(title)}"')
    if onclick is not None:
        attrs.append(f'onclick="{escape(onclick)}"')
    return f"<div {' '.join(attrs)}></div>"


def header(name: str, prefix: str = "tennis_int", kind: str = "cases") -> str:
    return f'<div class="{kind} {prefix}_base"><span class="tableau_entetes">{escape(name)}</span></div>'


def render_schedule(
    courts: Sequence[Tuple[Optional[str], Sequence[str]]],
    times: Sequence[str] = ("08h00", "09h00"),
    days: Sequence[Tuple[str, bool, Optional[str]]] = (("Fr 27", True, None), ("Sa 28", False, "MjAyNi0wMi0yOA")),
    prefix: str = "tennis_int",
    kind: str = "cases",
) -> str:
    """Build a schedule page: a date bar, an hours column and one block per court."""
    day_html = []
    for label, active, token in days:
        classes = "btn-bar btn-bar-active" if active else "btn-bar"
        onclick = f" onclick=\"location.href='tableau_int.php?d={token}'\"" if token else ""
        day_html.append(f'<div class="{classes}"{onclick}>{escape(label)}</div>')

    hours = "".join(f'<span class="heures">{t}</span>' for t in times)
    blocks = []
    for name, cells in courts:
        head = header(name, prefix, kind) if name else f'<div class="{kind} {prefix}_base"></div>'
        foot = header(name, prefix, kind) if name else ""
        blocks.append(f'<div class="courts">{head}{"".join(cells)}{foot}</div>')

    return (
        "<html><body>"
        f'<div class="barre-top">{"".join(day_html)}</div>'
        "<div class=\"tableau\">"
        f'<div class="col-heures"><div class="heures">{hours}</div></div>'
        f'{"".join(blocks)}'
        "</div></body></html>"
    )


class RecordingStore:
    """In-memory booking store that records every call."""

    def __init__(self) -> None:
        self.rows: Dict[Tuple[str, str, str, str], BookingRecord] = {}
        self.calls: List[str] = []
        self.fail_on_upsert: Optional[int] = None

    def find(self, sport: Sport, court: str, date: str, start_time: str) -> Optional[BookingRecord]:
        self.calls.append("find")
        return self.rows.get((Sport(sport).value, court, date, start_time))

    def upsert(self, record: BookingRecord) -> None:
        self.calls.append("upsert")
        if self.fail_on_upsert is not None and self.calls.count("upsert") == self.fail_on_upsert:
            raise StorageFailure("disk full")
        self.rows[record.key] = record


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def sql_store(tmp_path) -> SqlBookingStore:
    return SqlBookingStore.from_url(f"sqlite:///{tmp_path / 'bookings.db'}")
