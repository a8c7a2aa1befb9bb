"""BeautifulSoup parsing of the FairPlay schedule pages.

Every sport page shares the same skeleton:

* a date bar (``.barre-top .btn-bar``) whose ``onclick`` handlers carry the
  ``d=`` token of each day;
* an hours column (``.col-heures span.heures``) with labels such as ``08h30``;
* one ``.courts`` block per court holding ``.cases`` cells (``.cases-et-demi``
  on the padel page). The first and last cells carry a ``<prefix>_base``
  token and hold the court name; every other cell is one hour of the grid.

Cells are matched to hours by position, so a block whose cell count differs
from the hours column is dropped.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

import structlog
from bs4 import BeautifulSoup, Tag

from .config import DEFAULT_BASE_URL, SportConfig, sport_config
from .errors import MalformedInput
from .models import AvailabilityModel, DayNav, Slot, SlotStatus, Sport
from .ownership import is_mine
from .utils import add_one_hour, normalise_time, normalise_whitespace

LOGGER = structlog.get_logger(__name__)

DAY_SELECTOR = ".barre-top .btn-bar"
ACTIVE_DAY_CLASS = "btn-bar-active"
TIME_SELECTOR = ".col-heures span.heures"
COURT_SELECTOR = ".courts"
CELL_SELECTOR = ".cases, .cases-et-demi"
COURT_NAME_SELECTOR = ".tableau_entetes"

DAY_TOKEN_RE = re.compile(r"(?<![\w])d=([^'\"&\s)]+)")
BOOKING_ACTION_RE = re.compile(r"reservation1\.php\?d=[^'\"\s)]+")


def classify_status(tokens: Iterable[str], config: SportConfig) -> SlotStatus:
    """Map a cell's class tokens to a slot status.

    The free marker is checked before the unavailable one; anything else is
    treated as booked.
    """
    markers = config.markers(list(tokens))
    if any(token.endswith(config.free_suffix) for token in markers):
        return SlotStatus.FREE
    if any(token.endswith(config.unavailable_suffix) for token in markers):
        return SlotStatus.UNAVAILABLE
    return SlotStatus.BOOKED


def is_header_cell(tokens: Iterable[str], config: SportConfig) -> bool:
    return any(token.endswith(config.header_suffix) for token in config.markers(list(tokens)))


def extract_slot(
    cell: Tag,
    *,
    court: str,
    start_time: str,
    config: SportConfig,
    display_name: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> Slot:
    """Build the slot for one grid cell."""
    status = classify_status(_class_tokens(cell), config)

    title = cell.get("title") or ""
    names = [name.strip() for name in str(title).split("\n") if name.strip()]
    occupants = " / ".join(names) if names else None

    if status is SlotStatus.BOOKED and is_mine(names, display_name):
        status = SlotStatus.MINE

    booking_url = None
    if status is SlotStatus.FREE:
        match = BOOKING_ACTION_RE.search(str(cell.get("onclick") or ""))
        if match:
            booking_url = f"{base_url.rstrip('/')}/{match.group(0)}"

    return Slot(
        court=court,
        start_time=start_time,
        end_time=add_one_hour(start_time),
        status=status,
        occupants=occupants,
        booking_url=booking_url,
    )


def parse_day_nav(soup: BeautifulSoup) -> List[DayNav]:
    """Return the date bar entries in display order."""
    days: List[DayNav] = []
    for element in soup.select(DAY_SELECTOR):
        match = DAY_TOKEN_RE.search(str(element.get("onclick") or ""))
        days.append(
            DayNav(
                label=normalise_whitespace(element.get_text()),
                active=ACTIVE_DAY_CLASS in _class_tokens(element),
                date_token=match.group(1) if match else None,
            )
        )
    return days


def parse_time_axis(soup: BeautifulSoup) -> List[str]:
    """Return the hours column as ``HH:MM`` labels, first occurrence wins."""
    times: List[str] = []
    for element in soup.select(TIME_SELECTOR):
        text = normalise_whitespace(element.get_text())
        if not text:
            continue
        value = normalise_time(text)
        if value is None:
            LOGGER.debug("parse.time_label_ignored", label=text)
            continue
        if value not in times:
            times.append(value)
    return times


def court_name(cells: List[Tag], config: SportConfig) -> Optional[str]:
    """Read the court name from the first header cell of a block."""
    for cell in cells:
        if not is_header_cell(_class_tokens(cell), config):
            continue
        heading = cell.select_one(COURT_NAME_SELECTOR)
        name = normalise_whitespace(heading.get_text()) if heading else ""
        return name or None
    return None


def parse_schedule(
    html: str,
    sport: Sport | SportConfig,
    display_name: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> AvailabilityModel:
    """Parse one sport page into an :class:`AvailabilityModel`.

    Unrecognisable markup produces an empty model rather than an error.
    """
    config = sport if isinstance(sport, SportConfig) else sport_config(sport)
    try:
        soup = _load_schedule(html)
    except MalformedInput as exc:
        LOGGER.warning("parse.malformed", sport=config.sport.value, reason=str(exc))
        return AvailabilityModel()

    days = parse_day_nav(soup)
    times = parse_time_axis(soup)
    active = next((day for day in days if day.active), None)

    courts: List[str] = []
    slots: List[Slot] = []
    for index, block in enumerate(soup.select(COURT_SELECTOR)):
        cells = block.select(CELL_SELECTOR)
        name = court_name(cells, config)
        if not name:
            LOGGER.warning("parse.court_skipped", sport=config.sport.value, block=index, reason="no name")
            continue

        data_cells = [cell for cell in cells if not is_header_cell(_class_tokens(cell), config)]
        if len(data_cells) != len(times):
            LOGGER.warning(
                "parse.court_skipped",
                sport=config.sport.value,
                court=name,
                reason="cell count does not match hours column",
                cells=len(data_cells),
                times=len(times),
            )
            continue

        if name not in courts:
            courts.append(name)
        for cell, start_time in zip(data_cells, times):
            slots.append(
                extract_slot(
                    cell,
                    court=name,
                    start_time=start_time,
                    config=config,
                    display_name=display_name,
                    base_url=base_url,
                )
            )

    LOGGER.debug(
        "parse.complete",
        sport=config.sport.value,
        days=len(days),
        times=len(times),
        courts=len(courts),
        slots=len(slots),
    )
    return AvailabilityModel(
        display_date=active.label if active else "",
        days=days,
        times=times,
        courts=courts,
        slots=slots,
    )


def _load_schedule(html: str) -> BeautifulSoup:
    if not html or not html.strip():
        raise MalformedInput("empty document")
    soup = BeautifulSoup(html, "html.parser")
    if not soup.select(TIME_SELECTOR) and not soup.select(COURT_SELECTOR):
        raise MalformedInput("no hours column or court blocks found")
    return soup


def _class_tokens(element: Tag) -> List[str]:
    classes = element.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)
