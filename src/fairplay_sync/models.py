"""Pydantic models representing parsed FairPlay schedules and stored bookings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Sport(str, Enum):
    """Sports published by the portal, one schedule page each."""

    TENNIS_INT = "tennis_int"
    TENNIS_EXT = "tennis_ext"
    SQUASH = "squash"
    BADMINTON = "badminton"
    PADEL = "padel"


class SlotStatus(str, Enum):
    FREE = "free"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    MINE = "mine"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DayNav(_CamelModel):
    """One tab of the portal's date bar."""

    label: str
    active: bool = False
    date_token: Optional[str] = Field(default=None, alias="d")


class Slot(_CamelModel):
    """A single court/hour cell of the schedule grid."""

    court: str
    start_time: str
    end_time: str
    status: SlotStatus
    occupants: Optional[str] = None
    booking_url: Optional[str] = None


class AvailabilityModel(_CamelModel):
    """Everything extracted from one sport page for one day."""

    display_date: str = ""
    days: List[DayNav] = Field(default_factory=list)
    times: List[str] = Field(default_factory=list)
    courts: List[str] = Field(default_factory=list)
    slots: List[Slot] = Field(default_factory=list)

    @property
    def active_day(self) -> Optional[DayNav]:
        return next((day for day in self.days if day.active), None)

    def mine(self) -> List[Slot]:
        return [slot for slot in self.slots if slot.status is SlotStatus.MINE]


class BookingRecord(_CamelModel):
    """A persisted sighting of one of the user's bookings.

    ``(sport, court, date, start_time)`` is the natural key; the store keeps at
    most one record per key.
    """

    sport: Sport
    court: str
    date: str
    start_time: str
    end_time: str
    occupants: Optional[str] = None
    partner: Optional[str] = None
    last_seen_at: datetime

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.sport.value, self.court, self.date, self.start_time)


class ReconcileResult(_CamelModel):
    """Counts reported by one reconciliation run."""

    inserted: int = 0
    updated: int = 0
    resolved_date: str
    total_considered: int = 0


class PartnerStat(_CamelModel):
    """How often the user played with one partner, and when last."""

    partner: str
    sessions: int
    last_date: str
