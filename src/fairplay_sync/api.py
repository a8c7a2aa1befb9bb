"""FastAPI application exposing availability, sync and booking history."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .config import SPORTS, Settings
from .errors import AmbiguousDate, FetchError, MissingIdentity, StorageFailure
from .models import AvailabilityModel, BookingRecord, PartnerStat
from .service import coerce_sport, load_availability, sync_bookings
from .storage import BookingStore, SqlBookingStore

LOGGER = structlog.get_logger(__name__)

app = FastAPI(title="FairPlay Sync", version=__version__)


@lru_cache
def get_settings() -> Settings:
    return Settings()


_STORES: Dict[str, SqlBookingStore] = {}


def get_store(settings: Settings = Depends(get_settings)) -> SqlBookingStore:
    store = _STORES.get(settings.database_url)
    if store is None:
        store = _STORES[settings.database_url] = SqlBookingStore.from_url(settings.database_url)
    return store


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
    LOGGER.error("api.storage_failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=502, content={"detail": str(exc)})


class SyncRequest(BaseModel):
    """Request payload for /sync."""

    model_config = ConfigDict(populate_by_name=True)

    sport: Optional[str] = None
    d: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")


class SyncResponse(BaseModel):
    """Outcome of a sync run."""

    inserted: int
    updated: int
    date: str
    total: int
    message: Optional[str] = None


class SportInfo(BaseModel):
    id: str
    label: str


@app.get("/sports", response_model=List[SportInfo])
async def list_sports() -> List[SportInfo]:
    return [SportInfo(id=config.sport.value, label=config.label) for config in SPORTS.values()]


@app.get("/availability", response_model=AvailabilityModel)
async def availability(
    sport: Optional[str] = Query(default=None),
    d: Optional[str] = Query(default=None),
    display_name: Optional[str] = Query(default=None, alias="displayName"),
    settings: Settings = Depends(get_settings),
) -> AvailabilityModel:
    """Parse the live schedule of one sport and day."""
    try:
        return await load_availability(settings, coerce_sport(sport), d, display_name)
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.post("/sync", response_model=SyncResponse, response_model_exclude_none=True)
async def sync(
    request: SyncRequest,
    settings: Settings = Depends(get_settings),
    store: BookingStore = Depends(get_store),
) -> SyncResponse:
    """Store the caller's bookings found on one sport/day page."""
    sport = coerce_sport(request.sport)
    LOGGER.info("api.sync.request", sport=sport.value, date_token=request.d)
    try:
        result = await sync_bookings(settings, store, sport, request.display_name, request.d)
    except MissingIdentity as exc:
        raise HTTPException(status_code=400, detail="displayName is required") from exc
    except AmbiguousDate as exc:
        raise HTTPException(status_code=500, detail=f"Could not determine active date: {exc}") from exc
    except (FetchError, StorageFailure) as exc:
        LOGGER.exception("api.sync.failed", sport=sport.value, error=str(exc))
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    message = None if result.total_considered else "No bookings found for your name on this day"
    return SyncResponse(
        inserted=result.inserted,
        updated=result.updated,
        date=result.resolved_date,
        total=result.total_considered,
        message=message,
    )


@app.get("/bookings", response_model=List[BookingRecord])
def bookings(store: SqlBookingStore = Depends(get_store)) -> List[BookingRecord]:
    """All stored bookings, most recent first."""
    return store.list_all()


@app.get("/bookings/partners", response_model=List[PartnerStat])
def partners(store: SqlBookingStore = Depends(get_store)) -> List[PartnerStat]:
    """Sessions per partner, most frequent first."""
    return store.partner_stats()
