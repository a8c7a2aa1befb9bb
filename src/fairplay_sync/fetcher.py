"""HTTP access to the FairPlay schedule pages."""

from __future__ import annotations

from typing import Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings
from .errors import FetchError
from .models import Sport

LOGGER = structlog.get_logger(__name__)


async def fetch_schedule_html(
    settings: Settings,
    sport: Sport,
    date_token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Download the schedule page of ``sport`` for the day ``date_token`` (today if omitted)."""
    url = settings.page_url(Sport(sport))
    params = {"responsive": "false"}
    if date_token:
        params["d"] = date_token
    headers = {"User-Agent": settings.user_agent, "Accept": "text/html"}

    LOGGER.info("fetch.start", url=url, date_token=date_token)
    try:
        async for attempt in AsyncRetrying(
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            stop=stop_after_attempt(settings.fetch_attempts),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                async with httpx.AsyncClient(
                    timeout=settings.timeout_seconds,
                    transport=transport,
                    follow_redirects=True,
                ) as client:
                    response = await client.get(url, params=params, headers=headers)
    except httpx.TransportError as exc:
        LOGGER.error("fetch.failed", url=url, error=str(exc))
        raise FetchError(f"FairPlay fetch failed: {exc}") from exc

    if not response.is_success:
        LOGGER.error("fetch.failed", url=url, status_code=response.status_code)
        raise FetchError(f"FairPlay fetch failed: {response.status_code}", status_code=response.status_code)

    LOGGER.info("fetch.success", url=url, length=len(response.text))
    return response.text
