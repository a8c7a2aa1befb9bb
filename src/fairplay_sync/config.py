"""Configuration objects for the FairPlay sync service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import Sport

DEFAULT_BASE_URL = "https://online.centrefairplay.ch"


class Settings(BaseSettings):
    """Runtime configuration pulled from environment variables."""

    base_url: str = Field(default=DEFAULT_BASE_URL, validation_alias="FAIRPLAY_BASE_URL")
    database_url: str = Field(default="sqlite:///fairplay.db", validation_alias="FAIRPLAY_DATABASE_URL")
    timeout_seconds: float = Field(default=15.0, validation_alias="FAIRPLAY_TIMEOUT_SECONDS")
    fetch_attempts: int = Field(default=3, ge=1, validation_alias="FAIRPLAY_FETCH_ATTEMPTS")
    timezone: str = Field(default="Europe/Zurich", validation_alias="FAIRPLAY_TIMEZONE")
    display_name: Optional[str] = Field(
        default=None,
        validation_alias="FAIRPLAY_DISPLAY_NAME",
        description="Name as rendered in the portal grid, e.g. 'C Berchier'.",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; FairPlayReader/1.0)",
        validation_alias="FAIRPLAY_USER_AGENT",
    )
    log_level: str = Field(default="INFO", validation_alias="FAIRPLAY_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def page_url(self, sport: Sport) -> str:
        """Absolute URL of the schedule page for ``sport``."""
        return f"{self.base_url.rstrip('/')}/{SPORTS[sport].page_id}"


@dataclass(frozen=True)
class SportConfig:
    """Markup conventions of one sport page.

    Cells carry class tokens such as ``tennis_int_libre`` or ``bad_indisp``;
    the prefix identifies the sport and the suffix the state. Header and
    footer cells of a court column carry a ``<prefix>..._base`` token.
    """

    sport: Sport
    label: str
    page_id: str
    marker_prefix: str
    free_suffix: str = "_libre"
    unavailable_suffix: str = "_indisp"
    header_suffix: str = "_base"

    def markers(self, tokens: list[str]) -> list[str]:
        """Tokens belonging to this sport's marker vocabulary."""
        return [token for token in tokens if token.startswith(self.marker_prefix)]


SPORTS: dict[Sport, SportConfig] = {
    Sport.TENNIS_INT: SportConfig(Sport.TENNIS_INT, "Tennis INT", "tableau_int.php", "tennis_int"),
    Sport.TENNIS_EXT: SportConfig(Sport.TENNIS_EXT, "Bulle", "tableau.php", "tennis_ext"),
    Sport.SQUASH: SportConfig(Sport.SQUASH, "Squash", "tableau_squash.php", "squash"),
    Sport.BADMINTON: SportConfig(Sport.BADMINTON, "Badminton", "tableau_bad.php", "bad"),
    Sport.PADEL: SportConfig(Sport.PADEL, "Padel", "tableau_padel.php", "padel"),
}


def sport_config(sport: Sport | str) -> SportConfig:
    """Look up the configuration for a sport id, raising ``ValueError`` if unknown."""
    return SPORTS[Sport(sport)]
