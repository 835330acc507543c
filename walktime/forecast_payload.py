"""Schemas for the Open-Meteo forecast payload supplied by the dashboard.

The browser fetches the forecast itself; this module only validates the shape
of what it posts and converts it into an HourlySeries.
"""
from __future__ import annotations

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from walktime.domain import HourlySeries
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_payload")

# Open-Meteo units the scoring engine assumes.
EXPECTED_HOURLY_UNITS = {
    "temperature_2m": "°C",
    "precipitation_probability": "%",
}


class _LenientModel(BaseModel):
    """Ignore fields we do not consume (Open-Meteo adds metadata freely)."""

    model_config = ConfigDict(extra="ignore")


class HourlyBlock(_LenientModel):
    """Hourly section of the forecast payload; every list is index-aligned."""
    time: List[Optional[str]]
    temperature_2m: List[Optional[float]]
    precipitation_probability: List[Optional[float]]
    is_day: List[Optional[Union[int, bool]]]
    weathercode: List[Optional[int]] = Field(default_factory=list)


class DailyBlock(_LenientModel):
    """Daily section; only consumed by the sun schedule."""
    sunrise: List[str] = Field(default_factory=list)
    sunset: List[str] = Field(default_factory=list)


class ForecastPayload(_LenientModel):
    """Forecast response as returned by the Open-Meteo /v1/forecast endpoint."""
    latitude: float | None = None
    longitude: float | None = None
    timezone: str | None = None
    utc_offset_seconds: int | None = None
    hourly_units: dict[str, str] = Field(default_factory=dict)
    hourly: HourlyBlock
    daily: DailyBlock | None = None

    def to_hourly_series(self, *, default_timezone: str | None = None) -> HourlySeries:
        """Convert the payload into the immutable series the engine consumes."""
        _warn_on_unexpected_units(self.hourly_units)
        daily = self.daily or DailyBlock()
        tz_name = self.timezone or default_timezone
        logger.debug(
            "Converted forecast payload",
            extra={"hours": len(self.hourly.time), "timezone": tz_name},
        )
        return HourlySeries(
            times=tuple(self.hourly.time),
            temperature_2m=tuple(self.hourly.temperature_2m),
            precipitation_probability=tuple(self.hourly.precipitation_probability),
            is_day=tuple(self.hourly.is_day),
            weathercode=tuple(self.hourly.weathercode),
            timezone=tz_name,
            sunrise=tuple(daily.sunrise),
            sunset=tuple(daily.sunset),
        )


def _warn_on_unexpected_units(units: dict):
    """Log a warning if the payload reports units the engine does not expect."""
    if not units:
        return
    for field, expected in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(field)
        if actual and actual != expected:
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"field": field, "unit": actual, "expected": expected},
            )


def parse_forecast(data: dict, *, default_timezone: str | None = None) -> HourlySeries:
    """Validate a raw Open-Meteo response dict and return its HourlySeries."""
    return ForecastPayload.model_validate(data).to_hourly_series(default_timezone=default_timezone)
