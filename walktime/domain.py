"""Domain vocabulary and schemas for walking-window recommendations.

This module defines the contract between the forecast input, the scoring and
selection engine, and the presenter: enums, the immutable hourly series, and
the Pydantic models for the records that flow through the pipeline. No
scoring or selection logic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _FrozenModel(_StrictBaseModel):
    """Strict model that cannot be mutated after construction."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class UnitSystem(str, Enum):
    """Unit system used for displaying temperatures."""
    METRIC = "metric"
    IMPERIAL = "imperial"


class Condition(str, Enum):
    """Coarse rain outlook for a single hour."""
    GOOD = "good"
    FAIR = "fair"
    BAD = "bad"


@dataclass(frozen=True)
class HourlySample:
    """One hour of forecast data, already parsed."""
    index: int
    time: datetime
    temperature_c: float
    precipitation_probability_percent: float
    is_daylight: bool
    weather_code: Optional[int] = None


@dataclass(frozen=True)
class HourlySeries:
    """Index-aligned hourly forecast sequences.

    Each tuple holds one attribute per hour; position ``i`` in every tuple
    describes the same hour. Values are kept as delivered by the forecast
    source (timestamps as strings, flags as 0/1) so that a single bad entry can
    be skipped later without rejecting the whole series.
    """
    times: Tuple[Optional[str], ...]
    temperature_2m: Tuple[Optional[float], ...]
    precipitation_probability: Tuple[Optional[float], ...]
    is_day: Tuple[Optional[int], ...]
    weathercode: Tuple[Optional[int], ...] = ()
    timezone: Optional[str] = None
    sunrise: Tuple[str, ...] = field(default_factory=tuple)
    sunset: Tuple[str, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.times)

    def lengths(self) -> dict[str, int]:
        """Return the length of every hourly sequence the engine reads."""
        return {
            "time": len(self.times),
            "temperature_2m": len(self.temperature_2m),
            "precipitation_probability": len(self.precipitation_probability),
            "is_day": len(self.is_day),
        }


class WalkWindow(_FrozenModel):
    """Candidate walking hour derived from one forecast sample."""
    source_index: int
    time: datetime
    temperature_c: float
    precipitation_probability_percent: float = Field(ge=0.0, le=100.0)
    is_daylight: bool
    score: float | None = None
    is_next_day: bool = False


class WindowSelection(_StrictBaseModel):
    """Full chronological candidate list plus the diversified top picks."""
    full_list: List[WalkWindow] = Field(default_factory=list)
    top_list: List[WalkWindow] = Field(default_factory=list)
    skipped_samples: int = 0
    current_hour_index: int | None = None
    units: UnitSystem = UnitSystem.IMPERIAL
