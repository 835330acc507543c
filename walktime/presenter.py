"""Turn computed walk windows into plain view data for the dashboard.

Nothing here draws anything; the browser owns the markup. These helpers only
format temperatures, pick labels and icons, and shape lists so the client can
render them without repeating any scoring logic.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from walktime.domain import Condition, HourlySeries, UnitSystem, WalkWindow, WindowSelection
from walktime.walk_windows import (
    SCAN_HOURS,
    fahrenheit,
    parse_timestamp,
    round_half_up,
    sample_at,
    series_zone,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="presenter")

TIME_FORMAT = "%H:%M"
NEXT_DAY_LABEL = "Tom."
NO_TOP_WINDOWS_MESSAGE = "No good windows found."
NO_WINDOWS_MESSAGE = "No windows in next 24h."

_CONDITION_TEXT = {
    Condition.GOOD: "Great",
    Condition.FAIR: "Chance of rain",
    Condition.BAD: "Rainy",
}


class _ViewModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class WindowView(_ViewModel):
    """One walking hour as the dashboard lists it."""
    source_index: int
    time: datetime
    display_time: str
    day_label: str | None = None
    temperature: str
    precipitation_probability: float
    condition: Condition
    condition_text: str
    night_shaded: bool = False
    is_top: bool = False
    score: float | None = None


class CurrentConditionsView(_ViewModel):
    """Headline conditions for the current hour."""
    time: datetime
    temperature: str
    precipitation_probability: float
    icon: str


class SunScheduleView(_ViewModel):
    """Today's sunrise and sunset as display strings."""
    sunrise: str | None = None
    sunset: str | None = None


class PrecipitationChart(_ViewModel):
    """Bar chart series for precipitation chance over the first day."""
    labels: List[str] = Field(default_factory=list)
    values: List[float | None] = Field(default_factory=list)
    now_label: str | None = None


class DashboardView(_ViewModel):
    """Everything the dashboard needs for one recomputation."""
    units: UnitSystem
    top_windows: List[WindowView] = Field(default_factory=list)
    all_windows: List[WindowView] = Field(default_factory=list)
    top_empty_message: str | None = None
    all_empty_message: str | None = None
    current: CurrentConditionsView | None = None
    sun: SunScheduleView = Field(default_factory=SunScheduleView)
    precipitation_chart: PrecipitationChart = Field(default_factory=PrecipitationChart)
    skipped_samples: int = 0


def format_temperature(celsius: float, units: UnitSystem) -> str:
    """Format a Celsius reading in the requested unit system."""
    if units == UnitSystem.IMPERIAL:
        return f"{fahrenheit(celsius)}°F"
    return f"{round_half_up(celsius)}°C"


def condition_for(precipitation_probability: float) -> Condition:
    """Bucket precipitation chance into a coarse outlook."""
    if precipitation_probability < 20:
        return Condition.GOOD
    if precipitation_probability < 50:
        return Condition.FAIR
    return Condition.BAD


def weather_icon(code: Optional[int], is_day: bool = True) -> str:
    """Map a WMO weather interpretation code to an icon."""
    if code is None:
        return "🌈"
    if code == 0:
        return "☀️" if is_day else "🌙"
    if 1 <= code <= 3:
        return "⛅" if is_day else "☁️"
    if 45 <= code <= 48:
        return "🌫️"
    if 51 <= code <= 67:
        return "🌧️"
    if 71 <= code <= 77:
        return "❄️"
    if 80 <= code <= 82:
        return "🌦️"
    if 95 <= code <= 99:
        return "⚡"
    return "🌈"


def describe_window(window: WalkWindow, units: UnitSystem, *, is_top: bool = False) -> WindowView:
    """Build the list entry for a single window."""
    condition = condition_for(window.precipitation_probability_percent)
    return WindowView(
        source_index=window.source_index,
        time=window.time,
        display_time=window.time.strftime(TIME_FORMAT),
        day_label=NEXT_DAY_LABEL if window.is_next_day else None,
        temperature=format_temperature(window.temperature_c, units),
        precipitation_probability=window.precipitation_probability_percent,
        condition=condition,
        condition_text=_CONDITION_TEXT[condition],
        night_shaded=not window.is_daylight,
        is_top=is_top,
        score=window.score,
    )


def current_conditions(series: HourlySeries, index: int | None, units: UnitSystem) -> CurrentConditionsView | None:
    """Describe the hour at index, or None if it is missing or malformed."""
    if index is None or not 0 <= index < len(series):
        return None
    sample = sample_at(series, index, series_zone(series))
    if sample is None:
        return None
    return CurrentConditionsView(
        time=sample.time,
        temperature=format_temperature(sample.temperature_c, units),
        precipitation_probability=sample.precipitation_probability_percent,
        icon=weather_icon(sample.weather_code, sample.is_daylight),
    )


def _format_clock(raw: str | None) -> str | None:
    parsed = parse_timestamp(raw)
    if parsed is None:
        return None
    return parsed.strftime(TIME_FORMAT)


def sun_schedule(series: HourlySeries) -> SunScheduleView:
    """Format the first sunrise and sunset of the series."""
    sunrise = _format_clock(series.sunrise[0]) if series.sunrise else None
    sunset = _format_clock(series.sunset[0]) if series.sunset else None
    if (series.sunrise and sunrise is None) or (series.sunset and sunset is None):
        logger.warning("Could not parse sun schedule",
                       extra={"sunrise": series.sunrise[:1], "sunset": series.sunset[:1]})
    return SunScheduleView(sunrise=sunrise, sunset=sunset)


def _hour_label(moment: datetime | None) -> str:
    return f"{moment.hour}:00" if moment is not None else "--"


def precipitation_chart(series: HourlySeries, current_hour_index: int | None) -> PrecipitationChart:
    """Chart data for the first 24 hours of the series, with a marker for now."""
    tz = series_zone(series)
    count = min(SCAN_HOURS, len(series.times), len(series.precipitation_probability))
    labels = [_hour_label(parse_timestamp(series.times[i], tz)) for i in range(count)]
    values = list(series.precipitation_probability[:count])

    now_label = None
    if current_hour_index is not None and 0 <= current_hour_index < len(series.times):
        now_time = parse_timestamp(series.times[current_hour_index], tz)
        if now_time is not None:
            now_label = _hour_label(now_time)
    return PrecipitationChart(labels=labels, values=values, now_label=now_label)


def present(selection: WindowSelection, series: HourlySeries) -> DashboardView:
    """Assemble the full dashboard view for one computed selection."""
    units = selection.units
    top = [describe_window(w, units, is_top=True) for w in selection.top_list]
    full = [describe_window(w, units) for w in selection.full_list]
    return DashboardView(
        units=units,
        top_windows=top,
        all_windows=full,
        top_empty_message=None if top else NO_TOP_WINDOWS_MESSAGE,
        all_empty_message=None if full else NO_WINDOWS_MESSAGE,
        current=current_conditions(series, selection.current_hour_index, units),
        sun=sun_schedule(series),
        precipitation_chart=precipitation_chart(series, selection.current_hour_index),
        skipped_samples=selection.skipped_samples,
    )
