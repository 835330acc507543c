"""Deterministic walking-window scoring and selection.

This module turns an hourly forecast series into candidate walking hours,
scores each hour, and picks a small, time-diversified set of recommendations.
Everything here is pure: the same series and the same "now" always produce the
same result.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from walktime.domain import HourlySample, HourlySeries, UnitSystem, WalkWindow, WindowSelection
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="walk_windows")

SCAN_HOURS = 24
NIGHT_START_HOUR = 21  # inclusive
NIGHT_END_HOUR = 5  # exclusive
COMFORT_TEMPERATURE_F = 60
PRECIPITATION_WEIGHT = 2
DARKNESS_PENALTY = 10
TOP_WINDOW_COUNT = 3
MIN_SPACING_HOURS = 5


class DataAlignmentError(ValueError):
    """Raised when the hourly sequences of a series differ in length."""

    def __init__(self, lengths: dict[str, int]):
        self.lengths = dict(lengths)
        detail = ", ".join(f"{name}={size}" for name, size in self.lengths.items())
        super().__init__(f"Hourly forecast sequences are not aligned: {detail}")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going toward positive infinity."""
    return math.floor(value + 0.5)


def fahrenheit(celsius: float) -> int:
    """Convert Celsius to whole degrees Fahrenheit."""
    return round_half_up(celsius * 9 / 5 + 32)


def is_night_hour(hour: int) -> bool:
    """Return True if the local hour-of-day falls in the excluded night range."""
    return hour >= NIGHT_START_HOUR or hour < NIGHT_END_HOUR


def series_zone(series: HourlySeries) -> ZoneInfo | None:
    """Resolve the series timezone name, or None when it is missing or unknown."""
    if not series.timezone:
        return None
    try:
        return ZoneInfo(series.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown forecast timezone; using naive local timestamps",
                       extra={"timezone": series.timezone})
        return None


def localize_now(now: datetime, tz: ZoneInfo | None) -> datetime:
    """Express the caller's "now" on the forecast's local clock."""
    if tz is None:
        return now
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def _comparable(moment: datetime, reference: datetime) -> datetime:
    """Return moment adjusted so it can be compared against reference."""
    if reference.tzinfo is not None:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=reference.tzinfo)
        return moment.astimezone(reference.tzinfo)
    if moment.tzinfo is not None:
        return moment.replace(tzinfo=None)
    return moment


def _instant(moment: datetime) -> datetime:
    """Normalize aware datetimes to UTC so differences are real elapsed time."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc)


def parse_timestamp(raw: object, tz: ZoneInfo | None = None) -> Optional[datetime]:
    """
    Parse an ISO-8601 forecast timestamp, returning None when malformed.

    Every timestamp of a series comes back in one form: aware in ``tz`` when
    the forecast timezone is known, naive local wall-clock time otherwise.
    """
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if tz is None:
        # no zone to convert into; keep the wall-clock time as written
        return parsed.replace(tzinfo=None)
    if parsed.tzinfo is None:
        # Open-Meteo reports wall-clock time in the requested timezone
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def normalize_is_day(value: object) -> Optional[bool]:
    """Normalize is_day values (0/1, bool, string) into bool or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value in (0, 1):
            return bool(int(value))
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "t", "yes", "y"}:
            return True
        if lowered in {"0", "false", "f", "no", "n"}:
            return False
    return None


def _as_number(value: object) -> Optional[float]:
    """Return value as a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def sample_at(series: HourlySeries, index: int, tz: ZoneInfo | None = None) -> Optional[HourlySample]:
    """Read one hour from the series, or None if any field the engine needs is unusable."""
    time_val = parse_timestamp(series.times[index], tz)
    temperature = _as_number(series.temperature_2m[index])
    precip = _as_number(series.precipitation_probability[index])
    is_day = normalize_is_day(series.is_day[index])

    problems = []
    if time_val is None:
        problems.append("time")
    if temperature is None:
        problems.append("temperature_2m")
    if precip is None or not 0 <= precip <= 100:
        problems.append("precipitation_probability")
    if is_day is None:
        problems.append("is_day")
    if problems:
        logger.debug("Skipping malformed forecast sample", extra={"index": index, "fields": problems})
        return None

    code = series.weathercode[index] if index < len(series.weathercode) else None
    return HourlySample(
        index=index,
        time=time_val,
        temperature_c=temperature,
        precipitation_probability_percent=precip,
        is_daylight=is_day,
        weather_code=code,
    )


def validate_alignment(series: HourlySeries) -> None:
    """Fail fast if the hourly sequences have different lengths."""
    lengths = series.lengths()
    if len(set(lengths.values())) > 1:
        logger.error("Refusing to build windows from misaligned series", extra={"lengths": lengths})
        raise DataAlignmentError(lengths)


def resolve_current_hour_index(series: HourlySeries, now: datetime) -> int:
    """
    Locate "now" in the series.

    Returns the index of the first sample at or after the start of the current
    hour, or len(series) when every sample lies in the past. Malformed
    timestamps are ignored.
    """
    tz = series_zone(series)
    hour_start = localize_now(now, tz).replace(minute=0, second=0, microsecond=0)
    for index, raw in enumerate(series.times):
        sample_time = parse_timestamp(raw, tz)
        if sample_time is None:
            continue
        if _instant(sample_time) >= _instant(_comparable(hour_start, sample_time)):
            return index
    return len(series)


def build_windows(series: HourlySeries, current_hour_index: int, today: date) -> tuple[list[WalkWindow], int]:
    """
    Build unscored candidate windows for the next 24 hours.

    - Sequence lengths are validated first; misalignment raises DataAlignmentError.
    - Samples in the night range are excluded.
    - Malformed samples are skipped and counted.
    - A negative current_hour_index raises ValueError.

    Returns the windows in chronological order and the number of skipped samples.
    """
    validate_alignment(series)
    if current_hour_index < 0:
        raise ValueError("current_hour_index must be non-negative")

    tz = series_zone(series)
    windows: list[WalkWindow] = []
    skipped = 0

    for offset in range(SCAN_HOURS):
        index = current_hour_index + offset
        if index >= len(series):
            break

        sample = sample_at(series, index, tz)
        if sample is None:
            skipped += 1
            continue
        if is_night_hour(sample.time.hour):
            continue

        windows.append(
            WalkWindow(
                source_index=offset,
                time=sample.time,
                temperature_c=sample.temperature_c,
                precipitation_probability_percent=sample.precipitation_probability_percent,
                is_daylight=sample.is_daylight,
                is_next_day=sample.time.date() != today,
            )
        )

    return windows, skipped


def score_window(window: WalkWindow) -> float:
    """Desirability score for one hour; lower is better and the scale is unbounded."""
    precip_penalty = PRECIPITATION_WEIGHT * window.precipitation_probability_percent
    temp_penalty = abs(fahrenheit(window.temperature_c) - COMFORT_TEMPERATURE_F)
    darkness_penalty = 0 if window.is_daylight else DARKNESS_PENALTY
    return float(precip_penalty + temp_penalty + darkness_penalty)


def score_windows(windows: Sequence[WalkWindow]) -> list[WalkWindow]:
    """Return scored copies of the windows, order preserved."""
    return [w.model_copy(update={"score": score_window(w)}) for w in windows]


def _hours_apart(a: datetime, b: datetime) -> float:
    """Absolute elapsed hours between two timestamps."""
    return abs((_instant(a) - _instant(b)).total_seconds()) / 3600


def _chronological(window: WalkWindow):
    return (_instant(window.time), window.source_index)


def select_windows(scored: Sequence[WalkWindow]) -> tuple[list[WalkWindow], list[WalkWindow]]:
    """
    Split scored candidates into the full list and a diversified top list.

    The top list is built greedily from the lowest scores, accepting a window
    only if it is at least MIN_SPACING_HOURS from every earlier pick. Equal
    scores keep their chronological order (sorted() is stable). There is no
    backtracking. The picks are returned in chronological order.
    """
    full_list = list(scored)
    ranked = sorted(full_list, key=lambda w: w.score if w.score is not None else score_window(w))

    picked: list[WalkWindow] = []
    for candidate in ranked:
        if len(picked) >= TOP_WINDOW_COUNT:
            break
        too_close = any(_hours_apart(candidate.time, p.time) < MIN_SPACING_HOURS for p in picked)
        if not too_close:
            picked.append(candidate)

    picked.sort(key=_chronological)
    return full_list, picked


def compute_walk_windows(
    series: HourlySeries,
    now: datetime,
    *,
    units: UnitSystem = UnitSystem.IMPERIAL,
) -> WindowSelection:
    """
    Run the whole pipeline once for a single captured "now".

    The unit system is passed through for the presenter; scoring always uses
    Fahrenheit internally.

    When the series has a timezone, an aware ``now`` is converted into it and
    a naive ``now`` is read as local forecast time. Without a timezone the
    sample timestamps are naive local time and ``now`` is used on its own
    clock, including for "today"; callers holding an aware ``now`` should
    convert it to the forecast's UTC offset first.
    """
    validate_alignment(series)

    tz = series_zone(series)
    now_local = localize_now(now, tz)
    current_index = resolve_current_hour_index(series, now_local)

    windows, skipped = build_windows(series, current_index, now_local.date())
    full_list, top_list = select_windows(score_windows(windows))

    if skipped:
        logger.warning("Skipped malformed forecast samples", extra={"skipped_samples": skipped})
    logger.info(
        "Computed walk windows",
        extra={
            "current_hour_index": current_index,
            "candidates": len(full_list),
            "top": len(top_list),
        },
    )

    return WindowSelection(
        full_list=full_list,
        top_list=top_list,
        skipped_samples=skipped,
        current_hour_index=current_index,
        units=units,
    )
