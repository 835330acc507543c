"""HTTP API for the walking-window dashboard."""

import hmac
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, status

from .config import settings
from .domain import HourlySeries, UnitSystem
from .forecast_payload import ForecastPayload
from .presenter import DashboardView, present
from .walk_windows import DataAlignmentError, compute_walk_windows, series_zone
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="walktime/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate the X-API-Key header against the configured static key.
    """
    # If no key is configured, allow requests (dev/default mode).
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


def _wall_clock_now(series: HourlySeries, utc_offset_seconds: int | None) -> datetime:
    """Capture "now" once, on the forecast's clock when we know it."""
    tz = series_zone(series)
    if tz is not None:
        return datetime.now(tz)
    if utc_offset_seconds is not None:
        return datetime.now(timezone(timedelta(seconds=utc_offset_seconds)))
    return datetime.now()


def _on_forecast_clock(now: datetime, series: HourlySeries, utc_offset_seconds: int | None) -> datetime:
    """Move an aware caller-supplied "now" onto the forecast's fixed UTC offset when no zone is known."""
    if now.tzinfo is None or series_zone(series) is not None or utc_offset_seconds is None:
        return now
    return now.astimezone(timezone(timedelta(seconds=utc_offset_seconds)))


@router.get("/health")
def health():
    """Liveness check."""
    return {"status": "ok"}


@router.post("/walk-windows", response_model=DashboardView)
def walk_windows(payload: ForecastPayload, units: UnitSystem | None = None, now: datetime | None = None):
    """Score the next 24 hours of the posted forecast and return dashboard view data."""
    series = payload.to_hourly_series(default_timezone=settings.default_timezone)
    if now is not None:
        captured_now = _on_forecast_clock(now, series, payload.utc_offset_seconds)
    else:
        captured_now = _wall_clock_now(series, payload.utc_offset_seconds)
    unit_system = units or settings.units

    logger.info(
        "Computing walk windows",
        extra={"hours": len(series), "now": captured_now.isoformat(), "units": unit_system.value},
    )
    try:
        selection = compute_walk_windows(series, captured_now, units=unit_system)
    except DataAlignmentError as exc:
        logger.warning("Rejected misaligned forecast payload", extra={"lengths": exc.lengths})
        raise HTTPException(status_code=422, detail=str(exc))

    return present(selection, series)
