"""Hourly occupancy forecasting."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np

from capacitycore.core.exceptions import UnknownUnitError
from capacitycore.predictive.datasource import CapacityDataSource
from capacitycore.predictive.models import CapacityForecast, ConfidenceInterval, ForecastPoint, as_utc
from capacitycore.predictive.surge import RISK_BY_LEVEL, classify_occupancy
from capacitycore.settings.predictive import PredictiveSettings

logger = logging.getLogger(__name__)

HOURS_PER_WEEK = 168


def hour_of_week(moment: datetime) -> int:
    """0 = Monday 00:00."""
    return moment.weekday() * 24 + moment.hour


def default_admission_rates() -> np.ndarray:
    """Expected admissions per hour-of-week when history is too thin.

    1/h baseline, 2/h on weekdays 08-14, 0.5/h overnight 00-06, and
    weekends at 80 %.
    """
    rates = np.ones(HOURS_PER_WEEK)
    for index in range(HOURS_PER_WEEK):
        day, hour = divmod(index, 24)
        if day < 5 and 8 <= hour <= 14:
            rates[index] = 2.0
        if hour <= 6:
            rates[index] = 0.5
        if day >= 5:
            rates[index] *= 0.8
    return rates


async def admission_rates(
    source: CapacityDataSource,
    unit_id: str,
    now: datetime,
    settings: PredictiveSettings,
) -> tuple[np.ndarray, bool]:
    """Mean admissions per hour-of-week over the history window.

    Returns the rate vector and whether the default pattern was used.
    """
    since = now - timedelta(days=settings.admission_history_days)
    timestamps = await source.admissions(unit_id, since)
    if len(timestamps) < settings.min_admission_samples:
        return default_admission_rates(), True

    counts = np.bincount([hour_of_week(t) for t in timestamps], minlength=HOURS_PER_WEEK)
    weeks = settings.admission_history_days / 7
    return counts / weeks, False


async def forecast_capacity(
    source: CapacityDataSource,
    unit_id: str,
    horizon_hours: Optional[int] = None,
    settings: Optional[PredictiveSettings] = None,
    now: Optional[datetime] = None,
) -> CapacityForecast:
    """Forecast a unit's census for each of the next ``horizon_hours`` hours.

    Point ``h`` is anchored at the start of the current hour plus ``h``
    hours. Its census is the current census, minus stays expected to be
    discharged by then, plus expected admissions for hours ``1..h``,
    clipped to the unit's bed count. The interval widens with the square
    root of the expected movements.

    Raises:
        ValueError: horizon outside ``1..forecast_max_horizon``
        UnknownUnitError: unit not found in the data source
    """
    settings = settings or PredictiveSettings()
    horizon = settings.forecast_default_horizon if horizon_hours is None else horizon_hours
    if not isinstance(horizon, int) or not 1 <= horizon <= settings.forecast_max_horizon:
        raise ValueError(f"horizon_hours must be between 1 and {settings.forecast_max_horizon}, got {horizon!r}")

    unit = await source.get_unit(unit_id)
    if unit is None:
        raise UnknownUnitError(unit_id)

    now = as_utc(now) if now else datetime.now(timezone.utc)
    start = now.replace(minute=0, second=0, microsecond=0)
    stays = await source.active_stays([unit_id])
    current = len(stays)
    capacity = unit.total_beds

    rates, insufficient = await admission_rates(source, unit_id, now, settings)
    if insufficient:
        logger.debug(f"Forecast for {unit_id} using default admission pattern")

    moments = [start + timedelta(hours=h) for h in range(horizon)]
    hourly = np.array([0.0] + [rates[hour_of_week(m)] for m in moments[1:]])
    cumulative_admissions = np.cumsum(hourly)

    discharges = np.sort(
        np.array([s.expected_discharge_at.timestamp() for s in stays if s.expected_discharge_at is not None])
    )
    horizon_ts = np.array([m.timestamp() for m in moments])
    cumulative_discharges = np.searchsorted(discharges, horizon_ts, side="right").astype(float)

    raw_census = current - cumulative_discharges + cumulative_admissions
    census = np.clip(raw_census, 0, capacity)
    spread = settings.forecast_interval_z * np.sqrt(cumulative_admissions + cumulative_discharges)
    lower = np.clip(census - spread, 0, capacity)
    upper = np.clip(census + spread, 0, capacity)

    points = []
    for h, moment in enumerate(moments):
        occupancy = 100.0 * census[h] / capacity if capacity > 0 else 0.0
        points.append(
            ForecastPoint(
                hour=h,
                timestamp=moment,
                predicted_census=round(float(census[h]), 2),
                predicted_available=round(float(capacity - census[h]), 2),
                confidence_interval=ConfidenceInterval(
                    lower=round(float(lower[h]), 2),
                    upper=round(float(upper[h]), 2),
                ),
                occupancy_pct=round(occupancy, 1),
                risk_level=RISK_BY_LEVEL[classify_occupancy(occupancy, settings)],
            )
        )

    return CapacityForecast(
        unit_id=unit_id,
        total_beds=capacity,
        current_census=current,
        horizon_hours=horizon,
        points=points,
        insufficient_history=insufficient,
    )
