"""Length-of-stay prediction."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from capacitycore.predictive.datasource import CapacityDataSource
from capacitycore.predictive.models import ConfidenceInterval, LOSPrediction, LOSSource
from capacitycore.settings.predictive import PredictiveSettings

logger = logging.getLogger(__name__)

# Baseline mean length of stay in hours per diagnosis category.
DEFAULT_LOS_HOURS: dict[str, float] = {
    "cardiac": 96,
    "respiratory": 72,
    "surgical": 48,
    "medical": 72,
    "observation": 24,
    "stroke": 120,
    "trauma": 96,
    "pneumonia": 96,
    "sepsis": 144,
    "chf": 96,
    "copd": 72,
    "hip_fracture": 120,
    "gi_bleed": 72,
    "diabetes_acute": 48,
    "default": 48,
}


def sample_stats(samples: np.ndarray) -> tuple[float, float]:
    """Mean and sample standard deviation (0 for a single sample)."""
    mean = float(np.mean(samples))
    std = float(np.std(samples, ddof=1)) if samples.size > 1 else 0.0
    return mean, std


def baseline(category: str, std_ratio: float = 0.25) -> Optional[tuple[float, float]]:
    """Table mean/std for a known category, None otherwise."""
    if category == "default" or category not in DEFAULT_LOS_HOURS:
        return None
    mean = float(DEFAULT_LOS_HOURS[category])
    return mean, mean * std_ratio


async def population_baseline(source: CapacityDataSource, settings: PredictiveSettings) -> tuple[float, float]:
    """Mean/std over every historical stay, or the ``default`` row."""
    samples = np.asarray(await source.los_samples(None), dtype=float)
    if samples.size >= settings.los_min_samples:
        return sample_stats(samples)
    mean = float(DEFAULT_LOS_HOURS["default"])
    return mean, mean * settings.los_default_std_ratio


async def predict_los(
    source: CapacityDataSource,
    category: str,
    z: Optional[float] = None,
    settings: Optional[PredictiveSettings] = None,
) -> LOSPrediction:
    """Predict length of stay for a diagnosis category.

    Source selection:
    - ``history``: at least ``los_min_samples`` matching stays
    - ``blended``: fewer matching stays, shrunk toward the baseline
      with weight ``n / los_min_samples``
    - ``baseline``: no stays, category in the default table
    - ``population``: no stays, unknown category

    Anything but ``history`` is flagged ``insufficient_history``.
    """
    settings = settings or PredictiveSettings()
    z = settings.los_interval_z if z is None else z
    if z < 0:
        raise ValueError("z must be non-negative")

    key = category.strip().lower()
    samples = np.asarray(await source.los_samples(key), dtype=float)
    n = int(samples.size)

    table = baseline(key, settings.los_default_std_ratio)
    if n >= settings.los_min_samples:
        mean, std = sample_stats(samples)
        origin = LOSSource.HISTORY
    else:
        if table is not None:
            base_mean, base_std = table
        else:
            base_mean, base_std = await population_baseline(source, settings)

        if n > 0:
            weight = n / settings.los_min_samples
            sample_mean, sample_std = sample_stats(samples)
            if n == 1:
                sample_std = base_std
            mean = weight * sample_mean + (1 - weight) * base_mean
            std = weight * sample_std + (1 - weight) * base_std
            origin = LOSSource.BLENDED
        else:
            mean, std = base_mean, base_std
            origin = LOSSource.BASELINE if table is not None else LOSSource.POPULATION

    if origin != LOSSource.HISTORY:
        logger.debug(f"LOS for {key!r} from {origin.value} ({n} samples)")

    return LOSPrediction(
        category=category,
        predicted_hours=round(mean, 2),
        std_hours=round(std, 2),
        confidence_interval=ConfidenceInterval(
            lower=round(max(0.0, mean - z * std), 2),
            upper=round(mean + z * std, 2),
        ),
        sample_size=n,
        source=origin,
        insufficient_history=origin != LOSSource.HISTORY,
    )
