"""Bed placement scoring."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from capacitycore.predictive.datasource import CapacityDataSource
from capacitycore.predictive.models import (
    BedSnapshot,
    BedStatus,
    PlacementFactors,
    PlacementRecommendation,
    PlacementRequirements,
    as_utc,
)
from capacitycore.settings.predictive import PredictiveSettings

logger = logging.getLogger(__name__)

# Beds in any other status are never candidates.
AVAILABILITY_SCORES: dict[BedStatus, float] = {
    BedStatus.AVAILABLE: 1.0,
    BedStatus.CLEANING: 0.6,
    BedStatus.DIRTY: 0.4,
}


def requirements_match(bed: BedSnapshot, requirements: PlacementRequirements) -> Optional[float]:
    """Fraction of requirements the bed satisfies, or None if a hard one fails."""
    hard = requirements.hard_capabilities()
    if not hard <= bed.capabilities:
        return None

    total = len(hard)
    satisfied = len(hard)
    for capability in requirements.soft_capabilities:
        total += 1
        satisfied += capability.lower() in bed.capabilities
    if requirements.bed_type:
        total += 1
        satisfied += bed.bed_type.lower() == requirements.bed_type.lower()
    if requirements.preferred_unit:
        total += 1
        satisfied += bed.unit_id == requirements.preferred_unit

    return satisfied / total if total else 1.0


def remaining_hours(bed: BedSnapshot, now: datetime) -> float:
    """Hours until a bed is expected back in service (0 when available)."""
    if bed.status == BedStatus.AVAILABLE or bed.expected_ready_at is None:
        return 0.0
    return max(0.0, (bed.expected_ready_at - now).total_seconds() / 3600)


async def recommend_placement(
    source: CapacityDataSource,
    requirements: PlacementRequirements,
    settings: Optional[PredictiveSettings] = None,
    now: Optional[datetime] = None,
) -> list[PlacementRecommendation]:
    """Rank candidate beds for a patient.

    Score is the weighted sum of availability, requirements match, unit
    load balance and predicted turnover. Beds failing a hard requirement
    are excluded. Ties go to the less occupied unit, then the lower bed id.
    """
    settings = settings or PredictiveSettings()
    now = as_utc(now) if now else datetime.now(timezone.utc)
    limit = requirements.limit or settings.placement_limit

    units = await source.list_units(requirements.facility_id)
    if not units:
        return []
    unit_ids = [u.unit_id for u in units]

    census = dict.fromkeys(unit_ids, 0)
    for stay in await source.active_stays(unit_ids):
        if stay.unit_id in census:
            census[stay.unit_id] += 1
    occupancy = {
        u.unit_id: census[u.unit_id] / u.total_beds if u.total_beds > 0 else 1.0
        for u in units
    }
    average = float(np.mean(list(occupancy.values())))

    weights = np.array([
        settings.placement_weight_availability,
        settings.placement_weight_requirements,
        settings.placement_weight_load_balance,
        settings.placement_weight_turnover,
    ])

    ranked: list[tuple[float, float, str, PlacementRecommendation]] = []
    for bed in await source.list_beds(unit_ids):
        availability = AVAILABILITY_SCORES.get(bed.status)
        if availability is None or bed.unit_id not in occupancy:
            continue
        match = requirements_match(bed, requirements)
        if match is None:
            continue

        unit_occupancy = occupancy[bed.unit_id]
        load_balance = 1.0 / (1.0 + unit_occupancy / average) if average > 0 else 1.0
        turnover = 1.0 / (1.0 + remaining_hours(bed, now) / settings.turnover_scale_hours)

        factors = np.array([availability, match, load_balance, turnover])
        score = round(float(weights @ factors), 6)
        ranked.append(
            (
                -score,
                unit_occupancy,
                bed.bed_id,
                PlacementRecommendation(
                    bed_id=bed.bed_id,
                    unit_id=bed.unit_id,
                    score=round(score, 4),
                    factors=PlacementFactors(
                        availability=availability,
                        requirements_match=round(match, 4),
                        unit_load_balance=round(load_balance, 4),
                        predicted_turnover=round(turnover, 4),
                    ),
                ),
            )
        )

    ranked.sort(key=lambda item: item[:3])
    logger.debug(f"Placement: {len(ranked)} candidate beds for patient {requirements.patient_id}")
    return [item[3] for item in ranked[:limit]]
