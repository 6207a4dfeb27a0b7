"""Read-only capacity data source."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Protocol, Union, runtime_checkable

import yaml
from pydantic import TypeAdapter, ValidationError

from capacitycore.core.exceptions import ConfigurationError
from capacitycore.predictive.models import ActiveStay, BedSnapshot, UnitSnapshot, UtcDatetime, as_utc

_TIMESTAMPS = TypeAdapter(list[UtcDatetime])


@runtime_checkable
class CapacityDataSource(Protocol):
    """Protocol for the historical/current capacity record store."""

    async def get_unit(self, unit_id: str) -> Optional[UnitSnapshot]:
        ...

    async def list_units(self, facility_id: Optional[str] = None) -> list[UnitSnapshot]:
        """Units of one facility, or every unit when ``facility_id`` is None."""
        ...

    async def list_beds(self, unit_ids: Optional[Iterable[str]] = None) -> list[BedSnapshot]:
        ...

    async def active_stays(self, unit_ids: Optional[Iterable[str]] = None) -> list[ActiveStay]:
        """Current (not yet discharged) stays."""
        ...

    async def los_samples(self, category: Optional[str] = None) -> list[float]:
        """Completed length-of-stay samples in hours.

        Args:
            category: Diagnosis category (case-insensitive), or None for all
        """
        ...

    async def admissions(self, unit_id: str, since: datetime) -> list[datetime]:
        """Admission timestamps for a unit at or after ``since``."""
        ...


class InMemoryDataSource:
    """In-memory data source for tests, demos and the CLI."""

    def __init__(
        self,
        units: Optional[Iterable[UnitSnapshot]] = None,
        beds: Optional[Iterable[BedSnapshot]] = None,
        stays: Optional[Iterable[ActiveStay]] = None,
        los_history: Optional[dict[str, list[float]]] = None,
        admissions: Optional[dict[str, list[datetime]]] = None,
    ):
        self._units: dict[str, UnitSnapshot] = {u.unit_id: u for u in units or ()}
        self._beds: list[BedSnapshot] = list(beds or ())
        self._stays: list[ActiveStay] = list(stays or ())
        self._los: dict[str, list[float]] = {}
        self._admissions: dict[str, list[datetime]] = {}

        for category, samples in (los_history or {}).items():
            self.add_los_samples(category, samples)
        for unit_id, timestamps in (admissions or {}).items():
            self.add_admissions(unit_id, timestamps)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "InMemoryDataSource":
        """Load a snapshot with ``units``, ``beds``, ``stays``, ``los_history`` and ``admissions`` keys."""
        path = Path(path)
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            return cls(
                units=[UnitSnapshot.model_validate(u) for u in raw.get("units", [])],
                beds=[BedSnapshot.model_validate(b) for b in raw.get("beds", [])],
                stays=[ActiveStay.model_validate(s) for s in raw.get("stays", [])],
                los_history={k: [float(v) for v in vs] for k, vs in (raw.get("los_history") or {}).items()},
                admissions={k: _TIMESTAMPS.validate_python(v) for k, v in (raw.get("admissions") or {}).items()},
            )
        except (OSError, yaml.YAMLError, ValidationError, AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Cannot load capacity data {path}: {e}", config_key="data_path") from e

    # ------------------------------------------------------------------
    # Mutation (test/demo setup only)
    # ------------------------------------------------------------------

    def add_unit(self, unit: UnitSnapshot) -> None:
        self._units[unit.unit_id] = unit

    def add_bed(self, bed: BedSnapshot) -> None:
        self._beds.append(bed)

    def add_stay(self, stay: ActiveStay) -> None:
        self._stays.append(stay)

    def clear_stays(self, unit_id: Optional[str] = None) -> None:
        """Discharge every stay (of one unit, or all)."""
        self._stays = [s for s in self._stays if unit_id is not None and s.unit_id != unit_id]

    def add_los_samples(self, category: str, samples: Iterable[float]) -> None:
        self._los.setdefault(category.lower(), []).extend(float(s) for s in samples)

    def add_admissions(self, unit_id: str, timestamps: Iterable[datetime]) -> None:
        self._admissions.setdefault(unit_id, []).extend(as_utc(t) for t in timestamps)

    # ------------------------------------------------------------------
    # CapacityDataSource
    # ------------------------------------------------------------------

    async def get_unit(self, unit_id: str) -> Optional[UnitSnapshot]:
        return self._units.get(unit_id)

    async def list_units(self, facility_id: Optional[str] = None) -> list[UnitSnapshot]:
        return [u for u in self._units.values() if facility_id is None or u.facility_id == facility_id]

    async def list_beds(self, unit_ids: Optional[Iterable[str]] = None) -> list[BedSnapshot]:
        if unit_ids is None:
            return list(self._beds)
        wanted = set(unit_ids)
        return [b for b in self._beds if b.unit_id in wanted]

    async def active_stays(self, unit_ids: Optional[Iterable[str]] = None) -> list[ActiveStay]:
        if unit_ids is None:
            return list(self._stays)
        wanted = set(unit_ids)
        return [s for s in self._stays if s.unit_id in wanted]

    async def los_samples(self, category: Optional[str] = None) -> list[float]:
        if category is None:
            return [s for samples in self._los.values() for s in samples]
        return list(self._los.get(category.lower(), []))

    async def admissions(self, unit_id: str, since: datetime) -> list[datetime]:
        return [t for t in self._admissions.get(unit_id, []) if t >= since]
