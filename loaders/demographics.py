"""
Demographics Loader

Population and vulnerability lookups over an optional, caller-supplied
demographic grid. Locations with no nearby grid cell fall back to neutral
estimates.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from core.geo import haversine_m
from core.models import LatLng

log = logging.getLogger(__name__)

# Used when no demographic data covers a location
NEUTRAL_POPULATION_SCORE = 0.6
NEUTRAL_VULNERABILITY = 0.5


@dataclass(frozen=True)
class PopulationCell:
    """One cell of a population grid."""
    lat: float
    lng: float
    population: float
    poverty_rate: Optional[float] = None   # 0.0 to 1.0
    no_vehicle_rate: Optional[float] = None  # share of households without a car
    elderly_rate: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PopulationCell":
        center = data.get("center") or data
        lng = center["lng"] if "lng" in center else center["lon"]
        return cls(
            lat=float(center["lat"]),
            lng=float(lng),
            population=float(data.get("population", 0)),
            poverty_rate=data.get("poverty_rate", data.get("povertyRate")),
            no_vehicle_rate=data.get("no_vehicle_rate", data.get("noVehicleRate")),
            elderly_rate=data.get("elderly_rate", data.get("elderlyRate")),
        )

    @property
    def vulnerability(self) -> Optional[float]:
        """Mean of the available rates, or None when the cell has none."""
        rates = [r for r in (self.poverty_rate, self.no_vehicle_rate, self.elderly_rate)
                 if r is not None]
        if not rates:
            return None
        return min(max(sum(rates) / len(rates), 0.0), 1.0)


class DemographicGrid:
    """
    Demographic source backed by a list of population cells.

    Usage:
        grid = DemographicGrid.from_records(census_cells)
        score = grid.population_score(LatLng(40.71, -74.00))
    """

    def __init__(self, cells: Iterable[PopulationCell] = (), search_radius_m: float = 1000.0):
        self.cells: List[PopulationCell] = list(cells)
        self.search_radius_m = search_radius_m
        self._max_population = max((c.population for c in self.cells), default=0.0)

    @classmethod
    def from_records(cls, records: Optional[Iterable[Dict[str, Any]]], **kwargs) -> "DemographicGrid":
        cells = []
        for record in records or ():
            try:
                cells.append(PopulationCell.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                log.warning(f"Skipping malformed demographic record: {e}")
        return cls(cells, **kwargs)

    def nearest_cell(self, location: LatLng) -> Optional[PopulationCell]:
        best = None
        best_distance = self.search_radius_m
        for cell in self.cells:
            distance = haversine_m(location.lat, location.lng, cell.lat, cell.lng)
            if distance <= best_distance:
                best = cell
                best_distance = distance
        return best

    def population_score(self, location: LatLng) -> float:
        """Population of the nearest cell relative to the densest cell."""
        cell = self.nearest_cell(location)
        if cell is None or self._max_population <= 0:
            return NEUTRAL_POPULATION_SCORE
        return min(cell.population / self._max_population, 1.0)

    def vulnerability(self, location: LatLng) -> float:
        cell = self.nearest_cell(location)
        if cell is None or cell.vulnerability is None:
            return NEUTRAL_VULNERABILITY
        return cell.vulnerability

    def __len__(self) -> int:
        return len(self.cells)
