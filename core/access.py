"""
Food Access Analysis

Detects food deserts from the existing outlet list and groups them into
contiguous underserved zones. Also provides the default vulnerability
index behind the equity factor.
"""

import math
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from core.geo import cell_area_m2, haversine_m
from core.models import BoundingBox, CellBounds, LatLng, NearbyOutlet, Outlet

log = logging.getLogger(__name__)

HEALTHY_OUTLET_THRESHOLD = 0.7
DESERT_CELL_DEG = 0.005   # ~500m cells
DESERT_DISTANCE_M = 1000.0
PEOPLE_PER_KM2 = 1000     # urban average when no demographic data is given


@dataclass
class AccessCell:
    row: int
    col: int
    center: LatLng
    bounds: CellBounds
    area_m2: float
    nearest_healthy_m: float
    is_desert: bool

    @property
    def severity(self) -> str:
        distance = self.nearest_healthy_m
        if math.isinf(distance):
            return "SEVERE"
        if distance > 2000:
            return "HIGH"
        if distance > 1500:
            return "MODERATE"
        if distance > 1000:
            return "LOW"
        return "NONE"

    @property
    def population(self) -> int:
        return round(self.area_m2 / 1e6 * PEOPLE_PER_KM2)


@dataclass
class UnderservedZone:
    """A contiguous cluster of food-desert cells."""
    id: str
    center: LatLng
    cells: List[AccessCell] = field(default_factory=list)

    @property
    def area_m2(self) -> float:
        return sum(c.area_m2 for c in self.cells)

    @property
    def population(self) -> int:
        return sum(c.population for c in self.cells)


def nearest_outlets(point: LatLng, outlets: Sequence[Outlet], limit: int = 5) -> List[NearbyOutlet]:
    """The ``limit`` closest outlets, nearest first."""
    ranked = sorted(
        (NearbyOutlet(o, haversine_m(point.lat, point.lng, o.lat, o.lng)) for o in outlets),
        key=lambda n: n.distance_m,
    )
    return ranked[:limit]


def nearest_distance(point: LatLng, outlets: Sequence[Outlet]) -> float:
    """Distance to the closest outlet in meters, infinity when there are none."""
    best = math.inf
    for outlet in outlets:
        best = min(best, haversine_m(point.lat, point.lng, outlet.lat, outlet.lng))
    return best


class FoodDesertDetector:
    """
    Grid-based food desert detection.

    A cell is a desert when no healthy outlet (quality >= 0.7) lies within
    ``threshold_m`` of its center.

    Usage:
        detector = FoodDesertDetector(outlets, bbox)
        zones = detector.zones
        detector.in_desert(LatLng(40.71, -74.0))
    """

    def __init__(
        self,
        outlets: Sequence[Outlet],
        bbox: BoundingBox,
        threshold_m: float = DESERT_DISTANCE_M,
        cell_size: float = DESERT_CELL_DEG,
    ):
        self.bbox = bbox
        self.threshold_m = threshold_m
        self.cell_size = cell_size
        self.healthy_outlets = [o for o in outlets if o.quality_score >= HEALTHY_OUTLET_THRESHOLD]

        self.rows = max(1, math.ceil((bbox.north - bbox.south) / cell_size - 1e-9))
        self.cols = max(1, math.ceil((bbox.east - bbox.west) / cell_size - 1e-9))
        self.cells: List[AccessCell] = self._analyze_cells()
        self._by_index: Dict[Tuple[int, int], AccessCell] = {(c.row, c.col): c for c in self.cells}
        self.zones: List[UnderservedZone] = self._cluster_zones()

        log.info(
            f"Food deserts: {self.desert_cell_count}/{len(self.cells)} cells "
            f"in {len(self.zones)} zones"
        )

    def _analyze_cells(self) -> List[AccessCell]:
        cells = []
        for row in range(self.rows):
            south = self.bbox.south + row * self.cell_size
            for col in range(self.cols):
                west = self.bbox.west + col * self.cell_size
                center = LatLng(south + self.cell_size / 2, west + self.cell_size / 2)
                distance = nearest_distance(center, self.healthy_outlets)
                cells.append(AccessCell(
                    row=row,
                    col=col,
                    center=center,
                    bounds=CellBounds(south, south + self.cell_size, west, west + self.cell_size),
                    area_m2=cell_area_m2(south, self.cell_size),
                    nearest_healthy_m=distance,
                    is_desert=distance > self.threshold_m,
                ))
        return cells

    def _cluster_zones(self) -> List[UnderservedZone]:
        """Group 8-connected desert cells with a breadth-first walk."""
        zones = []
        visited = set()

        for cell in self.cells:
            index = (cell.row, cell.col)
            if not cell.is_desert or index in visited:
                continue

            members = []
            queue = deque([index])
            visited.add(index)
            while queue:
                row, col = queue.popleft()
                members.append(self._by_index[(row, col)])
                for d_row in (-1, 0, 1):
                    for d_col in (-1, 0, 1):
                        neighbor = (row + d_row, col + d_col)
                        other = self._by_index.get(neighbor)
                        if other is not None and other.is_desert and neighbor not in visited:
                            visited.add(neighbor)
                            queue.append(neighbor)

            center = LatLng(
                sum(c.center.lat for c in members) / len(members),
                sum(c.center.lng for c in members) / len(members),
            )
            zones.append(UnderservedZone(id=f"zone_{len(zones)}", center=center, cells=members))

        return zones

    @property
    def desert_cell_count(self) -> int:
        return sum(1 for c in self.cells if c.is_desert)

    def in_desert(self, point: LatLng) -> bool:
        """True when the point falls inside a desert cell."""
        if not self.bbox.contains(point):
            return False
        row = min(int((point.lat - self.bbox.south) / self.cell_size), self.rows - 1)
        col = min(int((point.lng - self.bbox.west) / self.cell_size), self.cols - 1)
        cell = self._by_index.get((row, col))
        return cell is not None and cell.is_desert

    def statistics(self) -> Dict[str, float]:
        total = len(self.cells)
        deserts = self.desert_cell_count
        return {
            "totalDesertCells": deserts,
            "percentageDesert": deserts / total * 100 if total else 0.0,
            "affectedPopulation": sum(c.population for c in self.cells if c.is_desert),
            "largestZone": max((z.area_m2 for z in self.zones), default=0.0),
        }


class AccessVulnerabilityIndex:
    """
    Default vulnerability index (0-100) for the equity factor.

    Blends distance to the nearest healthy outlet (50%), demographic
    vulnerability (30%) and climate stress (20%).
    """

    def __init__(
        self,
        outlets: Sequence[Outlet],
        demographics=None,
        climate_stress: float = 0.5,
    ):
        self.healthy_outlets = [o for o in outlets if o.quality_score >= HEALTHY_OUTLET_THRESHOLD]
        self.demographics = demographics
        self.climate_stress = min(max(climate_stress, 0.0), 1.0)

    def score(self, location: LatLng) -> float:
        access_gap = min(nearest_distance(location, self.healthy_outlets) / 2000.0, 1.0)
        if self.demographics is not None:
            demographic = self.demographics.vulnerability(location)
        else:
            demographic = 0.5
        return 100.0 * (0.5 * access_gap + 0.3 * demographic + 0.2 * self.climate_stress)
