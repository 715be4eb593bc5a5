"""
Candidate Location Generator.

Lays a regular lat/lng grid over the city bounding box and appends any
supplied vacant or underutilized parcels. Each candidate carries the
attributes the scorer needs (utilities, transit, parking, nearby outlets).
"""

import math
import logging
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence

from core.access import FoodDesertDetector, nearest_outlets
from core.diagnostics import Diagnostics
from core.geo import cell_area_m2
from core.models import (
    BoundingBox,
    CandidateLocation,
    CellBounds,
    ConfigurationError,
    LatLng,
    LocationAttributes,
    Outlet,
)

log = logging.getLogger(__name__)

NEAREST_OUTLET_COUNT = 5

ViabilityCheck = Callable[[CandidateLocation], bool]


def always_viable(location: CandidateLocation) -> bool:
    """Default viability check: every cell is usable land."""
    return True


class LocationCandidateGenerator:
    """
    Generates candidate locations for one run.

    Grid size is O((Δlat/res) · (Δlng/res)); a 0.1° box at 0.005° gives
    400 cells. Very fine resolutions over large boxes are not guarded.

    Usage:
        generator = LocationCandidateGenerator(bbox, resolution=0.005, outlets=outlets)
        candidates = generator.generate(parcels)
    """

    def __init__(
        self,
        bbox: BoundingBox,
        resolution: float = 0.005,
        outlets: Sequence[Outlet] = (),
        desert_detector: Optional[FoodDesertDetector] = None,
        viability_check: ViabilityCheck = always_viable,
        diagnostics: Optional[Diagnostics] = None,
        default_utilities: Iterable[str] = ("electricity", "water", "sewer"),
    ):
        if not resolution > 0:
            raise ConfigurationError(f"Grid resolution must be > 0, got {resolution}")
        self.bbox = bbox.validate()
        self.resolution = resolution
        self.outlets = list(outlets)
        self.desert_detector = desert_detector
        self.viability_check = viability_check
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.default_utilities = frozenset(default_utilities)

        # Integer step counts so float drift cannot add or drop a row
        self.rows = max(1, math.ceil((bbox.north - bbox.south) / resolution - 1e-9))
        self.cols = max(1, math.ceil((bbox.east - bbox.west) / resolution - 1e-9))

    def _cell(self, row: int, col: int) -> CandidateLocation:
        south = self.bbox.south + row * self.resolution
        west = self.bbox.west + col * self.resolution
        return CandidateLocation(
            id=f"loc_{south:.5f}_{west:.5f}",
            center=LatLng(south + self.resolution / 2, west + self.resolution / 2),
            bounds=CellBounds(south, south + self.resolution, west, west + self.resolution),
            area_m2=cell_area_m2(south, self.resolution),
            source="grid",
        )

    def _is_viable(self, location: CandidateLocation) -> bool:
        try:
            return bool(self.viability_check(location))
        except Exception as e:
            self.diagnostics.warn("viability", f"check failed for {location.id}, cell skipped: {e}")
            return False

    def _gather_attributes(self, center: LatLng) -> LocationAttributes:
        return LocationAttributes(
            utilities=self.default_utilities,
            nearest_outlets=nearest_outlets(center, self.outlets, NEAREST_OUTLET_COUNT),
            in_food_desert=self._in_desert(center),
        )

    def _in_desert(self, center: LatLng) -> bool:
        return self.desert_detector is not None and self.desert_detector.in_desert(center)

    def grid_cells(self) -> List[CandidateLocation]:
        """All viable grid cells, south-west first, row by row."""
        cells = []
        for row in range(self.rows):
            for col in range(self.cols):
                cell = self._cell(row, col)
                if not self._is_viable(cell):
                    continue
                cell.attributes = self._gather_attributes(cell.center)
                cells.append(cell)
        return cells

    def _prepare_parcel(self, parcel: CandidateLocation) -> CandidateLocation:
        """Parcels keep their own attributes; only missing outlet context is filled in."""
        attributes = parcel.attributes
        if not attributes.nearest_outlets:
            attributes = replace(
                attributes,
                nearest_outlets=nearest_outlets(parcel.center, self.outlets, NEAREST_OUTLET_COUNT),
                in_food_desert=attributes.in_food_desert or self._in_desert(parcel.center),
            )
        return replace(parcel, attributes=attributes)

    def generate(self, parcels: Iterable[CandidateLocation] = ()) -> List[CandidateLocation]:
        """Grid cells followed by the supplied parcels, unsnapped."""
        locations = self.grid_cells()
        grid_count = len(locations)
        locations.extend(self._prepare_parcel(p) for p in parcels)

        log.info(
            f"Identified {len(locations)} potential locations "
            f"({grid_count} grid cells, {len(locations) - grid_count} parcels)"
        )
        return locations
