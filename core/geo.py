"""
Geometry helpers for the placement grid.

All coordinates are decimal degrees (WGS84); distances and areas are meters.
"""

import math
from typing import Sequence, Set, Tuple

import numpy as np

EARTH_RADIUS_M = 6371000.0

# Coarse analysis grid used for coverage counting (~1 km at the equator)
COVERAGE_CELL_DEG = 0.01
METERS_PER_DEGREE_LAT = 111320.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (math.sin(d_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_m(a, b) -> float:
    """Haversine distance between two objects exposing ``lat``/``lng``."""
    return haversine_m(a.lat, a.lng, b.lat, b.lng)


def cell_area_m2(lat: float, resolution: float) -> float:
    """
    Approximate area of a square lat/lng cell.

    Spherical-cap approximation: R² · Δlat · Δlng · cos(lat) · (π/180)²
    """
    return (EARTH_RADIUS_M ** 2 * resolution * resolution *
            math.cos(math.radians(lat)) * (math.pi / 180) ** 2)


def cells_within_radius(
    lat: float,
    lng: float,
    radius_m: float,
    bbox: Tuple[float, float, float, float],
    cell_size: float = COVERAGE_CELL_DEG,
) -> Set[Tuple[int, int]]:
    """
    Coverage cells of the box whose centers lie within ``radius_m`` of a point.

    Cells are indexed (row, col) from the box's south-west corner so the sets
    returned for different points can be unioned.
    """
    south, north, west, east = bbox
    if radius_m <= 0:
        return set()

    lat_radius = radius_m / METERS_PER_DEGREE_LAT
    lng_radius = radius_m / (METERS_PER_DEGREE_LAT * max(math.cos(math.radians(lat)), 0.1))

    rows = max(1, math.ceil((north - south) / cell_size - 1e-9))
    cols = max(1, math.ceil((east - west) / cell_size - 1e-9))

    row_lo = max(0, int(math.floor((lat - lat_radius - south) / cell_size)))
    row_hi = min(rows - 1, int(math.floor((lat + lat_radius - south) / cell_size)))
    col_lo = max(0, int(math.floor((lng - lng_radius - west) / cell_size)))
    col_hi = min(cols - 1, int(math.floor((lng + lng_radius - west) / cell_size)))

    cells = set()
    for row in range(row_lo, row_hi + 1):
        center_lat = south + (row + 0.5) * cell_size
        for col in range(col_lo, col_hi + 1):
            center_lng = west + (col + 0.5) * cell_size
            if haversine_m(lat, lng, center_lat, center_lng) <= radius_m:
                cells.add((row, col))
    return cells


def estimate_total_cells(
    bbox: Tuple[float, float, float, float],
    cell_size: float = COVERAGE_CELL_DEG,
) -> int:
    """Number of coverage cells spanning the box (never less than 1)."""
    south, north, west, east = bbox
    lat_cells = (north - south) / cell_size
    lng_cells = (east - west) / cell_size
    return max(1, round(lat_cells * lng_cells))


def gini(values: Sequence[float]) -> float:
    """Gini coefficient of a distribution; 0 for empty or all-zero input."""
    if len(values) == 0:
        return 0.0

    cumulative = np.cumsum(np.sort(np.asarray(values, dtype=float)))
    total = cumulative[-1]
    if total == 0:
        return 0.0

    n = len(cumulative)
    b = cumulative.sum() / total
    return float((n + 1 - 2 * b) / n)
