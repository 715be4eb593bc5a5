import math
import pytest
from core.access import (
    AccessVulnerabilityIndex,
    FoodDesertDetector,
    nearest_distance,
    nearest_outlets,
)
from core.models import BoundingBox, LatLng, Outlet

BBOX = BoundingBox(0.0, 0.05, 0.0, 0.05)

def test_no_outlets_everything_is_desert():
    detector = FoodDesertDetector([], BBOX)
    assert detector.desert_cell_count == len(detector.cells) == 100
    # All desert cells are 8-connected into one zone
    assert len(detector.zones) == 1
    assert detector.in_desert(LatLng(0.01, 0.01))
    assert detector.cells[0].severity == "SEVERE"

def test_healthy_outlet_removes_desert_nearby():
    """Only outlets with quality >= 0.7 count."""
    healthy = Outlet(0.0025, 0.0025, "supermarket", 0.9)
    junk = Outlet(0.0475, 0.0475, "convenience", 0.2)
    detector = FoodDesertDetector([healthy, junk], BBOX)

    assert not detector.in_desert(LatLng(0.0025, 0.0025))
    assert detector.in_desert(LatLng(0.0475, 0.0475))
    assert not detector.in_desert(LatLng(1.0, 1.0))

def test_separate_zones():
    """A band of healthy outlets splits the deserts into two zones."""
    outlets = [Outlet(0.025, lng / 1000, "supermarket", 1.0) for lng in range(0, 51, 5)]
    detector = FoodDesertDetector(outlets, BBOX)
    assert len(detector.zones) == 2
    stats = detector.statistics()
    assert 0 < stats["percentageDesert"] < 100

def test_nearest_outlets_sorted_and_limited():
    outlets = [Outlet(0.0, i / 100, "farm", 0.5) for i in range(8)]
    nearest = nearest_outlets(LatLng(0.0, 0.0), outlets, limit=5)
    assert len(nearest) == 5
    assert [n.outlet.lng for n in nearest] == [0.0, 0.01, 0.02, 0.03, 0.04]
    assert math.isinf(nearest_distance(LatLng(0, 0), []))

def test_vulnerability_index_range():
    index = AccessVulnerabilityIndex([], climate_stress=1.0)
    assert index.score(LatLng(0, 0)) == pytest.approx(100 * (0.5 + 0.3 * 0.5 + 0.2))

    near = AccessVulnerabilityIndex([Outlet(0, 0, "supermarket", 1.0)], climate_stress=0.0)
    assert near.score(LatLng(0, 0)) == pytest.approx(15.0)
