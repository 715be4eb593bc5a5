import pytest
from core.models import LatLng
from loaders.demographics import (
    NEUTRAL_POPULATION_SCORE,
    NEUTRAL_VULNERABILITY,
    DemographicGrid,
    PopulationCell,
)

@pytest.fixture
def grid():
    return DemographicGrid.from_records([
        {"lat": 0.0, "lng": 0.0, "population": 500, "povertyRate": 0.4, "noVehicleRate": 0.2},
        {"center": {"lat": 0.0, "lon": 0.05}, "population": 1000},
        {"population": 10},  # malformed, skipped
    ])

def test_from_records_skips_malformed(grid):
    assert len(grid) == 2

def test_population_score_relative_to_max(grid):
    assert grid.population_score(LatLng(0.0, 0.0)) == pytest.approx(0.5)
    assert grid.population_score(LatLng(0.0, 0.05)) == pytest.approx(1.0)

def test_out_of_range_is_neutral(grid):
    far = LatLng(1.0, 1.0)
    assert grid.population_score(far) == NEUTRAL_POPULATION_SCORE
    assert grid.vulnerability(far) == NEUTRAL_VULNERABILITY

def test_vulnerability(grid):
    assert grid.vulnerability(LatLng(0.0, 0.0)) == pytest.approx(0.3)
    # Cell without rates
    assert grid.vulnerability(LatLng(0.0, 0.05)) == NEUTRAL_VULNERABILITY

def test_empty_grid():
    grid = DemographicGrid()
    assert grid.population_score(LatLng(0, 0)) == NEUTRAL_POPULATION_SCORE
    assert PopulationCell(0, 0, 100).vulnerability is None
