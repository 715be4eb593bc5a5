import pytest
from core.models import LatLng
from loaders.climate import (
    ClimateAnalyzer,
    ClimateSummary,
    categorize_farm_potential,
    climate_stress,
    solar_score,
    temperature_score,
    water_score,
)

def test_component_scores():
    assert solar_score(6.0) == 100.0
    assert solar_score(3.0) == 50.0
    assert solar_score(None) == 50.0
    assert temperature_score(22) == 100.0
    assert temperature_score(12) == 50.0
    assert water_score(3.0) == 100.0
    assert water_score(1.0) == 50.0
    assert water_score(20.0) == 50.0

def test_overall_suitability():
    analyzer = ClimateAnalyzer(ClimateSummary(6.0, 22.0, 3.0))
    score = analyzer.suitability(LatLng(0, 0))
    assert score.overall == 100.0
    assert score.category == "EXCELLENT"

def test_missing_summary_is_neutral():
    score = ClimateAnalyzer().suitability(LatLng(0, 0))
    assert score.overall == 50.0
    assert score.category == "MODERATE"
    assert climate_stress(ClimateSummary()) == 0.5

def test_from_power_data():
    summary = ClimateSummary.from_dict({
        "data": {
            "ALLSKY_SFC_SW_DWN": {"mean": 5.1},
            "T2M": {"mean": 14.2},
            "PRECTOTCORR": {"mean": None},
        }
    })
    assert summary.solar_kwh_m2_day == 5.1
    assert summary.temperature_c == 14.2
    assert summary.precipitation_mm_day is None

def test_from_plain_dict():
    summary = ClimateSummary.from_dict({"solar": 4.0, "temperature": 18, "precipitation": 2.5})
    assert summary == ClimateSummary(4.0, 18, 2.5)

def test_categories():
    assert categorize_farm_potential(85) == "EXCELLENT"
    assert categorize_farm_potential(25) == "CHALLENGING"
    assert categorize_farm_potential(5) == "POOR"
