import time
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch
from core.models import LatLng
from loaders.soil import (
    SoilGridsLoader,
    SoilProperties,
    categorize_soil,
    ph_score,
    soil_suitability,
)

SOILGRIDS_RESPONSE = {
    "properties": {
        "layers": [
            {
                "name": "phh2o",
                "unit_measure": {"d_factor": 10},
                "depths": [{"values": {"mean": 64}}, {"values": {"mean": 66}}],
            },
            {
                "name": "clay",
                "unit_measure": {"d_factor": 10},
                "depths": [{"values": {"mean": 250}}],
            },
            {
                "name": "sand",
                "unit_measure": {"d_factor": 10},
                "depths": [{"values": {"mean": 500}}],
            },
            {
                "name": "soc",
                "unit_measure": {"d_factor": 10},
                "depths": [{"values": {"mean": None}}],
            },
        ]
    }
}

@pytest.fixture
def mock_loader():
    with patch('requests.Session') as mock_session:
        loader = SoilGridsLoader()
        loader.session = mock_session.return_value
        yield loader

def test_fetch_properties_success(mock_loader):
    """Depth means are averaged and converted by d_factor."""
    mock_response = MagicMock()
    mock_response.json.return_value = SOILGRIDS_RESPONSE
    mock_loader.session.get.return_value = mock_response

    props = mock_loader.fetch_properties(36.97, -122.03)
    assert props.ph == pytest.approx(6.5)
    assert props.clay_pct == pytest.approx(25.0)
    assert props.sand_pct == pytest.approx(50.0)
    assert props.organic_carbon_g_kg == 20.0  # default when no data
    assert props.texture == "LOAM"
    assert props.drainage == "GOOD"

def test_assess_scores_properties(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = SOILGRIDS_RESPONSE
    mock_loader.session.get.return_value = mock_response

    assessment = mock_loader.assess(LatLng(36.97, -122.03))
    assert not assessment.estimated
    assert 0 <= assessment.score <= 100
    assert assessment.ph == pytest.approx(6.5)

def test_assess_falls_back_on_failure(mock_loader):
    """Service errors yield the neutral estimate instead of raising."""
    with patch.object(SoilGridsLoader, "_make_request", side_effect=ConnectionError("down")):
        assessment = mock_loader.assess(LatLng(36.97, -122.03))
    assert assessment.estimated
    assert assessment.score == 50.0
    assert assessment.category == "MODERATE"

def test_empty_layers_fall_back(mock_loader):
    mock_response = MagicMock()
    mock_response.json.return_value = {"properties": {"layers": []}}
    mock_loader.session.get.return_value = mock_response
    assert mock_loader.fetch_properties(0.0, 0.0) is None

def test_ph_score():
    assert ph_score(6.5) == 1.0
    assert ph_score(5.7) == 0.8
    assert ph_score(7.8) == 0.5
    assert ph_score(4.0) == 0.2

def test_suitability_weights():
    """Contamination carries 30% of the score."""
    props = SoilProperties(clay_pct=25, sand_pct=50)
    clean = soil_suitability(props, contamination_risk="LOW")
    unknown = soil_suitability(props, contamination_risk="UNKNOWN")
    assert clean - unknown == pytest.approx(0.30)
    assert categorize_soil(clean) in ("EXCELLENT", "GOOD")

def test_rate_limit_holds_across_threads(mock_loader):
    """Concurrent workers sharing the loader still space their requests."""
    stamps = []
    mock_response = MagicMock()
    mock_response.json.return_value = SOILGRIDS_RESPONSE

    def record(*args, **kwargs):
        stamps.append(time.time())
        return mock_response

    mock_loader.session.get.side_effect = record
    with patch("loaders.soil._MIN_REQUEST_INTERVAL", 0.05), patch("loaders.soil._last_request_time", 0.0):
        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(lambda i: mock_loader.fetch_properties(36.9 + i * 0.001, -122.0), range(16)))

    stamps.sort()
    gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
    assert len(stamps) == 16
    assert min(gaps) >= 0.03
