import pytest
from core.models import (
    BoundingBox,
    CandidateLocation,
    ConfigurationError,
    ImpactSummary,
    LatLng,
    Outlet,
    ScoredCandidate,
    TypeScore,
)

def test_bbox_validation():
    """Inverted boxes are rejected before any computation."""
    with pytest.raises(ConfigurationError):
        BoundingBox(1.0, 0.0, 0.0, 1.0).validate()
    with pytest.raises(ConfigurationError):
        BoundingBox.from_list([0.0, 1.0, 1.0, 0.0])
    with pytest.raises(ConfigurationError):
        BoundingBox.from_list([0.0, 1.0, 0.0])

def test_bbox_helpers():
    bbox = BoundingBox.from_list([36.9, 37.0, -122.1, -122.0])
    assert bbox.center.lat == pytest.approx(36.95)
    assert bbox.contains(LatLng(36.95, -122.05))
    assert not bbox.contains(LatLng(37.5, -122.05))

def test_outlet_from_dict_variants():
    """Outlets accept lon/lng and a nested classification score."""
    o = Outlet.from_dict({"lat": 1, "lon": 2, "type": "supermarket",
                          "classification": {"score": 0.9}})
    assert o.lng == 2.0
    assert o.category == "supermarket"
    assert o.quality_score == 0.9

def test_best_use_prefers_adjusted_score():
    """best_use uses the adjusted score once equity has run; first wins ties."""
    candidate = CandidateLocation(id="a", center=LatLng(0, 0), area_m2=1000)
    scored = ScoredCandidate(candidate, {
        "URBAN_FARM": TypeScore("URBAN_FARM", True, score=0.5, adjusted_score=0.5),
        "FOOD_PANTRY": TypeScore("FOOD_PANTRY", True, score=0.4, adjusted_score=0.7),
        "MOBILE_MARKET": TypeScore("MOBILE_MARKET", True, score=0.4, adjusted_score=0.7),
    })
    assert scored.best_use.type_key == "FOOD_PANTRY"

def test_impact_summary_defaults():
    summary = ImpactSummary().to_dict()
    assert summary["totalPopulationServed"] == 0
    assert summary["priorityBreakdown"] == {}
