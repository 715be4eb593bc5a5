import json
import random
import pytest
from unittest.mock import MagicMock
from core.config import PlacementConfig
from core.engine import PlacementEngine
from core.geo import distance_m
from core.models import BoundingBox, ConfigurationError, Outlet, SoilAssessment
from loaders.climate import ClimateSummary
from loaders.ports import CallableSoilAssessor

BBOX = BoundingBox(0.0, 0.04, 0.0, 0.04)

OUTLETS = [
    Outlet(0.005, 0.005, "supermarket", 0.9, "Corner Grocery"),
    Outlet(0.006, 0.004, "marketplace", 0.8, "Saturday Market"),
    Outlet(0.035, 0.035, "convenience", 0.2, "Quick Stop"),
]


def make_config(**overrides):
    data = {
        "gridResolution": 0.01,
        "maxSuggestions": 10,
        "priorityFactors": {"equityWeight": 0.3, "minCoverage": 0.8, "maxClusterDistance": 1000},
        "optimizer": {"populationSize": 20, "generations": 10, "seed": 7},
    }
    data.update(overrides)
    return PlacementConfig.from_dict(data)


@pytest.fixture
def engine():
    soil = MagicMock()
    soil.assess.return_value = SoilAssessment(6.5, "GOOD", "LOW", 75)
    return PlacementEngine(
        BBOX,
        OUTLETS,
        climate=ClimateSummary(5.0, 20.0, 2.5),
        soil=soil,
    )


def test_full_run(engine):
    """End-to-end run returns bounded, well-formed recommendations."""
    result = engine.find_optimal_placements(make_config())

    assert result.metadata["status"] == "ok"
    assert 0 < len(result.recommendations) <= 10
    for rec in result.recommendations:
        assert 0.0 <= rec.score <= 1.0
        assert rec.priority in ("CRITICAL", "HIGH", "MEDIUM", "LOW")
    assert len({r.id for r in result.recommendations}) == len(result.recommendations)
    assert result.impact.total_population_served == sum(
        r.expected_impact.population_served for r in result.recommendations
    )

    output = json.loads(json.dumps(result.to_dict()))
    assert set(output) >= {"placements", "recommendations", "impact", "visualizations", "diagnostics"}
    assert set(output["visualizations"]) == {"markers", "heatmapPoints", "serviceAreaCircles"}
    assert len(output["visualizations"]["markers"]) == len(result.recommendations)


def test_farmers_market_only(engine):
    result = engine.find_optimal_placements(
        make_config(interventionTypes=["FARMERS_MARKET"], maxSuggestions=10)
    )
    assert len(result.recommendations) <= 10
    assert all(r.type_key == "FARMERS_MARKET" for r in result.recommendations)


def test_selected_placements_are_spread_out(engine):
    """Declustering keeps every pick at least max_cluster_distance apart."""
    result = engine.find_optimal_placements(make_config())
    recs = result.recommendations
    for i, a in enumerate(recs):
        for b in recs[i + 1:]:
            assert distance_m(a.location, b.location) >= 1000


def test_seeded_runs_are_identical():
    def run():
        engine = PlacementEngine(BBOX, OUTLETS, climate=ClimateSummary(5.0, 20.0, 2.5))
        result = engine.find_optimal_placements(make_config())
        return [(r.id, r.type_key, r.score) for r in result.recommendations]

    assert run() == run()


def test_injected_rng_is_used():
    config = make_config()
    first = PlacementEngine(BBOX, OUTLETS, rng=random.Random(99)).find_optimal_placements(config)
    second = PlacementEngine(BBOX, OUTLETS, rng=random.Random(99)).find_optimal_placements(config)
    assert [r.id for r in first.recommendations] == [r.id for r in second.recommendations]


def test_no_viable_candidates_gives_empty_result(engine):
    """Default utilities lack refrigeration, so no cell can host a food hub."""
    result = engine.find_optimal_placements(make_config(interventionTypes=["FOOD_HUB"]))
    assert result.metadata["status"] == "empty"
    assert result.metadata["reason"]
    assert result.recommendations == []
    assert result.impact.total_population_served == 0


def test_vacant_space_failure_degrades(engine):
    failing = MagicMock()
    failing.find_spaces.side_effect = ConnectionError("Overpass timeout")
    engine.vacant_spaces = failing

    result = engine.find_optimal_placements(make_config())
    assert result.metadata["status"] == "ok"
    assert any(line.startswith("vacant_spaces") for line in result.diagnostics)


def test_soil_failure_reaches_result_diagnostics(engine):
    """Lookups that fail during scoring are reported on the result."""
    engine.soil.assess.side_effect = ConnectionError("SoilGrids down")

    result = engine.find_optimal_placements(make_config(interventionTypes=["URBAN_FARM"]))
    assert engine.soil.assess.call_count > 0
    assert any(line.startswith("soil") for line in result.diagnostics)


def test_plain_soil_function():
    calls = []

    def soil_lookup(location):
        calls.append(location)
        return {"pH": 6.8, "category": "GOOD", "contaminationRisk": "LOW", "score": 80}

    engine = PlacementEngine(
        BBOX,
        OUTLETS,
        climate=ClimateSummary(5.0, 20.0, 2.5),
        soil=CallableSoilAssessor(soil_lookup),
    )
    result = engine.find_optimal_placements(make_config(interventionTypes=["URBAN_FARM"]))

    assert calls
    assert not any(line.startswith("soil") for line in result.diagnostics)
    for rec in result.recommendations:
        assert "Soil quality: GOOD" in rec.implementation.requirements


def test_invalid_config_raises_before_running(engine):
    with pytest.raises(ConfigurationError):
        engine.find_optimal_placements(make_config(gridResolution=0))
    with pytest.raises(ConfigurationError):
        engine.find_optimal_placements(make_config(interventionTypes=["SPACE_ELEVATOR"]))


def test_from_dict_input():
    engine = PlacementEngine.from_dict({
        "boundingBox": [0.0, 0.04, 0.0, 0.04],
        "center": {"lat": 0.02, "lng": 0.02},
        "outlets": [{"lat": 0.005, "lon": 0.005, "category": "supermarket", "quality_score": 0.9}],
        "climate": {"solar": 5.0, "temperature": 20, "precipitation": 2.5},
        "demographics": [{"lat": 0.015, "lng": 0.015, "population": 800, "povertyRate": 0.3}],
    })
    result = engine.find_optimal_placements(make_config(maxSuggestions=3))
    assert len(result.recommendations) <= 3
    assert result.metadata["seed"] == 7
