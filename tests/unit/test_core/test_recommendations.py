import pytest
from core.models import (
    EstimatedImpact,
    LatLng,
    LocationAttributes,
    Placement,
    SoilAssessment,
)
from core.recommendations import (
    RecommendationBuilder,
    calculate_priority,
    generate_justification,
)


def make_placement(id="p1", type_key="URBAN_FARM", score=0.75, factors=None, lat=0.0, lng=0.0, soil=None):
    return Placement(
        id=id,
        location=LatLng(lat, lng),
        bounds=None,
        type_key=type_key,
        score=score,
        factors=factors if factors is not None else {"equity": 0.9, "soil": 0.8},
        impact=EstimatedImpact(round(1500 * score), 0.2 * score, 30 * score, 0.15 * score),
        attributes=LocationAttributes(soil=soil),
    )


@pytest.mark.parametrize("score,priority", [
    (0.95, "CRITICAL"), (0.8, "CRITICAL"), (0.6, "HIGH"), (0.45, "MEDIUM"), (0.1, "LOW"),
])
def test_priority_tiers(score, priority):
    assert calculate_priority(score) == priority


def test_justification_text():
    text = generate_justification({"equity": 0.9, "accessibility": 0.75, "competition": 0.8, "soil": 0.5})
    assert text == (
        "Serves highly vulnerable population. Excellent transit and road access. "
        "Fills significant gap in food access"
    )
    assert generate_justification({}) == ""


def test_build_full_record():
    soil = SoilAssessment(6.4, "GOOD", "LOW", 72)
    recommendation = RecommendationBuilder().build([make_placement(soil=soil)])[0]

    assert recommendation.name == "Urban Farm"
    assert recommendation.priority == "HIGH"
    assert recommendation.implementation.setup_cost == 10000
    assert recommendation.implementation.timeframe == "4-6 months"
    assert "Soil quality: GOOD" in recommendation.implementation.requirements
    assert "Agricultural extension" in recommendation.implementation.partners
    assert recommendation.expected_impact.jobs_created == 5
    # operating cost x 12 x 3 x 1.5
    assert recommendation.expected_impact.economic_impact == 1000 * 12 * 3 * 1.5
    assert recommendation.factor_map == {"equity": 0.9, "soil": 0.8}
    assert "Addresses critical need in underserved area" in recommendation.success_factors


def test_recommendation_is_immutable():
    recommendation = RecommendationBuilder().build([make_placement()])[0]
    with pytest.raises(AttributeError):
        recommendation.score = 0.1


def test_synergy_narratives():
    """Farm and market 900 m apart get a supply narrative; distant same-type pairs do not."""
    farm = make_placement("farm", "URBAN_FARM")
    market = make_placement("market", "FARMERS_MARKET", lat=0.0081)
    pantry = make_placement("pantry", "FOOD_PANTRY", lat=0.0083)
    recommendations = RecommendationBuilder().build([farm, market, pantry])

    farm_rec = recommendations[0]
    assert len(farm_rec.synergies) == 1
    assert "Farmers Market" in farm_rec.synergies[0]
    assert "m away" in farm_rec.synergies[0]
    assert recommendations[2].synergies == ()


def test_risks():
    soil = SoilAssessment(5.0, "POOR", "HIGH", 20)
    placement = make_placement(score=0.3, factors={"competition": 0.1, "infrastructure": 0.2}, soil=soil)
    risks = RecommendationBuilder.identify_risks(placement)
    assert "Soil contamination requires remediation" in risks
    assert "High competition from existing outlets" in risks
    assert "Limited infrastructure may increase costs" in risks
    assert "Low overall suitability score" in risks
    assert RecommendationBuilder.identify_risks(make_placement()) == ()
