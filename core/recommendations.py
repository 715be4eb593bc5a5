"""
Recommendation Builder

Expands the optimizer's placements into immutable, human-readable
recommendations: priority, justification, implementation plan, expected
impact, synergies with the other picks, risks and success factors.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from core.geo import distance_m
from core.interventions import InterventionCatalog, InterventionType, get_catalog
from core.models import ExpectedImpact, Implementation, Placement, Recommendation
from core.optimizer import pair_synergy

log = logging.getLogger(__name__)

ECONOMIC_MULTIPLIER = 1.5
REVENUE_YEARS = 3

# (factor, threshold, sentence); a factor above its threshold adds the sentence
JUSTIFICATIONS = (
    ("equity", 0.7, "Serves highly vulnerable population"),
    ("accessibility", 0.7, "Excellent transit and road access"),
    ("population", 0.7, "High population density area"),
    ("competition", 0.7, "Fills significant gap in food access"),
    ("soil", 0.7, "Excellent soil quality for agriculture"),
    ("climate", 0.7, "Favorable climate conditions"),
)

SUCCESS_FACTORS = (
    ("community", 0.7, "Strong community support expected"),
    ("accessibility", 0.8, "Excellent accessibility ensures high usage"),
    ("equity", 0.8, "Addresses critical need in underserved area"),
)


def calculate_priority(score: float) -> str:
    if score >= 0.8:
        return "CRITICAL"
    elif score >= 0.6:
        return "HIGH"
    elif score >= 0.4:
        return "MEDIUM"
    return "LOW"


def generate_justification(factors: dict) -> str:
    reasons = [text for key, threshold, text in JUSTIFICATIONS
               if factors.get(key, 0.0) > threshold]
    return ". ".join(reasons)


def detail_requirements(placement: Placement, intervention: InterventionType) -> Tuple[str, ...]:
    req = intervention.requirements
    details = []
    if req.required_utilities:
        details.append(f"Utilities: {', '.join(req.required_utilities)}")
    if req.min_area_m2:
        details.append(f"Minimum {req.min_area_m2:g}m² space")
    if req.needs_parking:
        details.append("Adequate parking required")
    if req.cold_storage:
        details.append("Cold storage required")
    soil = placement.attributes.soil
    if soil is not None:
        details.append(f"Soil quality: {soil.category}")
    return tuple(details)


def estimate_economic_impact(intervention: InterventionType) -> int:
    annual_revenue = intervention.operating_cost * 12 * REVENUE_YEARS
    return round(annual_revenue * ECONOMIC_MULTIPLIER)


def _format_distance(meters: float) -> str:
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{meters:.0f} m"


def describe_synergy(placement: Placement, other: Placement, other_name: str, distance: float) -> str:
    types = {placement.type_key, other.type_key}
    where = _format_distance(distance)
    if placement.type_key == other.type_key:
        return f"Extends {other_name} coverage with a second site {where} away"
    if types == {"URBAN_FARM", "FARMERS_MARKET"}:
        if placement.type_key == "URBAN_FARM":
            return f"Supply fresh produce to {other_name} {where} away"
        return f"Source fresh produce from {other_name} {where} away"
    if "FOOD_HUB" in types:
        return f"Distribution link with {other_name} {where} away"
    return f"Complements {other_name} {where} away"


class RecommendationBuilder:
    """
    Builds the final recommendation list.

    Usage:
        builder = RecommendationBuilder()
        recommendations = builder.build(result.placements)
    """

    def __init__(self, catalog: Optional[InterventionCatalog] = None):
        self.catalog = catalog if catalog is not None else get_catalog()

    def identify_synergies(self, placement: Placement, others: Sequence[Placement]) -> Tuple[str, ...]:
        synergies = []
        for other in others:
            if other.id == placement.id:
                continue
            distance = distance_m(placement.location, other.location)
            if pair_synergy(placement.type_key, other.type_key, distance) >= 0.5:
                name = self.catalog.get(other.type_key).name
                synergies.append(describe_synergy(placement, other, name, distance))
        return tuple(synergies)

    @staticmethod
    def identify_risks(placement: Placement) -> Tuple[str, ...]:
        factors = placement.factors
        risks = []
        soil = placement.attributes.soil
        if soil is not None and soil.contamination_risk == "HIGH":
            risks.append("Soil contamination requires remediation")
        if "competition" in factors and factors["competition"] < 0.3:
            risks.append("High competition from existing outlets")
        if "infrastructure" in factors and factors["infrastructure"] < 0.3:
            risks.append("Limited infrastructure may increase costs")
        if placement.score < 0.4:
            risks.append("Low overall suitability score")
        return tuple(risks)

    @staticmethod
    def identify_success_factors(placement: Placement) -> Tuple[str, ...]:
        return tuple(text for key, threshold, text in SUCCESS_FACTORS
                     if placement.factors.get(key, 0.0) > threshold)

    def build_one(self, placement: Placement, placements: Sequence[Placement]) -> Recommendation:
        intervention = self.catalog.get(placement.type_key)
        impact = placement.impact
        return Recommendation(
            id=placement.id,
            location=placement.location,
            bounds=placement.bounds,
            type_key=placement.type_key,
            name=intervention.name,
            icon=intervention.icon,
            score=placement.score,
            factors=tuple(placement.factors.items()),
            priority=calculate_priority(placement.score),
            justification=generate_justification(placement.factors),
            implementation=Implementation(
                setup_cost=intervention.setup_cost,
                operating_cost=intervention.operating_cost,
                timeframe=intervention.timeframe,
                requirements=detail_requirements(placement, intervention),
                partners=tuple(intervention.partners),
            ),
            expected_impact=ExpectedImpact(
                population_served=impact.population,
                food_desert_reduction=impact.desert_reduction,
                access_improvement=impact.access_score,
                equity_improvement=impact.equity_score,
                jobs_created=intervention.jobs_created,
                economic_impact=estimate_economic_impact(intervention),
            ),
            synergies=self.identify_synergies(placement, placements),
            risks=self.identify_risks(placement),
            success_factors=self.identify_success_factors(placement),
        )

    def build(self, placements: Sequence[Placement]) -> List[Recommendation]:
        recommendations = [self.build_one(p, placements) for p in placements]
        log.info(f"Built {len(recommendations)} recommendations")
        return recommendations
