"""
Location Scoring Module

Scores every (candidate, intervention type) pair:
- Hard-requirement gate (space, slope, utilities)
- Weighted multi-factor score over the type's positive-weight factors
- Suitability category and estimated impact

Collaborator lookups (soil, climate, vulnerability) are lazy, cached and
issued concurrently across candidates.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Sequence

from core.diagnostics import Diagnostics
from core.geo import distance_m, haversine_m
from core.interventions import InterventionCatalog, InterventionType, get_catalog
from core.models import (
    BoundingBox,
    CandidateLocation,
    EstimatedImpact,
    LatLng,
    ScoredCandidate,
    SoilAssessment,
    TypeScore,
)
from loaders.cache import ResponseCache
from loaders.ports import (
    ClimateScore,
    ClimateSuitability,
    DemographicSource,
    SoilAssessor,
    VulnerabilityIndex,
)

log = logging.getLogger(__name__)

FactorFunc = Callable[[CandidateLocation, InterventionType], Optional[float]]

BASE_POPULATION = 1000
MAX_COMPETITORS = 10
NEUTRAL_POPULATION = 0.6
NEUTRAL_EQUITY = 0.5


class CollaboratorUnavailable(Exception):
    """A collaborator lookup failed; the factor is dropped for this call."""


def categorize_suitability(score: float) -> str:
    if score >= 0.8:
        return "EXCELLENT"
    elif score >= 0.6:
        return "GOOD"
    elif score >= 0.4:
        return "MODERATE"
    elif score >= 0.2:
        return "FAIR"
    return "POOR"


def estimate_impact(intervention: InterventionType, score: float) -> EstimatedImpact:
    return EstimatedImpact(
        population=round(BASE_POPULATION * intervention.reach_multiplier * score),
        desert_reduction=min(score * 0.2, 0.2),
        access_score=score * 30,
        equity_score=score * 0.15,
    )


def meets_requirements(location: CandidateLocation, intervention: InterventionType) -> bool:
    req = intervention.requirements
    attrs = location.attributes

    if location.area_m2 < req.min_area_m2:
        return False
    if (req.max_slope_degrees is not None and attrs.slope_degrees is not None
            and attrs.slope_degrees > req.max_slope_degrees):
        return False
    return all(u in attrs.utilities for u in req.required_utilities)


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class LocationScorer:
    """
    Multi-factor scorer for candidate locations.

    Factors are looked up by key, so a type that weights a new factor only
    needs that factor registered:

        scorer.register_factor("noise", lambda location, intervention: 0.4)

    Usage:
        scorer = LocationScorer(bbox, soil=get_soil_loader(), climate=ClimateAnalyzer(summary))
        scored = scorer.score_all(candidates, ["FARMERS_MARKET", "URBAN_FARM"])
    """

    def __init__(
        self,
        bbox: BoundingBox,
        catalog: Optional[InterventionCatalog] = None,
        city_center: Optional[LatLng] = None,
        soil: Optional[SoilAssessor] = None,
        climate: Optional[ClimateSuitability] = None,
        demographics: Optional[DemographicSource] = None,
        vulnerability: Optional[VulnerabilityIndex] = None,
        cache: Optional[ResponseCache] = None,
        diagnostics: Optional[Diagnostics] = None,
        max_concurrency: int = 8,
    ):
        self.bbox = bbox
        self.catalog = catalog if catalog is not None else get_catalog()
        self.city_center = city_center or bbox.center
        self.soil = soil
        self.climate = climate
        self.demographics = demographics
        self.vulnerability = vulnerability
        self.cache = cache if cache is not None else ResponseCache()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.max_concurrency = max(1, max_concurrency)

        self.half_diagonal_m = haversine_m(bbox.south, bbox.west, bbox.north, bbox.east) / 2

        self._factors: Dict[str, FactorFunc] = {
            "accessibility": self._accessibility,
            "population": self._population,
            "competition": self._competition,
            "soil": self._soil,
            "climate": self._climate,
            "equity": self._equity,
            "infrastructure": self._infrastructure,
            "community": self._community,
            "centrality": self._centrality,
            "innovation": self._innovation,
            "water": self._water,
            "visibility": self._visibility,
            "parking": self._parking,
        }

    def register_factor(self, key: str, func: FactorFunc) -> None:
        """Add or replace a factor. ``func`` returns a value in [0, 1]."""
        self._factors[key] = func

    # ═══════════════════════════════════════════════════════════════════════
    # COLLABORATOR LOOKUPS
    # ═══════════════════════════════════════════════════════════════════════
    def _lookup(self, namespace: str, location: CandidateLocation, producer):
        center = location.center
        try:
            return self.cache.get_or_compute(namespace, center.lat, center.lng, producer)
        except Exception as e:
            self.diagnostics.warn(namespace, f"lookup failed for {location.id}: {e}")
            raise CollaboratorUnavailable(namespace) from e

    def soil_assessment(self, location: CandidateLocation) -> Optional[SoilAssessment]:
        if location.attributes.soil is not None:
            return location.attributes.soil
        if self.soil is None:
            return None
        assessment = self._lookup("soil", location, lambda: self.soil.assess(location.center))
        if assessment.estimated:
            self.diagnostics.warn("soil", f"no soil data at {location.id}, using estimate")
        location.attributes.soil = assessment
        return assessment

    def climate_score(self, location: CandidateLocation) -> Optional[ClimateScore]:
        if self.climate is None:
            return None
        return self._lookup(
            "climate", location,
            lambda: self.climate.suitability(location.center, location.bounds),
        )

    # ═══════════════════════════════════════════════════════════════════════
    # FACTORS
    # ═══════════════════════════════════════════════════════════════════════
    def _accessibility(self, location, intervention) -> float:
        transit = 0.5 if location.attributes.transit_stops > 0 else 0.0
        road = 0.5
        return (transit + road) / 2

    def _population(self, location, intervention) -> float:
        if self.demographics is None:
            return NEUTRAL_POPULATION
        try:
            return self.demographics.population_score(location.center)
        except Exception as e:
            self.diagnostics.warn("population", f"lookup failed for {location.id}: {e}")
            raise CollaboratorUnavailable("population") from e

    def _competition(self, location, intervention) -> float:
        competitors = [
            n for n in location.attributes.nearest_outlets
            if n.outlet.category in intervention.competitor_categories
        ]
        return 1 - min(len(competitors) / MAX_COMPETITORS, 1.0)

    def _soil(self, location, intervention) -> float:
        assessment = self.soil_assessment(location)
        if assessment is None:
            return 0.5
        return assessment.score / 100

    def _climate(self, location, intervention) -> float:
        score = self.climate_score(location)
        if score is None:
            return 0.5
        return score.overall / 100

    def _equity(self, location, intervention) -> float:
        if self.vulnerability is None:
            return NEUTRAL_EQUITY
        center = location.center
        return self._lookup(
            "equity", location, lambda: self.vulnerability.score(center)
        ) / 100

    def _infrastructure(self, location, intervention) -> float:
        required = intervention.requirements.required_utilities
        if not required:
            return 0.5
        present = sum(1 for u in required if u in location.attributes.utilities)
        return present / len(required)

    def _community(self, location, intervention) -> float:
        return 1.0 if location.attributes.in_food_desert else 0.3

    def _centrality(self, location, intervention) -> float:
        if self.half_diagonal_m <= 0:
            return 1.0
        return 1 - min(distance_m(location.center, self.city_center) / self.half_diagonal_m, 1.0)

    def _innovation(self, location, intervention) -> float:
        return 0.7 if "electricity" in location.attributes.utilities else 0.3

    def _water(self, location, intervention) -> float:
        has_water = 1.0 if "water" in location.attributes.utilities else 0.0
        try:
            climate = self.climate_score(location)
        except CollaboratorUnavailable:
            climate = None
        water = climate.water / 100 if climate is not None else 0.5
        return 0.6 * has_water + 0.4 * water

    def _visibility(self, location, intervention) -> float:
        return 0.8 if location.attributes.transit_stops > 0 else 0.5

    def _parking(self, location, intervention) -> float:
        return min(location.attributes.parking_spaces / 40, 1.0)

    # ═══════════════════════════════════════════════════════════════════════
    # SCORING
    # ═══════════════════════════════════════════════════════════════════════
    def score_for_type(self, location: CandidateLocation, type_key: str) -> TypeScore:
        """Gate and score one location for one intervention type."""
        intervention = self.catalog.get(type_key)
        if not meets_requirements(location, intervention):
            return TypeScore(type_key=type_key, viable=False, reason="Requirements not met")

        factors: Dict[str, float] = {}
        total = 0.0
        for key, weight in intervention.active_factors().items():
            func = self._factors.get(key)
            if func is None:
                self.diagnostics.warn("factor", f"unknown factor '{key}' in {type_key}, skipped")
                continue
            try:
                value = func(location, intervention)
            except CollaboratorUnavailable:
                continue
            if value is None:
                continue
            value = _clamp(float(value))
            factors[key] = value
            total += value * weight

        score = _clamp(total)
        return TypeScore(
            type_key=type_key,
            viable=True,
            score=score,
            factors=factors,
            suitability=categorize_suitability(score),
            impact=estimate_impact(intervention, score),
        )

    def score_candidate(self, location: CandidateLocation, type_keys: Sequence[str]) -> ScoredCandidate:
        scores = {}
        for type_key in type_keys:
            result = self.score_for_type(location, type_key)
            if result.viable:
                scores[type_key] = result
        return ScoredCandidate(candidate=location, scores=scores)

    def score_all(
        self,
        locations: Sequence[CandidateLocation],
        type_keys: Sequence[str],
    ) -> List[ScoredCandidate]:
        """
        Score every location for every requested type.

        Locations with no viable type are dropped; input order is preserved.
        """
        with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
            results = list(executor.map(lambda loc: self.score_candidate(loc, type_keys), locations))

        scored = [r for r in results if r.scores]
        log.info(f"Scored {len(scored)} viable locations of {len(locations)}")
        return scored
