"""
Placement Engine - end-to-end optimization run.

Flow:
    candidates -> scoring -> equity adjustment -> genetic optimization
    -> recommendations -> impact summary + visualization data

Collaborators are injected through the ports in ``loaders.ports``; any of
them may be omitted, in which case neutral defaults are used and the
degradation is reported in the result's diagnostics.
"""

import time
import random
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.access import AccessVulnerabilityIndex, FoodDesertDetector
from core.config import PlacementConfig
from core.diagnostics import Diagnostics
from core.equity import EquityAdjuster
from core.grid import LocationCandidateGenerator, ViabilityCheck, always_viable
from core.impact import ImpactAggregator
from core.interventions import InterventionCatalog, get_catalog
from core.models import (
    BoundingBox,
    CandidateLocation,
    ImpactSummary,
    LatLng,
    Outlet,
    PlacementResult,
    Recommendation,
)
from core.optimizer import CombinatorialOptimizer
from core.recommendations import RecommendationBuilder
from core.scoring import LocationScorer
from loaders.cache import ResponseCache
from loaders.climate import ClimateAnalyzer, ClimateSummary, climate_stress
from loaders.demographics import DemographicGrid
from loaders.ports import (
    ClimateSuitability,
    DemographicSource,
    SoilAssessor,
    VacantSpaceSource,
    VulnerabilityIndex,
)

log = logging.getLogger(__name__)


class PlacementEngine:
    """
    Finds near-optimal placements of food-access interventions in a city.

    Usage:
        engine = PlacementEngine(bbox, outlets, climate=ClimateSummary(5.2, 18.0, 2.5))
        result = engine.find_optimal_placements(PlacementConfig(max_suggestions=8))
        print(result.impact.total_population_served)
    """

    def __init__(
        self,
        bbox: BoundingBox,
        outlets: Sequence[Outlet] = (),
        city_center: Optional[LatLng] = None,
        climate: Optional[ClimateSummary] = None,
        demographics: Optional[DemographicSource] = None,
        soil: Optional[SoilAssessor] = None,
        vacant_spaces: Optional[VacantSpaceSource] = None,
        climate_suitability: Optional[ClimateSuitability] = None,
        vulnerability: Optional[VulnerabilityIndex] = None,
        catalog: Optional[InterventionCatalog] = None,
        viability_check: ViabilityCheck = always_viable,
        rng: Optional[random.Random] = None,
    ):
        self.bbox = bbox.validate()
        self.outlets = list(outlets)
        self.city_center = city_center or bbox.center
        self.climate_summary = climate or ClimateSummary()
        self.demographics = demographics
        self.soil = soil
        self.vacant_spaces = vacant_spaces
        self.climate = climate_suitability or ClimateAnalyzer(self.climate_summary)
        self.vulnerability = vulnerability
        self.catalog = catalog if catalog is not None else get_catalog()
        self.viability_check = viability_check
        self.rng = rng

    @classmethod
    def from_dict(cls, data: Dict[str, Any], **kwargs) -> "PlacementEngine":
        """
        Build from a city input document:

            {"boundingBox": [s, n, w, e], "center": {"lat": .., "lng": ..},
             "outlets": [...], "climate": {...}, "demographics": [...]}
        """
        bbox = BoundingBox.from_list(data.get("boundingBox") or data.get("bbox") or [])
        center = data.get("center")
        demographics = data.get("demographics")
        return cls(
            bbox=bbox,
            outlets=[Outlet.from_dict(o) for o in data.get("outlets", [])],
            city_center=LatLng.from_dict(center) if center else None,
            climate=ClimateSummary.from_dict(data.get("climate")),
            demographics=DemographicGrid.from_records(demographics) if demographics else None,
            **kwargs,
        )

    def _find_parcels(self, diagnostics: Diagnostics) -> List[CandidateLocation]:
        if self.vacant_spaces is None:
            return []
        try:
            return list(self.vacant_spaces.find_spaces(self.bbox))
        except Exception as e:
            diagnostics.warn("vacant_spaces", f"parcel lookup failed, using grid only: {e}")
            return []

    def _default_vulnerability(self) -> VulnerabilityIndex:
        vulnerability_source = self.demographics if hasattr(self.demographics, "vulnerability") else None
        return AccessVulnerabilityIndex(
            self.outlets,
            demographics=vulnerability_source,
            climate_stress=climate_stress(self.climate_summary),
        )

    def find_optimal_placements(self, config: Optional[PlacementConfig] = None) -> PlacementResult:
        """Run the full optimization and return the output record."""
        config = (config or PlacementConfig()).validate()
        type_keys = self.catalog.resolve(config.intervention_types)
        diagnostics = Diagnostics()
        started = time.time()

        log.info(f"Starting placement optimization for {len(type_keys)} intervention types")

        detector = FoodDesertDetector(self.outlets, self.bbox)

        generator = LocationCandidateGenerator(
            self.bbox,
            resolution=config.grid_resolution,
            outlets=self.outlets,
            desert_detector=detector,
            viability_check=self.viability_check,
            diagnostics=diagnostics,
            default_utilities=config.default_utilities,
        )
        candidates = generator.generate(self._find_parcels(diagnostics))

        scorer = LocationScorer(
            self.bbox,
            catalog=self.catalog,
            city_center=self.city_center,
            soil=self.soil,
            climate=self.climate,
            demographics=self.demographics,
            vulnerability=self.vulnerability or self._default_vulnerability(),
            cache=ResponseCache(),
            diagnostics=diagnostics,
            max_concurrency=config.max_concurrency,
        )
        scored = scorer.score_all(candidates, type_keys)

        adjuster = EquityAdjuster(detector.zones, config.priority_factors, diagnostics)
        pool = adjuster.adjust(scored)

        metadata: Dict[str, Any] = {
            "candidates": len(candidates),
            "viableCandidates": len(scored),
            "pool": len(pool),
            "underservedZones": len(detector.zones),
            "interventionTypes": type_keys,
            "seed": config.optimizer.seed,
            "config": config.to_dict(),
        }

        if not pool:
            reason = "No candidate location met the requirements of the requested intervention types"
            log.warning(reason)
            metadata.update(status="empty", reason=reason, elapsedSeconds=time.time() - started)
            return PlacementResult(
                placements=[],
                recommendations=[],
                impact=ImpactSummary(),
                visualizations=self.prepare_visualizations([]),
                diagnostics=diagnostics.summary(),
                metadata=metadata,
            )

        optimizer = CombinatorialOptimizer(
            self.bbox,
            settings=config.optimizer,
            catalog=self.catalog,
            rng=self.rng,
        )
        optimized = optimizer.optimize(pool, config.max_suggestions)

        recommendations = RecommendationBuilder(self.catalog).build(optimized.placements)
        impact = ImpactAggregator(self.catalog).aggregate(recommendations)

        metadata.update(
            status="ok",
            fitness=optimized.to_dict(),
            desertStatistics=detector.statistics(),
            elapsedSeconds=time.time() - started,
        )
        log.info(
            f"Placement optimization complete: {len(recommendations)} recommendations, "
            f"{impact.total_population_served:,} people served"
        )

        return PlacementResult(
            placements=optimized.placements,
            recommendations=recommendations,
            impact=impact,
            visualizations=self.prepare_visualizations(recommendations),
            diagnostics=diagnostics.summary(),
            metadata=metadata,
        )

    # ═══════════════════════════════════════════════════════════════════════
    # VISUALIZATION DATA
    # ═══════════════════════════════════════════════════════════════════════
    @staticmethod
    def popup_text(recommendation: Recommendation) -> str:
        return (
            f"{recommendation.icon} {recommendation.name}\n"
            f"Score: {round(recommendation.score * 100)}%\n"
            f"People Served: {recommendation.expected_impact.population_served:,}\n"
            f"Setup Cost: ${recommendation.implementation.setup_cost:,.0f}"
        )

    def prepare_visualizations(self, recommendations: Iterable[Recommendation]) -> Dict[str, List[Dict]]:
        recommendations = list(recommendations)
        return {
            "markers": [
                {
                    "position": r.location.to_dict(),
                    "type": r.type_key,
                    "icon": r.icon,
                    "popup": self.popup_text(r),
                }
                for r in recommendations
            ],
            "heatmapPoints": [
                {"lat": r.location.lat, "lng": r.location.lng, "intensity": r.score}
                for r in recommendations
            ],
            "serviceAreaCircles": [
                {
                    "center": r.location.to_dict(),
                    "radius": self.catalog.get(r.type_key).service_radius_m,
                    "type": r.type_key,
                }
                for r in recommendations
            ],
        }
