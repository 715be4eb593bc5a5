"""
Equity Adjustment

Three passes over the scored candidates before optimization:
1. Boost scores near underserved (food desert) zones
2. Best-effort re-rank so the top of the list reaches uncovered zones
3. Decluster so accepted candidates keep a minimum spacing
"""

import logging
from typing import List, Optional, Sequence, Set

from core.config import PriorityFactors
from core.diagnostics import Diagnostics
from core.geo import distance_m
from core.access import UnderservedZone
from core.models import ScoredCandidate

log = logging.getLogger(__name__)

ZONE_COVER_RADIUS_M = 1000.0

# (max distance in meters, proximity score), checked in order
PROXIMITY_BANDS = (
    (500.0, 1.0),
    (1000.0, 0.8),
    (2000.0, 0.5),
    (5000.0, 0.2),
)


def proximity_to_underserved(candidate: ScoredCandidate, zones: Sequence[UnderservedZone]) -> float:
    """Proximity score from the distance to the nearest zone center; 0 without zones."""
    if not zones:
        return 0.0
    nearest = min(distance_m(candidate.center, zone.center) for zone in zones)
    for limit, score in PROXIMITY_BANDS:
        if nearest < limit:
            return score
    return 0.0


def best_adjusted_score(candidate: ScoredCandidate) -> float:
    best = candidate.best_use
    return best.effective_score if best is not None else 0.0


class EquityAdjuster:
    """
    Applies the equity passes for one run.

    Usage:
        adjuster = EquityAdjuster(detector.zones, config.priority_factors, diagnostics)
        pool = adjuster.adjust(scored)
    """

    def __init__(
        self,
        zones: Sequence[UnderservedZone],
        priority: Optional[PriorityFactors] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.zones = list(zones)
        self.priority = priority or PriorityFactors()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    def apply_boost(self, candidates: Sequence[ScoredCandidate]) -> None:
        """Set adjusted_score and equity_boost on every type score in place."""
        weight = self.priority.equity_weight
        for candidate in candidates:
            boost = proximity_to_underserved(candidate, self.zones) * weight
            for type_score in candidate.scores.values():
                type_score.equity_boost = boost
                type_score.adjusted_score = min(1.0, type_score.score + boost)

    def rank_for_coverage(self, candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        """
        Greedy re-rank toward ``min_coverage`` of the zones.

        Best effort only: a warning is recorded when the target is missed.
        """
        remaining = list(candidates)
        ranked: List[ScoredCandidate] = []
        covered: Set[str] = set()
        total = len(self.zones)
        target = self.priority.min_coverage

        def fraction() -> float:
            return len(covered) / total if total else 1.0

        while remaining and fraction() < target:
            uncovered = [z for z in self.zones if z.id not in covered]

            def reach(candidate: ScoredCandidate):
                nearest = min(distance_m(candidate.center, z.center) for z in uncovered)
                return (nearest, -best_adjusted_score(candidate))

            pick = min(remaining, key=reach)
            remaining.remove(pick)
            ranked.append(pick)

            nearest_zone = min(uncovered, key=lambda z: distance_m(pick.center, z.center))
            covered.add(nearest_zone.id)
            for zone in uncovered:
                if distance_m(pick.center, zone.center) <= ZONE_COVER_RADIUS_M:
                    covered.add(zone.id)

        if fraction() < target:
            self.diagnostics.warn(
                "coverage",
                f"reached {fraction():.0%} of underserved zones, target was {target:.0%}",
            )

        remaining.sort(key=best_adjusted_score, reverse=True)
        return ranked + remaining

    def decluster(self, candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        """Keep candidates at least ``max_cluster_distance`` apart, in rank order."""
        spacing = self.priority.max_cluster_distance
        selected: List[ScoredCandidate] = []
        excluded: Set[str] = set()

        for candidate in candidates:
            if candidate.id in excluded:
                continue
            if any(distance_m(candidate.center, s.center) < spacing for s in selected):
                continue
            selected.append(candidate)
            for other in candidates:
                if other is not candidate and distance_m(candidate.center, other.center) < spacing / 2:
                    excluded.add(other.id)

        return selected

    def adjust(self, candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
        self.apply_boost(candidates)
        ranked = self.rank_for_coverage(candidates)
        pool = self.decluster(ranked)
        log.info(f"Applied equity constraints: {len(pool)} of {len(candidates)} locations kept")
        return pool
