"""
Impact Aggregation

City-wide totals over a recommendation list, plus a flat table export
for reporting.
"""

import logging
from collections import Counter
from typing import Optional, Sequence

import pandas as pd

from core.interventions import InterventionCatalog, get_catalog
from core.models import ImpactSummary, Recommendation

log = logging.getLogger(__name__)


class ImpactAggregator:
    """Summarizes the expected impact of a set of recommendations."""

    def __init__(self, catalog: Optional[InterventionCatalog] = None):
        self.catalog = catalog if catalog is not None else get_catalog()

    def aggregate(self, recommendations: Sequence[Recommendation]) -> ImpactSummary:
        if not recommendations:
            return ImpactSummary()

        count = len(recommendations)
        impacts = [r.expected_impact for r in recommendations]
        investment = sum(self.catalog.get(r.type_key).annual_cost for r in recommendations)

        return ImpactSummary(
            total_population_served=round(sum(i.population_served for i in impacts)),
            food_desert_reduction=min(1.0, sum(i.food_desert_reduction for i in impacts)),
            average_access_improvement=sum(i.access_improvement for i in impacts) / count,
            average_equity_improvement=sum(i.equity_improvement for i in impacts) / count,
            total_investment_needed=round(investment),
            total_jobs_created=round(sum(i.jobs_created for i in impacts)),
            economic_impact=round(sum(i.economic_impact for i in impacts)),
            average_score=sum(r.score for r in recommendations) / count,
            priority_breakdown=dict(Counter(r.priority for r in recommendations)),
        )

    @staticmethod
    def to_dataframe(recommendations: Sequence[Recommendation]) -> pd.DataFrame:
        """One row per recommendation, ready for CSV export."""
        rows = []
        for r in recommendations:
            rows.append({
                "id": r.id,
                "type": r.type_key,
                "name": r.name,
                "lat": r.location.lat,
                "lng": r.location.lng,
                "score": round(r.score, 4),
                "priority": r.priority,
                "population_served": r.expected_impact.population_served,
                "setup_cost": r.implementation.setup_cost,
                "annual_operating_cost": r.implementation.operating_cost * 12,
                "jobs_created": r.expected_impact.jobs_created,
                "economic_impact": r.expected_impact.economic_impact,
                "justification": r.justification,
            })
        columns = [
            "id", "type", "name", "lat", "lng", "score", "priority", "population_served",
            "setup_cost", "annual_operating_cost", "jobs_created", "economic_impact", "justification",
        ]
        return pd.DataFrame(rows, columns=columns)
