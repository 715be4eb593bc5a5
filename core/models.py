"""
Core data models for the Food Access Placement Engine.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when run inputs are invalid, before any computation starts."""


@dataclass(frozen=True)
class LatLng:
    """A point in decimal degrees."""
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Dict) -> "LatLng":
        lng = data["lng"] if "lng" in data else data["lon"]
        return cls(lat=float(data["lat"]), lng=float(lng))


# ═══════════════════════════════════════════════════════════════════════════
# BOUNDING BOX
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class BoundingBox:
    """
    Geographic bounding box of the analysis area.

    All coordinates are in decimal degrees (WGS84).
    """
    south: float
    north: float
    west: float
    east: float

    def validate(self) -> "BoundingBox":
        if not self.south < self.north:
            raise ConfigurationError(
                f"Bounding box south ({self.south}) must be less than north ({self.north})"
            )
        if not self.west < self.east:
            raise ConfigurationError(
                f"Bounding box west ({self.west}) must be less than east ({self.east})"
            )
        return self

    @property
    def center(self) -> LatLng:
        return LatLng((self.south + self.north) / 2, (self.west + self.east) / 2)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.south, self.north, self.west, self.east)

    def contains(self, point: LatLng) -> bool:
        """Check if a point is inside this bounding box."""
        return (self.south <= point.lat <= self.north and
                self.west <= point.lng <= self.east)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_list(cls, values) -> "BoundingBox":
        """Build from ``[south, north, west, east]``."""
        if len(values) != 4:
            raise ConfigurationError(f"Bounding box needs 4 values, got {len(values)}")
        south, north, west, east = (float(v) for v in values)
        return cls(south, north, west, east).validate()


@dataclass(frozen=True)
class CellBounds:
    """Bounds of a single grid cell."""
    south: float
    north: float
    west: float
    east: float

    def contains(self, point: LatLng) -> bool:
        return (self.south <= point.lat <= self.north and
                self.west <= point.lng <= self.east)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


# ═══════════════════════════════════════════════════════════════════════════
# COLLABORATOR PAYLOADS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Outlet:
    """An existing food outlet supplied by the caller."""
    lat: float
    lng: float
    category: str            # "supermarket", "marketplace", "farm", "convenience", ...
    quality_score: float     # 0.0 to 1.0, >= 0.7 counts as a healthy outlet
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "Outlet":
        lng = data["lng"] if "lng" in data else data["lon"]
        quality = data.get("quality_score")
        if quality is None:
            quality = data.get("classification", {}).get("score", 0.0)
        return cls(
            lat=float(data["lat"]),
            lng=float(lng),
            category=data.get("category") or data.get("type", "unknown"),
            quality_score=float(quality),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class SoilAssessment:
    """Soil suitability for growing, as reported by a soil collaborator."""
    ph: float
    category: str            # EXCELLENT / GOOD / MODERATE / POOR / UNSUITABLE
    contamination_risk: str  # LOW / MODERATE / HIGH / UNKNOWN
    score: float             # 0 to 100
    estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pH": self.ph,
            "category": self.category,
            "contaminationRisk": self.contamination_risk,
            "score": self.score,
            "estimated": self.estimated,
        }


@dataclass
class NearbyOutlet:
    outlet: Outlet
    distance_m: float


@dataclass
class LocationAttributes:
    """
    Attributes gathered for a candidate location.

    Grid cells start from neutral defaults; supplied parcels may carry
    their own values.
    """
    utilities: frozenset = frozenset({"electricity", "water", "sewer"})
    slope_degrees: Optional[float] = 2.0
    transit_stops: int = 0
    parking_spaces: int = 20
    sunlight_hours: float = 6.0
    nearest_outlets: List[NearbyOutlet] = field(default_factory=list)
    in_food_desert: bool = False
    soil: Optional[SoilAssessment] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utilities": sorted(self.utilities),
            "slope": self.slope_degrees,
            "transitStops": self.transit_stops,
            "parkingSpaces": self.parking_spaces,
            "sunlightHours": self.sunlight_hours,
            "nearestOutlets": [
                {"category": n.outlet.category, "distance": round(n.distance_m, 1)}
                for n in self.nearest_outlets
            ],
            "inFoodDesert": self.in_food_desert,
            "soil": self.soil.to_dict() if self.soil else None,
        }


# ═══════════════════════════════════════════════════════════════════════════
# CANDIDATES AND SCORES
# ═══════════════════════════════════════════════════════════════════════════
@dataclass
class CandidateLocation:
    """
    A grid cell or supplied parcel evaluated as a possible intervention site.
    Created per run and discarded after.
    """
    id: str
    center: LatLng
    area_m2: float
    bounds: Optional[CellBounds] = None
    source: str = "grid"     # "grid", "vacant", "parking_lot", "park", ...
    tags: Dict[str, str] = field(default_factory=dict)
    conversion_potential: Optional[float] = None
    attributes: LocationAttributes = field(default_factory=LocationAttributes)


@dataclass
class EstimatedImpact:
    population: int
    desert_reduction: float
    access_score: float
    equity_score: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "population": self.population,
            "desertReduction": self.desert_reduction,
            "accessScore": self.access_score,
            "equityScore": self.equity_score,
        }


@dataclass
class TypeScore:
    """Suitability of one candidate for one intervention type."""
    type_key: str
    viable: bool
    score: float = 0.0
    factors: Dict[str, float] = field(default_factory=dict)
    suitability: str = "POOR"
    impact: Optional[EstimatedImpact] = None
    adjusted_score: Optional[float] = None
    equity_boost: float = 0.0
    reason: str = ""

    @property
    def effective_score(self) -> float:
        """Adjusted score once the equity step has run, raw score before."""
        return self.adjusted_score if self.adjusted_score is not None else self.score


@dataclass
class ScoredCandidate:
    candidate: CandidateLocation
    scores: Dict[str, TypeScore]

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def center(self) -> LatLng:
        return self.candidate.center

    @property
    def best_use(self) -> Optional[TypeScore]:
        """Type with the highest (adjusted) score; first listed wins ties."""
        best = None
        for type_score in self.scores.values():
            if best is None or type_score.effective_score > best.effective_score:
                best = type_score
        return best


@dataclass
class Placement:
    """A selected (location, intervention type) pair from the optimizer."""
    id: str
    location: LatLng
    bounds: Optional[CellBounds]
    type_key: str
    score: float
    factors: Dict[str, float]
    impact: EstimatedImpact
    attributes: LocationAttributes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location.to_dict(),
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "type": self.type_key,
            "score": self.score,
            "factors": dict(self.factors),
            "estimatedImpact": self.impact.to_dict(),
            "data": self.attributes.to_dict(),
        }


# ═══════════════════════════════════════════════════════════════════════════
# RECOMMENDATIONS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Implementation:
    setup_cost: float
    operating_cost: float
    timeframe: str
    requirements: Tuple[str, ...]
    partners: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "setupCost": self.setup_cost,
            "operatingCost": self.operating_cost,
            "timeframe": self.timeframe,
            "requirements": list(self.requirements),
            "partners": list(self.partners),
        }


@dataclass(frozen=True)
class ExpectedImpact:
    population_served: int
    food_desert_reduction: float
    access_improvement: float
    equity_improvement: float
    jobs_created: int
    economic_impact: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "populationServed": self.population_served,
            "foodDesertReduction": self.food_desert_reduction,
            "accessImprovement": self.access_improvement,
            "equityImprovement": self.equity_improvement,
            "jobsCreated": self.jobs_created,
            "economicImpact": self.economic_impact,
        }


@dataclass(frozen=True)
class Recommendation:
    """
    Finalized, user-facing placement recommendation.
    Immutable once built.
    """
    id: str
    location: LatLng
    bounds: Optional[CellBounds]
    type_key: str
    name: str
    icon: str
    score: float
    factors: Tuple[Tuple[str, float], ...]
    priority: str
    justification: str
    implementation: Implementation
    expected_impact: ExpectedImpact
    synergies: Tuple[str, ...]
    risks: Tuple[str, ...]
    success_factors: Tuple[str, ...]

    @property
    def factor_map(self) -> Dict[str, float]:
        return dict(self.factors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "location": self.location.to_dict(),
            "bounds": self.bounds.to_dict() if self.bounds else None,
            "type": self.type_key,
            "name": self.name,
            "icon": self.icon,
            "score": self.score,
            "factors": self.factor_map,
            "priority": self.priority,
            "justification": self.justification,
            "implementation": self.implementation.to_dict(),
            "expectedImpact": self.expected_impact.to_dict(),
            "synergies": list(self.synergies),
            "risks": list(self.risks),
            "successFactors": list(self.success_factors),
        }


@dataclass
class ImpactSummary:
    """City-wide totals over a recommendation list."""
    total_population_served: int = 0
    food_desert_reduction: float = 0.0
    average_access_improvement: float = 0.0
    average_equity_improvement: float = 0.0
    total_investment_needed: int = 0
    total_jobs_created: int = 0
    economic_impact: int = 0
    average_score: float = 0.0
    priority_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPopulationServed": self.total_population_served,
            "foodDesertReduction": self.food_desert_reduction,
            "averageAccessImprovement": self.average_access_improvement,
            "averageEquityImprovement": self.average_equity_improvement,
            "totalInvestmentNeeded": self.total_investment_needed,
            "totalJobsCreated": self.total_jobs_created,
            "economicImpact": self.economic_impact,
            "averageScore": self.average_score,
            "priorityBreakdown": dict(self.priority_breakdown),
        }


@dataclass
class PlacementResult:
    """Output record of one optimization run."""
    placements: List[Placement]
    recommendations: List[Recommendation]
    impact: ImpactSummary
    visualizations: Dict[str, List[Dict[str, Any]]]
    diagnostics: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        recommendations = [r.to_dict() for r in self.recommendations]
        return {
            "placements": recommendations,
            "recommendations": recommendations,
            "impact": self.impact.to_dict(),
            "visualizations": self.visualizations,
            "diagnostics": list(self.diagnostics),
            "metadata": dict(self.metadata),
        }
