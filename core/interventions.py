"""
Intervention Catalog

Static registry of food-access intervention types:
- Hard requirements (space, slope, utilities)
- Weighted scoring factors
- Cost, timeframe and the per-type constant tables used downstream
  (service radius, reach multiplier, jobs, partners)

Scoring is data-driven over the factor keys carrying positive weight,
so adding a type needs no change anywhere else.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from core.models import ConfigurationError

log = logging.getLogger(__name__)


FACTOR_KEYS = (
    "accessibility",
    "population",
    "competition",
    "soil",
    "climate",
    "equity",
    "infrastructure",
    "community",
    "centrality",
    "innovation",
    "water",
    "visibility",
    "parking",
)


@dataclass(frozen=True)
class Requirements:
    """Hard requirements a location must meet before it is scored."""

    min_area_m2: float = 0.0
    max_slope_degrees: Optional[float] = None
    required_utilities: Tuple[str, ...] = ()

    # Space flags (informational, rendered into implementation notes)
    needs_parking: bool = False
    needs_transit: bool = False
    needs_loading: bool = False
    outdoor_space: bool = False
    indoor_space: bool = False
    cold_storage: bool = False


@dataclass(frozen=True)
class InterventionType:
    """A category of food-access project and its cost model."""

    key: str
    name: str
    icon: str
    requirements: Requirements
    weights: Dict[str, float]

    setup_cost: float
    operating_cost: float
    """Recurring cost per month."""

    timeframe: str
    service_radius_m: float
    reach_multiplier: float = 1.0
    jobs_created: int = 5
    partners: Tuple[str, ...] = ()
    competitor_categories: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def annual_cost(self) -> float:
        """Setup plus twelve months of operation."""
        return self.setup_cost + self.operating_cost * 12

    def active_factors(self) -> Dict[str, float]:
        return {k: w for k, w in self.weights.items() if w > 0}


# ═══════════════════════════════════════════════════════════════════════════
# PREDEFINED TYPES
# ═══════════════════════════════════════════════════════════════════════════
_DEFAULT_TYPES = [
    InterventionType(
        key="FARMERS_MARKET",
        name="Farmers Market",
        icon="🌾",
        requirements=Requirements(
            min_area_m2=2000,
            max_slope_degrees=5,
            needs_parking=True,
            needs_transit=True,
            outdoor_space=True,
        ),
        weights={
            "accessibility": 0.25,
            "population": 0.20,
            "competition": 0.15,
            "visibility": 0.15,
            "parking": 0.10,
            "climate": 0.05,
            "equity": 0.10,
        },
        setup_cost=5000,
        operating_cost=500,
        timeframe="2-3 months",
        service_radius_m=1500,
        reach_multiplier=2.0,
        jobs_created=10,
        partners=("Local farmers association", "City markets department"),
        competitor_categories=frozenset({"marketplace"}),
    ),
    InterventionType(
        key="SUPERMARKET",
        name="Supermarket",
        icon="🏪",
        requirements=Requirements(
            min_area_m2=5000,
            max_slope_degrees=3,
            required_utilities=("electricity", "water", "sewer"),
            needs_parking=True,
            needs_loading=True,
            indoor_space=True,
        ),
        weights={
            "accessibility": 0.20,
            "population": 0.25,
            "competition": 0.20,
            "visibility": 0.10,
            "parking": 0.10,
            "infrastructure": 0.10,
            "equity": 0.05,
        },
        setup_cost=500000,
        operating_cost=50000,
        timeframe="12-18 months",
        service_radius_m=2000,
        reach_multiplier=3.0,
        jobs_created=50,
        partners=("Retail chains", "Economic development agency"),
        competitor_categories=frozenset({"supermarket"}),
    ),
    InterventionType(
        key="URBAN_FARM",
        name="Urban Farm",
        icon="🌱",
        requirements=Requirements(
            min_area_m2=500,
            max_slope_degrees=10,
            outdoor_space=True,
        ),
        weights={
            "soil": 0.25,
            "climate": 0.35,
            "water": 0.15,
            "accessibility": 0.10,
            "community": 0.10,
            "equity": 0.05,
        },
        setup_cost=10000,
        operating_cost=1000,
        timeframe="4-6 months",
        service_radius_m=1000,
        reach_multiplier=1.5,
        jobs_created=5,
        partners=("Agricultural extension", "Community colleges", "Master gardeners"),
        competitor_categories=frozenset({"farm"}),
    ),
    InterventionType(
        key="COMMUNITY_GARDEN",
        name="Community Garden",
        icon="🥬",
        requirements=Requirements(min_area_m2=200, outdoor_space=True),
        weights={
            "soil": 0.20,
            "climate": 0.15,
            "community": 0.35,
            "accessibility": 0.15,
            "equity": 0.15,
        },
        setup_cost=3000,
        operating_cost=200,
        timeframe="3-4 months",
        service_radius_m=500,
        reach_multiplier=0.5,
        jobs_created=2,
        partners=("Neighborhood associations", "Parks department"),
    ),
    InterventionType(
        key="FOOD_HUB",
        name="Food Distribution Hub",
        icon="📦",
        requirements=Requirements(
            min_area_m2=3000,
            required_utilities=("electricity", "refrigeration"),
            needs_loading=True,
            cold_storage=True,
        ),
        weights={
            "centrality": 0.25,
            "accessibility": 0.20,
            "infrastructure": 0.20,
            "competition": 0.10,
            "climate": 0.10,
            "equity": 0.15,
        },
        setup_cost=100000,
        operating_cost=10000,
        timeframe="6-9 months",
        service_radius_m=5000,
        reach_multiplier=4.0,
        jobs_created=20,
        partners=("Food distributors", "Transportation companies"),
    ),
    InterventionType(
        key="MOBILE_MARKET",
        name="Mobile Market Stop",
        icon="🚐",
        requirements=Requirements(min_area_m2=50, needs_parking=True),
        weights={
            "accessibility": 0.30,
            "population": 0.25,
            "equity": 0.20,
            "visibility": 0.15,
            "parking": 0.10,
        },
        setup_cost=500,
        operating_cost=100,
        timeframe="1 month",
        service_radius_m=800,
        reach_multiplier=1.0,
        jobs_created=3,
        partners=("Regional food bank", "Transit authority"),
    ),
    InterventionType(
        key="COMMUNITY_KITCHEN",
        name="Community Kitchen",
        icon="👨‍🍳",
        requirements=Requirements(
            min_area_m2=300,
            required_utilities=("electricity", "water", "gas", "sewer"),
            indoor_space=True,
        ),
        weights={
            "community": 0.25,
            "accessibility": 0.20,
            "population": 0.15,
            "infrastructure": 0.15,
            "equity": 0.25,
        },
        setup_cost=50000,
        operating_cost=3000,
        timeframe="4-6 months",
        service_radius_m=1200,
        reach_multiplier=1.0,
        jobs_created=8,
        partners=("Culinary schools", "Health department", "Social services"),
    ),
    InterventionType(
        key="FOOD_PANTRY",
        name="Food Pantry",
        icon="🥫",
        requirements=Requirements(min_area_m2=200, indoor_space=True),
        weights={
            "equity": 0.30,
            "population": 0.20,
            "accessibility": 0.25,
            "community": 0.15,
            "competition": 0.10,
        },
        setup_cost=5000,
        operating_cost=1000,
        timeframe="2-3 months",
        service_radius_m=1500,
        reach_multiplier=1.0,
        jobs_created=4,
        partners=("Regional food bank", "Faith-based organizations"),
        competitor_categories=frozenset({"food_bank", "social_facility"}),
    ),
    InterventionType(
        key="VERTICAL_FARM",
        name="Vertical Farm",
        icon="🏢",
        requirements=Requirements(
            min_area_m2=100,
            required_utilities=("electricity", "water"),
            indoor_space=True,
        ),
        weights={
            "infrastructure": 0.25,
            "accessibility": 0.15,
            "population": 0.20,
            "innovation": 0.15,
            "climate": 0.05,
            "equity": 0.20,
        },
        setup_cost=200000,
        operating_cost=5000,
        timeframe="12-18 months",
        service_radius_m=1200,
        reach_multiplier=1.0,
        jobs_created=15,
        partners=("Agri-tech startups", "University research programs"),
    ),
    InterventionType(
        key="AQUAPONICS",
        name="Aquaponics Facility",
        icon="🐟",
        requirements=Requirements(
            min_area_m2=500,
            required_utilities=("electricity", "water"),
        ),
        weights={
            "water": 0.25,
            "infrastructure": 0.20,
            "climate": 0.15,
            "community": 0.15,
            "innovation": 0.10,
            "equity": 0.15,
        },
        setup_cost=75000,
        operating_cost=3000,
        timeframe="9-12 months",
        service_radius_m=1000,
        reach_multiplier=1.0,
        jobs_created=8,
        partners=("Aquaculture extension", "Environmental nonprofits"),
    ),
]


class InterventionCatalog:
    """
    Lookup of intervention types by key.

    Usage:
        catalog = InterventionCatalog()
        market = catalog.get("FARMERS_MARKET")
        keys = catalog.resolve(["URBAN_FARM", "FOOD_HUB"])
    """

    def __init__(self, types: Optional[Iterable[InterventionType]] = None):
        self._types: Dict[str, InterventionType] = {}
        for intervention in (types if types is not None else _DEFAULT_TYPES):
            self.register(intervention)

    def register(self, intervention: InterventionType) -> None:
        """Add or replace a type. Unknown factor keys are allowed but logged."""
        unknown = set(intervention.weights) - set(FACTOR_KEYS)
        if unknown:
            log.debug(f"{intervention.key} uses custom factors: {sorted(unknown)}")
        total = sum(intervention.weights.values())
        if abs(total - 1.0) > 0.05:
            log.warning(f"{intervention.key} factor weights sum to {total:.2f}, expected ~1.0")
        self._types[intervention.key] = intervention

    def get(self, key: str) -> InterventionType:
        try:
            return self._types[key]
        except KeyError:
            raise ConfigurationError(f"Unknown intervention type: {key}") from None

    def keys(self) -> List[str]:
        return list(self._types)

    def resolve(self, selection: Union[str, Iterable[str]] = "all") -> List[str]:
        """Expand ``"all"`` or validate an explicit list of type keys."""
        if isinstance(selection, str):
            if selection == "all":
                return self.keys()
            selection = [selection]

        keys = list(dict.fromkeys(selection))
        if not keys:
            raise ConfigurationError("At least one intervention type must be requested")
        for key in keys:
            self.get(key)
        return keys

    def __contains__(self, key: str) -> bool:
        return key in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(self._types.values())


# Singleton
_catalog: Optional[InterventionCatalog] = None

def get_catalog() -> InterventionCatalog:
    """Get the default intervention catalog."""
    global _catalog
    if _catalog is None:
        _catalog = InterventionCatalog()
    return _catalog
