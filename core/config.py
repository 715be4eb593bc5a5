"""
Run configuration for the placement engine.

Accepts camelCase (as sent by map clients) or snake_case keys, and
validates everything before any computation starts.
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from core.models import ConfigurationError

log = logging.getLogger(__name__)


def _pick(data: Dict[str, Any], snake: str, camel: str, default: Any) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


@dataclass
class PriorityFactors:
    """Equity and spatial-spread knobs."""
    equity_weight: float = 0.3          # boost weight for proximity to underserved zones
    min_coverage: float = 0.8           # target share of zones near a candidate (best effort)
    max_cluster_distance: float = 2000  # meters between accepted candidates

    def validate(self) -> None:
        if not 0.0 <= self.equity_weight <= 1.0:
            raise ConfigurationError(f"equity_weight must be in [0, 1], got {self.equity_weight}")
        if not 0.0 <= self.min_coverage <= 1.0:
            raise ConfigurationError(f"min_coverage must be in [0, 1], got {self.min_coverage}")
        if self.max_cluster_distance < 0:
            raise ConfigurationError(
                f"max_cluster_distance must be >= 0, got {self.max_cluster_distance}"
            )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PriorityFactors":
        data = data or {}
        defaults = cls()
        return cls(
            equity_weight=float(_pick(data, "equity_weight", "equityWeight", defaults.equity_weight)),
            min_coverage=float(_pick(data, "min_coverage", "minCoverage", defaults.min_coverage)),
            max_cluster_distance=float(_pick(
                data, "max_cluster_distance", "maxClusterDistance", defaults.max_cluster_distance
            )),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "equityWeight": self.equity_weight,
            "minCoverage": self.min_coverage,
            "maxClusterDistance": self.max_cluster_distance,
        }


@dataclass
class OptimizerSettings:
    """Genetic search parameters."""
    population_size: int = 100
    generations: int = 200
    mutation_rate: float = 0.02
    crossover_rate: float = 0.7
    elite_count: int = 5
    tournament_size: int = 3
    min_solution_size: int = 5
    max_solution_size: int = 15
    seed: Optional[int] = None

    def validate(self) -> None:
        if self.population_size < 1:
            raise ConfigurationError(f"population_size must be >= 1, got {self.population_size}")
        if self.generations < 0:
            raise ConfigurationError(f"generations must be >= 0, got {self.generations}")
        for name in ("mutation_rate", "crossover_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if not 0 <= self.elite_count <= self.population_size:
            raise ConfigurationError(
                f"elite_count must be between 0 and population_size, got {self.elite_count}"
            )
        if self.tournament_size < 1:
            raise ConfigurationError(f"tournament_size must be >= 1, got {self.tournament_size}")
        if not 1 <= self.min_solution_size <= self.max_solution_size:
            raise ConfigurationError(
                f"solution size bounds invalid: {self.min_solution_size}..{self.max_solution_size}"
            )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OptimizerSettings":
        data = data or {}
        defaults = cls()
        seed = _pick(data, "seed", "seed", defaults.seed)
        return cls(
            population_size=int(_pick(data, "population_size", "populationSize", defaults.population_size)),
            generations=int(_pick(data, "generations", "generations", defaults.generations)),
            mutation_rate=float(_pick(data, "mutation_rate", "mutationRate", defaults.mutation_rate)),
            crossover_rate=float(_pick(data, "crossover_rate", "crossoverRate", defaults.crossover_rate)),
            elite_count=int(_pick(data, "elite_count", "eliteCount", defaults.elite_count)),
            tournament_size=int(_pick(data, "tournament_size", "tournamentSize", defaults.tournament_size)),
            min_solution_size=int(_pick(data, "min_solution_size", "minSolutionSize",
                                        defaults.min_solution_size)),
            max_solution_size=int(_pick(data, "max_solution_size", "maxSolutionSize",
                                        defaults.max_solution_size)),
            seed=int(seed) if seed is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PlacementConfig:
    """
    Configuration of one placement run.

    Usage:
        config = PlacementConfig.from_dict({"gridResolution": 0.005, "maxSuggestions": 8})
        config.validate()
    """
    grid_resolution: float = 0.005      # degrees, ~500m
    max_suggestions: int = 10
    intervention_types: Union[str, List[str]] = "all"
    priority_factors: PriorityFactors = field(default_factory=PriorityFactors)
    optimizer: OptimizerSettings = field(default_factory=OptimizerSettings)
    max_concurrency: int = 8            # worker threads for collaborator calls
    default_utilities: Tuple[str, ...] = ("electricity", "water", "sewer")

    def validate(self) -> "PlacementConfig":
        if not self.grid_resolution > 0:
            raise ConfigurationError(f"grid_resolution must be > 0, got {self.grid_resolution}")
        if self.max_suggestions < 1:
            raise ConfigurationError(f"max_suggestions must be >= 1, got {self.max_suggestions}")
        if self.max_concurrency < 1:
            raise ConfigurationError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if not isinstance(self.intervention_types, str) and not list(self.intervention_types):
            raise ConfigurationError("intervention_types must be 'all' or a non-empty list")
        self.priority_factors.validate()
        self.optimizer.validate()
        return self

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlacementConfig":
        data = data or {}
        defaults = cls()

        types = _pick(data, "intervention_types", "interventionTypes", defaults.intervention_types)
        if not isinstance(types, str):
            types = list(types)

        utilities = _pick(data, "default_utilities", "defaultUtilities", defaults.default_utilities)

        return cls(
            grid_resolution=float(_pick(data, "grid_resolution", "gridResolution",
                                        defaults.grid_resolution)),
            max_suggestions=int(_pick(data, "max_suggestions", "maxSuggestions",
                                      defaults.max_suggestions)),
            intervention_types=types,
            priority_factors=PriorityFactors.from_dict(
                _pick(data, "priority_factors", "priorityFactors", None)
            ),
            optimizer=OptimizerSettings.from_dict(data.get("optimizer")),
            max_concurrency=int(_pick(data, "max_concurrency", "maxConcurrency",
                                      defaults.max_concurrency)),
            default_utilities=tuple(utilities),
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "PlacementConfig":
        """Load and validate a JSON config file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
        log.info(f"Loaded placement config from {path}")
        return cls.from_dict(data).validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gridResolution": self.grid_resolution,
            "maxSuggestions": self.max_suggestions,
            "interventionTypes": self.intervention_types,
            "priorityFactors": self.priority_factors.to_dict(),
            "optimizer": self.optimizer.to_dict(),
            "maxConcurrency": self.max_concurrency,
            "defaultUtilities": list(self.default_utilities),
        }
