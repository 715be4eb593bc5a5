"""
Combinatorial Placement Optimizer

Genetic search over subsets of the declustered candidate pool. Each
member is tagged with its best (adjusted) intervention type; a solution is
an immutable tuple of distinct members scored by a five-term fitness:

    0.25 coverage + 0.25 equity + 0.20 efficiency + 0.15 diversity + 0.15 synergy
"""

import random
import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from core.config import OptimizerSettings
from core.geo import cells_within_radius, distance_m, estimate_total_cells, gini
from core.interventions import InterventionCatalog, get_catalog
from core.models import (
    BoundingBox,
    CandidateLocation,
    EstimatedImpact,
    LatLng,
    Placement,
    ScoredCandidate,
)

log = logging.getLogger(__name__)

FITNESS_WEIGHTS = {
    "coverage": 0.25,
    "equity": 0.25,
    "efficiency": 0.20,
    "diversity": 0.15,
    "synergy": 0.15,
}

LOG_EVERY = 20


@dataclass(frozen=True)
class Gene:
    """A candidate with its assigned type and the values fitness needs."""
    id: str
    center: LatLng
    type_key: str
    score: float
    population: int
    annual_cost: float
    service_radius_m: float
    candidate: ScoredCandidate = field(compare=False, hash=False, repr=False)


Solution = Tuple[Gene, ...]


def pair_synergy(type_a: str, type_b: str, distance: float) -> float:
    """Complementarity of two placements, 0.0 to 1.0."""
    if type_a == type_b:
        # Same type only helps when spread out
        return 0.5 if distance > 2000 else 0.0
    if {type_a, type_b} == {"URBAN_FARM", "FARMERS_MARKET"}:
        return 1.0 if distance < 1000 else 0.5
    if "FOOD_HUB" in (type_a, type_b):
        return 0.7 if distance < 5000 else 0.3
    return 0.3


def make_gene(candidate: ScoredCandidate, catalog: InterventionCatalog) -> Gene:
    best = candidate.best_use
    intervention = catalog.get(best.type_key)
    impact = best.impact or EstimatedImpact(0, 0.0, 0.0, 0.0)
    return Gene(
        id=candidate.id,
        center=candidate.center,
        type_key=best.type_key,
        score=best.effective_score,
        population=impact.population,
        annual_cost=intervention.annual_cost,
        service_radius_m=intervention.service_radius_m,
        candidate=candidate,
    )


@dataclass
class OptimizationResult:
    solution: Solution
    fitness: float
    breakdown: Dict[str, float]
    history: List[float]
    placements: List[Placement]

    def to_dict(self) -> Dict:
        return {
            "fitness": self.fitness,
            "breakdown": dict(self.breakdown),
            "generations": len(self.history),
            "history": list(self.history),
            "solutionSize": len(self.solution),
        }


class FitnessEvaluator:
    """
    Five-term fitness over a solution.

    Members are sorted by id before evaluation, so the value is identical
    for any ordering of the same members. Results are memoized per member set.
    """

    def __init__(self, bbox: BoundingBox, catalog: Optional[InterventionCatalog] = None):
        self.bbox = bbox.as_tuple()
        self.catalog = catalog if catalog is not None else get_catalog()
        self.total_cells = estimate_total_cells(self.bbox)
        self._cells: Dict[str, Set[Tuple[int, int]]] = {}
        self._memo: Dict[FrozenSet[str], Tuple[float, Dict[str, float]]] = {}

    def _cells_for(self, gene: Gene) -> Set[Tuple[int, int]]:
        cells = self._cells.get(gene.id)
        if cells is None:
            cells = cells_within_radius(gene.center.lat, gene.center.lng,
                                        gene.service_radius_m, self.bbox)
            self._cells[gene.id] = cells
        return cells

    def coverage(self, members: Sequence[Gene]) -> float:
        covered: Set[Tuple[int, int]] = set()
        for gene in members:
            covered |= self._cells_for(gene)
        return min(1.0, len(covered) / self.total_cells)

    def equity(self, members: Sequence[Gene]) -> float:
        return 1 - gini([g.population for g in members])

    def efficiency(self, members: Sequence[Gene]) -> float:
        # Not normalized; a cheap, high-reach solution may exceed 1
        cost = sum(g.annual_cost for g in members)
        if cost <= 0:
            return 0.0
        return sum(g.population * 100 for g in members) / cost

    def diversity(self, members: Sequence[Gene]) -> float:
        if not len(self.catalog):
            return 0.0
        return len({g.type_key for g in members}) / len(self.catalog)

    def synergy(self, members: Sequence[Gene]) -> float:
        pairs = list(combinations(members, 2))
        if not pairs:
            return 0.0
        total = sum(pair_synergy(a.type_key, b.type_key, distance_m(a.center, b.center))
                    for a, b in pairs)
        return total / len(pairs)

    def breakdown(self, solution: Sequence[Gene]) -> Tuple[float, Dict[str, float]]:
        if not solution:
            return 0.0, {key: 0.0 for key in FITNESS_WEIGHTS}

        key = frozenset(g.id for g in solution)
        cached = self._memo.get(key)
        if cached is not None:
            return cached

        members = sorted(solution, key=lambda g: g.id)
        terms = {
            "coverage": self.coverage(members),
            "equity": self.equity(members),
            "efficiency": self.efficiency(members),
            "diversity": self.diversity(members),
            "synergy": self.synergy(members),
        }
        fitness = sum(terms[name] * weight for name, weight in FITNESS_WEIGHTS.items())
        self._memo[key] = (fitness, terms)
        return fitness, terms

    def __call__(self, solution: Sequence[Gene]) -> float:
        return self.breakdown(solution)[0]


class CombinatorialOptimizer:
    """
    Seedable genetic optimizer.

    Usage:
        optimizer = CombinatorialOptimizer(bbox, settings, rng=random.Random(42))
        result = optimizer.optimize(pool, max_suggestions=10)
    """

    def __init__(
        self,
        bbox: BoundingBox,
        settings: Optional[OptimizerSettings] = None,
        catalog: Optional[InterventionCatalog] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or OptimizerSettings()
        self.catalog = catalog if catalog is not None else get_catalog()
        self.rng = rng or random.Random(self.settings.seed)
        self.fitness = FitnessEvaluator(bbox, self.catalog)
        self.pool: List[Gene] = []
        self.min_size = self.settings.min_solution_size
        self.max_size = self.settings.max_solution_size

    # ═══════════════════════════════════════════════════════════════════════
    # GENETIC OPERATORS
    # ═══════════════════════════════════════════════════════════════════════
    def random_solution(self) -> Solution:
        size = min(self.rng.randint(self.min_size, self.max_size), len(self.pool))
        return tuple(self.rng.sample(self.pool, size))

    def _unused(self, solution: Solution) -> List[Gene]:
        used = {g.id for g in solution}
        return [g for g in self.pool if g.id not in used]

    def repair(self, solution: Solution) -> Solution:
        """Trim or top up a solution to the size bounds."""
        if len(solution) > self.max_size:
            solution = tuple(self.rng.sample(solution, self.max_size))
        missing = self.min_size - len(solution)
        if missing > 0:
            unused = self._unused(solution)
            solution = solution + tuple(self.rng.sample(unused, min(missing, len(unused))))
        return solution

    def crossover(self, parent_a: Solution, parent_b: Solution) -> Solution:
        """Uniform crossover over the concatenated parents, de-duplicated by id."""
        child = []
        used = set()
        for gene in parent_a + parent_b:
            if gene.id not in used and self.rng.random() < 0.5:
                child.append(gene)
                used.add(gene.id)
        return self.repair(tuple(child))

    def mutate(self, solution: Solution) -> Solution:
        if self.rng.random() >= self.settings.mutation_rate:
            return solution

        if self.rng.random() < 0.5 and len(solution) > max(3, self.min_size):
            index = self.rng.randrange(len(solution))
            return solution[:index] + solution[index + 1:]

        unused = self._unused(solution)
        if unused and len(solution) < self.max_size:
            return solution + (self.rng.choice(unused),)
        return solution

    def tournament(self, evaluated: List[Tuple[Solution, float]]) -> Solution:
        contestants = [self.rng.choice(evaluated) for _ in range(self.settings.tournament_size)]
        return max(contestants, key=lambda pair: pair[1])[0]

    def _evaluate(self, population: List[Solution]) -> List[Tuple[Solution, float]]:
        evaluated = [(solution, self.fitness(solution)) for solution in population]
        evaluated.sort(key=lambda pair: pair[1], reverse=True)
        return evaluated

    # ═══════════════════════════════════════════════════════════════════════
    # SEARCH
    # ═══════════════════════════════════════════════════════════════════════
    def evolve(self, pool: Sequence[ScoredCandidate]) -> Tuple[Solution, List[float]]:
        """Run the generation loop; returns the best final solution and history."""
        self.pool = [make_gene(c, self.catalog) for c in pool if c.best_use is not None]
        if not self.pool:
            return (), []

        self.min_size = min(self.settings.min_solution_size, len(self.pool))
        self.max_size = min(self.settings.max_solution_size, len(self.pool))

        population = [self.random_solution() for _ in range(self.settings.population_size)]
        history: List[float] = []

        for generation in range(self.settings.generations):
            evaluated = self._evaluate(population)
            history.append(evaluated[0][1])

            next_population = [s for s, _ in evaluated[:self.settings.elite_count]]
            while len(next_population) < self.settings.population_size:
                parent = self.tournament(evaluated)
                if self.rng.random() < self.settings.crossover_rate:
                    child = self.crossover(parent, self.tournament(evaluated))
                else:
                    child = parent
                next_population.append(self.mutate(child))
            population = next_population

            if generation % LOG_EVERY == 0:
                log.info(f"GA generation {generation}: best fitness = {evaluated[0][1]:.3f}")

        best, best_fitness = self._evaluate(population)[0]
        log.info(f"GA finished after {self.settings.generations} generations: "
                 f"fitness = {best_fitness:.3f}, {len(best)} placements")
        return best, history

    @staticmethod
    def extract_placements(solution: Solution, max_suggestions: int) -> List[Placement]:
        """Best-scoring members first, capped at ``max_suggestions``."""
        placements = []
        for gene in solution:
            type_score = gene.candidate.scores[gene.type_key]
            location: CandidateLocation = gene.candidate.candidate
            placements.append(Placement(
                id=gene.id,
                location=gene.center,
                bounds=location.bounds,
                type_key=gene.type_key,
                score=type_score.effective_score,
                factors=dict(type_score.factors),
                impact=type_score.impact,
                attributes=location.attributes,
            ))
        placements.sort(key=lambda p: p.score, reverse=True)
        return placements[:max_suggestions]

    def optimize(self, pool: Sequence[ScoredCandidate], max_suggestions: int) -> OptimizationResult:
        solution, history = self.evolve(pool)
        fitness, breakdown = self.fitness.breakdown(solution)
        return OptimizationResult(
            solution=solution,
            fitness=fitness,
            breakdown=breakdown,
            history=history,
            placements=self.extract_placements(solution, max_suggestions),
        )
