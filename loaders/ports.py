"""
Collaborator ports.

The engine talks to soil, climate, demographic, vulnerability and
vacant-space providers only through these typed interfaces, so tests can
swap in mocks and callers can plug in their own data sources.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from core.models import BoundingBox, CandidateLocation, CellBounds, LatLng, SoilAssessment


@dataclass(frozen=True)
class ClimateScore:
    """Urban-farming climate suitability, each value on a 0-100 scale."""
    overall: float
    solar: float
    temperature: float
    water: float
    category: str


@runtime_checkable
class SoilAssessor(Protocol):
    def assess(self, location: LatLng) -> SoilAssessment:
        ...


@runtime_checkable
class ClimateSuitability(Protocol):
    def suitability(self, location: LatLng, bounds: Optional[CellBounds] = None) -> ClimateScore:
        ...


@runtime_checkable
class DemographicSource(Protocol):
    def population_score(self, location: LatLng) -> float:
        """Relative demand at a location, 0.0 to 1.0."""
        ...


@runtime_checkable
class VulnerabilityIndex(Protocol):
    def score(self, location: LatLng) -> float:
        """Vulnerability of the population around a location, 0 to 100."""
        ...


@runtime_checkable
class VacantSpaceSource(Protocol):
    def find_spaces(self, bbox: BoundingBox) -> List[CandidateLocation]:
        ...


class CallableSoilAssessor:
    """
    Adapts a plain ``location -> dict`` function to the SoilAssessor port.

    The dict may use ``pH``/``ph``, ``category``, ``contaminationRisk`` or
    ``contamination_risk``, and ``score`` (0-100).
    """

    def __init__(self, func: Callable[[LatLng], Dict]):
        self.func = func

    def assess(self, location: LatLng) -> SoilAssessment:
        data = self.func(location)
        if isinstance(data, SoilAssessment):
            return data
        return SoilAssessment(
            ph=float(data.get("pH", data.get("ph", 6.5))),
            category=data.get("category", "MODERATE"),
            contamination_risk=data.get("contaminationRisk", data.get("contamination_risk", "UNKNOWN")),
            score=float(data.get("score", 50)),
        )


class CallableVacantSpaceSource:
    """Adapts a plain ``bbox -> list`` function to the VacantSpaceSource port."""

    def __init__(self, func: Callable[[BoundingBox], List[CandidateLocation]]):
        self.func = func

    def find_spaces(self, bbox: BoundingBox) -> List[CandidateLocation]:
        return list(self.func(bbox))
