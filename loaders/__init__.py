"""
Collaborator ports and data loaders for the Food Access Placement Engine.

Includes:
- Soil suitability (ISRIC SoilGrids)
- Vacant and underutilized parcels (OpenStreetMap Overpass)
- Climate suitability from a city climate summary (NASA POWER shape)
- Demographic grid lookups
- Per-run response cache
"""

from loaders.cache import ResponseCache
from loaders.ports import (
    ClimateScore,
    SoilAssessor,
    ClimateSuitability,
    DemographicSource,
    VulnerabilityIndex,
    VacantSpaceSource,
    CallableSoilAssessor,
    CallableVacantSpaceSource,
)
from loaders.climate import ClimateAnalyzer, ClimateSummary
from loaders.demographics import DemographicGrid, PopulationCell
from loaders.soil import SoilGridsLoader, get_soil_loader
from loaders.vacant_spaces import OverpassVacantSpaceLoader, get_vacant_space_loader

__all__ = [
    "ResponseCache",
    # Ports
    "ClimateScore",
    "SoilAssessor",
    "ClimateSuitability",
    "DemographicSource",
    "VulnerabilityIndex",
    "VacantSpaceSource",
    "CallableSoilAssessor",
    "CallableVacantSpaceSource",
    # Loaders
    "ClimateAnalyzer",
    "ClimateSummary",
    "DemographicGrid",
    "PopulationCell",
    "SoilGridsLoader",
    "get_soil_loader",
    "OverpassVacantSpaceLoader",
    "get_vacant_space_loader",
]
