"""
Core module for the Food Access Placement Engine.
Contains data models, the intervention catalog and run configuration.

The pipeline stages live in their own modules (grid, scoring, equity,
optimizer, recommendations, impact) and are wired together by
``core.engine.PlacementEngine``.
"""

from core.models import (
    BoundingBox,
    CandidateLocation,
    ConfigurationError,
    LatLng,
    Outlet,
    Placement,
    PlacementResult,
    Recommendation,
    SoilAssessment,
)
from core.interventions import InterventionCatalog, InterventionType, Requirements, get_catalog
from core.config import PlacementConfig, PriorityFactors, OptimizerSettings
from core.diagnostics import Diagnostics

__all__ = [
    # Models
    "BoundingBox",
    "CandidateLocation",
    "ConfigurationError",
    "LatLng",
    "Outlet",
    "Placement",
    "PlacementResult",
    "Recommendation",
    "SoilAssessment",
    # Catalog
    "InterventionCatalog",
    "InterventionType",
    "Requirements",
    "get_catalog",
    # Configuration
    "PlacementConfig",
    "PriorityFactors",
    "OptimizerSettings",
    "Diagnostics",
]
