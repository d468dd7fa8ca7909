"""Data models and schemas.

Defines the data structures used throughout the estimator:
- Coordinate, Ring, Polygon, Region, BoundingBox, BuildingFootprint
- Phase, SessionState, AreaResult: capture workflow state
- GeocodeResult, PlaceSuggestion, LookupOutcome: address lookup
- Pydantic wire schemas for geocoder rows and GeoJSON features
"""

from lawn_estimator.models.geometry import (
    BoundingBox,
    BuildingFootprint,
    Coordinate,
    ModelValidationError,
    Polygon,
    Region,
    Ring,
)
from lawn_estimator.models.lookup import (
    GeocodeResult,
    LookupOutcome,
    LookupStatus,
    PlaceSuggestion,
)
from lawn_estimator.models.session import AreaResult, Phase, SessionState

__all__ = [
    "AreaResult",
    "BoundingBox",
    "BuildingFootprint",
    "Coordinate",
    "GeocodeResult",
    "LookupOutcome",
    "LookupStatus",
    "ModelValidationError",
    "Phase",
    "PlaceSuggestion",
    "Polygon",
    "Region",
    "Ring",
    "SessionState",
]
