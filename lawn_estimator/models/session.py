"""Session state and result models for the capture workflow.

``SessionState`` is the only mutable model in the package: it is owned by
exactly one ``CaptureWorkflow`` and changed only by its transition
handlers. ``AreaResult`` is derived and frozen.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from lawn_estimator.core.constants import DEFAULT_CENTER, DEFAULT_MOWING_RATE_SQ_FT_PER_MIN
from lawn_estimator.models.geometry import Coordinate, ModelValidationError, Polygon


class Phase(enum.Enum):
    """Capture workflow phases, in their required order."""

    ADDRESS_ENTRY = "address_entry"
    PROPERTY_DRAWING = "property_drawing"
    EXCLUSIONS_DRAWING = "exclusions_drawing"
    RESULT = "result"


@dataclass(slots=True)
class SessionState:
    """Per-estimate state.

    Attributes:
        phase: Current workflow phase.
        address: Address text that resolved the map focus.
        center: Map focus as ``(lon, lat)``.
        property_polygon: Property boundary being drawn.
        exclusion_polygon: Exclusion being drawn.
        property_area_sq_ft: Property area saved when leaving property drawing.
        final_area_sq_ft: Net area computed when entering the result phase.
        epoch: Incremented on every restart; in-flight responses carry the
            epoch they were issued under.
    """

    phase: Phase = Phase.ADDRESS_ENTRY
    address: str = ""
    center: Coordinate = Coordinate(*DEFAULT_CENTER)
    property_polygon: Polygon | None = None
    exclusion_polygon: Polygon | None = None
    property_area_sq_ft: int | None = None
    final_area_sq_ft: int | None = None
    epoch: int = 0

    def reset(self) -> None:
        """Empty every field and return to address entry."""
        self.phase = Phase.ADDRESS_ENTRY
        self.address = ""
        self.center = Coordinate(*DEFAULT_CENTER)
        self.property_polygon = None
        self.exclusion_polygon = None
        self.property_area_sq_ft = None
        self.final_area_sq_ft = None
        self.epoch += 1


@dataclass(frozen=True, slots=True)
class AreaResult:
    """Net mowable area and estimated mowing time.

    Attributes:
        area_sq_ft: Net lawn area in square feet.
        estimated_minutes: Mowing time, rounded up to the whole minute.
    """

    area_sq_ft: int
    estimated_minutes: int

    def __post_init__(self) -> None:
        if self.area_sq_ft < 0:
            raise ModelValidationError("AreaResult", "area_sq_ft", self.area_sq_ft, "must be >= 0")
        if self.estimated_minutes < 0:
            raise ModelValidationError(
                "AreaResult", "estimated_minutes", self.estimated_minutes, "must be >= 0"
            )

    @classmethod
    def from_square_feet(
        cls,
        area_sq_ft: float,
        *,
        rate_sq_ft_per_min: float = DEFAULT_MOWING_RATE_SQ_FT_PER_MIN,
    ) -> AreaResult:
        """Round and clamp *area_sq_ft* and derive the mowing time."""
        area = max(0, round(area_sq_ft))
        return cls(area_sq_ft=area, estimated_minutes=math.ceil(area / rate_sq_ft_per_min))

    def to_dict(self) -> dict[str, int]:
        """Serialise to a plain dict."""
        return {"area_sq_ft": self.area_sq_ft, "estimated_minutes": self.estimated_minutes}
