"""Building-subtraction estimate (true polygon differencing).

Starting from the property polygon, removes the exclusion polygon (if
any) and then every building footprint whose extent touches the query
bounding box, one ``difference`` at a time. Area is measured once, after
the last subtraction.

This is a separate estimate from the capture workflow's scalar
subtraction. The two produce different numbers for the same drawing;
the workflow's figure is the system of record.

A subtraction that fails leaves the running region untouched and is
recorded as skipped in the per-step outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from lawn_estimator.activities.measure_area import (
    DifferenceStatus,
    area,
    bounding_box,
    difference,
    to_square_feet,
)
from lawn_estimator.core.constants import DEFAULT_MOWING_RATE_SQ_FT_PER_MIN
from lawn_estimator.models.session import AreaResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from lawn_estimator.models.geometry import BoundingBox, BuildingFootprint, Polygon, Region

logger = logging.getLogger("lawn_estimator.activities.subtract_buildings")

EXCLUSION_LABEL = "exclusion"


@dataclass(frozen=True, slots=True)
class SubtractionOutcome:
    """Per-step record of the building-subtraction estimate.

    Attributes:
        label: ``"exclusion"`` or the footprint's source id.
        status: Result of the ``difference`` call.
        reason: Failure detail for skipped steps.
    """

    label: str
    status: DifferenceStatus
    reason: str = ""

    @property
    def skipped(self) -> bool:
        return self.status is DifferenceStatus.FAILED


@dataclass(frozen=True, slots=True)
class BuildingEstimate:
    """Result of ``subtract_buildings``.

    Attributes:
        region: Lawn left after all subtractions.
        area_m2: Corrected area of ``region``.
        result: Reported square feet and mowing time.
        outcomes: One entry per attempted subtraction, in order.
    """

    region: Region
    area_m2: float
    result: AreaResult
    outcomes: tuple[SubtractionOutcome, ...] = field(default_factory=tuple)

    @property
    def applied_count(self) -> int:
        """Subtractions that changed the running region."""
        return sum(
            1
            for o in self.outcomes
            if o.status in (DifferenceStatus.SUBTRACTED, DifferenceStatus.EMPTY)
        )

    @property
    def skipped_count(self) -> int:
        """Subtractions that failed and were carried past."""
        return sum(1 for o in self.outcomes if o.skipped)


def subtract_buildings(
    property_polygon: Polygon,
    exclusion_polygon: Polygon | None,
    footprints: Sequence[BuildingFootprint],
    *,
    bbox: BoundingBox | None = None,
    rate_sq_ft_per_min: float = DEFAULT_MOWING_RATE_SQ_FT_PER_MIN,
) -> BuildingEstimate:
    """Estimate lawn area by differencing exclusion and buildings out of the property.

    Args:
        property_polygon: Property boundary.
        exclusion_polygon: Optional user-drawn exclusion.
        footprints: Building footprints, in the order returned upstream.
        bbox: Query extent; defaults to the property's bounding box.
        rate_sq_ft_per_min: Mowing rate for the time estimate.

    Returns:
        A ``BuildingEstimate``; never raises for bad geometry.
    """
    query_bbox = bbox or bounding_box(property_polygon)
    running: Region = (property_polygon,)
    outcomes: list[SubtractionOutcome] = []

    if exclusion_polygon is not None:
        running = _apply(running, exclusion_polygon, EXCLUSION_LABEL, outcomes)

    for index, footprint in enumerate(footprints):
        if not running:
            break
        if not bounding_box(footprint.polygon).intersects(query_bbox):
            continue
        label = footprint.source_id or f"building[{index}]"
        running = _apply(running, footprint.polygon, label, outcomes)

    area_m2 = area(running)
    result = AreaResult.from_square_feet(
        to_square_feet(area_m2), rate_sq_ft_per_min=rate_sq_ft_per_min
    )
    estimate = BuildingEstimate(
        region=running,
        area_m2=area_m2,
        result=result,
        outcomes=tuple(outcomes),
    )
    logger.info(
        "Building estimate | footprints=%d | applied=%d | skipped=%d | area=%.1f m² | sq_ft=%d",
        len(footprints),
        estimate.applied_count,
        estimate.skipped_count,
        area_m2,
        result.area_sq_ft,
    )
    return estimate


def _apply(
    running: Region,
    subtrahend: Polygon,
    label: str,
    outcomes: list[SubtractionOutcome],
) -> Region:
    diff = difference(running, subtrahend)
    outcomes.append(SubtractionOutcome(label=label, status=diff.status, reason=diff.reason))
    if diff.status is DifferenceStatus.FAILED:
        logger.warning("Subtraction skipped | label=%s | reason=%s", label, diff.reason)
    return diff.region
