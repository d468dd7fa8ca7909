"""Geometry engine: polygon area, differencing, and bounding boxes.

Area is geodesic (``pyproj.Geod`` on the WGS 84 ellipsoid) and is scaled
by a fixed correction factor calibrated so that the reference square in
``core.constants`` measures exactly 10,000 m². The same factor applies to
every area figure: property, exclusion, and differenced regions.

Differencing runs in planar lon/lat space with Shapely. It is
best-effort: degenerate input or a GEOS failure yields a ``FAILED``
result that hands the minuend back unchanged, never an exception.

Unit policy:
- Every function here works in square metres except the explicit
  ``*_sq_ft`` helpers.
- Rounding to whole square feet happens only in ``to_reported_sq_ft``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from pyproj import Geod
from shapely.errors import GEOSException
from shapely.geometry import MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import explain_validity

from lawn_estimator.core.constants import (
    CALIBRATION_AREA_M2,
    CALIBRATION_SQUARE,
    SQ_FEET_PER_SQ_METRE,
)
from lawn_estimator.core.exceptions import GeometryDegenerateError
from lawn_estimator.models.geometry import (
    BoundingBox,
    ModelValidationError,
    Polygon,
    Region,
    Ring,
)

logger = logging.getLogger("lawn_estimator.activities.measure_area")

_GEOD = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Difference result
# ---------------------------------------------------------------------------


class DifferenceStatus(enum.Enum):
    """How a subtraction turned out.

    Values:
        SUBTRACTED: The subtrahend removed part of the minuend.
        NO_OVERLAP: Nothing to remove; minuend returned unchanged.
        EMPTY:      The subtrahend covered the whole minuend.
        FAILED:     Degenerate input or GEOS error; minuend returned unchanged.
    """

    SUBTRACTED = "subtracted"
    NO_OVERLAP = "no_overlap"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DifferenceResult:
    """Outcome of ``difference``.

    Attributes:
        status: What happened.
        region: The remaining area; ``()`` only when ``status`` is ``EMPTY``.
        reason: Why the subtraction failed, when it did.
    """

    status: DifferenceStatus
    region: Region
    reason: str = ""

    @property
    def changed(self) -> bool:
        """Whether the minuend was modified."""
        return self.status in (DifferenceStatus.SUBTRACTED, DifferenceStatus.EMPTY)


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------


def raw_area_m2(geometry: Polygon | Region) -> float:
    """Uncorrected geodesic area in square metres.

    Holes are subtracted. Parts that are not valid polygons
    (self-intersecting, zero-area) contribute 0 and are logged.
    """
    total = 0.0
    for part in _as_region(geometry):
        try:
            _valid_shape(part)
        except GeometryDegenerateError as exc:
            logger.warning("Degenerate polygon measured as 0 m² | reason=%s", exc.message)
            continue
        part_area = _ring_area_m2(part.exterior)
        for hole in part.holes:
            part_area -= _ring_area_m2(hole)
        total += max(0.0, part_area)
    return total


def area(geometry: Polygon | Region) -> float:
    """Corrected area in square metres (never negative)."""
    return raw_area_m2(geometry) * CORRECTION_FACTOR


def to_square_feet(sq_m: float) -> float:
    """Convert square metres to square feet without rounding."""
    return sq_m * SQ_FEET_PER_SQ_METRE


def to_reported_sq_ft(sq_m: float) -> int:
    """Convert square metres to whole square feet for reporting."""
    return round(to_square_feet(sq_m))


def area_sq_ft(geometry: Polygon | Region) -> int:
    """Corrected area of *geometry* in whole square feet."""
    return to_reported_sq_ft(area(geometry))


# ---------------------------------------------------------------------------
# Difference
# ---------------------------------------------------------------------------


def difference(minuend: Polygon | Region, subtrahend: Polygon) -> DifferenceResult:
    """Return the part of *minuend* not covered by *subtrahend*.

    Args:
        minuend: A polygon, or a region left by earlier subtractions.
        subtrahend: The polygon to remove.

    Returns:
        A ``DifferenceResult``. For ``NO_OVERLAP`` and ``FAILED`` the
        region is the minuend exactly as given.
    """
    parts = _as_region(minuend)
    if not parts:
        return DifferenceResult(DifferenceStatus.EMPTY, ())

    try:
        base = unary_union([_valid_shape(p) for p in parts])
        cutter = _valid_shape(subtrahend)
    except GeometryDegenerateError as exc:
        logger.warning("Difference skipped | reason=%s", exc.message)
        return DifferenceResult(DifferenceStatus.FAILED, parts, reason=exc.message)

    try:
        if not base.intersects(cutter) or base.intersection(cutter).area == 0:
            return DifferenceResult(DifferenceStatus.NO_OVERLAP, parts)
        remainder = base.difference(cutter)
    except GEOSException as exc:
        logger.warning("Difference failed in GEOS | error=%s", exc)
        return DifferenceResult(DifferenceStatus.FAILED, parts, reason=str(exc))

    region = _region_from_shape(remainder)
    if not region:
        return DifferenceResult(DifferenceStatus.EMPTY, ())
    return DifferenceResult(DifferenceStatus.SUBTRACTED, region)


# ---------------------------------------------------------------------------
# Bounding box
# ---------------------------------------------------------------------------


def bounding_box(geometry: Polygon | Region) -> BoundingBox:
    """Tight bounding box of the exterior ring(s).

    Raises:
        GeometryDegenerateError: If *geometry* is an empty region.
    """
    parts = _as_region(geometry)
    if not parts:
        msg = "Cannot compute the bounding box of an empty region"
        raise GeometryDegenerateError(msg)
    lons = [c.lon for p in parts for c in p.exterior.coords]
    lats = [c.lat for p in parts for c in p.exterior.coords]
    return BoundingBox(west=min(lons), south=min(lats), east=max(lons), north=max(lats))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_region(geometry: Polygon | Region) -> Region:
    if isinstance(geometry, Polygon):
        return (geometry,)
    return tuple(geometry)


def _ring_area_m2(ring: Ring) -> float:
    """Absolute geodesic area enclosed by *ring* (winding-order agnostic)."""
    lons = [c.lon for c in ring.open_coords]
    lats = [c.lat for c in ring.open_coords]
    ring_area, _perimeter = _GEOD.polygon_area_perimeter(lons, lats)
    return abs(ring_area)


def _valid_shape(polygon: Polygon) -> ShapelyPolygon:
    """Convert to Shapely, rejecting shapes no area or difference can use.

    Raises:
        GeometryDegenerateError: If the polygon is invalid or has no area.
    """
    shape = ShapelyPolygon(
        polygon.exterior.coords,
        holes=[hole.coords for hole in polygon.holes],
    )
    if shape.is_empty or shape.area == 0:
        msg = "polygon has zero area"
        raise GeometryDegenerateError(msg)
    if not shape.is_valid:
        raise GeometryDegenerateError(explain_validity(shape))
    return shape


def _region_from_shape(shape: BaseGeometry) -> Region:
    """Collect the polygonal parts of a Shapely result, dropping slivers."""
    if shape.is_empty:
        return ()
    if isinstance(shape, ShapelyPolygon):
        candidates = [shape]
    elif isinstance(shape, MultiPolygon):
        candidates = list(shape.geoms)
    elif hasattr(shape, "geoms"):
        return tuple(p for g in shape.geoms for p in _region_from_shape(g))
    else:
        return ()

    region: list[Polygon] = []
    for candidate in candidates:
        if candidate.area == 0:
            continue
        try:
            region.append(
                Polygon.from_coords(
                    candidate.exterior.coords,
                    [interior.coords for interior in candidate.interiors],
                )
            )
        except ModelValidationError:
            logger.debug("Dropped sliver from difference result | area=%g", candidate.area)
    return tuple(region)


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------

CORRECTION_FACTOR: float = CALIBRATION_AREA_M2 / raw_area_m2(
    Polygon.from_coords(CALIBRATION_SQUARE)
)
"""Ratio applied to every raw area so the calibration square reads 10,000 m²."""
