"""Geometry value types shared by the engine, filter, and workflow.

- ``Coordinate``: ``(lon, lat)`` pair in WGS 84 degrees
- ``Ring``: closed coordinate sequence; the closing point is enforced here
- ``Polygon``: one exterior ``Ring`` plus holes produced by differencing
- ``Region``: multi-part result of differencing, a tuple of ``Polygon``
- ``BoundingBox``: ``(west, south, east, north)`` derived from a polygon
- ``BuildingFootprint``: an externally sourced building ``Polygon``

Design notes:
- All models are frozen dataclasses; a ring is normalised once at
  construction so no caller has to care whether the input repeated the
  first vertex.
- Invalid values raise ``ModelValidationError`` (a ``ValueError``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple

from lawn_estimator.core.exceptions import EstimatorError

#: Minimum distinct vertices for a polygon ring.
MIN_RING_VERTICES = 3


class ModelValidationError(ValueError, EstimatorError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        EstimatorError.__init__(self, formatted)


class Coordinate(NamedTuple):
    """A WGS 84 position in degrees."""

    lon: float
    lat: float


@dataclass(frozen=True, slots=True)
class Ring:
    """A closed linear ring.

    ``coords`` always ends with a copy of its first coordinate, whether or
    not the input did.

    Attributes:
        coords: Closed coordinate sequence (at least four points).
    """

    coords: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        points = tuple(_to_coordinate(c) for c in self.coords)
        if points and points[0] != points[-1]:
            points = (*points, points[0])
        distinct = len(set(points[:-1]))
        if distinct < MIN_RING_VERTICES:
            raise ModelValidationError(
                "Ring",
                "coords",
                len(points),
                f"needs at least {MIN_RING_VERTICES} distinct vertices, got {distinct}",
            )
        object.__setattr__(self, "coords", points)

    @property
    def open_coords(self) -> tuple[Coordinate, ...]:
        """Vertices without the closing duplicate."""
        return self.coords[:-1]

    def __len__(self) -> int:
        return len(self.coords)


@dataclass(frozen=True, slots=True)
class Polygon:
    """A simple polygon.

    User-drawn polygons have no holes; a hole appears only when polygon
    differencing subtracts a shape lying strictly inside another.

    Attributes:
        exterior: Outer boundary.
        holes: Interior rings left by differencing.
    """

    exterior: Ring
    holes: tuple[Ring, ...] = ()

    @classmethod
    def from_coords(
        cls,
        exterior: Iterable[Sequence[float]],
        holes: Iterable[Iterable[Sequence[float]]] = (),
    ) -> Polygon:
        """Build a polygon from raw ``(lon, lat)`` pairs.

        Raises:
            ModelValidationError: If a ring is too short or a coordinate
                is out of range.
        """
        return cls(
            exterior=Ring(tuple(exterior)),  # type: ignore[arg-type]
            holes=tuple(Ring(tuple(h)) for h in holes),  # type: ignore[arg-type]
        )

    @classmethod
    def from_geojson(cls, geometry: dict[str, Any]) -> Polygon:
        """Build a polygon from a GeoJSON ``Polygon`` geometry mapping.

        Raises:
            ModelValidationError: If the geometry is not a polygon or its
                rings are invalid.
        """
        geom_type = geometry.get("type")
        if geom_type != "Polygon":
            raise ModelValidationError("Polygon", "type", geom_type, "must be 'Polygon'")
        rings = geometry.get("coordinates") or []
        if not rings:
            raise ModelValidationError("Polygon", "coordinates", rings, "must not be empty")
        return cls.from_coords(rings[0], rings[1:])

    def to_geojson(self) -> dict[str, Any]:
        """Serialise to a GeoJSON ``Polygon`` geometry mapping."""
        return {
            "type": "Polygon",
            "coordinates": [
                [list(c) for c in ring.coords] for ring in (self.exterior, *self.holes)
            ],
        }

    @property
    def vertex_count(self) -> int:
        """Number of distinct vertices in the exterior ring."""
        return len(self.exterior.open_coords)


#: Multi-part polygonal area; the empty tuple is "no region left".
Region = tuple[Polygon, ...]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned extent in degrees.

    Attributes:
        west: Minimum longitude.
        south: Minimum latitude.
        east: Maximum longitude.
        north: Maximum latitude.
    """

    west: float
    south: float
    east: float
    north: float

    def __post_init__(self) -> None:
        if self.west > self.east:
            raise ModelValidationError(
                "BoundingBox", "west", self.west, f"must be <= east ({self.east})"
            )
        if self.south > self.north:
            raise ModelValidationError(
                "BoundingBox", "south", self.south, f"must be <= north ({self.north})"
            )

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return ``(west, south, east, north)``."""
        return (self.west, self.south, self.east, self.north)

    def to_overpass(self) -> str:
        """Render the ``south,west,north,east`` form used by building queries."""
        return f"{self.south},{self.west},{self.north},{self.east}"

    def intersects(self, other: BoundingBox) -> bool:
        """Whether the two boxes share any point (edges included)."""
        return not (
            other.west > self.east
            or other.east < self.west
            or other.south > self.north
            or other.north < self.south
        )


@dataclass(frozen=True, slots=True)
class BuildingFootprint:
    """A building ground-plan polygon from an external source.

    Attributes:
        polygon: Footprint outline.
        source_id: Identifier in the upstream dataset (e.g. ``"way/123"``).
        tags: Upstream properties (``building``, ``name``, ...) as
            ``(key, value)`` pairs in input order. A mapping is accepted
            and converted.
    """

    polygon: Polygon
    source_id: str = ""
    tags: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        pairs = self.tags.items() if isinstance(self.tags, Mapping) else self.tags
        object.__setattr__(self, "tags", tuple((str(k), str(v)) for k, v in pairs))

    def tag(self, key: str, default: str | None = None) -> str | None:
        """Value of upstream property *key*, or *default*."""
        for name, value in self.tags:
            if name == key:
                return value
        return default

    def tag_dict(self) -> dict[str, str]:
        """A fresh mutable copy of the tags."""
        return dict(self.tags)


# ---------------------------------------------------------------------------
# Validation helpers (module-private)
# ---------------------------------------------------------------------------


def _to_coordinate(value: Sequence[float]) -> Coordinate:
    """Coerce a ``(lon, lat)`` pair and check WGS 84 ranges."""
    if len(value) < 2:  # noqa: PLR2004
        raise ModelValidationError("Coordinate", "value", value, "must be a (lon, lat) pair")
    lon, lat = float(value[0]), float(value[1])
    if not -180.0 <= lon <= 180.0:
        raise ModelValidationError("Coordinate", "lon", lon, "must be between -180 and 180")
    if not -90.0 <= lat <= 90.0:
        raise ModelValidationError("Coordinate", "lat", lat, "must be between -90 and 90")
    return Coordinate(lon, lat)
