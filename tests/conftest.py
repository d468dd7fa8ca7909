"""Shared pytest fixtures for the lawn estimator test suite."""

from __future__ import annotations

from typing import Any

import pytest

from lawn_estimator.core.constants import CALIBRATION_SQUARE
from lawn_estimator.models.geometry import Polygon

# ---------------------------------------------------------------------------
# Reference rings (lon, lat)
# ---------------------------------------------------------------------------

#: Same south-west corner and height as the calibration square, one tenth
#: of its width.
TENTH_SQUARE = (
    (-89.0, 40.0),
    (-89.0, 40.0009),
    (-88.99991, 40.0009),
    (-88.99991, 40.0),
)

#: Strictly inside the calibration square.
INNER_SQUARE = (
    (-88.9996, 40.0003),
    (-88.9996, 40.0006),
    (-88.9993, 40.0006),
    (-88.9993, 40.0003),
)

#: Far from the calibration square.
DISJOINT_SQUARE = (
    (-88.0, 41.0),
    (-88.0, 41.0009),
    (-87.9991, 41.0009),
    (-87.9991, 41.0),
)

#: Covers the calibration square entirely.
COVERING_SQUARE = (
    (-89.001, 39.999),
    (-89.001, 40.002),
    (-88.998, 40.002),
    (-88.998, 39.999),
)

#: Self-intersecting "bow tie" inside the calibration square's extent.
BOW_TIE = (
    (-88.9998, 40.0002),
    (-88.9994, 40.0006),
    (-88.9994, 40.0002),
    (-88.9998, 40.0006),
)


# ---------------------------------------------------------------------------
# Polygon fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def calibration_polygon() -> Polygon:
    """The ~100 m x 100 m calibration square."""
    return Polygon.from_coords(CALIBRATION_SQUARE)


@pytest.fixture()
def tenth_polygon() -> Polygon:
    return Polygon.from_coords(TENTH_SQUARE)


@pytest.fixture()
def inner_polygon() -> Polygon:
    return Polygon.from_coords(INNER_SQUARE)


@pytest.fixture()
def disjoint_polygon() -> Polygon:
    return Polygon.from_coords(DISJOINT_SQUARE)


@pytest.fixture()
def covering_polygon() -> Polygon:
    return Polygon.from_coords(COVERING_SQUARE)


@pytest.fixture()
def bow_tie_polygon() -> Polygon:
    return Polygon.from_coords(BOW_TIE)


# ---------------------------------------------------------------------------
# GeoJSON fixtures
# ---------------------------------------------------------------------------


def polygon_feature(
    ring: tuple[tuple[float, float], ...],
    properties: dict[str, Any] | None = None,
    feature_id: str | None = None,
) -> dict[str, Any]:
    """Build a GeoJSON ``Polygon`` feature from an open ring."""
    closed = [list(c) for c in (*ring, ring[0])]
    return {
        "type": "Feature",
        "id": feature_id,
        "geometry": {"type": "Polygon", "coordinates": [closed]},
        "properties": properties if properties is not None else {},
    }


@pytest.fixture()
def feature_factory() -> Any:
    """The ``polygon_feature`` helper, for tests that build their own collections."""
    return polygon_feature


@pytest.fixture()
def building_collection() -> dict[str, Any]:
    """One building inside the calibration square, plus a non-building."""
    return {
        "type": "FeatureCollection",
        "features": [
            polygon_feature(INNER_SQUARE, {"building": "house"}, "way/1"),
            polygon_feature(TENTH_SQUARE, {"landuse": "grass"}, "way/2"),
        ],
    }
