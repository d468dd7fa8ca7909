"""Tests for geometry, session, and lookup models.

Covers ring normalisation, coordinate validation, GeoJSON conversion,
bounding boxes, session reset, and the area result.
"""

from __future__ import annotations

import dataclasses

import pytest

from lawn_estimator.core.constants import CALIBRATION_SQUARE, DEFAULT_CENTER
from lawn_estimator.core.exceptions import EstimatorError
from lawn_estimator.models.geometry import (
    BoundingBox,
    BuildingFootprint,
    Coordinate,
    ModelValidationError,
    Polygon,
    Ring,
)
from lawn_estimator.models.lookup import LookupOutcome, LookupStatus
from lawn_estimator.models.session import AreaResult, Phase, SessionState

# ---------------------------------------------------------------------------
# Ring / Polygon
# ---------------------------------------------------------------------------


class TestRing:
    def test_closing_point_appended(self) -> None:
        ring = Ring(((0.0, 0.0), (1.0, 0.0), (1.0, 1.0)))  # type: ignore[arg-type]
        assert len(ring) == 4
        assert ring.coords[0] == ring.coords[-1]

    def test_closing_point_not_duplicated(self) -> None:
        ring = Ring(CALIBRATION_SQUARE)  # type: ignore[arg-type]
        assert len(ring) == len(CALIBRATION_SQUARE)

    def test_open_coords_drops_closing_point(self) -> None:
        ring = Ring(CALIBRATION_SQUARE)  # type: ignore[arg-type]
        assert len(ring.open_coords) == 4

    def test_coordinates_are_named(self) -> None:
        ring = Ring(CALIBRATION_SQUARE)  # type: ignore[arg-type]
        assert ring.coords[0] == Coordinate(lon=-89.0, lat=40.0)

    def test_too_few_vertices_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="at least 3 distinct"):
            Ring(((0.0, 0.0), (1.0, 1.0)))  # type: ignore[arg-type]

    def test_repeated_vertices_do_not_count(self) -> None:
        with pytest.raises(ModelValidationError):
            Ring(((0.0, 0.0), (1.0, 1.0), (1.0, 1.0), (0.0, 0.0)))  # type: ignore[arg-type]

    def test_longitude_out_of_range(self) -> None:
        with pytest.raises(ModelValidationError, match="lon"):
            Ring(((181.0, 0.0), (1.0, 0.0), (1.0, 1.0)))  # type: ignore[arg-type]

    def test_latitude_out_of_range(self) -> None:
        with pytest.raises(ModelValidationError, match="lat"):
            Ring(((0.0, -91.0), (1.0, 0.0), (1.0, 1.0)))  # type: ignore[arg-type]

    def test_short_coordinate_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="pair"):
            Ring(((0.0,), (1.0, 0.0), (1.0, 1.0)))  # type: ignore[arg-type]

    def test_frozen(self) -> None:
        ring = Ring(CALIBRATION_SQUARE)  # type: ignore[arg-type]
        with pytest.raises(dataclasses.FrozenInstanceError):
            ring.coords = ()  # type: ignore[misc]


class TestPolygon:
    def test_vertex_count(self, calibration_polygon: Polygon) -> None:
        assert calibration_polygon.vertex_count == 4
        assert calibration_polygon.holes == ()

    def test_geojson_round_trip(self, calibration_polygon: Polygon) -> None:
        geojson = calibration_polygon.to_geojson()
        assert geojson["type"] == "Polygon"
        assert geojson["coordinates"][0][0] == geojson["coordinates"][0][-1]
        assert Polygon.from_geojson(geojson) == calibration_polygon

    def test_from_geojson_with_hole(self) -> None:
        geometry = {
            "type": "Polygon",
            "coordinates": [
                [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]],
                [[2, 2], [4, 2], [4, 4], [2, 2]],
            ],
        }
        polygon = Polygon.from_geojson(geometry)
        assert len(polygon.holes) == 1

    def test_from_geojson_rejects_other_types(self) -> None:
        with pytest.raises(ModelValidationError, match="Polygon"):
            Polygon.from_geojson({"type": "Point", "coordinates": [0, 0]})

    def test_from_geojson_rejects_empty(self) -> None:
        with pytest.raises(ModelValidationError, match="coordinates"):
            Polygon.from_geojson({"type": "Polygon", "coordinates": []})

    def test_validation_error_is_value_error_and_estimator_error(self) -> None:
        with pytest.raises(ModelValidationError) as exc_info:
            Polygon.from_coords([(0.0, 0.0)])
        assert isinstance(exc_info.value, ValueError)
        assert isinstance(exc_info.value, EstimatorError)
        assert exc_info.value.model == "Ring"
        assert exc_info.value.field_name == "coords"


# ---------------------------------------------------------------------------
# BoundingBox
# ---------------------------------------------------------------------------


class TestBoundingBox:
    def test_inverted_longitudes_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="west"):
            BoundingBox(west=1.0, south=0.0, east=0.0, north=1.0)

    def test_inverted_latitudes_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="south"):
            BoundingBox(west=0.0, south=1.0, east=1.0, north=0.0)

    def test_intersects_overlapping(self) -> None:
        a = BoundingBox(0.0, 0.0, 2.0, 2.0)
        b = BoundingBox(1.0, 1.0, 3.0, 3.0)
        assert a.intersects(b)
        assert b.intersects(a)

    def test_intersects_touching_edge(self) -> None:
        assert BoundingBox(0.0, 0.0, 1.0, 1.0).intersects(BoundingBox(1.0, 0.0, 2.0, 1.0))

    def test_disjoint(self) -> None:
        assert not BoundingBox(0.0, 0.0, 1.0, 1.0).intersects(BoundingBox(2.0, 2.0, 3.0, 3.0))


# ---------------------------------------------------------------------------
# BuildingFootprint
# ---------------------------------------------------------------------------


class TestBuildingFootprint:
    def test_mapping_tags_are_frozen_into_pairs(self) -> None:
        source = {"building": "house", "levels": 2}
        footprint = BuildingFootprint(
            polygon=Polygon.from_coords(CALIBRATION_SQUARE), source_id="way/1", tags=source
        )
        source["building"] = "shed"

        assert footprint.tags == (("building", "house"), ("levels", "2"))
        assert footprint.tag("building") == "house"
        assert footprint.tag("name") is None
        assert footprint.tag("name", "") == ""

    def test_tag_dict_is_a_copy(self) -> None:
        footprint = BuildingFootprint(
            polygon=Polygon.from_coords(CALIBRATION_SQUARE), tags={"building": "yes"}
        )
        tags = footprint.tag_dict()
        tags["building"] = "no"
        assert footprint.tag("building") == "yes"

    def test_hashable_and_frozen(self) -> None:
        polygon = Polygon.from_coords(CALIBRATION_SQUARE)
        a = BuildingFootprint(polygon=polygon, source_id="way/1", tags={"building": "yes"})
        b = BuildingFootprint(polygon=polygon, source_id="way/1", tags=(("building", "yes"),))

        assert a == b
        assert len({a, b}) == 1
        with pytest.raises(dataclasses.FrozenInstanceError):
            a.tags = ()  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class TestSessionState:
    def test_initial_state(self) -> None:
        state = SessionState()
        assert state.phase is Phase.ADDRESS_ENTRY
        assert state.address == ""
        assert state.center == Coordinate(*DEFAULT_CENTER)
        assert state.property_polygon is None
        assert state.exclusion_polygon is None
        assert state.property_area_sq_ft is None
        assert state.final_area_sq_ft is None
        assert state.epoch == 0

    def test_reset_clears_fields_and_bumps_epoch(self, calibration_polygon: Polygon) -> None:
        state = SessionState(
            phase=Phase.RESULT,
            address="1 Main St",
            center=Coordinate(-80.0, 35.0),
            property_polygon=calibration_polygon,
            exclusion_polygon=calibration_polygon,
            property_area_sq_ft=100,
            final_area_sq_ft=50,
        )
        state.reset()

        assert state == SessionState(epoch=1)


class TestAreaResult:
    def test_scenario_figures(self) -> None:
        result = AreaResult.from_square_feet(107_639)
        assert result == AreaResult(area_sq_ft=107_639, estimated_minutes=431)

    def test_minutes_round_up(self) -> None:
        assert AreaResult.from_square_feet(251).estimated_minutes == 2
        assert AreaResult.from_square_feet(250).estimated_minutes == 1

    def test_zero_area(self) -> None:
        assert AreaResult.from_square_feet(0) == AreaResult(0, 0)

    def test_negative_clamped(self) -> None:
        assert AreaResult.from_square_feet(-42.0) == AreaResult(0, 0)

    def test_custom_rate(self) -> None:
        assert AreaResult.from_square_feet(1_000, rate_sq_ft_per_min=100).estimated_minutes == 10

    def test_negative_fields_rejected(self) -> None:
        with pytest.raises(ModelValidationError, match="area_sq_ft"):
            AreaResult(area_sq_ft=-1, estimated_minutes=0)
        with pytest.raises(ModelValidationError, match="estimated_minutes"):
            AreaResult(area_sq_ft=0, estimated_minutes=-1)

    def test_to_dict(self) -> None:
        assert AreaResult(10, 1).to_dict() == {"area_sq_ft": 10, "estimated_minutes": 1}


class TestLookupOutcome:
    def test_resolved_flag(self) -> None:
        assert LookupOutcome(LookupStatus.RESOLVED).resolved is True
        assert LookupOutcome(LookupStatus.NOT_FOUND).resolved is False
