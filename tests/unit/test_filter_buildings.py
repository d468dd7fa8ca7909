"""Tests for the building feature filter."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from lawn_estimator.activities.filter_buildings import filter_buildings, is_building
from lawn_estimator.models.geojson import FeatureModel, empty_feature_collection

SQUARE = [[0.0, 0.0], [0.001, 0.0], [0.001, 0.001], [0.0, 0.001], [0.0, 0.0]]
OTHER_SQUARE = [[0.002, 0.0], [0.003, 0.0], [0.003, 0.001], [0.002, 0.001], [0.002, 0.0]]


def _feature(
    geometry: dict[str, Any] | None, properties: dict[str, Any] | None, fid: Any = None
) -> dict[str, Any]:
    return {"type": "Feature", "id": fid, "geometry": geometry, "properties": properties}


def _collection(*features: dict[str, Any]) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features)}


class TestFilterBuildings:
    """Selection of polygonal building features."""

    def test_empty_collection(self) -> None:
        assert filter_buildings(empty_feature_collection()) == []

    def test_keeps_building_polygon(self) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, "way/7")
        )
        footprints = filter_buildings(collection)

        assert len(footprints) == 1
        assert footprints[0].source_id == "way/7"
        assert footprints[0].tags == (("building", "yes"),)
        assert footprints[0].tag("building") == "yes"
        assert footprints[0].polygon.vertex_count == 4

    def test_drops_non_building(self) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"landuse": "grass"})
        )
        assert filter_buildings(collection) == []

    def test_drops_building_no(self) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "no"})
        )
        assert filter_buildings(collection) == []

    def test_drops_missing_properties(self) -> None:
        collection = _collection(_feature({"type": "Polygon", "coordinates": [SQUARE]}, None))
        assert filter_buildings(collection) == []

    def test_drops_non_polygonal_building(self) -> None:
        collection = _collection(
            _feature({"type": "Point", "coordinates": [0.0, 0.0]}, {"building": "yes"}),
            _feature({"type": "LineString", "coordinates": SQUARE}, {"building": "yes"}),
            _feature(None, {"building": "yes"}),
        )
        assert filter_buildings(collection) == []

    def test_multipolygon_yields_one_footprint_per_member(self) -> None:
        collection = _collection(
            _feature(
                {"type": "MultiPolygon", "coordinates": [[SQUARE], [OTHER_SQUARE]]},
                {"building": "school"},
                "relation/3",
            )
        )
        footprints = filter_buildings(collection)

        assert len(footprints) == 2
        assert {f.source_id for f in footprints} == {"relation/3"}

    def test_preserves_input_order(self) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, "way/1"),
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"amenity": "x"}, "way/2"),
            _feature(
                {"type": "Polygon", "coordinates": [OTHER_SQUARE]}, {"building": "yes"}, "way/3"
            ),
        )
        assert [f.source_id for f in filter_buildings(collection)] == ["way/1", "way/3"]

    def test_duplicates_are_kept(self) -> None:
        feature = _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, 1)
        assert len(filter_buildings(_collection(feature, feature))) == 2

    def test_numeric_id_is_stringified(self) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, 42)
        )
        assert filter_buildings(collection)[0].source_id == "42"

    def test_malformed_building_is_skipped_not_fatal(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        collection = _collection(
            _feature({"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]}, {"building": "yes"}),
            _feature({"type": "Polygon", "coordinates": "garbage"}, {"building": "yes"}),
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, "ok"),
        )
        with caplog.at_level(logging.WARNING, logger="lawn_estimator.activities.filter_buildings"):
            footprints = filter_buildings(collection)

        assert [f.source_id for f in footprints] == ["ok"]
        assert "Skipping malformed building" in caplog.text

    def test_unparseable_feature_is_skipped(self) -> None:
        collection = _collection(
            {"type": "Feature", "geometry": {"coordinates": []}, "properties": {"building": "y"}},
            _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, "ok"),
        )
        assert [f.source_id for f in filter_buildings(collection)] == ["ok"]

    def test_non_object_entries_do_not_discard_the_collection(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        collection = {
            "type": "FeatureCollection",
            "features": [
                None,
                _feature({"type": "Polygon", "coordinates": [SQUARE]}, {"building": "yes"}, "ok"),
                "not a feature",
                42,
            ],
        }
        with caplog.at_level(logging.INFO, logger="lawn_estimator.activities.filter_buildings"):
            footprints = filter_buildings(collection)

        assert [f.source_id for f in footprints] == ["ok"]
        assert "Feature collection rejected" not in caplog.text
        assert "skipped=3" in caplog.text

    def test_invalid_collection_yields_nothing(self) -> None:
        assert filter_buildings({"type": "FeatureCollection", "features": "nope"}) == []

    def test_fixture_collection(self, building_collection: dict[str, Any]) -> None:
        footprints = filter_buildings(building_collection)
        assert [f.source_id for f in footprints] == ["way/1"]


class TestIsBuilding:
    @pytest.mark.parametrize("value", ["yes", "house", "garage", "YES", True, 1])
    def test_truthy_values(self, value: object) -> None:
        assert is_building(FeatureModel(properties={"building": value}))

    @pytest.mark.parametrize("value", ["", "no", "No", "false", "0", None, False])
    def test_falsy_values(self, value: object) -> None:
        assert not is_building(FeatureModel(properties={"building": value}))

    def test_missing_key(self) -> None:
        assert not is_building(FeatureModel(properties={"name": "shed"}))
