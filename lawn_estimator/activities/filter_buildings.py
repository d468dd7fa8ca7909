"""Building feature filter.

Turns a generic GeoJSON feature collection into ``BuildingFootprint``
objects. A feature is kept when its ``building`` property is set and its
geometry is a ``Polygon`` or ``MultiPolygon``; a multipolygon yields one
footprint per member polygon. Output follows input order with no
deduplication.

Malformed features are skipped and logged. One bad feature never
discards the rest of the collection.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from lawn_estimator.models.geojson import FeatureCollectionModel, FeatureModel, GeometryModel
from lawn_estimator.models.geometry import BuildingFootprint, Polygon

logger = logging.getLogger("lawn_estimator.activities.filter_buildings")

POLYGONAL_TYPES = frozenset({"Polygon", "MultiPolygon"})

# OSM uses building=no to mark a former building
_FALSY_BUILDING_VALUES = frozenset({"", "no", "false", "0"})


def filter_buildings(collection: dict[str, Any]) -> list[BuildingFootprint]:
    """Select the polygonal building features of *collection*.

    Args:
        collection: A GeoJSON ``FeatureCollection`` mapping.

    Returns:
        Footprints in input order.
    """
    try:
        parsed = FeatureCollectionModel.model_validate(collection)
    except PydanticValidationError as exc:
        logger.warning("Feature collection rejected | errors=%d", exc.error_count())
        return []

    footprints: list[BuildingFootprint] = []
    skipped = 0
    for index, raw in enumerate(parsed.features):
        try:
            feature = FeatureModel.model_validate(raw)
        except PydanticValidationError:
            skipped += 1
            logger.debug("Skipping unparseable feature | index=%d", index)
            continue

        if not is_building(feature) or feature.geometry is None:
            continue
        if feature.geometry.type not in POLYGONAL_TYPES:
            continue

        try:
            polygons = _polygons_of(feature.geometry)
        except (ValueError, TypeError, IndexError) as exc:
            skipped += 1
            logger.warning(
                "Skipping malformed building | index=%d | id=%s | reason=%s",
                index,
                feature.id,
                exc,
            )
            continue

        tags = tuple((str(k), str(v)) for k, v in (feature.properties or {}).items())
        source_id = "" if feature.id is None else str(feature.id)
        footprints.extend(
            BuildingFootprint(polygon=p, source_id=source_id, tags=tags) for p in polygons
        )

    logger.info(
        "Buildings filtered | features=%d | footprints=%d | skipped=%d",
        len(parsed.features),
        len(footprints),
        skipped,
    )
    return footprints


def is_building(feature: FeatureModel) -> bool:
    """Whether the feature's properties mark it as a building."""
    value = (feature.properties or {}).get("building")
    if value is None or value is False:
        return False
    return str(value).strip().lower() not in _FALSY_BUILDING_VALUES


def _polygons_of(geometry: GeometryModel) -> list[Polygon]:
    if geometry.type == "Polygon":
        return [Polygon.from_geojson({"type": "Polygon", "coordinates": geometry.coordinates})]
    return [
        Polygon.from_geojson({"type": "Polygon", "coordinates": rings})
        for rings in geometry.coordinates
    ]
