"""Wire schemas for upstream payloads.

Pydantic models validate the JSON returned by the geocoder, the raw
Overpass elements, and the GeoJSON feature collections handed to the
building filter. Unknown keys are ignored so that upstream additions
never break parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NominatimPlace(BaseModel):
    """One row of a Nominatim ``/search?format=json`` response.

    Nominatim returns ``lat`` and ``lon`` as numeric strings; pydantic
    coerces them to floats.
    """

    model_config = ConfigDict(extra="ignore")

    lat: float
    lon: float
    display_name: str = ""


class GeometryModel(BaseModel):
    """A GeoJSON geometry object (any type)."""

    model_config = ConfigDict(extra="ignore")

    type: str
    coordinates: Any = None


class FeatureModel(BaseModel):
    """A GeoJSON feature with arbitrary properties."""

    model_config = ConfigDict(extra="ignore")

    type: str = "Feature"
    id: str | int | None = None
    geometry: GeometryModel | None = None
    properties: dict[str, Any] | None = None


class FeatureCollectionModel(BaseModel):
    """A GeoJSON feature collection.

    Features are kept as raw values; the building filter validates them
    one at a time so that a single malformed feature is skipped rather
    than rejecting the whole collection.
    """

    model_config = ConfigDict(extra="ignore")

    type: str = "FeatureCollection"
    features: list[Any] = Field(default_factory=list)


class OsmMember(BaseModel):
    """A relation member reference."""

    model_config = ConfigDict(extra="ignore")

    type: str
    ref: int
    role: str = ""


class OsmElement(BaseModel):
    """One entry of an Overpass ``[out:json]`` ``elements`` array.

    Nodes carry ``lat``/``lon``, ways carry ``nodes``, and relations carry
    ``members``. Member entries are kept raw and validated one at a time.
    """

    model_config = ConfigDict(extra="ignore")

    type: str
    id: int
    lat: float | None = None
    lon: float | None = None
    nodes: list[int] = Field(default_factory=list)
    members: list[Any] = Field(default_factory=list)
    tags: dict[str, Any] | None = None


def empty_feature_collection() -> dict[str, Any]:
    """Return a well-formed collection with no features."""
    return {"type": "FeatureCollection", "features": []}
