"""In-memory providers.

Deterministic adapters with no network access, for offline runs and
tests:

- ``StaticGeocoder`` looks addresses up in a fixed table.
- ``StaticBuildingSource`` returns a fixed feature collection.
- ``StaticAddressAssist`` suggests table entries by substring match.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from lawn_estimator.models.geojson import empty_feature_collection
from lawn_estimator.models.geometry import Coordinate
from lawn_estimator.models.lookup import GeocodeResult, PlaceSuggestion
from lawn_estimator.providers.base import (
    AddressAssist,
    BuildingDataClient,
    GeocodingClient,
    ProviderConfig,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from lawn_estimator.models.geometry import BoundingBox

STATIC = "static"


def _normalise(text: str) -> str:
    return " ".join(text.lower().split())


class StaticGeocoder(GeocodingClient):
    """Geocoder over a fixed ``address -> (lon, lat)`` table.

    Matching ignores case and repeated whitespace.
    """

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        places: Mapping[str, tuple[float, float]] | None = None,
    ) -> None:
        super().__init__(config or ProviderConfig(name=STATIC))
        self._places = {_normalise(k): Coordinate(*v) for k, v in (places or {}).items()}
        self.calls: list[str] = []

    async def geocode(self, query: str) -> GeocodeResult | None:
        self.calls.append(query)
        coordinate = self._places.get(_normalise(query))
        if coordinate is None:
            return None
        return GeocodeResult(coordinate=coordinate, display_name=query.strip())


class StaticBuildingSource(BuildingDataClient):
    """Building source that always answers with the same collection."""

    def __init__(
        self,
        config: ProviderConfig | None = None,
        *,
        collection: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(config or ProviderConfig(name=STATIC))
        self._collection = collection or empty_feature_collection()
        self.requests: list[BoundingBox] = []

    async def fetch_buildings(self, bbox: BoundingBox) -> dict[str, Any]:
        self.requests.append(bbox)
        return copy.deepcopy(self._collection)


class StaticAddressAssist(AddressAssist):
    """Autocomplete over a fixed ``label -> (lon, lat)`` table."""

    def __init__(self, places: Mapping[str, tuple[float, float]]) -> None:
        self._places = {label: Coordinate(*pos) for label, pos in places.items()}

    async def suggest(self, text: str) -> list[PlaceSuggestion]:
        needle = _normalise(text)
        if not needle:
            return []
        return [
            PlaceSuggestion(label=label, coordinate=coordinate)
            for label, coordinate in self._places.items()
            if needle in _normalise(label)
        ]
