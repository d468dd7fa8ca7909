"""Overpass building-data adapter with multi-endpoint fallback.

Queries OpenStreetMap building ways and relations inside a bounding box.
Endpoints from ``ProviderConfig.endpoints`` are tried in order until one
answers with a 2xx JSON body. When every endpoint fails the adapter
returns an empty, well-formed feature collection: callers only ever see
"have data" or "have none".

The raw Overpass ``elements`` are converted to GeoJSON here:

- a closed building way becomes a ``Polygon`` feature (``id = "way/<id>"``);
- a building relation becomes a ``MultiPolygon`` built from its closed
  outer member ways (``id = "relation/<id>"``); inner ways become holes
  when the relation has a single outer ring;
- element tags become feature properties.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from lawn_estimator.core.constants import DEFAULT_OVERPASS_QUERY_TIMEOUT_S, OVERPASS_ENDPOINTS
from lawn_estimator.models.geojson import OsmElement, OsmMember, empty_feature_collection
from lawn_estimator.providers.base import BuildingDataClient, ProviderConfig

if TYPE_CHECKING:
    from lawn_estimator.models.geometry import BoundingBox

logger = logging.getLogger("lawn_estimator.providers.overpass")

#: Closed ring needs three distinct nodes plus the repeated first node.
MIN_CLOSED_WAY_NODES = 4


def build_query(bbox: BoundingBox, timeout_s: int = DEFAULT_OVERPASS_QUERY_TIMEOUT_S) -> str:
    """Overpass QL for building ways and relations inside *bbox*."""
    extent = bbox.to_overpass()
    return (
        f"[out:json][timeout:{timeout_s}];"
        f'(way["building"]({extent});relation["building"]({extent}););'
        "out body;>;out skel qt;"
    )


class OverpassBuildingClient(BuildingDataClient):
    """Building footprints from the Overpass API.

    ``ProviderConfig.extra_params["query_timeout_s"]`` sets the server-side
    query timeout (default 25 s).
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._endpoints = config.endpoints or OVERPASS_ENDPOINTS
        self._query_timeout_s = int(
            config.extra_params.get("query_timeout_s", DEFAULT_OVERPASS_QUERY_TIMEOUT_S)
        )
        self._transport = transport

    @property
    def endpoints(self) -> tuple[str, ...]:
        return tuple(self._endpoints)

    async def fetch_buildings(self, bbox: BoundingBox) -> dict[str, Any]:
        query = build_query(bbox, self._query_timeout_s)
        headers = {"User-Agent": self.config.user_agent}

        async with httpx.AsyncClient(
            timeout=self.config.timeout_s, transport=self._transport
        ) as client:
            for endpoint in self._endpoints:
                payload = await self._try_endpoint(client, endpoint, query, headers)
                if payload is None:
                    continue
                try:
                    collection = elements_to_feature_collection(payload.get("elements", []))
                except (ValueError, TypeError, KeyError) as exc:
                    logger.warning(
                        "Building endpoint payload unusable | endpoint=%s | error=%s",
                        endpoint,
                        exc,
                    )
                    continue
                logger.info(
                    "Buildings fetched | endpoint=%s | bbox=%s | features=%d",
                    endpoint,
                    bbox.to_overpass(),
                    len(collection["features"]),
                )
                return collection

        logger.warning(
            "All building endpoints failed; continuing without buildings | endpoints=%d | bbox=%s",
            len(self._endpoints),
            bbox.to_overpass(),
        )
        return empty_feature_collection()

    async def _try_endpoint(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        query: str,
        headers: dict[str, str],
    ) -> dict[str, Any] | None:
        """POST *query* to one endpoint; ``None`` on any failure."""
        try:
            response = await client.post(endpoint, data={"data": query}, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Building endpoint unreachable | endpoint=%s | error=%s", endpoint, exc)
            return None

        if not response.is_success:
            logger.warning(
                "Building endpoint returned HTTP %d | endpoint=%s",
                response.status_code,
                endpoint,
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning("Building endpoint returned non-JSON body | endpoint=%s", endpoint)
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("elements", []), list):
            logger.warning("Building endpoint returned unexpected payload | endpoint=%s", endpoint)
            return None
        return payload


# ---------------------------------------------------------------------------
# OSM JSON -> GeoJSON
# ---------------------------------------------------------------------------


def elements_to_feature_collection(elements: list[Any]) -> dict[str, Any]:
    """Convert Overpass ``elements`` to a GeoJSON ``FeatureCollection``.

    Tagged ways and relations are emitted in input order. Elements that
    fail validation are skipped. Ways whose nodes are missing from the
    response, or that are not closed, are dropped.
    """
    parsed: list[OsmElement] = []
    skipped = 0
    for index, raw in enumerate(elements):
        try:
            parsed.append(OsmElement.model_validate(raw))
        except PydanticValidationError:
            skipped += 1
            logger.debug("Skipping malformed OSM element | index=%d", index)

    nodes: dict[int, list[float]] = {}
    ways: dict[int, OsmElement] = {}
    for element in parsed:
        if element.type == "node" and element.lat is not None and element.lon is not None:
            nodes[element.id] = [element.lon, element.lat]
        elif element.type == "way":
            ways[element.id] = element

    features: list[dict[str, Any]] = []
    for element in parsed:
        if not element.tags:
            continue
        if element.type == "way":
            ring = _way_ring(element, nodes)
            if ring is None:
                logger.debug("Dropping open or incomplete way | id=%s", element.id)
                continue
            features.append(
                _feature(
                    f"way/{element.id}", {"type": "Polygon", "coordinates": [ring]}, element.tags
                )
            )
        elif element.type == "relation":
            geometry = _relation_geometry(element, ways, nodes)
            if geometry is None:
                logger.debug("Dropping relation without closed outers | id=%s", element.id)
                continue
            features.append(_feature(f"relation/{element.id}", geometry, element.tags))

    if skipped:
        logger.warning("Skipped malformed OSM elements | skipped=%d", skipped)
    return {"type": "FeatureCollection", "features": features}


def _feature(feature_id: str, geometry: dict[str, Any], tags: dict[str, Any]) -> dict[str, Any]:
    return {"type": "Feature", "id": feature_id, "geometry": geometry, "properties": dict(tags)}


def _way_ring(way: OsmElement, nodes: dict[int, list[float]]) -> list[list[float]] | None:
    refs = way.nodes
    if len(refs) < MIN_CLOSED_WAY_NODES or refs[0] != refs[-1]:
        return None
    if any(ref not in nodes for ref in refs):
        return None
    return [nodes[ref] for ref in refs]


def _relation_geometry(
    relation: OsmElement,
    ways: dict[int, OsmElement],
    nodes: dict[int, list[float]],
) -> dict[str, Any] | None:
    outers: list[list[list[float]]] = []
    inners: list[list[list[float]]] = []
    for raw in relation.members:
        try:
            member = OsmMember.model_validate(raw)
        except PydanticValidationError:
            continue
        if member.type != "way" or member.ref not in ways:
            continue
        ring = _way_ring(ways[member.ref], nodes)
        if ring is None:
            continue
        if member.role == "inner":
            inners.append(ring)
        else:
            outers.append(ring)

    if not outers:
        return None
    if len(outers) == 1:
        return {"type": "MultiPolygon", "coordinates": [[outers[0], *inners]]}
    return {"type": "MultiPolygon", "coordinates": [[ring] for ring in outers]}
