"""Nominatim geocoding adapter.

Calls the OpenStreetMap Nominatim ``/search`` endpoint and returns the
first candidate. An empty candidate list is the defined "not found"
outcome (``None``); network errors and non-success statuses raise
``ProviderTransportError``.

Nominatim's usage policy requires an identifying ``User-Agent``; the
value comes from ``ProviderConfig.user_agent``.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from lawn_estimator.core.constants import DEFAULT_COUNTRY_CODES, NOMINATIM_BASE_URL
from lawn_estimator.models.geojson import NominatimPlace
from lawn_estimator.models.geometry import Coordinate, ModelValidationError
from lawn_estimator.models.lookup import GeocodeResult
from lawn_estimator.providers.base import (
    GeocodingClient,
    ProviderConfig,
    ProviderContractError,
    ProviderTransportError,
)

logger = logging.getLogger("lawn_estimator.providers.nominatim")


class NominatimGeocoder(GeocodingClient):
    """Geocoder backed by a Nominatim instance.

    ``ProviderConfig.extra_params["countrycodes"]`` restricts the search
    (default ``"us"``).
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config)
        self._base_url = (config.api_base_url or NOMINATIM_BASE_URL).rstrip("/")
        self._country_codes = config.extra_params.get("countrycodes", DEFAULT_COUNTRY_CODES)
        self._transport = transport

    async def geocode(self, query: str) -> GeocodeResult | None:
        params = {
            "format": "json",
            "q": query,
            "limit": "1",
            "addressdetails": "0",
        }
        if self._country_codes:
            params["countrycodes"] = self._country_codes
        headers = {"Accept-Language": "en", "User-Agent": self.config.user_agent}

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_s, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self._base_url}/search", params=params, headers=headers
                )
                response.raise_for_status()
                rows = response.json()
        except httpx.HTTPStatusError as exc:
            msg = f"Geocode failed with HTTP {exc.response.status_code}"
            raise ProviderTransportError(self.name, msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Geocode request failed: {exc}"
            raise ProviderTransportError(self.name, msg) from exc
        except ValueError as exc:
            msg = "Geocode response is not JSON"
            raise ProviderContractError(self.name, msg) from exc

        if not isinstance(rows, list):
            msg = f"Geocode response must be a list, got {type(rows).__name__}"
            raise ProviderContractError(self.name, msg)
        if not rows:
            logger.info("Geocode returned no candidates | provider=%s", self.name)
            return None

        try:
            place = NominatimPlace.model_validate(rows[0])
            coordinate = Coordinate(place.lon, place.lat)
            _check_coordinate(coordinate)
        except (PydanticValidationError, ModelValidationError) as exc:
            msg = f"Geocode candidate is malformed: {exc}"
            raise ProviderContractError(self.name, msg) from exc

        logger.info(
            "Geocode resolved | provider=%s | lon=%.6f | lat=%.6f",
            self.name,
            coordinate.lon,
            coordinate.lat,
        )
        return GeocodeResult(coordinate=coordinate, display_name=place.display_name)


def _check_coordinate(coordinate: Coordinate) -> None:
    if not -180.0 <= coordinate.lon <= 180.0 or not -90.0 <= coordinate.lat <= 90.0:
        raise ModelValidationError("GeocodeResult", "coordinate", coordinate, "out of WGS 84 range")
