"""External collaborator adapters.

Implements the provider-agnostic adapter pattern:
- GeocodingClient: address text to coordinate (Nominatim, static)
- BuildingDataClient: bounding box to building features (Overpass, static)
- AddressAssist: optional autocomplete capability

The active adapters are selected via configuration.
"""

from lawn_estimator.providers.base import (
    AddressAssist,
    BuildingDataClient,
    GeocodingClient,
    ProviderConfig,
    ProviderContractError,
    ProviderError,
    ProviderTransportError,
)
from lawn_estimator.providers.factory import (
    NOMINATIM,
    OVERPASS,
    STATIC,
    building_source_from_config,
    geocoder_from_config,
    get_building_source,
    get_geocoder,
    list_building_sources,
    list_geocoders,
    register_building_source,
    register_geocoder,
)

__all__ = [
    "NOMINATIM",
    "OVERPASS",
    "STATIC",
    "AddressAssist",
    "BuildingDataClient",
    "GeocodingClient",
    "ProviderConfig",
    "ProviderContractError",
    "ProviderError",
    "ProviderTransportError",
    "building_source_from_config",
    "geocoder_from_config",
    "get_building_source",
    "get_geocoder",
    "list_building_sources",
    "list_geocoders",
    "register_building_source",
    "register_geocoder",
]
