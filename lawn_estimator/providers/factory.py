"""Provider factory: selects geocoding and building-data adapters by name.

The factory keeps one registry per contract. New adapters are
registered with ``register_geocoder`` / ``register_building_source``.

Usage::

    from lawn_estimator.providers.factory import get_geocoder

    geocoder = get_geocoder("nominatim")
    match = await geocoder.geocode("1600 Pennsylvania Ave, Washington DC")

Names are read from ``EstimatorConfig.geocoder_provider`` and
``EstimatorConfig.buildings_provider``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from lawn_estimator.providers.base import (
    BuildingDataClient,
    GeocodingClient,
    ProviderConfig,
    ProviderError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from lawn_estimator.core.config import EstimatorConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider name constants
# ---------------------------------------------------------------------------

NOMINATIM = "nominatim"
OVERPASS = "overpass"
STATIC = "static"

# ---------------------------------------------------------------------------
# Lazy-import adapter registries
# ---------------------------------------------------------------------------

# Each entry maps a provider name to a callable that returns the adapter
# *class*, so httpx-backed adapters load only when selected.

_GEOCODER_REGISTRY: dict[str, Callable[[], type[GeocodingClient]]] = {}
_BUILDING_REGISTRY: dict[str, Callable[[], type[BuildingDataClient]]] = {}

_P = TypeVar("_P", GeocodingClient, BuildingDataClient)


def _register_builtin_adapters() -> None:
    """Register the built-in adapters (called once, lazily)."""

    def _nominatim() -> type[GeocodingClient]:
        from lawn_estimator.providers.nominatim import NominatimGeocoder

        return NominatimGeocoder

    def _static_geocoder() -> type[GeocodingClient]:
        from lawn_estimator.providers.static import StaticGeocoder

        return StaticGeocoder

    def _overpass() -> type[BuildingDataClient]:
        from lawn_estimator.providers.overpass import OverpassBuildingClient

        return OverpassBuildingClient

    def _static_buildings() -> type[BuildingDataClient]:
        from lawn_estimator.providers.static import StaticBuildingSource

        return StaticBuildingSource

    _GEOCODER_REGISTRY.setdefault(NOMINATIM, _nominatim)
    _GEOCODER_REGISTRY.setdefault(STATIC, _static_geocoder)
    _BUILDING_REGISTRY.setdefault(OVERPASS, _overpass)
    _BUILDING_REGISTRY.setdefault(STATIC, _static_buildings)


def _ensure_registry() -> None:
    """Initialise the adapter registries once (idempotent)."""
    if NOMINATIM not in _GEOCODER_REGISTRY or OVERPASS not in _BUILDING_REGISTRY:
        _register_builtin_adapters()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_geocoder(name: str, loader: Callable[[], type[GeocodingClient]]) -> None:
    """Register a custom geocoding adapter.

    Raises:
        ValueError: If the name is empty.
    """
    _register(_GEOCODER_REGISTRY, name, loader)


def register_building_source(name: str, loader: Callable[[], type[BuildingDataClient]]) -> None:
    """Register a custom building-data adapter.

    Raises:
        ValueError: If the name is empty.
    """
    _register(_BUILDING_REGISTRY, name, loader)


def get_geocoder(name: str, config: ProviderConfig | None = None) -> GeocodingClient:
    """Create a geocoding adapter.

    Raises:
        ProviderError: If the name is not registered or the config
            names a different provider.
    """
    return _create(_GEOCODER_REGISTRY, "geocoder", name, config)


def get_building_source(name: str, config: ProviderConfig | None = None) -> BuildingDataClient:
    """Create a building-data adapter.

    Raises:
        ProviderError: If the name is not registered or the config
            names a different provider.
    """
    return _create(_BUILDING_REGISTRY, "building source", name, config)


def list_geocoders() -> list[str]:
    """Return the names of all registered geocoding adapters."""
    _ensure_registry()
    return sorted(_GEOCODER_REGISTRY)


def list_building_sources() -> list[str]:
    """Return the names of all registered building-data adapters."""
    _ensure_registry()
    return sorted(_BUILDING_REGISTRY)


def geocoder_from_config(config: EstimatorConfig) -> GeocodingClient:
    """Build the geocoder named by *config*."""
    provider_config = ProviderConfig(
        name=config.geocoder_provider,
        api_base_url=config.geocoder_base_url,
        user_agent=config.user_agent,
        timeout_s=config.http_timeout_s,
        extra_params={"countrycodes": config.geocoder_country_codes},
    )
    return get_geocoder(config.geocoder_provider, provider_config)


def building_source_from_config(config: EstimatorConfig) -> BuildingDataClient:
    """Build the building-data source named by *config*."""
    provider_config = ProviderConfig(
        name=config.buildings_provider,
        endpoints=config.overpass_endpoints,
        user_agent=config.user_agent,
        timeout_s=config.http_timeout_s,
        extra_params={"query_timeout_s": str(config.overpass_query_timeout_s)},
    )
    return get_building_source(config.buildings_provider, provider_config)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _register(
    registry: dict[str, Callable[[], type[_P]]],
    name: str,
    loader: Callable[[], type[_P]],
) -> None:
    if not name:
        msg = "Provider name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    registry[name] = loader
    logger.debug("Registered provider adapter: %s", name)


def _create(
    registry: dict[str, Callable[[], type[_P]]],
    kind: str,
    name: str,
    config: ProviderConfig | None,
) -> _P:
    _ensure_registry()

    loader = registry.get(name)
    if loader is None:
        available = ", ".join(sorted(registry))
        msg = f"Unknown {kind}: {name!r}. Available: {available}"
        raise ProviderError(provider=name, message=msg)

    if config is None:
        config = ProviderConfig(name=name)
    elif config.name != name:
        msg = f"ProviderConfig.name {config.name!r} does not match requested {kind} {name!r}"
        raise ProviderError(provider=name, message=msg)

    adapter_cls = loader()
    logger.info("Creating %s: %s", kind, name)
    return adapter_cls(config)
