"""Provider abstract base classes.

Defines the contracts the capture workflow depends on. The workflow
interacts exclusively with these interfaces: it never knows which
concrete service is behind them.

- ``GeocodingClient.geocode(query)``: free text to a coordinate.
- ``BuildingDataClient.fetch_buildings(bbox)``: extent to a GeoJSON
  feature collection of raw features; never raises.
- ``AddressAssist.suggest(text)``: autocomplete suggestions;
  an optional capability that may attach after the workflow starts.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from lawn_estimator.core.constants import DEFAULT_HTTP_TIMEOUT_S, DEFAULT_USER_AGENT
from lawn_estimator.core.exceptions import EstimatorError
from lawn_estimator.models.geometry import ModelValidationError

if TYPE_CHECKING:
    from lawn_estimator.models.geometry import BoundingBox
    from lawn_estimator.models.lookup import GeocodeResult, PlaceSuggestion


# ---------------------------------------------------------------------------
# Provider configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Configuration for one provider adapter.

    Attributes:
        name: Provider identifier (must match the adapter registry key).
        api_base_url: Base URL for single-endpoint services.
        endpoints: Ordered endpoints for services with fallback.
        user_agent: ``User-Agent`` header sent upstream.
        timeout_s: Client-side HTTP timeout in seconds.
        extra_params: Provider-specific parameters.
    """

    name: str
    api_base_url: str = ""
    endpoints: tuple[str, ...] = ()
    user_agent: str = DEFAULT_USER_AGENT
    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    extra_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ModelValidationError("ProviderConfig", "name", self.name, "must not be empty")
        if self.timeout_s <= 0:
            raise ModelValidationError("ProviderConfig", "timeout_s", self.timeout_s, "must be > 0")


class _Provider:
    """Shared configuration accessors."""

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        """Return the provider name from configuration."""
        return self._config.name

    @property
    def config(self) -> ProviderConfig:
        """Return the provider configuration (read-only)."""
        return self._config


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


class GeocodingClient(_Provider, abc.ABC):
    """Resolves a free-text address to a coordinate."""

    @abc.abstractmethod
    async def geocode(self, query: str) -> GeocodeResult | None:
        """Return the first candidate for *query*.

        Returns:
            The first match, or ``None`` when the service found nothing.

        Raises:
            ProviderTransportError: The service could not be reached or
                answered with an error status.
            ProviderContractError: The response could not be parsed.
        """


class BuildingDataClient(_Provider, abc.ABC):
    """Resolves a bounding box to raw building features."""

    @abc.abstractmethod
    async def fetch_buildings(self, bbox: BoundingBox) -> dict[str, Any]:
        """Return a GeoJSON ``FeatureCollection`` of features inside *bbox*.

        Implementations must absorb every upstream failure and return an
        empty collection instead of raising.
        """


class AddressAssist(abc.ABC):
    """Autocomplete capability for address entry."""

    @abc.abstractmethod
    async def suggest(self, text: str) -> list[PlaceSuggestion]:
        """Return suggestions for partially typed *text*, best first."""


# ---------------------------------------------------------------------------
# Provider exceptions
# ---------------------------------------------------------------------------


class ProviderError(EstimatorError):
    """Base exception for provider adapter errors.

    Attributes:
        provider: Name of the provider that raised the error.
        message: Human-readable error description.
        retryable: Whether the caller could retry the operation.
    """

    default_stage = "provider"
    default_code = "PROVIDER_ERROR"

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        retryable: bool = False,
    ) -> None:
        self.provider = provider
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
        )

    def __str__(self) -> str:
        return f"[{self.provider}] {self.message}"


class ProviderTransportError(ProviderError):
    """Network failure or non-success HTTP status from an upstream service."""

    default_code = "PROVIDER_TRANSPORT_FAILED"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(provider, message, retryable=True)


class ProviderContractError(ProviderError):
    """Upstream answered with a payload that does not match its contract."""

    default_code = "PROVIDER_PAYLOAD_INVALID"
