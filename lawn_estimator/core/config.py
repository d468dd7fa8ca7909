"""Estimator configuration loaded from environment variables.

All configuration values have defaults that match the public
OpenStreetMap services the estimator talks to.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range or a required string is empty.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from lawn_estimator.core.constants import (
    DEFAULT_COUNTRY_CODES,
    DEFAULT_HTTP_TIMEOUT_S,
    DEFAULT_MOWING_RATE_SQ_FT_PER_MIN,
    DEFAULT_OVERPASS_QUERY_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    MIN_ADDRESS_LENGTH,
    NOMINATIM_BASE_URL,
    OVERPASS_ENDPOINTS,
)
from lawn_estimator.core.exceptions import EstimatorError


class ConfigValidationError(EstimatorError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")
        self.message = message


@dataclass(frozen=True, slots=True)
class EstimatorConfig:
    """Immutable estimator configuration.

    Loaded once when a workflow is built and handed to the provider
    factory.

    Attributes:
        geocoder_provider: Registered geocoder adapter name.
        geocoder_base_url: Base URL of the geocoding service.
        geocoder_country_codes: Country filter passed to the geocoder.
        buildings_provider: Registered building-data adapter name.
        overpass_endpoints: Overpass interpreters, tried in order.
        overpass_query_timeout_s: Server-side timeout embedded in the query.
        http_timeout_s: Client-side timeout for every upstream call.
        user_agent: ``User-Agent`` header sent upstream.
        min_address_length: Shortest address query dispatched to the geocoder.
        mowing_rate_sq_ft_per_min: Square feet mowed per minute.
    """

    geocoder_provider: str = "nominatim"
    geocoder_base_url: str = NOMINATIM_BASE_URL
    geocoder_country_codes: str = DEFAULT_COUNTRY_CODES
    buildings_provider: str = "overpass"
    overpass_endpoints: tuple[str, ...] = OVERPASS_ENDPOINTS
    overpass_query_timeout_s: int = DEFAULT_OVERPASS_QUERY_TIMEOUT_S
    http_timeout_s: float = DEFAULT_HTTP_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    min_address_length: int = MIN_ADDRESS_LENGTH
    mowing_rate_sq_ft_per_min: float = DEFAULT_MOWING_RATE_SQ_FT_PER_MIN

    @classmethod
    def from_env(cls) -> EstimatorConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range
                or a required string value is empty.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``HTTP_TIMEOUT_S=abc``).
        """
        endpoints_raw = os.getenv("OVERPASS_ENDPOINTS", "")
        endpoints = (
            tuple(e.strip() for e in endpoints_raw.split(",") if e.strip())
            if endpoints_raw
            else OVERPASS_ENDPOINTS
        )
        config = cls(
            geocoder_provider=os.getenv("GEOCODER_PROVIDER", "nominatim"),
            geocoder_base_url=os.getenv("GEOCODER_BASE_URL", NOMINATIM_BASE_URL),
            geocoder_country_codes=os.getenv("GEOCODER_COUNTRY_CODES", DEFAULT_COUNTRY_CODES),
            buildings_provider=os.getenv("BUILDINGS_PROVIDER", "overpass"),
            overpass_endpoints=endpoints,
            overpass_query_timeout_s=int(
                os.getenv("OVERPASS_QUERY_TIMEOUT_S", str(DEFAULT_OVERPASS_QUERY_TIMEOUT_S))
            ),
            http_timeout_s=float(os.getenv("HTTP_TIMEOUT_S", str(DEFAULT_HTTP_TIMEOUT_S))),
            user_agent=os.getenv("HTTP_USER_AGENT", DEFAULT_USER_AGENT),
            min_address_length=int(os.getenv("MIN_ADDRESS_LENGTH", str(MIN_ADDRESS_LENGTH))),
            mowing_rate_sq_ft_per_min=float(
                os.getenv(
                    "MOWING_RATE_SQ_FT_PER_MIN",
                    str(DEFAULT_MOWING_RATE_SQ_FT_PER_MIN),
                )
            ),
        )
        _validate(config)
        return config


def _validate(config: EstimatorConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if not config.geocoder_provider:
        raise ConfigValidationError(
            "GEOCODER_PROVIDER",
            config.geocoder_provider,
            "must not be empty",
        )

    if not config.buildings_provider:
        raise ConfigValidationError(
            "BUILDINGS_PROVIDER",
            config.buildings_provider,
            "must not be empty",
        )

    if not config.overpass_endpoints:
        raise ConfigValidationError(
            "OVERPASS_ENDPOINTS",
            config.overpass_endpoints,
            "must list at least one endpoint",
        )

    if config.overpass_query_timeout_s <= 0:
        raise ConfigValidationError(
            "OVERPASS_QUERY_TIMEOUT_S",
            config.overpass_query_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.http_timeout_s <= 0:
        raise ConfigValidationError(
            "HTTP_TIMEOUT_S",
            config.http_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.min_address_length < 1:
        raise ConfigValidationError(
            "MIN_ADDRESS_LENGTH",
            config.min_address_length,
            "must be >= 1 (characters)",
        )

    if config.mowing_rate_sq_ft_per_min <= 0:
        raise ConfigValidationError(
            "MOWING_RATE_SQ_FT_PER_MIN",
            config.mowing_rate_sq_ft_per_min,
            "must be > 0 (square feet per minute)",
        )
