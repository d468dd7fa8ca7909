"""Shared estimator constants: single source of truth.

Centralises unit conversions, the area calibration reference, and the
default upstream endpoints used by the provider adapters.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

SQ_FEET_PER_SQ_METRE: float = 10.7639
"""Square feet in one square metre."""

DEFAULT_MOWING_RATE_SQ_FT_PER_MIN: float = 250.0
"""Lawn area a single crew mows per minute."""

# ---------------------------------------------------------------------------
# Area calibration
# ---------------------------------------------------------------------------

CALIBRATION_AREA_M2: float = 10_000.0
"""Area the calibration square must evaluate to after correction."""

CALIBRATION_SQUARE: tuple[tuple[float, float], ...] = (
    (-89.0, 40.0),
    (-89.0, 40.0009),
    (-88.9991, 40.0009),
    (-88.9991, 40.0),
    (-89.0, 40.0),
)
"""Reference "100 m x 100 m" ring as ``(lon, lat)`` pairs."""

# ---------------------------------------------------------------------------
# Session defaults
# ---------------------------------------------------------------------------

DEFAULT_CENTER: tuple[float, float] = (-89.0, 40.0)
"""Initial map focus ``(lon, lat)`` before an address is resolved."""

MIN_ADDRESS_LENGTH: int = 3
"""Shortest address query dispatched to the geocoder."""

# ---------------------------------------------------------------------------
# Upstream services
# ---------------------------------------------------------------------------

NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"

DEFAULT_COUNTRY_CODES: str = "us"

DEFAULT_USER_AGENT: str = "lawn-estimator/1.0"

OVERPASS_ENDPOINTS: tuple[str, ...] = (
    "https://overpass-api.de/api/interpreter",
    "https://overpass.openstreetmap.ru/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
)
"""Overpass interpreters, tried in order until one answers."""

DEFAULT_OVERPASS_QUERY_TIMEOUT_S: int = 25

DEFAULT_HTTP_TIMEOUT_S: float = 30.0
