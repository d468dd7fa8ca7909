"""Address lookup models.

- ``GeocodeResult``: the first geocoder candidate for an address
- ``PlaceSuggestion``: an address-assist (autocomplete) suggestion
- ``LookupStatus`` / ``LookupOutcome``: what ``submit_address`` reports
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lawn_estimator.models.geometry import Coordinate

if TYPE_CHECKING:
    from lawn_estimator.core.exceptions import EstimatorError

NOT_FOUND_MESSAGE = (
    "Address not found. Try a more specific address or use the autocomplete suggestions."
)
TRANSPORT_FAILURE_MESSAGE = "Could not look up that address. Please try again later."
INVALID_QUERY_MESSAGE = "Enter at least {min_length} characters of an address."


@dataclass(frozen=True, slots=True)
class GeocodeResult:
    """A resolved address.

    Attributes:
        coordinate: Resolved position ``(lon, lat)``.
        display_name: Provider's formatted address, if any.
    """

    coordinate: Coordinate
    display_name: str = ""


@dataclass(frozen=True, slots=True)
class PlaceSuggestion:
    """An autocomplete suggestion that already carries its position."""

    label: str
    coordinate: Coordinate


class LookupStatus(enum.Enum):
    """Outcome of an address submission.

    Values:
        RESOLVED:          Address found; workflow moved to property drawing.
        NOT_FOUND:         Geocoder returned no candidates.
        TRANSPORT_FAILURE: Geocoder could not be reached.
        INVALID_QUERY:     Query too short; never dispatched.
        STALE:             Response arrived after the session moved on.
    """

    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    TRANSPORT_FAILURE = "transport_failure"
    INVALID_QUERY = "invalid_query"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class LookupOutcome:
    """Result of ``CaptureWorkflow.submit_address``.

    Attributes:
        status: What happened.
        message: User-facing text; empty when resolved.
        result: The geocode match when resolved.
        error: Structured error for not-found and transport failures.
    """

    status: LookupStatus
    message: str = ""
    result: GeocodeResult | None = None
    error: EstimatorError | None = None

    @property
    def resolved(self) -> bool:
        return self.status is LookupStatus.RESOLVED
