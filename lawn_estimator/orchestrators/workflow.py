"""Capture workflow: the session state machine behind an estimate.

Phases
------
1. **Address entry**: geocode the address (or accept an autocomplete
   selection) and move the map focus.
2. **Property drawing**: accept the property boundary; on advance, save
   its area in square feet and clear the drawing fields.
3. **Exclusions drawing**: accept at most one exclusion; on advance,
   subtract its area from the saved property area, never going below 0.
4. **Result**: expose the ``AreaResult``. Only ``restart`` leaves it.

Property and exclusion are measured independently and subtracted as
numbers. Small exclusions drawn inside a large property are too imprecise
for reliable polygon differencing at interactive zoom levels. True
differencing with building footprints is available separately through
``estimate_with_buildings``; it does not feed the session's result.

Every operation checks its phase and preconditions before touching the
session and raises ``InvariantViolationError`` when they do not hold.

Asynchronous calls record the phase and session epoch they were issued
under. A response that comes back after either has changed is dropped.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from lawn_estimator.activities.filter_buildings import filter_buildings
from lawn_estimator.activities.measure_area import area_sq_ft, bounding_box
from lawn_estimator.activities.subtract_buildings import BuildingEstimate, subtract_buildings
from lawn_estimator.core.config import EstimatorConfig
from lawn_estimator.core.exceptions import InvariantViolationError, LookupNotFoundError
from lawn_estimator.models.geojson import empty_feature_collection
from lawn_estimator.models.geometry import Polygon
from lawn_estimator.models.lookup import (
    INVALID_QUERY_MESSAGE,
    NOT_FOUND_MESSAGE,
    TRANSPORT_FAILURE_MESSAGE,
    LookupOutcome,
    LookupStatus,
)
from lawn_estimator.models.session import AreaResult, Phase, SessionState
from lawn_estimator.providers.base import ProviderError

if TYPE_CHECKING:
    from lawn_estimator.models.lookup import PlaceSuggestion
    from lawn_estimator.providers.base import (
        AddressAssist,
        BuildingDataClient,
        GeocodingClient,
    )

logger = logging.getLogger("lawn_estimator.orchestrators.workflow")

#: In-flight call kinds reported by ``is_pending``.
GEOCODE = "geocode"
BUILDINGS = "buildings"

PolygonInput = Polygon | Sequence[Sequence[float]] | Mapping[str, Any]


class _Ticket(NamedTuple):
    """Phase and epoch captured when an async call is dispatched."""

    kind: str
    phase: Phase
    epoch: int


class CaptureWorkflow:
    """One estimate session.

    Args:
        geocoder: Address lookup client.
        building_source: Building footprint client; required only for
            ``estimate_with_buildings``.
        address_assist: Autocomplete capability, if already available.
        config: Estimator configuration (defaults when omitted).
        session_id: Correlation id attached to errors and log lines.
    """

    def __init__(
        self,
        geocoder: GeocodingClient,
        building_source: BuildingDataClient | None = None,
        *,
        address_assist: AddressAssist | None = None,
        config: EstimatorConfig | None = None,
        session_id: str = "",
    ) -> None:
        self._geocoder = geocoder
        self._building_source = building_source
        self._config = config or EstimatorConfig()
        self._session_id = session_id
        self._state = SessionState()
        self._result: AreaResult | None = None
        self._in_flight: Counter[tuple[str, int]] = Counter()
        self._assist: AddressAssist | None = None
        self._assist_ready = asyncio.Event()
        if address_assist is not None:
            self.attach_address_assist(address_assist)

    @classmethod
    def from_config(
        cls,
        config: EstimatorConfig | None = None,
        *,
        address_assist: AddressAssist | None = None,
        session_id: str = "",
    ) -> CaptureWorkflow:
        """Build a workflow whose clients come from the provider factory."""
        from lawn_estimator.providers.factory import (
            building_source_from_config,
            geocoder_from_config,
        )

        config = config or EstimatorConfig.from_env()
        return cls(
            geocoder_from_config(config),
            building_source_from_config(config),
            address_assist=address_assist,
            config=config,
            session_id=session_id,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def state(self) -> SessionState:
        """A copy of the session state; changing it has no effect."""
        return dataclasses.replace(self._state)

    @property
    def result(self) -> AreaResult | None:
        """The area result while in the result phase, else ``None``."""
        return self._result if self._state.phase is Phase.RESULT else None

    def is_pending(self, kind: str) -> bool:
        """Whether a *kind* call issued in the current session is in flight."""
        return self._in_flight[(kind, self._state.epoch)] > 0

    @property
    def pending(self) -> dict[str, bool]:
        """In-flight indicator for every call kind."""
        return {kind: self.is_pending(kind) for kind in (GEOCODE, BUILDINGS)}

    # ------------------------------------------------------------------
    # Phase 1: address entry
    # ------------------------------------------------------------------

    async def submit_address(self, text: str) -> LookupOutcome:
        """Geocode *text* and move to property drawing on a match.

        Raises:
            InvariantViolationError: Outside address entry, or while a
                geocode for this session is already in flight.
        """
        self._require(Phase.ADDRESS_ENTRY, "submit_address")
        if self.is_pending(GEOCODE):
            raise InvariantViolationError(
                "submit_address", self._state.phase.value, "a geocode is already in flight"
            )

        query = text.strip()
        min_length = self._config.min_address_length
        if len(query) < min_length:
            return LookupOutcome(
                LookupStatus.INVALID_QUERY,
                message=INVALID_QUERY_MESSAGE.format(min_length=min_length),
            )

        ticket = self._dispatch(GEOCODE)
        try:
            match = await self._geocoder.geocode(query)
        except ProviderError as exc:
            exc.correlation_id = self._session_id
            if self._is_stale(ticket):
                return LookupOutcome(LookupStatus.STALE)
            logger.warning(
                "Geocode failed | session=%s | code=%s | error=%s",
                self._session_id,
                exc.code,
                exc,
            )
            return LookupOutcome(
                LookupStatus.TRANSPORT_FAILURE, message=TRANSPORT_FAILURE_MESSAGE, error=exc
            )
        finally:
            self._complete(ticket)

        if self._is_stale(ticket):
            return LookupOutcome(LookupStatus.STALE)

        if match is None:
            error = LookupNotFoundError(
                f"No geocode match for {query!r}", correlation_id=self._session_id
            )
            logger.info("Address not found | session=%s | code=%s", self._session_id, error.code)
            return LookupOutcome(LookupStatus.NOT_FOUND, message=NOT_FOUND_MESSAGE, error=error)

        self._state.address = query
        self._state.center = match.coordinate
        self._transition(Phase.PROPERTY_DRAWING)
        return LookupOutcome(LookupStatus.RESOLVED, result=match)

    def attach_address_assist(self, assist: AddressAssist) -> None:
        """Make the autocomplete capability available (at any time)."""
        self._assist = assist
        self._assist_ready.set()
        logger.info("Address assist attached | session=%s", self._session_id)

    @property
    def address_assist_available(self) -> bool:
        return self._assist is not None

    async def wait_for_address_assist(self, timeout: float | None = None) -> bool:
        """Wait until an address assist is attached.

        Returns:
            ``True`` once available, ``False`` if *timeout* elapsed first.
        """
        try:
            await asyncio.wait_for(self._assist_ready.wait(), timeout)
        except TimeoutError:
            return False
        return True

    async def suggest_addresses(self, text: str) -> list[PlaceSuggestion]:
        """Autocomplete suggestions, or ``[]`` when no assist is attached."""
        if self._assist is None:
            return []
        try:
            return await self._assist.suggest(text)
        except ProviderError as exc:
            logger.warning("Address assist failed | session=%s | error=%s", self._session_id, exc)
            return []

    def select_place(self, suggestion: PlaceSuggestion) -> None:
        """Accept an autocomplete selection and move to property drawing.

        Raises:
            InvariantViolationError: Outside address entry.
        """
        self._require(Phase.ADDRESS_ENTRY, "select_place")
        self._state.address = suggestion.label
        self._state.center = suggestion.coordinate
        self._transition(Phase.PROPERTY_DRAWING)

    # ------------------------------------------------------------------
    # Phase 2: property drawing
    # ------------------------------------------------------------------

    def set_property_polygon(self, polygon: PolygonInput) -> None:
        """Replace the property boundary.

        Raises:
            InvariantViolationError: Outside property drawing.
            ModelValidationError: If *polygon* is not a valid ring.
        """
        self._require(Phase.PROPERTY_DRAWING, "set_property_polygon")
        self._state.property_polygon = _coerce_polygon(polygon)

    def clear_property_polygon(self) -> None:
        """Remove the property boundary."""
        self._require(Phase.PROPERTY_DRAWING, "clear_property_polygon")
        self._state.property_polygon = None

    def advance_to_exclusions(self) -> int:
        """Save the property area and move to exclusions drawing.

        Returns:
            The saved property area in square feet.

        Raises:
            InvariantViolationError: Outside property drawing, or with
                no property polygon.
        """
        self._require(Phase.PROPERTY_DRAWING, "advance_to_exclusions")
        polygon = self._state.property_polygon
        if polygon is None:
            raise InvariantViolationError(
                "advance_to_exclusions", self._state.phase.value, "no property polygon drawn"
            )

        property_sq_ft = area_sq_ft(polygon)
        self._state.property_area_sq_ft = property_sq_ft
        self._state.property_polygon = None
        self._state.exclusion_polygon = None
        self._state.final_area_sq_ft = None
        self._transition(Phase.EXCLUSIONS_DRAWING, property_sq_ft=property_sq_ft)
        return property_sq_ft

    async def estimate_with_buildings(
        self, exclusion: PolygonInput | None = None
    ) -> BuildingEstimate | None:
        """Difference the exclusion and nearby buildings out of the property.

        A separate estimate from the session result: it reads the current
        property polygon and changes nothing in the session.

        Returns:
            The estimate, or ``None`` when the session moved on while the
            building data was being fetched.

        Raises:
            InvariantViolationError: Outside property drawing, with no
                property polygon, with no building source configured, or
                while a building fetch is already in flight.
        """
        operation = "estimate_with_buildings"
        self._require(Phase.PROPERTY_DRAWING, operation)
        phase = self._state.phase.value
        polygon = self._state.property_polygon
        if polygon is None:
            raise InvariantViolationError(operation, phase, "no property polygon drawn")
        if self._building_source is None:
            raise InvariantViolationError(operation, phase, "no building source configured")
        if self.is_pending(BUILDINGS):
            raise InvariantViolationError(operation, phase, "a building fetch is already in flight")
        exclusion_polygon = None if exclusion is None else _coerce_polygon(exclusion)

        bbox = bounding_box(polygon)
        ticket = self._dispatch(BUILDINGS)
        try:
            collection = await self._building_source.fetch_buildings(bbox)
        except ProviderError as exc:
            logger.warning(
                "Building source raised; continuing without buildings | session=%s | error=%s",
                self._session_id,
                exc,
            )
            collection = empty_feature_collection()
        finally:
            self._complete(ticket)

        if self._is_stale(ticket):
            return None

        footprints = filter_buildings(collection)
        return subtract_buildings(
            polygon,
            exclusion_polygon,
            footprints,
            bbox=bbox,
            rate_sq_ft_per_min=self._config.mowing_rate_sq_ft_per_min,
        )

    # ------------------------------------------------------------------
    # Phase 3: exclusions drawing
    # ------------------------------------------------------------------

    def set_exclusion_polygon(self, polygon: PolygonInput) -> None:
        """Replace the exclusion polygon.

        Raises:
            InvariantViolationError: Outside exclusions drawing.
            ModelValidationError: If *polygon* is not a valid ring.
        """
        self._require(Phase.EXCLUSIONS_DRAWING, "set_exclusion_polygon")
        self._state.exclusion_polygon = _coerce_polygon(polygon)

    def clear_exclusion_polygon(self) -> None:
        """Remove the exclusion polygon."""
        self._require(Phase.EXCLUSIONS_DRAWING, "clear_exclusion_polygon")
        self._state.exclusion_polygon = None

    def advance_to_result(self) -> AreaResult:
        """Subtract the exclusion area and move to the result phase.

        Raises:
            InvariantViolationError: Outside exclusions drawing.
        """
        self._require(Phase.EXCLUSIONS_DRAWING, "advance_to_result")
        property_sq_ft = self._state.property_area_sq_ft or 0
        exclusion = self._state.exclusion_polygon
        exclusion_sq_ft = area_sq_ft(exclusion) if exclusion is not None else 0

        final_sq_ft = max(0, property_sq_ft - exclusion_sq_ft)
        self._state.final_area_sq_ft = final_sq_ft
        self._result = AreaResult.from_square_feet(
            final_sq_ft, rate_sq_ft_per_min=self._config.mowing_rate_sq_ft_per_min
        )
        self._transition(
            Phase.RESULT,
            property_sq_ft=property_sq_ft,
            exclusion_sq_ft=exclusion_sq_ft,
            final_sq_ft=final_sq_ft,
        )
        return self._result

    # ------------------------------------------------------------------
    # Restart
    # ------------------------------------------------------------------

    def restart(self) -> None:
        """Discard the session and return to address entry."""
        previous = self._state.phase
        self._state.reset()
        self._result = None
        logger.info(
            "Session restarted | session=%s | from=%s | epoch=%d",
            self._session_id,
            previous.value,
            self._state.epoch,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, phase: Phase, operation: str) -> None:
        if self._state.phase is not phase:
            raise InvariantViolationError(
                operation,
                self._state.phase.value,
                f"requires phase {phase.value!r}",
            )

    def _transition(self, to: Phase, **figures: int) -> None:
        previous = self._state.phase
        self._state.phase = to
        details = "".join(f" | {key}={value}" for key, value in figures.items())
        logger.info(
            "Phase transition | session=%s | from=%s | to=%s%s",
            self._session_id,
            previous.value,
            to.value,
            details,
        )

    def _dispatch(self, kind: str) -> _Ticket:
        ticket = _Ticket(kind, self._state.phase, self._state.epoch)
        self._in_flight[(kind, ticket.epoch)] += 1
        return ticket

    def _complete(self, ticket: _Ticket) -> None:
        key = (ticket.kind, ticket.epoch)
        self._in_flight[key] -= 1
        if self._in_flight[key] <= 0:
            del self._in_flight[key]

    def _is_stale(self, ticket: _Ticket) -> bool:
        stale = ticket.epoch != self._state.epoch or ticket.phase is not self._state.phase
        if stale:
            logger.info(
                "Discarding stale response | session=%s | kind=%s | issued_in=%s | now=%s",
                self._session_id,
                ticket.kind,
                ticket.phase.value,
                self._state.phase.value,
            )
        return stale


def _coerce_polygon(value: PolygonInput) -> Polygon:
    """Accept a ``Polygon``, raw ``(lon, lat)`` pairs, or GeoJSON."""
    if isinstance(value, Polygon):
        return value
    if isinstance(value, Mapping):
        geometry = value.get("geometry") if value.get("type") == "Feature" else value
        return Polygon.from_geojson(dict(geometry or {}))
    return Polygon.from_coords(value)
