"""Unified estimator exception taxonomy.

Provides a shared base exception hierarchy for the geometry engine, the
capture workflow, and the provider adapters. Every domain exception
inherits from ``EstimatorError`` and carries structured context fields
so that callers can decide consistently whether to retry, surface a
message, or treat the failure as a programming error.

Taxonomy categories
-------------------
- ``ValidationError``: input/geometry violations, never retryable.
- ``TransientError``: temporary failures (network, throttle), retryable.
- ``PermanentError``: unrecoverable lookups (e.g. no match), not retryable.
- ``ContractError``: caller or payload broke a contract, never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging.
"""

from __future__ import annotations


class EstimatorError(Exception):
    """Base exception for all estimator-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"geocode"``, ``"workflow"``).
        code: Machine-readable error code (e.g. ``"LOOKUP_NOT_FOUND"``).
        retryable: Whether the caller may retry the operation.
        correlation_id: Session/request correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(EstimatorError):
    """Input or geometry validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(EstimatorError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(EstimatorError):
    """Unrecoverable domain failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(EstimatorError):
    """A caller or upstream payload broke an agreed contract. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class LookupNotFoundError(PermanentError):
    """Geocoding produced no candidate for the address."""

    default_stage = "geocode"
    default_code = "LOOKUP_NOT_FOUND"


class GeometryDegenerateError(ValidationError):
    """A polygon cannot take part in an area or difference computation.

    Raised inside the geometry engine only; public engine operations turn
    it into a no-op result.
    """

    default_stage = "geometry"
    default_code = "GEOMETRY_DEGENERATE"


class InvariantViolationError(ContractError):
    """A workflow operation was called out of order or without its preconditions.

    This is a programming error in the caller. The workflow raises it
    before mutating any state.

    Attributes:
        phase: The workflow phase at the time of the call.
        operation: Name of the rejected operation.
    """

    default_stage = "workflow"
    default_code = "INVARIANT_VIOLATION"

    def __init__(self, operation: str, phase: str, message: str) -> None:
        self.operation = operation
        self.phase = phase
        super().__init__(f"{operation} rejected in phase {phase!r}: {message}")
