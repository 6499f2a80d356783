"""Failure taxonomy shared by the rental store gateway and the coordinator."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

__all__ = [
    "AppError",
    "InvalidRequestError",
    "StoreError",
    "RowCountMismatchError",
    "CursorCloseError",
    "FailureKind",
    "RentalError",
    "InstrumentUnavailableError",
    "RentalLimitExceededError",
    "RentFailedError",
    "ListFailedError",
    "SearchFailedError",
    "TerminationFailedError",
]


class AppError(Exception):
    """Base class for application specific errors."""


class InvalidRequestError(AppError, ValueError):
    """Raised when caller input cannot be parsed into a typed request."""


class StoreError(AppError):
    """Raised by the rental store for every failed read or write.

    The error always reports what happened to the open transaction:
    ``rollback_error`` is ``None`` when the rollback succeeded, otherwise it
    holds the message of the secondary failure.
    """

    def __init__(
        self,
        failure_message: str,
        *,
        rollback_error: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.failure_message = failure_message
        self.rollback_error = rollback_error
        self.cause = cause
        message = failure_message
        if rollback_error is not None:
            message = f"{message}. Also failed to rollback transaction because of: {rollback_error}"
        super().__init__(message)

    @property
    def rollback_outcome(self) -> str:
        if self.rollback_error is None:
            return "rolled back"
        return f"rollback failed: {self.rollback_error}"


class RowCountMismatchError(StoreError):
    """Raised when a mutation affected a row count other than exactly one."""


class CursorCloseError(StoreError):
    """Raised when a result cursor could not be closed."""


class FailureKind(str, Enum):
    """Tagged failure kinds surfaced by the rental coordinator."""

    INSTRUMENT_UNAVAILABLE = "instrument_unavailable"
    RENTAL_LIMIT_EXCEEDED = "rental_limit_exceeded"
    RENT_FAILED = "rent_failed"
    LIST_FAILED = "list_failed"
    SEARCH_FAILED = "search_failed"
    TERMINATION_FAILED = "termination_failed"


class RentalError(AppError):
    """Base class for the failures returned by the rental coordinator."""

    kind: ClassVar[FailureKind]

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def is_store_fault(self) -> bool:
        return isinstance(self.cause, StoreError)

    @property
    def is_invalid_request(self) -> bool:
        return isinstance(self.cause, InvalidRequestError)

    def describe(self) -> str:
        """Render the failure chain: failure, cause, rollback outcome."""

        parts = [self.message]
        if self.cause is not None:
            cause = self.cause
            if isinstance(cause, StoreError):
                parts.append(cause.failure_message)
                if cause.rollback_error is not None:
                    parts.append(cause.rollback_outcome)
                if cause.cause is not None:
                    parts.append(str(cause.cause))
            else:
                parts.append(str(cause))
        return " -> ".join(part for part in parts if part)


class InstrumentUnavailableError(RentalError):
    """Instrument is actively rented or unknown."""

    kind = FailureKind.INSTRUMENT_UNAVAILABLE


class RentalLimitExceededError(RentalError):
    """Student already holds too many non-terminated rentals."""

    kind = FailureKind.RENTAL_LIMIT_EXCEEDED


class RentFailedError(RentalError):
    """Rent request could not be parsed or written."""

    kind = FailureKind.RENT_FAILED


class ListFailedError(RentalError):
    """Listing instruments or rentals failed."""

    kind = FailureKind.LIST_FAILED


class SearchFailedError(RentalError):
    """Name search over available instruments failed."""

    kind = FailureKind.SEARCH_FAILED


class TerminationFailedError(RentalError):
    """No single open rental could be terminated."""

    kind = FailureKind.TERMINATION_FAILED
