"""Rental coordinator: availability and limit checks in front of the store.

The coordinator never touches the database directly. Each operation runs
read, decide and write against :class:`RentalStoreGateway` and normalizes
every failure into one of the :class:`~src.soundgood.exceptions.RentalError`
kinds before it reaches the caller.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog

from ..domain.models import Instrument, Rental, RentalRequest, TerminationRequest
from ..domain.requests import parse_identifier, parse_rental_request, parse_termination_request
from ..exceptions import (
    InstrumentUnavailableError,
    InvalidRequestError,
    ListFailedError,
    RentalLimitExceededError,
    RentalError,
    RentFailedError,
    SearchFailedError,
    StoreError,
    TerminationFailedError,
)
from ..infrastructure.rental_store import RentalStoreGateway

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class RentalCoordinator:
    """Orchestrates rent and termination requests for students."""

    store: RentalStoreGateway
    max_existing_rentals: int = 1
    log: Any = field(default_factory=lambda: logger)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def rent(
        self,
        student_id: str | None,
        instrument_id: str | None,
        from_date: str | date | None,
        to_date: str | date | None,
    ) -> Rental:
        """Parse caller strings and rent the instrument for the given period."""

        try:
            request = parse_rental_request(student_id, instrument_id, from_date, to_date)
        except InvalidRequestError as exc:
            self.log.warning("rental.rent.invalid", instrument_id=instrument_id, error=str(exc))
            raise RentFailedError(
                f"Could not rent the instrument with id: {instrument_id}", cause=exc
            ) from exc
        return self.rent_request(request)

    def rent_request(self, request: RentalRequest) -> Rental:
        failure_msg = f"Could not rent the instrument with id: {request.instrument_id}"
        with self._lock:
            try:
                available = self.store.list_available()
                if not any(item.id == request.instrument_id for item in available):
                    self.log.warning(
                        "rental.rent.refused",
                        reason="unavailable",
                        student_id=request.student_id,
                        instrument_id=request.instrument_id,
                    )
                    raise InstrumentUnavailableError(
                        f"The instrument with id: {request.instrument_id} is already rented or does not exist."
                    )

                active_count = self.store.count_active_rentals(request.student_id)
                if active_count > self.max_existing_rentals:
                    self.log.warning(
                        "rental.rent.refused",
                        reason="limit_exceeded",
                        student_id=request.student_id,
                        active_rentals=active_count,
                    )
                    raise RentalLimitExceededError(
                        f"The student id: {request.student_id} already holds {active_count} active rentals."
                    )

                rental = request.to_rental()
                self.store.create_rental(rental)
            except StoreError as exc:
                self.log.error("rental.rent.failed", instrument_id=request.instrument_id, error=str(exc))
                raise RentFailedError(failure_msg, cause=exc) from exc
            except RentalError:
                raise
            except Exception as exc:
                self.log.exception("rental.rent.unexpected", instrument_id=request.instrument_id)
                raise RentFailedError(failure_msg, cause=exc) from exc

        self.log.info(
            "rental.rent.success",
            student_id=rental.student_id,
            instrument_id=rental.instrument_id,
            start=rental.start.isoformat(),
            end=rental.end.isoformat(),
        )
        return rental

    def get_all_available(self) -> list[Instrument]:
        """Return every instrument that is not actively rented right now."""

        with self._lock:
            try:
                return self.store.list_available()
            except StoreError as exc:
                self.log.error("rental.list.failed", error=str(exc))
                raise ListFailedError("Unable to list instruments.", cause=exc) from exc
            except Exception as exc:
                self.log.exception("rental.list.unexpected")
                raise ListFailedError("Unable to list instruments.", cause=exc) from exc

    def get_all_available_by_name(self, name: str | None) -> list[Instrument]:
        """Return available instruments named exactly ``name``.

        A missing name short-circuits to an empty list without querying the
        store.
        """

        if not name:
            return []
        with self._lock:
            try:
                return self.store.list_available_by_name(name)
            except StoreError as exc:
                self.log.error("rental.search.failed", name=name, error=str(exc))
                raise SearchFailedError("Could not search for instruments.", cause=exc) from exc
            except Exception as exc:
                self.log.exception("rental.search.unexpected", name=name)
                raise SearchFailedError("Could not search for instruments.", cause=exc) from exc

    def get_active_rentals(self, student_id: str | int | None) -> list[Rental]:
        try:
            parsed = parse_identifier(student_id, field="student_id")
        except InvalidRequestError as exc:
            raise ListFailedError(
                f"Could not list rentals for the student id: {student_id}", cause=exc
            ) from exc
        with self._lock:
            try:
                return self.store.list_active_rentals(parsed)
            except StoreError as exc:
                self.log.error("rental.rentals.failed", student_id=parsed, error=str(exc))
                raise ListFailedError(
                    f"Could not list rentals for the student id: {parsed}", cause=exc
                ) from exc
            except Exception as exc:
                self.log.exception("rental.rentals.unexpected", student_id=parsed)
                raise ListFailedError(
                    f"Could not list rentals for the student id: {parsed}", cause=exc
                ) from exc

    def terminate_rental(self, student_id: str | None, instrument_id: str | None) -> None:
        """Parse caller strings and terminate the matching open rental."""

        try:
            request = parse_termination_request(student_id, instrument_id)
        except InvalidRequestError as exc:
            raise TerminationFailedError(
                f"Could not terminate the rent for student: {student_id} and instrument: {instrument_id}",
                cause=exc,
            ) from exc
        self.terminate_request(request)

    def terminate_request(self, request: TerminationRequest) -> None:
        with self._lock:
            try:
                self.store.terminate_rental(request.student_id, request.instrument_id)
            except StoreError as exc:
                self.log.warning(
                    "rental.terminate.failed",
                    student_id=request.student_id,
                    instrument_id=request.instrument_id,
                    error=str(exc),
                )
                raise TerminationFailedError(
                    f"Could not terminate the rent for student: {request.student_id} "
                    f"and instrument: {request.instrument_id}",
                    cause=exc,
                ) from exc
            except Exception as exc:
                self.log.exception(
                    "rental.terminate.unexpected",
                    student_id=request.student_id,
                    instrument_id=request.instrument_id,
                )
                raise TerminationFailedError(
                    f"Could not terminate the rent for student: {request.student_id} "
                    f"and instrument: {request.instrument_id}",
                    cause=exc,
                ) from exc
        self.log.info(
            "rental.terminate.success",
            student_id=request.student_id,
            instrument_id=request.instrument_id,
        )


__all__ = ["RentalCoordinator"]
