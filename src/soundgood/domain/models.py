"""Domain models for the Soundgood instrument rental ledger.

Instances are immutable snapshots of what the store returned for a single
request. Nothing here is cached across requests: the database is the only
system of record for instruments and rentals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class Instrument:
    """Rentable instrument as listed by the availability queries."""

    id: int
    name: str
    brand: str
    price: int


@dataclass(frozen=True, slots=True)
class Rental:
    """Occupancy interval of one instrument by one student.

    A rental is *active* while ``terminated`` is false and
    ``start <= today <= end``. Termination flips the flag; rows are never
    deleted.
    """

    student_id: int
    instrument_id: int
    start: date
    end: date
    terminated: bool = False
    rental_id: int | None = None

    def spans(self, day: date) -> bool:
        return self.start <= day <= self.end

    def is_active(self, day: date) -> bool:
        return not self.terminated and self.spans(day)


@dataclass(frozen=True, slots=True)
class RentalRequest:
    """Validated input for a rent operation."""

    student_id: int
    instrument_id: int
    start: date
    end: date

    def to_rental(self) -> Rental:
        return Rental(
            student_id=self.student_id,
            instrument_id=self.instrument_id,
            start=self.start,
            end=self.end,
            terminated=False,
        )


@dataclass(frozen=True, slots=True)
class TerminationRequest:
    """Validated input for a termination operation."""

    student_id: int
    instrument_id: int


__all__ = ["Instrument", "Rental", "RentalRequest", "TerminationRequest"]
