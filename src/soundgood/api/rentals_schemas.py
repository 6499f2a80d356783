"""Pydantic schemas for the rental HTTP API."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from ..domain.models import Instrument, Rental


class InstrumentModel(BaseModel):
    id: int
    name: str
    brand: str
    price: int

    @classmethod
    def from_domain(cls, instrument: Instrument) -> "InstrumentModel":
        return cls(
            id=instrument.id,
            name=instrument.name,
            brand=instrument.brand,
            price=instrument.price,
        )


class RentalModel(BaseModel):
    rental_id: int | None = None
    student_id: int
    instrument_id: int
    start: date
    end: date
    terminated: bool

    @classmethod
    def from_domain(cls, rental: Rental) -> "RentalModel":
        return cls(
            rental_id=rental.rental_id,
            student_id=rental.student_id,
            instrument_id=rental.instrument_id,
            start=rental.start,
            end=rental.end,
            terminated=rental.terminated,
        )


class RentRequestModel(BaseModel):
    """Raw caller input; parsing and validation happen in the coordinator."""

    student_id: str | None = None
    instrument_id: str | None = None
    from_date: str | None = None
    to_date: str | None = None


class TerminateRequestModel(BaseModel):
    student_id: str | None = None
    instrument_id: str | None = None


class TerminateResponseModel(BaseModel):
    student_id: str
    instrument_id: str
    terminated: bool = True
