"""Parsing of caller-supplied strings into typed rental requests."""

from __future__ import annotations

import logging
from datetime import date

from ..exceptions import InvalidRequestError
from .models import RentalRequest, TerminationRequest

logger = logging.getLogger(__name__)


def parse_identifier(raw: str | int | None, *, field: str) -> int:
    """Return ``raw`` as an integer identifier or raise :class:`InvalidRequestError`."""

    if isinstance(raw, bool):
        raise InvalidRequestError(f"{field} must be an integer identifier")
    if isinstance(raw, int):
        return raw
    if raw is None or not raw.strip():
        raise InvalidRequestError(f"{field} is required")
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise InvalidRequestError(f"{field} must be an integer identifier, got {raw!r}") from exc


def parse_date(raw: str | date | None, *, field: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` calendar date."""

    if isinstance(raw, date):
        return raw
    if raw is None or not raw.strip():
        raise InvalidRequestError(f"{field} is required")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidRequestError(f"{field} must be a YYYY-MM-DD date, got {raw!r}") from exc


def parse_rental_request(
    student_id: str | int | None,
    instrument_id: str | int | None,
    from_date: str | date | None,
    to_date: str | date | None,
) -> RentalRequest:
    """Build a :class:`RentalRequest`; the interval must satisfy ``start <= end``."""

    request = RentalRequest(
        student_id=parse_identifier(student_id, field="student_id"),
        instrument_id=parse_identifier(instrument_id, field="instrument_id"),
        start=parse_date(from_date, field="from_date"),
        end=parse_date(to_date, field="to_date"),
    )
    if request.start > request.end:
        logger.warning(
            "rental.request.inverted_interval",
            extra={"start": request.start.isoformat(), "end": request.end.isoformat()},
        )
        raise InvalidRequestError(
            f"rental period is inverted: {request.start.isoformat()} is after {request.end.isoformat()}"
        )
    return request


def parse_termination_request(
    student_id: str | int | None,
    instrument_id: str | int | None,
) -> TerminationRequest:
    return TerminationRequest(
        student_id=parse_identifier(student_id, field="student_id"),
        instrument_id=parse_identifier(instrument_id, field="instrument_id"),
    )


__all__ = [
    "parse_date",
    "parse_identifier",
    "parse_rental_request",
    "parse_termination_request",
]
