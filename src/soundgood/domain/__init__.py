"""Domain layer: rental ledger models and request parsing."""

from .models import Instrument, Rental, RentalRequest, TerminationRequest
from .requests import parse_rental_request, parse_termination_request

__all__ = [
    "Instrument",
    "Rental",
    "RentalRequest",
    "TerminationRequest",
    "parse_rental_request",
    "parse_termination_request",
]
