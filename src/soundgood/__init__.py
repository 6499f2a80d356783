"""Soundgood instrument rental service.

Students rent physical instruments for a date range; the coordinator checks
availability and the per-student rental cap, and the store gateway commits
each decision as a single transaction.
"""

from .domain.models import Instrument, Rental
from .infrastructure.rental_store import RentalStoreConfig, RentalStoreGateway
from .services.rental_service import RentalCoordinator

__all__ = [
    "Instrument",
    "Rental",
    "RentalCoordinator",
    "RentalStoreConfig",
    "RentalStoreGateway",
]
