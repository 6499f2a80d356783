"""Service layer orchestrating the rental ledger."""

from .rental_service import RentalCoordinator

__all__ = ["RentalCoordinator"]
