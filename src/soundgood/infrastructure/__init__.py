"""Infrastructure adapters for the Soundgood rental ledger."""

from __future__ import annotations

from .rental_store import RentalStoreConfig, RentalStoreGateway

__all__ = ["RentalStoreConfig", "RentalStoreGateway"]
