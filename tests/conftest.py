from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterator

import pytest

from src.soundgood.infrastructure.rental_store import RentalStoreConfig, RentalStoreGateway
from src.soundgood.services.rental_service import RentalCoordinator
from tests.helpers.ledger import SEED_INSTRUMENTS, Clock, seed_instruments


@pytest.fixture
def clock() -> Clock:
    return Clock(date(2024, 1, 15))


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "soundgood.db"


@pytest.fixture
def store(db_path: Path, clock: Clock) -> Iterator[RentalStoreGateway]:
    gateway = RentalStoreGateway(
        config=RentalStoreConfig(dsn=f"sqlite:///{db_path}"),
        today=clock,
    )
    seed_instruments(db_path, SEED_INSTRUMENTS)
    yield gateway
    gateway.close()


@pytest.fixture
def coordinator(store: RentalStoreGateway) -> RentalCoordinator:
    return RentalCoordinator(store=store)
