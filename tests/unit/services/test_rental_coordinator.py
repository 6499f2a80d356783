from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from src.soundgood.domain.models import Instrument, Rental, RentalRequest
from src.soundgood.exceptions import (
    FailureKind,
    InstrumentUnavailableError,
    ListFailedError,
    RentalLimitExceededError,
    RentFailedError,
    RowCountMismatchError,
    SearchFailedError,
    StoreError,
    TerminationFailedError,
)
from src.soundgood.infrastructure.rental_store import RentalStoreGateway
from src.soundgood.services.rental_service import RentalCoordinator
from tests.helpers.ledger import Clock, rental_rows, seed_instruments, seed_raw_rental, seed_rental


class UnreachableStore:
    """Store double that fails the test if the coordinator touches it."""

    def __getattr__(self, name: str):
        raise AssertionError(f"store.{name} must not be called")


class FailingStore:
    def __init__(self, error: StoreError) -> None:
        self.error = error
        self.calls: list[str] = []

    def _raise(self, name: str):
        self.calls.append(name)
        raise self.error

    def list_available(self) -> list[Instrument]:
        return self._raise("list_available")

    def list_available_by_name(self, name: str) -> list[Instrument]:
        return self._raise("list_available_by_name")

    def list_active_rentals(self, student_id: int) -> list[Rental]:
        return self._raise("list_active_rentals")

    def count_active_rentals(self, student_id: int) -> int:
        return self._raise("count_active_rentals")

    def create_rental(self, rental: Rental) -> None:
        self._raise("create_rental")

    def terminate_rental(self, student_id: int, instrument_id: int) -> None:
        self._raise("terminate_rental")


def _available_ids(coordinator: RentalCoordinator) -> list[int]:
    return sorted(item.id for item in coordinator.get_all_available())


@pytest.mark.unit
def test_rent_terminate_and_rent_again_scenario(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    assert _available_ids(coordinator) == [1, 2]

    rental = coordinator.rent("10", "1", "2024-01-01", "2024-01-31")

    assert rental == Rental(
        student_id=10, instrument_id=1, start=date(2024, 1, 1), end=date(2024, 1, 31)
    )
    assert _available_ids(coordinator) == [2]

    coordinator.terminate_rental("10", "1")
    assert _available_ids(coordinator) == [1, 2]

    coordinator.rent("10", "1", "2024-01-10", "2024-01-20")
    assert [row["is_terminated"] for row in rental_rows(db_path)] == [1, 0]


@pytest.mark.unit
def test_instrument_becomes_available_when_period_ends(
    coordinator: RentalCoordinator, clock: Clock
) -> None:
    coordinator.rent("10", "1", "2024-01-01", "2024-01-31")

    clock.today = date(2024, 2, 1)

    assert _available_ids(coordinator) == [1, 2]


@pytest.mark.unit
def test_rent_of_rented_instrument_is_refused_without_insert(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    coordinator.rent("10", "1", "2024-01-01", "2024-01-31")

    with pytest.raises(InstrumentUnavailableError) as excinfo:
        coordinator.rent("11", "1", "2024-01-05", "2024-01-06")

    assert excinfo.value.kind is FailureKind.INSTRUMENT_UNAVAILABLE
    assert len(rental_rows(db_path)) == 1


@pytest.mark.unit
def test_rent_of_unknown_instrument_is_refused(coordinator: RentalCoordinator, db_path: Path) -> None:
    with pytest.raises(InstrumentUnavailableError):
        coordinator.rent("10", "42", "2024-01-01", "2024-01-31")

    assert rental_rows(db_path) == []


@pytest.mark.unit
def test_student_with_two_active_rentals_hits_the_cap(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    seed_instruments(db_path, [(3, "Violin", "Stentor", 80)])
    coordinator.rent("10", "1", "2024-01-01", "2024-01-31")
    coordinator.rent("10", "2", "2024-01-01", "2024-01-31")

    with pytest.raises(RentalLimitExceededError) as excinfo:
        coordinator.rent("10", "3", "2024-01-01", "2024-01-31")

    assert excinfo.value.kind is FailureKind.RENTAL_LIMIT_EXCEEDED
    assert "2 active rentals" in excinfo.value.message
    assert len(rental_rows(db_path)) == 2


@pytest.mark.unit
def test_cap_counts_non_terminated_rentals_outside_today(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    seed_instruments(db_path, [(3, "Violin", "Stentor", 80)])
    seed_rental(db_path, student_id=10, instrument_id=3, start=date(2023, 1, 1), end=date(2023, 1, 31))
    seed_rental(db_path, student_id=10, instrument_id=3, start=date(2024, 6, 1), end=date(2024, 6, 30))

    with pytest.raises(RentalLimitExceededError):
        coordinator.rent("10", "1", "2024-01-01", "2024-01-31")


@pytest.mark.unit
def test_configurable_cap_threshold(store: RentalStoreGateway) -> None:
    strict = RentalCoordinator(store=store, max_existing_rentals=0)
    strict.rent("10", "1", "2024-01-01", "2024-01-31")

    with pytest.raises(RentalLimitExceededError):
        strict.rent("10", "2", "2024-01-01", "2024-01-31")


@pytest.mark.unit
@pytest.mark.parametrize(
    ("student_id", "instrument_id", "from_date", "to_date"),
    [
        ("10", None, "2024-01-01", "2024-01-31"),
        ("ten", "1", "2024-01-01", "2024-01-31"),
        ("10", "1", "01/01/2024", "2024-01-31"),
        ("10", "1", "2024-02-01", "2024-01-31"),
    ],
)
def test_invalid_rent_input_fails_before_touching_store(
    student_id: str | None, instrument_id: str | None, from_date: str, to_date: str
) -> None:
    coordinator = RentalCoordinator(store=UnreachableStore())  # type: ignore[arg-type]

    with pytest.raises(RentFailedError) as excinfo:
        coordinator.rent(student_id, instrument_id, from_date, to_date)

    assert excinfo.value.is_invalid_request
    assert not excinfo.value.is_store_fault


@pytest.mark.unit
@pytest.mark.parametrize("name", [None, ""])
def test_search_without_name_short_circuits(name: str | None) -> None:
    coordinator = RentalCoordinator(store=UnreachableStore())  # type: ignore[arg-type]

    assert coordinator.get_all_available_by_name(name) == []


@pytest.mark.unit
def test_search_by_name_delegates_to_store(coordinator: RentalCoordinator) -> None:
    found = coordinator.get_all_available_by_name("Piano")

    assert [item.id for item in found] == [2]
    assert coordinator.get_all_available_by_name("Drums") == []


@pytest.mark.unit
def test_store_faults_are_wrapped_per_operation() -> None:
    cause = StoreError("Could not list instruments.", rollback_error="connection lost")
    store = FailingStore(cause)
    coordinator = RentalCoordinator(store=store)  # type: ignore[arg-type]

    with pytest.raises(ListFailedError) as listed:
        coordinator.get_all_available()
    with pytest.raises(SearchFailedError) as searched:
        coordinator.get_all_available_by_name("Guitar")
    with pytest.raises(RentFailedError) as rented:
        coordinator.rent("10", "1", "2024-01-01", "2024-01-31")
    with pytest.raises(TerminationFailedError) as terminated:
        coordinator.terminate_rental("10", "1")
    with pytest.raises(ListFailedError):
        coordinator.get_active_rentals("10")

    for excinfo in (listed, searched, rented, terminated):
        assert excinfo.value.cause is cause
        assert excinfo.value.is_store_fault
    assert "rollback failed: connection lost" in rented.value.describe()
    assert store.calls == [
        "list_available",
        "list_available_by_name",
        "list_available",
        "terminate_rental",
        "list_active_rentals",
    ]


@pytest.mark.unit
def test_guarded_insert_conflict_is_reported_as_rent_failure(store: RentalStoreGateway) -> None:
    class StaleAvailabilityStore:
        """Reports every instrument free, like a read that lost a race."""

        def __init__(self, inner: RentalStoreGateway) -> None:
            self.inner = inner

        def list_available(self) -> list[Instrument]:
            return [Instrument(id=1, name="Guitar", brand="Fender", price=100)]

        def count_active_rentals(self, student_id: int) -> int:
            return self.inner.count_active_rentals(student_id)

        def create_rental(self, rental: Rental) -> None:
            self.inner.create_rental(rental)

    store.create_rental(
        Rental(student_id=11, instrument_id=1, start=date(2024, 1, 1), end=date(2024, 1, 31))
    )
    coordinator = RentalCoordinator(store=StaleAvailabilityStore(store))  # type: ignore[arg-type]

    with pytest.raises(RentFailedError) as excinfo:
        coordinator.rent_request(
            RentalRequest(student_id=10, instrument_id=1, start=date(2024, 1, 2), end=date(2024, 1, 3))
        )

    assert isinstance(excinfo.value.cause, RowCountMismatchError)


@pytest.mark.unit
def test_terminate_without_open_rental_fails(coordinator: RentalCoordinator) -> None:
    with pytest.raises(TerminationFailedError) as excinfo:
        coordinator.terminate_rental("10", "1")

    assert isinstance(excinfo.value.cause, RowCountMismatchError)


@pytest.mark.unit
def test_terminate_requires_both_ids() -> None:
    coordinator = RentalCoordinator(store=UnreachableStore())  # type: ignore[arg-type]

    with pytest.raises(TerminationFailedError) as excinfo:
        coordinator.terminate_rental(None, "1")

    assert excinfo.value.is_invalid_request


@pytest.mark.unit
def test_get_active_rentals_lists_open_rentals(coordinator: RentalCoordinator) -> None:
    coordinator.rent("10", "1", "2024-01-01", "2024-01-31")
    coordinator.rent("10", "2", "2024-03-01", "2024-03-31")
    coordinator.terminate_rental("10", "1")

    rentals = coordinator.get_active_rentals("10")

    assert [rental.instrument_id for rental in rentals] == [2]


@pytest.mark.unit
def test_malformed_stored_instrument_is_reported_per_operation(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    seed_instruments(db_path, [(3, "Drum", "Pearl", "n/a")])  # type: ignore[list-item]

    with pytest.raises(ListFailedError) as listed:
        coordinator.get_all_available()
    with pytest.raises(SearchFailedError) as searched:
        coordinator.get_all_available_by_name("Drum")
    with pytest.raises(RentFailedError) as rented:
        coordinator.rent("10", "1", "2024-01-01", "2024-01-31")

    for excinfo in (listed, searched, rented):
        assert excinfo.value.is_store_fault
        assert isinstance(excinfo.value.cause.cause, ValueError)
    assert rental_rows(db_path) == []


@pytest.mark.unit
def test_malformed_stored_rental_is_reported_as_list_failure(
    coordinator: RentalCoordinator, db_path: Path
) -> None:
    seed_raw_rental(db_path, (10, 1, "2024-01-01", "later", 0))

    with pytest.raises(ListFailedError) as excinfo:
        coordinator.get_active_rentals("10")

    assert excinfo.value.is_store_fault


@pytest.mark.unit
def test_unexpected_store_exceptions_are_wrapped_per_operation() -> None:
    cause = RuntimeError("driver crashed")
    store = FailingStore(cause)  # type: ignore[arg-type]
    coordinator = RentalCoordinator(store=store)  # type: ignore[arg-type]

    with pytest.raises(ListFailedError) as listed:
        coordinator.get_all_available()
    with pytest.raises(SearchFailedError) as searched:
        coordinator.get_all_available_by_name("Guitar")
    with pytest.raises(RentFailedError) as rented:
        coordinator.rent("10", "1", "2024-01-01", "2024-01-31")
    with pytest.raises(TerminationFailedError) as terminated:
        coordinator.terminate_rental("10", "1")
    with pytest.raises(ListFailedError) as rentals:
        coordinator.get_active_rentals("10")

    for excinfo in (listed, searched, rented, terminated, rentals):
        assert excinfo.value.cause is cause
        assert not excinfo.value.is_store_fault
    assert "driver crashed" in rented.value.describe()
