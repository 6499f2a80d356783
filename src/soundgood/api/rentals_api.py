"""HTTP routes for browsing instruments and managing rentals."""

from fastapi import APIRouter, Depends, Request, status

from ..services.rental_service import RentalCoordinator
from .rentals_schemas import (
    InstrumentModel,
    RentalModel,
    RentRequestModel,
    TerminateRequestModel,
    TerminateResponseModel,
)

router = APIRouter(prefix="/api", tags=["rentals"])


def get_rental_coordinator(request: Request) -> RentalCoordinator:
    try:
        return request.app.state.rental_coordinator  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("RentalCoordinator is not configured") from exc


@router.get("/instruments", response_model=list[InstrumentModel])
def list_instruments(
    name: str | None = None,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
) -> list[InstrumentModel]:
    if name is None:
        instruments = coordinator.get_all_available()
    else:
        instruments = coordinator.get_all_available_by_name(name)
    return [InstrumentModel.from_domain(item) for item in instruments]


@router.post("/rentals", response_model=RentalModel, status_code=status.HTTP_201_CREATED)
def create_rental(
    payload: RentRequestModel,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
) -> RentalModel:
    rental = coordinator.rent(
        payload.student_id,
        payload.instrument_id,
        payload.from_date,
        payload.to_date,
    )
    return RentalModel.from_domain(rental)


@router.post("/rentals/terminate", response_model=TerminateResponseModel)
def terminate_rental(
    payload: TerminateRequestModel,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
) -> TerminateResponseModel:
    coordinator.terminate_rental(payload.student_id, payload.instrument_id)
    return TerminateResponseModel(
        student_id=str(payload.student_id),
        instrument_id=str(payload.instrument_id),
    )


@router.get("/students/{student_id}/rentals", response_model=list[RentalModel])
def list_student_rentals(
    student_id: str,
    coordinator: RentalCoordinator = Depends(get_rental_coordinator),
) -> list[RentalModel]:
    rentals = coordinator.get_active_rentals(student_id)
    return [RentalModel.from_domain(item) for item in rentals]
