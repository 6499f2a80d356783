"""Translation of rental failures into HTTP error payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..exceptions import FailureKind, RentalError, RowCountMismatchError


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"error": {"code": self.code, "message": self.message}},
            headers=dict(self.headers or {}),
        )


def status_for(error: RentalError) -> int:
    """Pick the HTTP status describing ``error`` for the caller."""

    if error.kind in (FailureKind.INSTRUMENT_UNAVAILABLE, FailureKind.RENTAL_LIMIT_EXCEEDED):
        return status.HTTP_409_CONFLICT
    if error.is_invalid_request:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(error.cause, RowCountMismatchError):
        if error.kind is FailureKind.TERMINATION_FAILED:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_409_CONFLICT
    return status.HTTP_503_SERVICE_UNAVAILABLE


def rental_error(error: RentalError) -> ApiError:
    return ApiError(status_for(error), error.kind.value, error.describe())


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def rental_error_handler(_: Request, exc: RentalError) -> JSONResponse:
    return rental_error(exc).to_response()


__all__ = [
    "ApiError",
    "api_error_handler",
    "rental_error",
    "rental_error_handler",
    "status_for",
]
