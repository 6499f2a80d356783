"""FastAPI application entry point.

Run with ``uvicorn --factory src.soundgood.main:create_app`` or ``python -m
src.soundgood.main``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from .api import ApiError, api_error_handler, rental_error_handler, router
from .config import AppConfig
from .exceptions import RentalError
from .infrastructure.rental_store import RentalStoreConfig, RentalStoreGateway
from .logging import configure_logging
from .services.rental_service import RentalCoordinator


def build_coordinator(config: AppConfig) -> RentalCoordinator:
    """Open the store connection and wrap it in a coordinator."""

    store = RentalStoreGateway(
        config=RentalStoreConfig(dsn=config.database_url, create_schema=config.create_schema)
    )
    return RentalCoordinator(store=store, max_existing_rentals=config.max_existing_rentals)


def create_app(
    config: AppConfig | None = None,
    *,
    coordinator: RentalCoordinator | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or AppConfig.build_default()
    configure_logging(cfg.log_level, json=cfg.log_json)
    rental_coordinator = coordinator or build_coordinator(cfg)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        rental_coordinator.store.close()

    app = FastAPI(title="Soundgood", lifespan=lifespan)
    app.state.config = cfg
    app.state.rental_coordinator = rental_coordinator
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RentalError, rental_error_handler)  # type: ignore[arg-type]
    app.include_router(router)
    return app


def run() -> None:
    cfg = AppConfig.build_default()
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port)


if __name__ == "__main__":
    run()
