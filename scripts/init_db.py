"""Initialize the Soundgood rental database schema."""

from __future__ import annotations

import sys

from src.soundgood.config import AppConfig
from src.soundgood.exceptions import StoreError
from src.soundgood.infrastructure.rental_store import RentalStoreConfig, RentalStoreGateway


def main() -> int:
    config = AppConfig.build_default()
    try:
        store = RentalStoreGateway(
            config=RentalStoreConfig(dsn=config.database_url, create_schema=True)
        )
    except StoreError as exc:
        print(f"init failed: {exc}", file=sys.stderr)
        return 2
    store.close()
    print("Database initialized.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
