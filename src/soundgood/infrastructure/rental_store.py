"""Rental store gateway backed by PostgreSQL with a SQLite fallback for tests.

The gateway owns the only connection to the database. Every public operation
is its own transaction: it either commits a well-defined state or rolls back
and raises :class:`~src.soundgood.exceptions.StoreError`.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterator, Mapping, NoReturn, TypeVar

import psycopg
from psycopg.rows import dict_row
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Dialect

from ..domain.models import Instrument, Rental
from ..exceptions import CursorCloseError, RowCountMismatchError, StoreError
from ..utils.postgres_dsn import to_libpq_conninfo
from .schema import create_statements

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class RentalStoreConfig:
    """Configuration required to talk to the rental database."""

    dsn: str
    create_schema: bool = True


class RentalStoreGateway:
    """Read queries and atomic mutations over the instrument rental ledger."""

    def __init__(
        self,
        *,
        config: RentalStoreConfig,
        today: Callable[[], date] | None = None,
    ) -> None:
        self.config = config
        clock = today or date.today
        if self._is_sqlite_dsn(config.dsn):
            self._backend: _RentalBackend = _SQLiteRentalBackend(config, clock)
        else:
            self._backend = _PostgresRentalBackend(config, clock)

    # Public API ---------------------------------------------------------

    def list_available(self) -> list[Instrument]:
        """Return every instrument without an active rental, in store order."""

        return self._backend.list_available()

    def list_available_by_name(self, name: str) -> list[Instrument]:
        """Return available instruments whose name equals ``name`` exactly."""

        return self._backend.list_available_by_name(name)

    def list_active_rentals(self, student_id: int) -> list[Rental]:
        """Return the student's non-terminated rentals regardless of dates."""

        return self._backend.list_active_rentals(student_id)

    def count_active_rentals(self, student_id: int) -> int:
        return len(self._backend.list_active_rentals(student_id))

    def create_rental(self, rental: Rental) -> None:
        """Insert ``rental`` unless the instrument is actively rented.

        Commits only when exactly one row was inserted.
        """

        self._backend.create_rental(rental)

    def terminate_rental(self, student_id: int, instrument_id: int) -> None:
        """Flip ``is_terminated`` on the student's open rental of the instrument."""

        self._backend.terminate_rental(student_id, instrument_id)

    def close(self) -> None:
        self._backend.close()

    # Helpers ------------------------------------------------------------

    @staticmethod
    def _is_sqlite_dsn(dsn: str) -> bool:
        return dsn == ":memory:" or dsn.startswith("sqlite://") or dsn.startswith("file:")


class _RentalBackend:
    """Transaction discipline shared by the concrete database adapters."""

    dialect: Dialect
    list_available_sql: str
    list_available_by_name_sql: str
    list_active_rentals_sql: str
    create_rental_sql: str
    terminate_rental_sql: str

    def __init__(self, config: RentalStoreConfig, today: Callable[[], date]) -> None:
        self.config = config
        self._today = today
        try:
            self._conn = self._connect()
        except Exception as exc:
            logger.error("rental_store.connect.failed", extra={"error": str(exc)})
            raise StoreError("Could not connect to datasource.", cause=exc) from exc
        if config.create_schema:
            self._ensure_schema()

    # Store operations ---------------------------------------------------

    def list_available(self) -> list[Instrument]:
        return self._fetch_all(
            "Could not list instruments.",
            self.list_available_sql,
            {},
            self._instrument_from_row,
            with_today=True,
        )

    def list_available_by_name(self, name: str) -> list[Instrument]:
        return self._fetch_all(
            "Could not search for specified instruments.",
            self.list_available_by_name_sql,
            {"name": name},
            self._instrument_from_row,
            with_today=True,
        )

    def list_active_rentals(self, student_id: int) -> list[Rental]:
        return self._fetch_all(
            f"Could not get all rented instruments for the student id: {student_id}",
            self.list_active_rentals_sql,
            {"student_id": student_id},
            self._rental_from_row,
        )

    def create_rental(self, rental: Rental) -> None:
        failure_msg = f"Could not rent the instrument with id: {rental.instrument_id}"
        try:
            params = {
                "student_id": rental.student_id,
                "instrument_id": rental.instrument_id,
                "rental_start": self._date_param(rental.start),
                "rental_end": self._date_param(rental.end),
                "today": self._date_param(self._today()),
            }
            with self._cursor(failure_msg) as cur:
                cur.execute(self.create_rental_sql, params)
                updated_rows = cur.rowcount
            if updated_rows != 1:
                self._fail(
                    f"{failure_msg}. Expected one inserted row, got {updated_rows}",
                    error_class=RowCountMismatchError,
                )
            self._conn.commit()
        except StoreError:
            raise
        except Exception as exc:
            self._fail(failure_msg, exc)
        logger.info(
            "rental_store.create.committed",
            extra={"student_id": rental.student_id, "instrument_id": rental.instrument_id},
        )

    def terminate_rental(self, student_id: int, instrument_id: int) -> None:
        failure_msg = (
            f"Could not terminate the rent for student: {student_id} and instrument: {instrument_id}"
        )
        try:
            with self._cursor(failure_msg) as cur:
                cur.execute(
                    self.terminate_rental_sql,
                    {"student_id": student_id, "instrument_id": instrument_id},
                )
                updated_rows = cur.rowcount
            if updated_rows != 1:
                self._fail(
                    f"{failure_msg}. Expected one updated row, got {updated_rows}",
                    error_class=RowCountMismatchError,
                )
            self._conn.commit()
        except StoreError:
            raise
        except Exception as exc:
            self._fail(failure_msg, exc)
        logger.info(
            "rental_store.terminate.committed",
            extra={"student_id": student_id, "instrument_id": instrument_id},
        )

    def close(self) -> None:
        self._conn.close()

    # Internal utilities -------------------------------------------------

    def _connect(self) -> Any:
        raise NotImplementedError

    def _date_param(self, value: date) -> object:
        return value

    def _ensure_schema(self) -> None:
        failure_msg = "Could not create the rental schema."
        try:
            with self._cursor(failure_msg) as cur:
                for statement in create_statements(self.dialect):
                    cur.execute(statement)
            self._conn.commit()
        except StoreError:
            raise
        except Exception as exc:
            self._fail(failure_msg, exc)

    def _fetch_all(
        self,
        failure_msg: str,
        sql: str,
        params: Mapping[str, object],
        row_mapper: Callable[[Any], T],
        *,
        with_today: bool = False,
    ) -> list[T]:
        """Run a read query and map its rows, all inside one transaction.

        A bad stored value or a failing clock is reported like any driver
        error: rolled back and raised as :class:`StoreError`.
        """

        try:
            query_params = dict(params)
            if with_today:
                query_params["today"] = self._date_param(self._today())
            with self._cursor(failure_msg) as cur:
                cur.execute(sql, query_params)
                rows = cur.fetchall()
            items = [row_mapper(row) for row in rows]
            self._conn.commit()
        except StoreError:
            raise
        except Exception as exc:
            self._fail(failure_msg, exc)
        return items

    @contextmanager
    def _cursor(self, failure_msg: str) -> Iterator[Any]:
        cursor = self._conn.cursor()
        try:
            yield cursor
        finally:
            try:
                cursor.close()
            except Exception as exc:
                self._fail(
                    f"{failure_msg} Could not close result cursor.",
                    exc,
                    error_class=CursorCloseError,
                )

    def _fail(
        self,
        failure_msg: str,
        cause: BaseException | None = None,
        *,
        error_class: type[StoreError] = StoreError,
    ) -> NoReturn:
        rollback_error: str | None = None
        try:
            self._conn.rollback()
        except Exception as exc:
            rollback_error = str(exc)
            logger.error(
                "rental_store.rollback.failed",
                extra={"failure": failure_msg, "error": rollback_error},
            )
        logger.warning(
            "rental_store.operation.failed",
            extra={"failure": failure_msg, "cause": repr(cause) if cause else None},
        )
        error = error_class(failure_msg, rollback_error=rollback_error, cause=cause)
        if cause is not None:
            raise error from cause
        raise error

    @staticmethod
    def _as_date(value: object) -> date:
        if isinstance(value, date):
            return value
        return date.fromisoformat(str(value))

    def _instrument_from_row(self, row: Any) -> Instrument:
        return Instrument(
            id=int(row["instrument_id"]),
            name=row["instrument_name"],
            brand=row["brand"],
            price=int(row["instrument_price"]),
        )

    def _rental_from_row(self, row: Any) -> Rental:
        return Rental(
            rental_id=int(row["rental_instrument_id"]),
            student_id=int(row["student_id"]),
            instrument_id=int(row["instrument_id"]),
            start=self._as_date(row["rental_start"]),
            end=self._as_date(row["rental_end"]),
            terminated=bool(row["is_terminated"]),
        )


class _SQLiteRentalBackend(_RentalBackend):
    """SQLite implementation used in unit tests and offline environments."""

    dialect = sqlite.dialect()

    list_available_sql = """
        SELECT i.instrument_id, i.instrument_name, i.brand, i.instrument_price
        FROM instrument i
        WHERE i.instrument_id NOT IN (
            SELECT r.instrument_id
            FROM rented_instrument r
            WHERE r.rental_start <= :today
              AND r.rental_end >= :today
              AND r.is_terminated = 0
        )
    """

    list_available_by_name_sql = """
        SELECT i.instrument_id, i.instrument_name, i.brand, i.instrument_price
        FROM instrument i
        WHERE i.instrument_name = :name
          AND i.instrument_id NOT IN (
            SELECT r.instrument_id
            FROM rented_instrument r
            WHERE r.rental_start <= :today
              AND r.rental_end >= :today
              AND r.is_terminated = 0
        )
    """

    list_active_rentals_sql = """
        SELECT *
        FROM rented_instrument r
        WHERE r.student_id = :student_id
          AND r.is_terminated = 0
    """

    create_rental_sql = """
        INSERT INTO rented_instrument (
            student_id,
            instrument_id,
            rental_start,
            rental_end,
            is_terminated
        )
        SELECT :student_id, :instrument_id, :rental_start, :rental_end, 0
        WHERE NOT EXISTS (
            SELECT 1
            FROM rented_instrument r
            WHERE r.instrument_id = :instrument_id
              AND r.rental_start <= :today
              AND r.rental_end >= :today
              AND r.is_terminated = 0
        )
    """

    terminate_rental_sql = """
        UPDATE rented_instrument
        SET is_terminated = 1
        WHERE student_id = :student_id
          AND instrument_id = :instrument_id
          AND is_terminated = 0
    """

    def _connect(self) -> sqlite3.Connection:
        dsn = self.config.dsn
        if dsn.startswith("sqlite:///"):
            path = dsn.replace("sqlite:///", "", 1)
        elif dsn.startswith("sqlite://"):
            path = dsn.replace("sqlite://", "", 1) or ":memory:"
        else:
            path = dsn
        conn = sqlite3.connect(
            path,
            check_same_thread=False,
            uri=path.startswith("file:"),
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _date_param(self, value: date) -> object:
        return value.isoformat()


class _PostgresRentalBackend(_RentalBackend):
    """PostgreSQL implementation relying on psycopg for real deployments."""

    dialect = postgresql.dialect()

    list_available_sql = """
        SELECT i.instrument_id, i.instrument_name, i.brand, i.instrument_price
        FROM instrument i
        WHERE i.instrument_id NOT IN (
            SELECT r.instrument_id
            FROM rented_instrument r
            WHERE r.rental_start <= %(today)s
              AND r.rental_end >= %(today)s
              AND r.is_terminated = FALSE
        )
    """

    list_available_by_name_sql = """
        SELECT i.instrument_id, i.instrument_name, i.brand, i.instrument_price
        FROM instrument i
        WHERE i.instrument_name = %(name)s
          AND i.instrument_id NOT IN (
            SELECT r.instrument_id
            FROM rented_instrument r
            WHERE r.rental_start <= %(today)s
              AND r.rental_end >= %(today)s
              AND r.is_terminated = FALSE
        )
    """

    list_active_rentals_sql = """
        SELECT *
        FROM rented_instrument r
        WHERE r.student_id = %(student_id)s
          AND r.is_terminated = FALSE
    """

    create_rental_sql = """
        INSERT INTO rented_instrument (
            student_id,
            instrument_id,
            rental_start,
            rental_end,
            is_terminated
        )
        SELECT
            %(student_id)s::integer,
            %(instrument_id)s::integer,
            %(rental_start)s::date,
            %(rental_end)s::date,
            FALSE
        WHERE NOT EXISTS (
            SELECT 1
            FROM rented_instrument r
            WHERE r.instrument_id = %(instrument_id)s
              AND r.rental_start <= %(today)s
              AND r.rental_end >= %(today)s
              AND r.is_terminated = FALSE
        )
    """

    terminate_rental_sql = """
        UPDATE rented_instrument
        SET is_terminated = TRUE
        WHERE student_id = %(student_id)s
          AND instrument_id = %(instrument_id)s
          AND is_terminated = FALSE
    """

    def _connect(self) -> psycopg.Connection:
        return psycopg.connect(
            to_libpq_conninfo(self.config.dsn),
            autocommit=False,
            row_factory=dict_row,
        )


__all__ = ["RentalStoreConfig", "RentalStoreGateway"]
