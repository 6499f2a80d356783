"""SQLAlchemy metadata describing the rental ledger schema.

The gateway talks to the database through raw DB-API cursors; this metadata
is only used to render ``CREATE TABLE`` statements for the active dialect.
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)
from sqlalchemy.engine import Dialect
from sqlalchemy.schema import CreateIndex, CreateTable
from sqlalchemy.sql import text

metadata = MetaData()

instrument = Table(
    "instrument",
    metadata,
    Column("instrument_id", Integer, primary_key=True, autoincrement=True),
    Column("instrument_name", Text, nullable=False),
    Column("brand", Text, nullable=False),
    Column("instrument_price", Integer, nullable=False),
    CheckConstraint("instrument_price >= 0", name="ck_instrument_price_non_negative"),
)

Index("ix_instrument_name", instrument.c.instrument_name)

rented_instrument = Table(
    "rented_instrument",
    metadata,
    Column("rental_instrument_id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", Integer, nullable=False),
    Column(
        "instrument_id",
        Integer,
        ForeignKey("instrument.instrument_id"),
        nullable=False,
    ),
    Column("rental_start", Date, nullable=False),
    Column("rental_end", Date, nullable=False),
    Column("is_terminated", Boolean, nullable=False, server_default=text("FALSE")),
    CheckConstraint("rental_start <= rental_end", name="ck_rented_instrument_interval"),
)

Index(
    "ix_rented_instrument_active",
    rented_instrument.c.instrument_id,
    rented_instrument.c.is_terminated,
    rented_instrument.c.rental_start,
    rented_instrument.c.rental_end,
)
Index(
    "ix_rented_instrument_student",
    rented_instrument.c.student_id,
    rented_instrument.c.is_terminated,
)


def create_statements(dialect: Dialect) -> list[str]:
    """Return idempotent DDL for every table and index, in dependency order."""

    statements: list[str] = []
    for table in metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda item: item.name or ""):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


__all__ = ["metadata", "instrument", "rented_instrument", "create_statements"]
