"""Turn the configured database URL into a psycopg connection string."""

from __future__ import annotations

from psycopg import conninfo
from sqlalchemy.engine import make_url

_POSTGRES_SCHEMES = ("postgres", "postgresql")


def to_libpq_conninfo(raw_dsn: str) -> str:
    """Return a libpq ``key=value`` string for ``psycopg.connect``.

    Accepts SQLAlchemy-style URLs (``postgresql+psycopg://user@host/db``,
    driver suffix ignored) as well as plain libpq strings.
    """

    raw = raw_dsn.strip()
    if not raw:
        raise ValueError("PostgreSQL DSN must be a non-empty string")

    if "://" not in raw:
        return conninfo.make_conninfo(raw)

    url = make_url(raw)
    if url.get_backend_name() not in _POSTGRES_SCHEMES:
        raise ValueError(f"Not a PostgreSQL URL: {url.drivername!r}")
    params: dict[str, str] = {}
    if url.host:
        params["host"] = url.host
    if url.port is not None:
        params["port"] = str(url.port)
    if url.database:
        params["dbname"] = url.database
    if url.username:
        params["user"] = url.username
    if url.password:
        params["password"] = url.password
    for key, value in url.query.items():
        if isinstance(value, tuple):
            value = value[-1]
        params[key] = str(value)
    return conninfo.make_conninfo(**params)


__all__ = ["to_libpq_conninfo"]
