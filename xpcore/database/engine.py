"""
xpcore.database.engine — Database Connection & Async Helper
============================================================

Engines are created here but *owned* by the host application: every store
in :mod:`xpcore.services` receives its :class:`Engine` through its
constructor, and nothing in xpcore caches a connection at module level.

Three logical stores are addressed by environment variables:

* ``DATABASE_URL`` — the ``user_stats`` table (required).
* ``ACHIEVEMENTS_DATABASE_URL`` — the achievement ledger
  (falls back to ``DATABASE_URL``).
* ``CONTENT_DATABASE_URL`` — the host's reports/comments tables used for
  statistics (falls back to ``DATABASE_URL``).

The functions in :mod:`xpcore.services` are synchronous.  Async hosts
call them through :func:`run_db`, which ships the call to a worker
thread so the event loop is never blocked::

    result = await run_db(xp_ledger.add_xp, user_id, "comment")
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import Engine, Table, create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from xpcore.database.models import OWNED_TABLES, Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

STATS_URL_ENV = "DATABASE_URL"
ACHIEVEMENTS_URL_ENV = "ACHIEVEMENTS_DATABASE_URL"
CONTENT_URL_ENV = "CONTENT_DATABASE_URL"


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def resolve_database_url(env_var: str = STATS_URL_ENV) -> str:
    """Return the URL for *env_var*, falling back to ``DATABASE_URL``.

    Raises
    ------
    RuntimeError
        If neither variable is set.
    """
    url = os.getenv(env_var) or os.getenv(STATS_URL_ENV)
    if not url:
        raise RuntimeError(
            f"{env_var} is not set (and no DATABASE_URL fallback).  "
            "Copy .env.example → .env and set a valid database URL."
        )
    return url


def create_db_engine(env_var: str = STATS_URL_ENV) -> Engine:
    """Build a SQLAlchemy :class:`Engine` for the store named by *env_var*.

    Pool sizing mirrors a small web deployment: five persistent
    connections, ten overflow, ten-second checkout timeout, hourly recycle.
    SQLite URLs skip the pool arguments it does not accept.
    """
    url = resolve_database_url(env_var)

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False)
    else:
        engine = create_engine(
            url,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            pool_timeout=10,      # Fail after 10s instead of hanging forever
            pool_recycle=3600,
        )
    logger.info(
        "Database engine created (%s) → %s",
        env_var, engine.url.host or engine.url.database,
    )
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create ``user_stats`` and ``achievements`` if they do not exist.

    Host-owned content tables are never created here.  In production the
    schema is managed by Alembic; this is a convenience for dev/test.
    """
    Base.metadata.create_all(engine, tables=list(OWNED_TABLES))
    logger.info("xpcore tables verified / created.")


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a synchronous store/service call on a background thread.

    Under the hood this is :func:`asyncio.to_thread`, so the caller's
    event loop keeps serving requests while the database round-trips.
    """
    return await asyncio.to_thread(func, *args, **kwargs)


# ---------------------------------------------------------------------------
# Idempotent insert
# ---------------------------------------------------------------------------
def insert_if_absent(
    session: Session,
    table: Table,
    values: dict[str, Any],
    conflict_columns: list[str],
) -> bool:
    """Insert one row unless it collides on *conflict_columns*.

    Returns ``True`` if the row was inserted, ``False`` if an existing row
    (possibly written by a concurrent transaction) already holds the key.

    PostgreSQL and SQLite use ``INSERT ... ON CONFLICT DO NOTHING``.  Other
    dialects insert inside a SAVEPOINT and treat :class:`IntegrityError`
    as the collision, leaving the outer transaction usable.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns,
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=conflict_columns,
        )
    else:
        try:
            with session.begin_nested():   # SAVEPOINT
                session.execute(table.insert().values(**values))
        except IntegrityError:
            return False
        return True

    result = session.execute(stmt)
    return result.rowcount == 1


# ---------------------------------------------------------------------------
# Migration filter
# ---------------------------------------------------------------------------
OWNED_TABLE_NAMES = frozenset(table.name for table in OWNED_TABLES)


def include_owned_tables(obj, name, type_, reflected, compare_to) -> bool:
    """Alembic ``include_object`` hook: only xpcore's own tables migrate.

    Host tables are excluded whether they are mapped in the models or only
    reflected from a shared database.
    """
    if type_ == "table":
        return name in OWNED_TABLE_NAMES
    return True
