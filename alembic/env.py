"""Alembic environment for the tables xpcore owns (user_stats, achievements).

The URL comes from ``DATABASE_URL`` (``.env`` is honoured), resolved the
same way the application resolves it.  Host tables such as ``reports`` and
``comments`` share the metadata for querying but are never migrated here,
whether they appear in the models or are reflected from the database.
"""

from __future__ import annotations

from logging.config import fileConfig

from dotenv import load_dotenv
from sqlalchemy import create_engine, pool

from alembic import context
from xpcore.database.engine import include_owned_tables, resolve_database_url
from xpcore.database.models import Base

load_dotenv()

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def run_migrations() -> None:
    url = resolve_database_url()
    options = {"target_metadata": Base.metadata, "include_object": include_owned_tables}

    if context.is_offline_mode():
        # Emit SQL for review instead of connecting.
        context.configure(url=url, literal_binds=True, **options)
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **options)
        with context.begin_transaction():
            context.run_migrations()


run_migrations()
