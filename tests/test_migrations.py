"""
tests/test_migrations.py — Alembic Migration Tests
===================================================
Runs the revision chain against a file-backed SQLite database that already
holds the host's content tables, the way xpcore is deployed next to an
existing application schema.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, text

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config
from alembic.migration import MigrationContext
from xpcore.database.engine import include_owned_tables
from xpcore.database.models import Base, Comment, CommentMention, Report

ROOT = Path(__file__).resolve().parents[1]
HOST_TABLES = {"reports", "comments", "comment_mentions"}


@pytest.fixture
def database(tmp_path, monkeypatch):
    """A database containing only the host tables, addressed by DATABASE_URL."""
    url = f"sqlite:///{tmp_path / 'app.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(
        engine, tables=[Report.__table__, Comment.__table__, CommentMention.__table__],
    )
    monkeypatch.setenv("DATABASE_URL", url)
    yield engine
    engine.dispose()


@pytest.fixture
def alembic_cfg() -> Config:
    # No ini file: keeps alembic's fileConfig from reconfiguring test logging.
    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    return cfg


def _tables(engine) -> set[str]:
    return set(inspect(engine).get_table_names())


class TestMigrations:
    def test_upgrade_creates_owned_tables_only(self, database, alembic_cfg):
        command.upgrade(alembic_cfg, "head")

        assert _tables(database) == HOST_TABLES | {
            "user_stats", "achievements", "alembic_version",
        }
        indexes = {ix["name"] for ix in inspect(database).get_indexes("achievements")}
        assert "ix_achievements_user_id" in indexes

    def test_downgrade_leaves_host_tables(self, database, alembic_cfg):
        command.upgrade(alembic_cfg, "head")
        command.downgrade(alembic_cfg, "base")

        assert _tables(database) == HOST_TABLES | {"alembic_version"}


class TestAutogenerateFilter:
    def test_owned_tables_included(self):
        assert include_owned_tables(None, "user_stats", "table", False, None)
        assert include_owned_tables(None, "achievements", "table", False, None)

    def test_host_tables_excluded(self):
        for name in HOST_TABLES | {"users"}:
            assert not include_owned_tables(None, name, "table", True, None)

    def test_non_table_objects_pass_through(self):
        assert include_owned_tables(None, "ix_achievements_user_id", "index", False, None)

    def test_unmapped_host_table_is_not_dropped(self, database, alembic_cfg):
        command.upgrade(alembic_cfg, "head")
        with database.begin() as conn:
            conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY)"))

        with database.connect() as conn:
            ctx = MigrationContext.configure(
                conn, opts={"include_object": include_owned_tables},
            )
            diffs = compare_metadata(ctx, Base.metadata)

        table_ops = [d for d in diffs if isinstance(d, tuple) and d[0].endswith("_table")]
        assert table_ops == []
