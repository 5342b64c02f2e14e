"""
tests/factories.py — Seeding & Threading Helpers
=================================================
Rows for the host-owned tables (reports, comments, comment_mentions) that
the statistics provider reads, and a helper that releases several threads
at once against the same store.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from xpcore.database.models import Comment, CommentMention, Report

# A Wednesday, so "this week" started on Monday 2026-03-16.
NOW = datetime(2026, 3, 18, 12, 0, 0, tzinfo=UTC)


def add_reports(engine: Engine, user_id: str, *timestamps: datetime) -> None:
    with Session(engine) as session:
        for ts in timestamps:
            session.add(Report(user_id=user_id, created_at=ts))
        session.commit()


def add_comments(engine: Engine, user_id: str, *timestamps: datetime) -> list[int]:
    """Insert comments (on a fresh report) and return their ids."""
    with Session(engine) as session:
        report = Report(user_id="report-owner", created_at=NOW)
        session.add(report)
        session.flush()
        comments = [
            Comment(report_id=report.id, user_id=user_id, created_at=ts)
            for ts in timestamps
        ]
        session.add_all(comments)
        session.commit()
        return [c.id for c in comments]


def add_mentions(engine: Engine, mentioned_user_id: str, count: int) -> None:
    comment_ids = add_comments(engine, "someone-else", *([NOW] * count))
    with Session(engine) as session:
        session.add_all(
            CommentMention(comment_id=cid, user_id=mentioned_user_id)
            for cid in comment_ids
        )
        session.commit()


def run_together(n: int, func: Callable[[], Any]) -> tuple[list[Any], list[Exception]]:
    """Call *func* from *n* threads released by one barrier.

    Returns ``(results, errors)``; results are in completion order.
    """
    barrier = threading.Barrier(n)
    lock = threading.Lock()
    results: list[Any] = []
    errors: list[Exception] = []

    def worker() -> None:
        barrier.wait()
        try:
            value = func()
        except Exception as exc:
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results, errors
