"""
xpcore.database.models — SQLAlchemy 2.0 Data Models
====================================================

Tables owned by this package:
- user_stats    — cumulative XP and derived level, one row per user
- achievements  — append-only achievement ledger, unique on (user_id, slug)

Tables owned by the host application and only *read* here (mapped so the
statistics provider can count rows; never created or migrated by xpcore):
- reports           — one row per report
- comments          — one row per comment
- comment_mentions  — one row per user mentioned in a comment
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Marks tables whose schema belongs to the host application.
EXTERNAL = {"external": True}


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all xpcore ORM models."""


# ---------------------------------------------------------------------------
# UserStats: XP + level, one row per user
# ---------------------------------------------------------------------------
class UserStats(Base):
    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_user_stats_xp_non_negative"),
        CheckConstraint("level >= 1", name="ck_user_stats_level_positive"),
    )

    def __repr__(self) -> str:
        return f"<UserStats user={self.user_id!r} xp={self.xp} lvl={self.level}>"


# ---------------------------------------------------------------------------
# AchievementRecord: one row per (user, achievement), never updated
# ---------------------------------------------------------------------------
class AchievementRecord(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    slug: Mapped[str] = mapped_column(String(64), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        # The at-most-once guarantee lives here, not in application code.
        UniqueConstraint("user_id", "slug", name="uq_achievements_user_slug"),
        Index("ix_achievements_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<AchievementRecord user={self.user_id!r} slug={self.slug!r}>"


OWNED_TABLES = (UserStats.__table__, AchievementRecord.__table__)


# ---------------------------------------------------------------------------
# Host-owned content tables (read-only here)
# ---------------------------------------------------------------------------
class Report(Base):
    __tablename__ = "reports"
    __table_args__ = {"info": EXTERNAL}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = {"info": EXTERNAL}

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class CommentMention(Base):
    __tablename__ = "comment_mentions"
    __table_args__ = {"info": EXTERNAL}

    comment_id: Mapped[int] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
