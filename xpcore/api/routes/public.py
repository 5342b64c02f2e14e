"""
xpcore.api.routes.public — Read-only progress endpoints
========================================================

Authentication is the host's concern; mount this router behind whatever
guard the host application uses.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from xpcore.api.deps import get_achievement_ledger, get_level_curve, get_stats_store
from xpcore.constants import LevelCurve
from xpcore.engine.achievements import DEFAULT_CATALOG, get_achievement_details
from xpcore.services.ledger import AchievementLedger
from xpcore.services.stats_store import UserStatsStore

router = APIRouter(tags=["public"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class UserStatsOut(BaseModel):
    user_id: str
    xp: int
    level: int
    last_updated: datetime | None = None
    xp_for_next_level: int
    xp_to_next_level: int


class AchievementOut(BaseModel):
    slug: str
    label: str
    description: str
    icon: str
    trigger: str | None = None
    unlocked_at: datetime | None = None


# ---------------------------------------------------------------------------
# GET /health
# ---------------------------------------------------------------------------
@router.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# GET /achievements: the full catalog
# ---------------------------------------------------------------------------
@router.get("/achievements", response_model=list[AchievementOut])
def list_achievements():
    return [
        AchievementOut(
            slug=rule.slug,
            label=rule.label,
            description=rule.description,
            icon=rule.icon,
            trigger=rule.trigger.value,
        )
        for rule in DEFAULT_CATALOG
    ]


# ---------------------------------------------------------------------------
# GET /users/{user_id}/stats
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/stats", response_model=UserStatsOut)
def get_user_stats(
    user_id: str,
    store: UserStatsStore = Depends(get_stats_store),
    curve: LevelCurve = Depends(get_level_curve),
):
    """XP, level and progress toward the next level.

    Users without a row get the starting values (0 XP, level 1).  The level
    is derived from XP under the configured curve, so every field agrees
    even before the stored level catches up with a curve change.
    """
    row = store.find(user_id)
    xp = row.xp if row else 0
    level = curve.calculate_level(xp)
    return UserStatsOut(
        user_id=user_id,
        xp=xp,
        level=level,
        last_updated=row.last_updated if row else None,
        xp_for_next_level=curve.xp_required_for_level(level + 1),
        xp_to_next_level=curve.xp_to_next_level(xp),
    )


# ---------------------------------------------------------------------------
# GET /users/{user_id}/achievements
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/achievements", response_model=list[AchievementOut])
def get_user_achievements(
    user_id: str,
    ledger: AchievementLedger = Depends(get_achievement_ledger),
):
    """Unlocked achievements with display metadata, oldest first."""
    records = ledger.find_records(user_id)
    unlocked_at = {r.slug: r.unlocked_at for r in records}
    return [
        AchievementOut(**detail.to_dict(), unlocked_at=unlocked_at[detail.slug])
        for detail in get_achievement_details(r.slug for r in records)
    ]
