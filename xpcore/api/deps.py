"""
xpcore.api.deps — FastAPI dependency injection
===============================================
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine

from xpcore.config import XpConfig, load_config
from xpcore.constants import LevelCurve
from xpcore.database.engine import ACHIEVEMENTS_URL_ENV, STATS_URL_ENV, create_db_engine
from xpcore.services.ledger import AchievementLedger
from xpcore.services.stats_store import UserStatsStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_config() -> XpConfig:
    path = os.getenv("XPCORE_CONFIG", "config.yaml")
    try:
        return load_config(path)
    except FileNotFoundError:
        logger.warning("No config file at %s, using defaults", path)
        return XpConfig()


@lru_cache(maxsize=1)
def get_stats_engine() -> Engine:
    return create_db_engine(STATS_URL_ENV)


@lru_cache(maxsize=1)
def get_achievements_engine() -> Engine:
    return create_db_engine(ACHIEVEMENTS_URL_ENV)


def get_level_curve(cfg: Annotated[XpConfig, Depends(get_config)]) -> LevelCurve:
    return cfg.level_curve()


def get_stats_store(
    engine: Annotated[Engine, Depends(get_stats_engine)],
) -> UserStatsStore:
    return UserStatsStore(engine)


def get_achievement_ledger(
    engine: Annotated[Engine, Depends(get_achievements_engine)],
) -> AchievementLedger:
    return AchievementLedger(engine)
