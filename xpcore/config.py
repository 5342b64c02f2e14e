"""
xpcore.config — YAML Configuration Loader
==========================================

Reads ``config.yaml`` for tuning that is not a secret: the level curve
parameters and the log level.  Database URLs are secrets and come from the
environment (``.env`` via python-dotenv), see :mod:`xpcore.database.engine`.

Usage::

    from xpcore.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    curve = cfg.level_curve()    # LevelCurve(base=200, factor=1.5)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from xpcore.constants import LevelCurve

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class XpConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    level_base: int = 200
    level_factor: float = 1.5
    log_level: str = "INFO"

    def level_curve(self) -> LevelCurve:
        return LevelCurve(base=self.level_base, factor=self.level_factor)


def load_config(path: str | Path = "config.yaml") -> XpConfig:
    """Read *path* and return an :class:`XpConfig`.

    Keys missing from the file take the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ValueError
        If ``log_level`` is not a logging level name, or the curve
        parameters are invalid.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = XpConfig()
    log_level = str(raw.get("log_level", defaults.log_level)).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {log_level}. Must be one of {VALID_LOG_LEVELS}")

    cfg = XpConfig(
        level_base=int(raw.get("level_base", defaults.level_base)),
        level_factor=float(raw.get("level_factor", defaults.level_factor)),
        log_level=log_level,
    )
    cfg.level_curve()  # validates base/factor
    return cfg
