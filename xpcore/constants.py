"""
xpcore.constants — Leveling Formula
====================================

Single source of truth for the level curve.  Import from here instead of
re-deriving levels in services or the API.

The curve is exponential::

    xp_required_for_level(L) = ceil(base * (factor ** (L - 1) - 1))

With the defaults (``base=200``, ``factor=1.5``) level 2 starts at 100 XP,
level 3 at 250, level 4 at 475, level 5 at 813.

``calculate_level`` is defined *from* ``xp_required_for_level`` (largest
level whose threshold is ``<= xp``) rather than from a closed-form log, so
the two functions agree at every boundary regardless of float rounding.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Level curve
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class LevelCurve:
    """Exponential XP → level mapping.

    Parameters
    ----------
    base : XP scale.  ``base * (factor - 1)`` is the XP needed for level 2.
    factor : Growth ratio between successive level gaps.  Must be > 1.
    """

    base: int = 200
    factor: float = 1.5

    def __post_init__(self) -> None:
        if self.factor <= 1:
            raise ValueError(f"level factor must be > 1, got {self.factor}")
        # Guarantees consecutive thresholds differ by at least one XP.
        if self.base * (self.factor - 1) < 1:
            raise ValueError(
                f"level base {self.base} is too small for factor {self.factor}"
            )

    def xp_required_for_level(self, level: int) -> int:
        """Cumulative XP at which *level* begins.  Level 1 starts at 0."""
        if level < 1:
            raise ValueError(f"level must be >= 1, got {level}")
        raw = self.base * (self.factor ** (level - 1) - 1)
        return math.ceil(round(raw, 6))

    def calculate_level(self, xp: int) -> int:
        """Level reached with *xp* cumulative experience (always >= 1)."""
        if xp < 0:
            raise ValueError(f"xp must be >= 0, got {xp}")

        # Closed-form estimate, then walk to the exact boundary.
        level = max(1, int(math.log(xp / self.base + 1, self.factor)) + 1)
        while level > 1 and self.xp_required_for_level(level) > xp:
            level -= 1
        while self.xp_required_for_level(level + 1) <= xp:
            level += 1
        return level

    def xp_to_next_level(self, xp: int) -> int:
        """XP still missing before the next level."""
        return self.xp_required_for_level(self.calculate_level(xp) + 1) - xp


DEFAULT_CURVE = LevelCurve()


# ---------------------------------------------------------------------------
# Module-level helpers: use DEFAULT_CURVE unless a curve is given
# ---------------------------------------------------------------------------
def calculate_level(xp: int, curve: LevelCurve | None = None) -> int:
    """Level for *xp*.  Raises ``ValueError`` for negative input."""
    return (curve or DEFAULT_CURVE).calculate_level(xp)


def xp_required_for_level(level: int, curve: LevelCurve | None = None) -> int:
    """XP required to reach *level*."""
    return (curve or DEFAULT_CURVE).xp_required_for_level(level)


def xp_to_next_level(xp: int, curve: LevelCurve | None = None) -> int:
    """XP remaining until the level after ``calculate_level(xp)``."""
    return (curve or DEFAULT_CURVE).xp_to_next_level(xp)
