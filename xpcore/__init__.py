"""
xpcore — XP, Levels & Achievements for a Reporting App
=======================================================
The gamification core of a report/comment collaboration app: experience
points per action, a non-linear level curve, and declarative achievements
unlocked at most once per user.  Host actions (comment posted, report
created) call into it after they commit; it never participates in their
transactions.

Package layout::

    xpcore/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Level curve (xp ↔ level)
    ├── exceptions.py      # Error taxonomy
    ├── database/
    │   ├── engine.py      # Engines, sessions, insert-if-absent, async helper
    │   └── models.py      # user_stats, achievements (+ read-only host tables)
    ├── engine/
    │   ├── events.py      # ActionKind, AchievementTrigger, XP table
    │   └── achievements.py # Rule catalog, pure evaluation, detail resolver
    ├── services/
    │   ├── stats_store.py        # user_stats reads + atomic XP increments
    │   ├── ledger.py             # Achievement ledger
    │   ├── user_stats.py         # Statistics provider (counts, streaks)
    │   ├── achievement_service.py # Achievement evaluator
    │   └── xp_service.py         # XP ledger, the host-facing entry point
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Read-only progress endpoints
"""

__version__ = "0.1.0"
