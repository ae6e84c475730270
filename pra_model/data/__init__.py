"""Input data for the scoring core.

Submodules:
    models: PlayerGameContext and InjuryStatus
    tables: Season lookup tables (defense, pace, position modifiers, winners)
    loaders: JSON/CSV readers for contexts, salaries and box scores
    fixtures: Seedable reference slate for demos and tests

Only ``models`` and ``tables`` are re-exported here; import loaders and
fixtures from their modules.

Example:
    >>> from pra_model.data import PlayerGameContext, default_tables
    >>> tables = default_tables()
    >>> tables.team_pace("IND")
    103.5
"""

from __future__ import annotations

from pra_model.data.models import (
    DEFAULT_MINUTES,
    DEFAULT_USAGE_RATE,
    MAX_HISTORY_GAMES,
    InjuryStatus,
    PlayerGameContext,
)
from pra_model.data.tables import (
    LeagueTables,
    WinnerProfile,
    default_tables,
    load_league_tables,
)

__all__ = [
    "DEFAULT_MINUTES",
    "DEFAULT_USAGE_RATE",
    "MAX_HISTORY_GAMES",
    "InjuryStatus",
    "LeagueTables",
    "PlayerGameContext",
    "WinnerProfile",
    "default_tables",
    "load_league_tables",
]
