"""League lookup tables consumed by the scoring functions.

Team defensive ratings, team pace, position-specific defense modifiers and the
historical winner profile are season-level constants. They are loaded once
from a small embedded JSON dataset and handed to the scoring functions as an
immutable ``LeagueTables`` value, so a new season only needs a new JSON file.

Lookups never fail: an unknown team falls back to the league average
defensive rating (112) and pace (100), and an unknown team/position pair to a
neutral modifier of 1.0.

Example:
    >>> from pra_model.data.tables import default_tables
    >>> tables = default_tables()
    >>> tables.defensive_rating("WAS")
    118.5
    >>> tables.position_modifier("C", "CHA")
    1.15
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pra_model.logging import get_logger
from pra_model.types import TableLoadError

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

EMBEDDED_TABLES_PATH: Path = Path(__file__).parent / "league_tables.json"

LEAGUE_AVG_DEFENSIVE_RATING: float = 112.0
LEAGUE_AVG_PACE: float = 100.0
NEUTRAL_POSITION_MODIFIER: float = 1.0

TRIPLE_DOUBLE_THRESHOLD: int = 10


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class WinnerProfile:
    """Aggregate statistics of historical nightly PRA leaders.

    Used to calibrate the sigmoid midpoints of the ensemble variant.

    Attributes:
        avg_pra: Mean PRA of the nightly winner.
        min_pra: Lowest winning PRA on record.
        max_pra: Highest winning PRA on record.
        triple_double_rate: Share of winners who recorded a triple-double.
        sample_size: Number of winning nights the profile is built from.
    """

    avg_pra: float = 53.7
    min_pra: float = 45.0
    max_pra: float = 61.0
    triple_double_rate: float = 0.57
    sample_size: int = 0

    @classmethod
    def from_history(cls, winners: Sequence[Mapping[str, Any]]) -> WinnerProfile:
        """Build a profile from winner box-score lines.

        Args:
            winners: Records with ``points``, ``rebounds`` and ``assists``.

        Returns:
            WinnerProfile; the default profile when ``winners`` is empty.
        """
        lines = [
            (
                float(w.get("points", 0)),
                float(w.get("rebounds", 0)),
                float(w.get("assists", 0)),
            )
            for w in winners
        ]
        if not lines:
            return cls()

        pras = [p + r + a for p, r, a in lines]
        triple_doubles = sum(
            1 for line in lines if all(v >= TRIPLE_DOUBLE_THRESHOLD for v in line)
        )
        return cls(
            avg_pra=round(sum(pras) / len(pras), 1),
            min_pra=min(pras),
            max_pra=max(pras),
            triple_double_rate=round(triple_doubles / len(lines), 2),
            sample_size=len(lines),
        )


@dataclass(frozen=True)
class LeagueTables:
    """Immutable season lookup tables.

    Attributes:
        season: Season label, e.g. "2024-25".
        defensive_ratings: Team abbreviation to points allowed per 100.
        pace: Team abbreviation to possessions per 48 minutes.
        position_modifiers: Position to (team abbreviation to multiplier).
        winner_profile: Historical winner statistics.
        league_avg_defensive_rating: Fallback defensive rating.
        league_avg_pace: Fallback pace.
    """

    season: str = ""
    defensive_ratings: Mapping[str, float] = field(default_factory=dict)
    pace: Mapping[str, float] = field(default_factory=dict)
    position_modifiers: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    winner_profile: WinnerProfile = field(default_factory=WinnerProfile)
    league_avg_defensive_rating: float = LEAGUE_AVG_DEFENSIVE_RATING
    league_avg_pace: float = LEAGUE_AVG_PACE

    def defensive_rating(self, team: str | None) -> float:
        """Defensive rating for a team, league average when unknown."""
        return self.defensive_ratings.get(
            (team or "").upper(), self.league_avg_defensive_rating
        )

    def team_pace(self, team: str | None) -> float:
        """Pace for a team, league average when unknown."""
        return self.pace.get((team or "").upper(), self.league_avg_pace)

    def position_modifier(self, position: str | None, team: str | None) -> float:
        """How much a team's defense inflates (>1) or suppresses (<1) a position."""
        by_team = self.position_modifiers.get((position or "").upper(), {})
        return by_team.get((team or "").upper(), NEUTRAL_POSITION_MODIFIER)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> LeagueTables:
        """Build tables from the JSON document layout.

        Raises:
            TableLoadError: If a table, a winner line or an average is malformed.
        """
        try:
            drtg = {k.upper(): float(v) for k, v in raw.get("defensive_ratings", {}).items()}
            pace = {k.upper(): float(v) for k, v in raw.get("pace", {}).items()}
            positions = {
                pos.upper(): MappingProxyType(
                    {team.upper(): float(mod) for team, mod in teams.items()}
                )
                for pos, teams in raw.get("position_defense_modifiers", {}).items()
            }
            winner_profile = WinnerProfile.from_history(raw.get("winner_history", []))
            league_avg_drtg = float(
                raw.get("league_average_defensive_rating", LEAGUE_AVG_DEFENSIVE_RATING)
            )
            league_avg_pace = float(raw.get("league_average_pace", LEAGUE_AVG_PACE))
        except (AttributeError, TypeError, ValueError) as e:
            raise TableLoadError(f"Malformed league tables: {e}") from e

        return cls(
            season=str(raw.get("season", "")),
            defensive_ratings=MappingProxyType(drtg),
            pace=MappingProxyType(pace),
            position_modifiers=MappingProxyType(positions),
            winner_profile=winner_profile,
            league_avg_defensive_rating=league_avg_drtg,
            league_avg_pace=league_avg_pace,
        )


# =============================================================================
# Loading
# =============================================================================


def load_league_tables(path: str | Path | None = None) -> LeagueTables:
    """Load league tables from a JSON file.

    Args:
        path: JSON file to read. Uses the embedded season when None.

    Returns:
        LeagueTables instance.

    Raises:
        TableLoadError: If the file is missing, not UTF-8, not valid JSON or malformed.
    """
    source = Path(path) if path is not None else EMBEDDED_TABLES_PATH
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TableLoadError(f"Cannot read league tables from {source}: {e}") from e

    tables = LeagueTables.from_dict(raw)
    logger.debug(
        "Loaded league tables for {} ({} teams) from {}",
        tables.season or "unknown season",
        len(tables.defensive_ratings),
        source,
    )
    return tables


@lru_cache(maxsize=1)
def default_tables() -> LeagueTables:
    """Return the embedded season tables, loaded once per process."""
    return load_league_tables()
