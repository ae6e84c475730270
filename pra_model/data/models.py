"""Normalized per-player, per-game input records.

``PlayerGameContext`` is the only input the scoring core accepts. The data
layer builds one per player per game and hands over a fully materialised,
immutable collection.

History convention:
    ``last_n_pra`` is ordered oldest-first. Index 0 is the oldest game in the
    window and the last element is the most recent game. Only the last
    ``MAX_HISTORY_GAMES`` entries are used.

Missing values never reach arithmetic: usage rate defaults to 20%, minutes to
28, opponent ratings to league average (via ``LeagueTables``), and an empty
history falls back to the season PRA average with zero variance.

Example:
    >>> from pra_model.data.models import PlayerGameContext
    >>> ctx = PlayerGameContext.from_dict({
    ...     "player_id": "3945274", "name": "Luka Doncic", "team": "DAL",
    ...     "position": "PG", "last_n_pra": "48|52|55", "usage_rate": "32.5",
    ... })
    >>> ctx.avg_pra
    51.666666666666664
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

# =============================================================================
# Constants
# =============================================================================

MAX_HISTORY_GAMES: int = 10
DEFAULT_USAGE_RATE: float = 20.0
DEFAULT_MINUTES: float = 28.0

VALID_POSITIONS: frozenset[str] = frozenset(
    {"PG", "SG", "SF", "PF", "C", "G", "F", "UTIL"}
)
DEFAULT_POSITION: str = "UTIL"


class InjuryStatus(Enum):
    """Player availability classification from the injury report."""

    HEALTHY = "HEALTHY"
    PROBABLE = "PROBABLE"
    QUESTIONABLE = "QUESTIONABLE"
    DOUBTFUL = "DOUBTFUL"
    OUT = "OUT"


# =============================================================================
# Coercion helpers
# =============================================================================


def _to_float(value: Any, default: float | None = None) -> float | None:
    if value is None or value == "":
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if np.isnan(result):
        return default
    return result


def _to_int(value: Any, default: int = 0) -> int:
    number = _to_float(value)
    return default if number is None else int(number)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "t"}
    return bool(value)


def _parse_history(value: Any) -> tuple[float, ...]:
    """Parse a PRA history from a list or a pipe/comma separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        separator = "|" if "|" in value else ","
        items: Iterable[Any] = value.split(separator)
    elif isinstance(value, Iterable):
        items = value
    else:
        return ()
    parsed = (_to_float(v) for v in items)
    return tuple(v for v in parsed if v is not None and v >= 0)


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _parse_injury(value: Any) -> InjuryStatus:
    if isinstance(value, InjuryStatus):
        return value
    if not value:
        return InjuryStatus.HEALTHY
    # Imported here to keep this module free of scoring imports at load time
    from pra_model.scoring.injuries import parse_injury_status

    return parse_injury_status(str(value))


# =============================================================================
# PlayerGameContext
# =============================================================================


@dataclass(frozen=True)
class PlayerGameContext:
    """One player's season baseline, recent form and game context.

    Attributes:
        player_id: Unique player identifier.
        name: Display name.
        team: Team abbreviation.
        position: One of PG/SG/SF/PF/C/G/F/UTIL.
        games_played: Season games played.
        ppg: Season points per game.
        rpg: Season rebounds per game.
        apg: Season assists per game.
        mpg: Season minutes per game, None when unknown.
        field_goal_pct: Field goal percentage on a 0-1 scale, None when unknown.
        last_n_pra: Recent PRA values, oldest first.
        season_max_pra: Season-best PRA when known.
        usage_rate: Usage rate in percent, None when unknown.
        triple_double_count: Season triple-doubles.
        opponent_abbrev: Opponent team abbreviation.
        opponent_defensive_rating: Explicit opponent DRTG, overrides the table.
        opponent_pace: Explicit opponent pace, overrides the table.
        spread: Player's team spread, negative when favoured; None if no line.
        over_under: Game total line; None if no line.
        is_home: Whether the player's team is at home.
        injury_status: Availability status.
        is_back_to_back: Player's team played yesterday.
        opponent_back_to_back: Opponent played yesterday.
        game_id: Game identifier, informational.
    """

    player_id: str
    name: str
    team: str
    position: str = DEFAULT_POSITION
    games_played: int = 0
    ppg: float = 0.0
    rpg: float = 0.0
    apg: float = 0.0
    mpg: float | None = None
    field_goal_pct: float | None = None
    last_n_pra: tuple[float, ...] = field(default_factory=tuple)
    season_max_pra: float | None = None
    usage_rate: float | None = None
    triple_double_count: int = 0
    opponent_abbrev: str = ""
    opponent_defensive_rating: float | None = None
    opponent_pace: float | None = None
    spread: float | None = None
    over_under: float | None = None
    is_home: bool = False
    injury_status: InjuryStatus = InjuryStatus.HEALTHY
    is_back_to_back: bool = False
    opponent_back_to_back: bool = False
    game_id: str = ""

    def __post_init__(self) -> None:
        # Normalise in place once; the instance is immutable afterwards
        object.__setattr__(self, "last_n_pra", tuple(self.last_n_pra))
        position = (self.position or "").upper()
        if position not in VALID_POSITIONS:
            position = DEFAULT_POSITION
        object.__setattr__(self, "position", position)
        if self.field_goal_pct is not None and self.field_goal_pct > 1.0:
            object.__setattr__(self, "field_goal_pct", self.field_goal_pct / 100.0)

    # -------------------------------------------------------------------------
    # Derived statistics
    # -------------------------------------------------------------------------

    @property
    def season_pra_avg(self) -> float:
        """Season PRA average (ppg + rpg + apg)."""
        return self.ppg + self.rpg + self.apg

    @property
    def recent_window(self) -> tuple[float, ...]:
        """The last ``MAX_HISTORY_GAMES`` PRA values, oldest first."""
        return self.last_n_pra[-MAX_HISTORY_GAMES:]

    @property
    def has_history(self) -> bool:
        """Whether any recent games are available."""
        return len(self.recent_window) > 0

    @property
    def avg_pra(self) -> float:
        """Mean PRA over the recent window, season average if empty."""
        window = self.recent_window
        if not window:
            return self.season_pra_avg
        return float(np.mean(window))

    @property
    def window_max_pra(self) -> float:
        """Best PRA in the recent window, season average if empty."""
        window = self.recent_window
        return float(max(window)) if window else self.season_pra_avg

    @property
    def max_pra(self) -> float:
        """Season-best PRA when supplied, else the window best."""
        if self.season_max_pra is not None:
            return max(self.season_max_pra, self.window_max_pra)
        return self.window_max_pra

    @property
    def min_pra(self) -> float:
        """Worst PRA in the recent window, season average if empty."""
        window = self.recent_window
        return float(min(window)) if window else self.season_pra_avg

    @property
    def std_dev_pra(self) -> float:
        """Population standard deviation of the window, 0 for < 2 games."""
        window = self.recent_window
        if len(window) < 2:
            return 0.0
        return float(np.std(window))

    @property
    def effective_usage_rate(self) -> float:
        """Usage rate with the league-average default substituted."""
        return self.usage_rate if self.usage_rate else DEFAULT_USAGE_RATE

    @property
    def effective_mpg(self) -> float:
        """Minutes per game with the league-average default substituted."""
        return self.mpg if self.mpg else DEFAULT_MINUTES

    @property
    def matchup(self) -> str:
        """Matchup label, e.g. "DAL@CHA" or "DAL vs CHA"."""
        if not self.opponent_abbrev:
            return self.team
        joiner = " vs " if self.is_home else "@"
        return f"{self.team}{joiner}{self.opponent_abbrev}"

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PlayerGameContext:
        """Build a context from a loosely typed record.

        Accepts the field names above plus the aliases ``player_name``,
        ``team_abbrev``, ``triple_doubles``, ``last_games_pra``, ``is_b2b``,
        ``opponent_b2b``, ``opp_def_rating`` and ``fgpct``. Unparseable values
        are replaced by defaults; this method does not raise for bad values.

        Args:
            raw: Record from JSON, CSV or an upstream API.

        Returns:
            PlayerGameContext instance.
        """
        player_id = str(_first(raw, "player_id", "id") or "")
        name = str(_first(raw, "name", "player_name") or player_id)
        return cls(
            player_id=player_id or name,
            name=name,
            team=str(_first(raw, "team", "team_abbrev") or "").upper(),
            position=str(_first(raw, "position", "pos") or DEFAULT_POSITION),
            games_played=max(_to_int(raw.get("games_played")), 0),
            ppg=max(_to_float(raw.get("ppg"), 0.0) or 0.0, 0.0),
            rpg=max(_to_float(raw.get("rpg"), 0.0) or 0.0, 0.0),
            apg=max(_to_float(raw.get("apg"), 0.0) or 0.0, 0.0),
            mpg=_to_float(raw.get("mpg")),
            field_goal_pct=_to_float(_first(raw, "field_goal_pct", "fgpct", "fgp")),
            last_n_pra=_parse_history(_first(raw, "last_n_pra", "last_games_pra")),
            season_max_pra=_to_float(raw.get("season_max_pra")),
            usage_rate=_to_float(raw.get("usage_rate")),
            triple_double_count=max(
                _to_int(_first(raw, "triple_double_count", "triple_doubles")), 0
            ),
            opponent_abbrev=str(raw.get("opponent_abbrev") or "").upper(),
            opponent_defensive_rating=_to_float(
                _first(raw, "opponent_defensive_rating", "opp_def_rating")
            ),
            opponent_pace=_to_float(raw.get("opponent_pace")),
            spread=_to_float(raw.get("spread")),
            over_under=_to_float(raw.get("over_under")),
            is_home=_to_bool(raw.get("is_home", False)),
            injury_status=_parse_injury(raw.get("injury_status")),
            is_back_to_back=_to_bool(_first(raw, "is_back_to_back", "is_b2b") or False),
            opponent_back_to_back=_to_bool(
                _first(raw, "opponent_back_to_back", "opponent_b2b") or False
            ),
            game_id=str(raw.get("game_id") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        return {
            "player_id": self.player_id,
            "name": self.name,
            "team": self.team,
            "position": self.position,
            "games_played": self.games_played,
            "ppg": self.ppg,
            "rpg": self.rpg,
            "apg": self.apg,
            "mpg": self.mpg,
            "field_goal_pct": self.field_goal_pct,
            "last_n_pra": list(self.last_n_pra),
            "season_max_pra": self.season_max_pra,
            "usage_rate": self.usage_rate,
            "triple_double_count": self.triple_double_count,
            "opponent_abbrev": self.opponent_abbrev,
            "opponent_defensive_rating": self.opponent_defensive_rating,
            "opponent_pace": self.opponent_pace,
            "spread": self.spread,
            "over_under": self.over_under,
            "is_home": self.is_home,
            "injury_status": self.injury_status.value,
            "is_back_to_back": self.is_back_to_back,
            "opponent_back_to_back": self.opponent_back_to_back,
            "game_id": self.game_id,
        }
