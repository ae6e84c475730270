"""Realised box-score outcomes and the actual nightly ranking.

The actual ranking orders players by a fixed fantasy-scoring formula:

    points + 1.2 * rebounds + 1.5 * assists + 3 * steals + 3 * blocks - turnovers

Predicted players are matched to outcomes by identifier first and by
normalised name second (case, diacritics and non-letters stripped), since
predictions and box scores may come from different sources.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pra_model.scoring.injuries import normalize_player_name

# =============================================================================
# Constants
# =============================================================================

POINTS_WEIGHT: float = 1.0
REBOUNDS_WEIGHT: float = 1.2
ASSISTS_WEIGHT: float = 1.5
STEALS_WEIGHT: float = 3.0
BLOCKS_WEIGHT: float = 3.0
TURNOVERS_WEIGHT: float = -1.0


def fantasy_points(
    points: float,
    rebounds: float,
    assists: float,
    steals: float = 0.0,
    blocks: float = 0.0,
    turnovers: float = 0.0,
) -> float:
    """Fantasy points for one box-score line."""
    return (
        points * POINTS_WEIGHT
        + rebounds * REBOUNDS_WEIGHT
        + assists * ASSISTS_WEIGHT
        + steals * STEALS_WEIGHT
        + blocks * BLOCKS_WEIGHT
        + turnovers * TURNOVERS_WEIGHT
    )


def _num(raw: Mapping[str, Any], *keys: str) -> float:
    for key in keys:
        value = raw.get(key)
        if value is None or value == "":
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
    return 0.0


@dataclass(frozen=True)
class PlayerOutcome:
    """One player's completed box-score line.

    Attributes:
        player_id: Player identifier in the box-score source.
        name: Display name.
        team: Team abbreviation.
        points: Points scored.
        rebounds: Total rebounds.
        assists: Assists.
        steals: Steals.
        blocks: Blocks.
        turnovers: Turnovers.
        minutes: Minutes played, when known.
        game_id: Game identifier.
    """

    player_id: str
    name: str
    team: str = ""
    points: float = 0.0
    rebounds: float = 0.0
    assists: float = 0.0
    steals: float = 0.0
    blocks: float = 0.0
    turnovers: float = 0.0
    minutes: float | None = None
    game_id: str = ""

    @property
    def pra(self) -> float:
        """Points + rebounds + assists."""
        return self.points + self.rebounds + self.assists

    @property
    def fantasy_points(self) -> float:
        """Fantasy points used to order the actual ranking."""
        return fantasy_points(
            self.points,
            self.rebounds,
            self.assists,
            self.steals,
            self.blocks,
            self.turnovers,
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> PlayerOutcome:
        """Build an outcome from a loosely typed box-score record.

        Accepts ``pts``/``reb``/``ast``/``stl``/``blk``/``tov`` short names.
        """
        player_id = str(raw.get("player_id") or raw.get("id") or "")
        name = str(raw.get("name") or raw.get("player_name") or player_id)
        minutes = raw.get("minutes", raw.get("min"))
        return cls(
            player_id=player_id or name,
            name=name,
            team=str(raw.get("team") or raw.get("team_abbrev") or "").upper(),
            points=_num(raw, "points", "pts"),
            rebounds=_num(raw, "rebounds", "reb"),
            assists=_num(raw, "assists", "ast"),
            steals=_num(raw, "steals", "stl"),
            blocks=_num(raw, "blocks", "blk"),
            turnovers=_num(raw, "turnovers", "tov"),
            minutes=_num(raw, "minutes", "min") if minutes not in (None, "") else None,
            game_id=str(raw.get("game_id") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        return {
            "player_id": self.player_id,
            "name": self.name,
            "team": self.team,
            "points": self.points,
            "rebounds": self.rebounds,
            "assists": self.assists,
            "steals": self.steals,
            "blocks": self.blocks,
            "turnovers": self.turnovers,
            "minutes": self.minutes,
            "game_id": self.game_id,
            "pra": self.pra,
            "fantasy_points": round(self.fantasy_points, 1),
        }


def actual_ranking(outcomes: Iterable[PlayerOutcome]) -> list[PlayerOutcome]:
    """Order outcomes by fantasy points, highest first; ties keep input order."""
    return sorted(outcomes, key=lambda o: o.fantasy_points, reverse=True)


class OutcomeIndex:
    """Lookup of actual rank by player id, with a normalised-name fallback.

    Args:
        ranking: Outcomes already in actual-rank order.
    """

    def __init__(self, ranking: Sequence[PlayerOutcome]) -> None:
        self.ranking = list(ranking)
        self._by_id: dict[str, int] = {}
        self._by_name: dict[str, int] = {}
        for rank, outcome in enumerate(self.ranking, 1):
            self._by_id.setdefault(outcome.player_id, rank)
            self._by_name.setdefault(normalize_player_name(outcome.name), rank)

    def __len__(self) -> int:
        return len(self.ranking)

    def find(self, player_id: str, name: str) -> tuple[int, PlayerOutcome] | None:
        """Return ``(actual_rank, outcome)`` for a predicted player, if matched."""
        rank = self._by_id.get(player_id)
        if rank is None:
            rank = self._by_name.get(normalize_player_name(name))
        if rank is None:
            return None
        return rank, self.ranking[rank - 1]

    @property
    def winner(self) -> PlayerOutcome | None:
        """The actual top performer, None for an empty day."""
        return self.ranking[0] if self.ranking else None
