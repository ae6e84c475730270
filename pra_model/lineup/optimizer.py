"""Greedy salary-capped lineup construction.

Players are sorted by value density (score per $1000 of salary) and each
roster slot, in template order, takes the first candidate that is unused,
position-eligible for the slot, within the per-team cap and within the
remaining salary. This is a heuristic, not an exact knapsack solver.

Position eligibility:

    ======== =====================
    Position Slots it can fill
    ======== =====================
    PG       PG, G, UTIL
    SG       SG, G, UTIL
    SF       SF, F, UTIL
    PF       PF, F, UTIL
    C        C, F, UTIL
    G        G, UTIL
    F        F, UTIL
    other    UTIL
    ======== =====================

A slot with no eligible candidate stays empty; ``validate_lineup`` reports
it instead of the builder raising.

Example:
    >>> from pra_model.lineup import OptimizerSettings, generate_lineups, price_players
    >>> pool = price_players(rank_all(contexts, "stats_first"))
    >>> lineups = generate_lineups(pool, count=3, settings=OptimizerSettings())
    >>> print(lineups[0].projected_score, lineups[0].total_salary)
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pra_model.data.models import InjuryStatus
from pra_model.logging import get_logger
from pra_model.scoring.engine import ScoredPlayer
from pra_model.scoring.injuries import normalize_player_name, should_exclude
from pra_model.scoring.variants import Variant, resolve_variant
from pra_model.types import ConfigurationError

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_SALARY_CAP: int = 50000
DEFAULT_POSITIONS: tuple[str, ...] = ("G", "G", "F", "F", "UTIL", "UTIL")
DEFAULT_MIN_SALARY: int = 3000
DEFAULT_MAX_PER_TEAM: int = 3
DEFAULT_LINEUP_COUNT: int = 5

# Only the highest scorers are tried as exclusions for alternate lineups
EXCLUSION_POOL_SIZE: int = 20

UTIL_SLOT: str = "UTIL"

POSITION_ELIGIBILITY: dict[str, frozenset[str]] = {
    "PG": frozenset({"PG", "G", "UTIL"}),
    "SG": frozenset({"SG", "G", "UTIL"}),
    "SF": frozenset({"SF", "F", "UTIL"}),
    "PF": frozenset({"PF", "F", "UTIL"}),
    "C": frozenset({"C", "F", "UTIL"}),
    "G": frozenset({"G", "UTIL"}),
    "F": frozenset({"F", "UTIL"}),
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class OptimizerSettings:
    """Lineup construction constraints.

    Attributes:
        salary_cap: Maximum total salary in dollars.
        roster_size: Number of slots; must equal ``len(positions)``.
        positions: Ordered slot template.
        min_salary_per_player: Informational floor, only checked on request.
        max_players_per_team: Per-team player cap.
        variant: Variant whose score is optimised.

    Raises:
        ConfigurationError: If the settings are inconsistent.
    """

    salary_cap: int = DEFAULT_SALARY_CAP
    roster_size: int = len(DEFAULT_POSITIONS)
    positions: tuple[str, ...] = DEFAULT_POSITIONS
    min_salary_per_player: int = DEFAULT_MIN_SALARY
    max_players_per_team: int = DEFAULT_MAX_PER_TEAM
    variant: Variant | str = Variant.STATS_FIRST

    def __post_init__(self) -> None:
        object.__setattr__(self, "positions", tuple(p.upper() for p in self.positions))
        object.__setattr__(self, "variant", resolve_variant(self.variant))
        if self.salary_cap <= 0:
            raise ConfigurationError(f"salary_cap must be positive, got {self.salary_cap}")
        if self.max_players_per_team < 1:
            raise ConfigurationError(
                f"max_players_per_team must be positive, got {self.max_players_per_team}"
            )
        if self.min_salary_per_player < 0:
            raise ConfigurationError("min_salary_per_player cannot be negative")
        if not self.positions:
            raise ConfigurationError("positions cannot be empty")
        if self.roster_size != len(self.positions):
            raise ConfigurationError(
                f"roster_size ({self.roster_size}) must equal the number of "
                f"positions ({len(self.positions)})"
            )

    @property
    def target_variant(self) -> Variant:
        """The optimised variant as an enum."""
        return resolve_variant(self.variant)


@dataclass(frozen=True)
class SalariedPlayer:
    """A scored player with a salary, scored by one or more variants.

    Attributes:
        player_id: Player identifier.
        name: Display name.
        team: Team abbreviation.
        position: Listed position.
        salary: Salary in dollars.
        scores: Variant identifier to composite score.
        injury_status: Availability status.
    """

    player_id: str
    name: str
    team: str
    position: str
    salary: int
    scores: Mapping[str, float] = field(default_factory=dict)
    injury_status: InjuryStatus = InjuryStatus.HEALTHY

    def score_for(self, variant: Variant) -> float:
        """Score under a variant, 0 when the variant was not run."""
        return self.scores.get(variant.value, 0.0)

    def value_density(self, variant: Variant) -> float:
        """Score per $1000 of salary; 0 when the salary is not positive."""
        if self.salary <= 0:
            return 0.0
        return self.score_for(variant) / (self.salary / 1000)


@dataclass(frozen=True)
class LineupSlot:
    """One roster slot, empty when ``player`` is None."""

    position: str
    player: SalariedPlayer | None = None


@dataclass(frozen=True)
class Lineup:
    """A filled (or partially filled) roster.

    Attributes:
        slots: Slots in template order.
        total_salary: Sum of assigned salaries.
        remaining_salary: ``salary_cap - total_salary``.
        projected_score: Sum of assigned players' scores.
        value_score: Score per $1000 spent, 0 for an empty lineup.
        variant: Variant whose scores were summed.
    """

    slots: tuple[LineupSlot, ...]
    total_salary: int
    remaining_salary: int
    projected_score: float
    value_score: float
    variant: Variant = Variant.STATS_FIRST

    @property
    def players(self) -> list[SalariedPlayer]:
        """Assigned players in slot order."""
        return [s.player for s in self.slots if s.player is not None]

    @property
    def empty_slots(self) -> int:
        """Number of unfilled slots."""
        return sum(1 for s in self.slots if s.player is None)

    @property
    def is_complete(self) -> bool:
        """Whether every slot is filled."""
        return self.empty_slots == 0

    @property
    def player_key(self) -> tuple[str, ...]:
        """Sorted player ids, identifying the lineup regardless of slot order."""
        return tuple(sorted(p.player_id for p in self.players))

    def team_counts(self) -> Counter[str]:
        """Players per team."""
        return Counter(p.team for p in self.players)

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        return {
            "variant": self.variant.value,
            "slots": [
                {
                    "position": s.position,
                    "player_id": s.player.player_id if s.player else None,
                    "name": s.player.name if s.player else None,
                    "team": s.player.team if s.player else None,
                    "salary": s.player.salary if s.player else None,
                    "score": s.player.score_for(self.variant) if s.player else None,
                }
                for s in self.slots
            ],
            "total_salary": self.total_salary,
            "remaining_salary": self.remaining_salary,
            "projected_score": self.projected_score,
            "value_score": self.value_score,
        }


# =============================================================================
# Salaries and eligibility
# =============================================================================


def estimate_salary(score: float) -> int:
    """Placeholder salary for a player without a real price.

    A step function of the best composite score, from $3,000 for the value
    tier up to roughly $10,000 for the top tier.
    """
    if score >= 80:
        return 9000 + math.floor((score - 80) * 50)
    if score >= 65:
        return 7500 + math.floor((score - 65) * 100)
    if score >= 50:
        return 5500 + math.floor((score - 50) * 133)
    if score >= 35:
        return 3500 + math.floor((score - 35) * 133)
    return 3000 + math.floor(max(score, 0.0) * 14)


def eligible_slots(position: str) -> frozenset[str]:
    """Slot labels a listed position can fill."""
    return POSITION_ELIGIBILITY.get(position.upper(), frozenset({UTIL_SLOT}))


def can_fill(position: str, slot: str) -> bool:
    """Whether a player at ``position`` may fill ``slot``; UTIL accepts anyone."""
    slot = slot.upper()
    return slot == UTIL_SLOT or slot in eligible_slots(position)


def price_players(
    scored: Iterable[ScoredPlayer],
    salaries: Mapping[str, int] | None = None,
) -> list[SalariedPlayer]:
    """Merge scored players of any variants into a salaried pool.

    Players are merged by id, keeping first-seen order. Salaries are looked
    up by id, then by normalised name, and estimated from the best score
    when missing.

    Args:
        scored: Scored players from one or more variants.
        salaries: Optional id or name to salary mapping.

    Returns:
        List of SalariedPlayer.
    """
    salaries = salaries or {}
    by_name = {normalize_player_name(k): v for k, v in salaries.items()}

    merged: dict[str, dict[str, Any]] = {}
    for player in scored:
        entry = merged.setdefault(
            player.player_id,
            {"player": player, "scores": {}},
        )
        entry["scores"][player.variant.value] = player.composite_score

    pool: list[SalariedPlayer] = []
    estimated = 0
    for player_id, entry in merged.items():
        player: ScoredPlayer = entry["player"]
        scores: dict[str, float] = entry["scores"]
        salary = salaries.get(player_id)
        if salary is None:
            salary = by_name.get(normalize_player_name(player.name))
        if salary is None:
            salary = estimate_salary(max(scores.values()))
            estimated += 1
        pool.append(
            SalariedPlayer(
                player_id=player_id,
                name=player.name,
                team=player.team,
                position=player.position,
                salary=int(salary),
                scores=scores,
                injury_status=player.injury_status,
            )
        )

    if estimated:
        logger.debug("Estimated salaries for {} of {} players", estimated, len(pool))
    return pool


# =============================================================================
# Lineup construction
# =============================================================================


def _summarize(
    slots: Sequence[LineupSlot], settings: OptimizerSettings
) -> Lineup:
    variant = settings.target_variant
    players = [s.player for s in slots if s.player is not None]
    total_salary = sum(p.salary for p in players)
    projected = round(sum(p.score_for(variant) for p in players), 1)
    value = round(projected / (total_salary / 1000), 2) if total_salary > 0 else 0.0
    return Lineup(
        slots=tuple(slots),
        total_salary=total_salary,
        remaining_salary=settings.salary_cap - total_salary,
        projected_score=projected,
        value_score=value,
        variant=variant,
    )


def build_lineup(
    players: Sequence[SalariedPlayer],
    settings: OptimizerSettings | None = None,
) -> Lineup:
    """Greedily build one lineup by value density.

    OUT and DOUBTFUL players are never selected.

    Args:
        players: Salaried candidate pool.
        settings: Constraints; defaults when None.

    Returns:
        Lineup that never exceeds the salary cap or the per-team cap. Slots
        with no eligible candidate are left empty.
    """
    settings = settings or OptimizerSettings()
    variant = settings.target_variant

    candidates = sorted(
        (p for p in players if not should_exclude(p.injury_status)),
        key=lambda p: p.value_density(variant),
        reverse=True,
    )

    used: set[str] = set()
    team_counts: Counter[str] = Counter()
    total_salary = 0
    slots: list[LineupSlot] = []

    for position in settings.positions:
        chosen: SalariedPlayer | None = None
        for player in candidates:
            if player.player_id in used:
                continue
            if team_counts[player.team] >= settings.max_players_per_team:
                continue
            if total_salary + player.salary > settings.salary_cap:
                continue
            if not can_fill(player.position, position):
                continue
            chosen = player
            break

        if chosen is None:
            logger.debug("No eligible player for {} slot", position)
        else:
            used.add(chosen.player_id)
            team_counts[chosen.team] += 1
            total_salary += chosen.salary
        slots.append(LineupSlot(position=position, player=chosen))

    return _summarize(slots, settings)


def generate_lineups(
    players: Sequence[SalariedPlayer],
    count: int = DEFAULT_LINEUP_COUNT,
    settings: OptimizerSettings | None = None,
) -> list[Lineup]:
    """Build up to ``count`` distinct lineups.

    The primary greedy lineup is always kept. Alternates rebuild the lineup
    with each of the top scorers excluded in turn, keeping only complete
    lineups with a player set not seen before.

    Args:
        players: Salaried candidate pool.
        count: Maximum number of lineups.
        settings: Constraints; defaults when None.

    Returns:
        Lineups sorted by projected score, highest first.
    """
    settings = settings or OptimizerSettings()
    if count < 1:
        return []
    variant = settings.target_variant

    primary = build_lineup(players, settings)
    lineups = [primary]
    seen = {primary.player_key}

    top_scorers = sorted(players, key=lambda p: p.score_for(variant), reverse=True)
    for excluded in top_scorers[: min(count - 1, EXCLUSION_POOL_SIZE)]:
        if len(lineups) >= count:
            break
        pool = [p for p in players if p.player_id != excluded.player_id]
        lineup = build_lineup(pool, settings)
        if lineup.is_complete and lineup.player_key not in seen:
            lineups.append(lineup)
            seen.add(lineup.player_key)

    lineups.sort(key=lambda lu: lu.projected_score, reverse=True)
    logger.info("Generated {} lineup(s) for {}", len(lineups), variant.value)
    return lineups


def validate_lineup(
    lineup: Lineup,
    settings: OptimizerSettings | None = None,
    check_min_salary: bool = False,
) -> list[str]:
    """List every constraint a lineup violates.

    Args:
        lineup: Lineup to check.
        settings: Constraints; defaults when None.
        check_min_salary: Also enforce ``min_salary_per_player``.

    Returns:
        Human-readable violations; empty when the lineup is valid.
    """
    settings = settings or OptimizerSettings()
    violations: list[str] = []

    if lineup.empty_slots:
        violations.append(f"{lineup.empty_slots} empty slot(s)")
    if lineup.total_salary > settings.salary_cap:
        violations.append(
            f"Salary ${lineup.total_salary:,} exceeds cap ${settings.salary_cap:,}"
        )
    for team, n in sorted(lineup.team_counts().items()):
        if n > settings.max_players_per_team:
            violations.append(
                f"Too many players from {team} ({n} > {settings.max_players_per_team})"
            )
    if check_min_salary:
        for player in lineup.players:
            if player.salary < settings.min_salary_per_player:
                violations.append(
                    f"{player.name} salary ${player.salary:,} below minimum "
                    f"${settings.min_salary_per_player:,}"
                )
    return violations
