"""Per-variant rankings and structured rank comparison.

Rankings assign 1-based ranks to a stable descending sort of scored players.
Two rankings are compared player by player: ``rank_delta = rank_a - rank_b``,
so a positive delta means variant B ranks the player higher than variant A.

Players are matched by identifier only. Both rankings are derived from the
same input slate, so name normalisation is never needed here.

Example:
    >>> from pra_model.ranking import rank_all_variants, compare_variants
    >>> rankings = rank_all_variants(contexts)
    >>> summary = compare_variants(
    ...     rankings[Variant.STATS_FIRST], rankings[Variant.CONTEXT_FIRST]
    ... )
    >>> print(summary.top5_overlap, summary.avg_rank_change)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pra_model.data.models import PlayerGameContext
from pra_model.data.tables import LeagueTables, default_tables
from pra_model.logging import get_logger
from pra_model.scoring.components import FactorTone
from pra_model.scoring.engine import ScoredPlayer, rank_all, rank_scored
from pra_model.scoring.variants import Variant, VariantConfig, get_variant

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

TOP_N_OVERLAP: int = 5
MAJOR_DIFFERENCE_POOL: int = 15
MAJOR_DIFFERENCE_THRESHOLD: int = 5
MAX_MAJOR_DIFFERENCES: int = 5


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class RankedPlayer:
    """A scored player with its 1-based rank in one variant's ordering."""

    player: ScoredPlayer
    rank: int

    @property
    def player_id(self) -> str:
        """Player identifier."""
        return self.player.player_id

    @property
    def name(self) -> str:
        """Player display name."""
        return self.player.name


@dataclass(frozen=True)
class RankMove:
    """A player's rank change between two rankings."""

    player_id: str
    name: str
    change: int


@dataclass(frozen=True)
class RankDelta:
    """Per-player comparison row.

    Attributes:
        player_id: Player identifier.
        name: Display name.
        rank_a: Rank under variant A.
        rank_b: Rank under variant B.
        delta: ``rank_a - rank_b``; positive means B ranks the player higher.
    """

    player_id: str
    name: str
    rank_a: int
    rank_b: int
    delta: int


@dataclass(frozen=True)
class MajorDifference:
    """A top-ranked player whose rank moves by at least five places."""

    player_id: str
    name: str
    rank_a: int
    rank_b: int
    reason: str


@dataclass(frozen=True)
class ComparisonSummary:
    """Structured diff of two rankings of the same slate.

    Attributes:
        variant_a: Name of the first ranking's variant.
        variant_b: Name of the second ranking's variant.
        total_players: Players present in both rankings.
        rank_changes: Players whose rank differs.
        biggest_riser: Largest positive delta, None if nobody rose.
        biggest_faller: Largest negative delta, None if nobody fell.
        top5_overlap: Size of the intersection of both top-5 id sets.
        avg_rank_change: Mean absolute delta across shared players.
        top_pick_matches: Whether both rankings agree on #1.
        agreement_rate: ``top5_overlap / min(5, total_players)``.
        major_differences: Up to five large moves from A's top 15.
        deltas: Per-player rows in A's rank order.
    """

    variant_a: str
    variant_b: str
    total_players: int
    rank_changes: int
    biggest_riser: RankMove | None
    biggest_faller: RankMove | None
    top5_overlap: int
    avg_rank_change: float
    top_pick_matches: bool
    agreement_rate: float
    major_differences: tuple[MajorDifference, ...] = ()
    deltas: tuple[RankDelta, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""

        def move(m: RankMove | None) -> dict[str, Any] | None:
            if m is None:
                return None
            return {"player_id": m.player_id, "name": m.name, "change": m.change}

        return {
            "variant_a": self.variant_a,
            "variant_b": self.variant_b,
            "total_players": self.total_players,
            "rank_changes": self.rank_changes,
            "biggest_riser": move(self.biggest_riser),
            "biggest_faller": move(self.biggest_faller),
            "top5_overlap": self.top5_overlap,
            "avg_rank_change": self.avg_rank_change,
            "top_pick_matches": self.top_pick_matches,
            "agreement_rate": self.agreement_rate,
            "major_differences": [
                {
                    "player_id": d.player_id,
                    "name": d.name,
                    "rank_a": d.rank_a,
                    "rank_b": d.rank_b,
                    "reason": d.reason,
                }
                for d in self.major_differences
            ],
            "deltas": [
                {
                    "player_id": d.player_id,
                    "name": d.name,
                    "rank_a": d.rank_a,
                    "rank_b": d.rank_b,
                    "delta": d.delta,
                }
                for d in self.deltas
            ],
        }


# =============================================================================
# Ranking
# =============================================================================


def assign_ranks(players: Sequence[ScoredPlayer]) -> tuple[RankedPlayer, ...]:
    """Stable-sort scored players and attach 1-based ranks."""
    return tuple(
        RankedPlayer(player=p, rank=i) for i, p in enumerate(rank_scored(players), 1)
    )


def rank_players(
    contexts: Iterable[PlayerGameContext],
    variant: Variant | str | VariantConfig = Variant.STATS_FIRST,
    tables: LeagueTables | None = None,
    exclude_injured: bool = False,
) -> tuple[RankedPlayer, ...]:
    """Score, sort and rank a slate with one variant."""
    ranked = rank_all(contexts, variant, tables, exclude_injured=exclude_injured)
    return tuple(RankedPlayer(player=p, rank=i) for i, p in enumerate(ranked, 1))


def rank_all_variants(
    contexts: Iterable[PlayerGameContext],
    variants: Iterable[Variant | str] | None = None,
    tables: LeagueTables | None = None,
    exclude_injured: bool = False,
) -> dict[Variant, tuple[RankedPlayer, ...]]:
    """Produce a parallel ranking of one slate for each variant.

    Args:
        contexts: Player contexts for the slate.
        variants: Variants to run; every registered variant when None.
        tables: League lookup tables; the embedded season when None.
        exclude_injured: Drop OUT and DOUBTFUL players before ranking.

    Returns:
        Mapping of variant to its ranking, in the order requested.
    """
    pool = list(contexts)
    tables = tables or default_tables()
    selected = [get_variant(v).variant for v in (variants or list(Variant))]
    return {
        v: rank_players(pool, v, tables, exclude_injured=exclude_injured)
        for v in selected
    }


# =============================================================================
# Comparison
# =============================================================================


def as_ranked(ranking: Sequence[RankedPlayer | ScoredPlayer]) -> list[RankedPlayer]:
    """Accept either ranked rows or scored players already in rank order."""
    result: list[RankedPlayer] = []
    for i, item in enumerate(ranking, 1):
        if isinstance(item, RankedPlayer):
            result.append(item)
        else:
            result.append(RankedPlayer(player=item, rank=i))
    return result


def _variant_name(ranking: Sequence[RankedPlayer]) -> str:
    return ranking[0].player.variant.value if ranking else ""


def _move_reason(player: ScoredPlayer, fell: bool) -> str:
    wanted = FactorTone.WARNING if fell else FactorTone.BOOST
    for factor in player.factors:
        if factor.tone is wanted:
            return factor.text
    return "Game context penalty" if fell else "Game context boost"


def compare_variants(
    ranking_a: Sequence[RankedPlayer | ScoredPlayer],
    ranking_b: Sequence[RankedPlayer | ScoredPlayer],
) -> ComparisonSummary:
    """Diff two rankings of the same slate.

    Args:
        ranking_a: First ranking (ranked rows, or scored players in rank order).
        ranking_b: Second ranking.

    Returns:
        ComparisonSummary; comparing a ranking with itself yields no changes,
        full top-5 overlap and an average change of 0.
    """
    a = as_ranked(ranking_a)
    b = as_ranked(ranking_b)
    b_by_id: Mapping[str, RankedPlayer] = {r.player_id: r for r in b}

    deltas = tuple(
        RankDelta(
            player_id=r.player_id,
            name=r.name,
            rank_a=r.rank,
            rank_b=b_by_id[r.player_id].rank,
            delta=r.rank - b_by_id[r.player_id].rank,
        )
        for r in a
        if r.player_id in b_by_id
    )

    risers = [d for d in deltas if d.delta > 0]
    fallers = [d for d in deltas if d.delta < 0]
    # max()/min() keep the first of equal deltas, i.e. the better A rank
    riser = max(risers, key=lambda d: d.delta, default=None)
    faller = min(fallers, key=lambda d: d.delta, default=None)

    top_a = {r.player_id for r in a[:TOP_N_OVERLAP]}
    top_b = {r.player_id for r in b[:TOP_N_OVERLAP]}
    overlap = len(top_a & top_b)
    total = len(deltas)
    window = min(TOP_N_OVERLAP, total)

    major: list[MajorDifference] = []
    for d in deltas:
        if d.rank_a > MAJOR_DIFFERENCE_POOL:
            continue
        if abs(d.delta) >= MAJOR_DIFFERENCE_THRESHOLD:
            fell = d.rank_b > d.rank_a
            major.append(
                MajorDifference(
                    player_id=d.player_id,
                    name=d.name,
                    rank_a=d.rank_a,
                    rank_b=d.rank_b,
                    reason=_move_reason(b_by_id[d.player_id].player, fell),
                )
            )

    summary = ComparisonSummary(
        variant_a=_variant_name(a),
        variant_b=_variant_name(b),
        total_players=total,
        rank_changes=sum(1 for d in deltas if d.delta != 0),
        biggest_riser=RankMove(riser.player_id, riser.name, riser.delta) if riser else None,
        biggest_faller=(
            RankMove(faller.player_id, faller.name, faller.delta) if faller else None
        ),
        top5_overlap=overlap,
        avg_rank_change=(
            round(sum(abs(d.delta) for d in deltas) / total, 2) if total else 0.0
        ),
        top_pick_matches=bool(a and b and a[0].player_id == b[0].player_id),
        agreement_rate=round(overlap / window, 2) if window else 0.0,
        major_differences=tuple(major[:MAX_MAJOR_DIFFERENCES]),
        deltas=deltas,
    )
    logger.debug(
        "Compared {} vs {}: {} changes, top-5 overlap {}",
        summary.variant_a,
        summary.variant_b,
        summary.rank_changes,
        summary.top5_overlap,
    )
    return summary
