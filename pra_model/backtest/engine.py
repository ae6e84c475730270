"""Backtest engine: replay known actuals against stored predictions.

One backtest day compares each variant's predicted ranking with the day's
actual ranking (players ordered by realised fantasy points) and produces a
``VariantAccuracy`` per variant. This path is fully deterministic: it never
simulates outcomes. See ``pra_model.backtest.simulation`` for the separate,
illustrative simulator.

Hit-rate windows are asymmetric. A predicted top-K player counts as a hit when
their actual rank falls inside a wider window:

    ============ =================
    Predicted    Hit if actual rank
    ============ =================
    top 3        <= 5
    top 5        <= 10
    top 10       <= 20
    ============ =================

Predicted players missing from the box scores are excluded from the rank
error and count as misses in the hit rates; they never fail the day.

Example:
    >>> engine = BacktestEngine(tie_threshold=1.0)
    >>> result = engine.run_day("2024-11-19", rankings, outcomes)
    >>> result.accuracy["stats_first"].winner_in_top_5
    True
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from pra_model.backtest.outcomes import OutcomeIndex, PlayerOutcome, actual_ranking
from pra_model.logging import SUCCESS, WARN, get_logger
from pra_model.ranking.comparison import RankedPlayer, as_ranked, rank_all_variants
from pra_model.scoring.engine import ScoredPlayer
from pra_model.scoring.injuries import normalize_player_name
from pra_model.scoring.variants import Variant

if TYPE_CHECKING:
    from pra_model.backtest.metrics import BacktestSummary
    from pra_model.config import Settings
    from pra_model.data.models import PlayerGameContext
    from pra_model.data.tables import LeagueTables
    from pra_model.types import ContextSource, GameDate, OutcomeSource

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

HIT_WINDOWS: dict[int, int] = {3: 5, 5: 10, 10: 20}
DEFAULT_TIE_THRESHOLD: float = 1.0
TIE: str = "tie"

Ranking = Sequence[RankedPlayer | ScoredPlayer]


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class VariantAccuracy:
    """Accuracy of one variant's ranking on one day.

    Attributes:
        variant: Variant identifier.
        predicted_winner: Name of the predicted #1, None for an empty ranking.
        winner_correct: Predicted #1 is the actual #1.
        predicted_rank_of_winner: Where the ranking placed the actual winner.
        winner_in_top_3: Actual winner within predicted top 3.
        winner_in_top_5: Actual winner within predicted top 5.
        winner_in_top_10: Actual winner within predicted top 10.
        hit_rates: Predicted top-K size to hit rate (0-1), see ``HIT_WINDOWS``.
        avg_rank_error: Mean |predicted rank - actual rank| over matched
            players, None when nobody matched.
        projected_pra: Projected PRA of the predicted #1.
        actual_pra: Realised PRA of the predicted #1, None if unmatched.
        pra_difference: |projected - actual| for the predicted #1, None if
            unmatched.
        matched_players: Predicted players found in the box scores.
        unmatched_players: Predicted players missing from the box scores.
    """

    variant: str
    predicted_winner: str | None
    winner_correct: bool
    predicted_rank_of_winner: int | None
    winner_in_top_3: bool
    winner_in_top_5: bool
    winner_in_top_10: bool
    hit_rates: dict[int, float] = field(default_factory=dict)
    avg_rank_error: float | None = None
    projected_pra: float | None = None
    actual_pra: float | None = None
    pra_difference: float | None = None
    matched_players: int = 0
    unmatched_players: int = 0

    @property
    def top3_hit_rate(self) -> float:
        """Hit rate of the predicted top 3."""
        return self.hit_rates.get(3, 0.0)

    @property
    def top5_hit_rate(self) -> float:
        """Hit rate of the predicted top 5."""
        return self.hit_rates.get(5, 0.0)

    @property
    def top10_hit_rate(self) -> float:
        """Hit rate of the predicted top 10."""
        return self.hit_rates.get(10, 0.0)

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        return {
            "variant": self.variant,
            "predicted_winner": self.predicted_winner,
            "winner_correct": self.winner_correct,
            "predicted_rank_of_winner": self.predicted_rank_of_winner,
            "winner_in_top_3": self.winner_in_top_3,
            "winner_in_top_5": self.winner_in_top_5,
            "winner_in_top_10": self.winner_in_top_10,
            "hit_rates": {str(k): v for k, v in self.hit_rates.items()},
            "avg_rank_error": self.avg_rank_error,
            "projected_pra": self.projected_pra,
            "actual_pra": self.actual_pra,
            "pra_difference": self.pra_difference,
            "matched_players": self.matched_players,
            "unmatched_players": self.unmatched_players,
        }


@dataclass(frozen=True)
class BacktestResult:
    """One evaluated day.

    Attributes:
        date: Game date, YYYY-MM-DD.
        predicted_rankings: Variant identifier to predicted ranking.
        actual_ranking: Outcomes ordered by fantasy points.
        accuracy: Variant identifier to accuracy metrics.
        day_winner: Variant with the lowest rank error, "tie" when the margin
            is within the threshold, None with fewer than two scored variants.
    """

    date: str
    predicted_rankings: dict[str, tuple[RankedPlayer, ...]]
    actual_ranking: tuple[PlayerOutcome, ...]
    accuracy: dict[str, VariantAccuracy]
    day_winner: str | None = None

    @property
    def variants(self) -> list[str]:
        """Variant identifiers in the order they were evaluated."""
        return list(self.accuracy)

    @property
    def primary(self) -> VariantAccuracy | None:
        """Accuracy of the first evaluated variant."""
        return next(iter(self.accuracy.values()), None)

    @property
    def predicted_ranking(self) -> tuple[RankedPlayer, ...]:
        """Ranking of the first evaluated variant."""
        return next(iter(self.predicted_rankings.values()), ())

    @property
    def actual_winner(self) -> PlayerOutcome | None:
        """Actual top performer of the day."""
        return self.actual_ranking[0] if self.actual_ranking else None

    @property
    def num_games(self) -> int:
        """Games played on the day.

        Counts distinct game ids; outcomes without one are paired up by team.
        """
        game_ids = {o.game_id for o in self.actual_ranking if o.game_id}
        loose_teams = {o.team for o in self.actual_ranking if not o.game_id and o.team}
        return len(game_ids) + math.ceil(len(loose_teams) / 2)

    @property
    def num_players_predicted(self) -> int:
        """Size of the primary predicted ranking."""
        return len(self.predicted_ranking)

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        winner = self.actual_winner
        return {
            "date": self.date,
            "actual_winner": winner.to_dict() if winner else None,
            "actual_top_5": [o.to_dict() for o in self.actual_ranking[:5]],
            "predicted_top_5": {
                variant: [
                    {"rank": r.rank, "player_id": r.player_id, "name": r.name}
                    for r in ranking[:5]
                ]
                for variant, ranking in self.predicted_rankings.items()
            },
            "accuracy": {k: v.to_dict() for k, v in self.accuracy.items()},
            "day_winner": self.day_winner,
            "num_players_predicted": self.num_players_predicted,
            "num_games": self.num_games,
        }


# =============================================================================
# Per-day evaluation
# =============================================================================


def _find_in_ranking(
    ranking: Sequence[RankedPlayer], outcome: PlayerOutcome
) -> RankedPlayer | None:
    for row in ranking:
        if row.player_id == outcome.player_id:
            return row
    target = normalize_player_name(outcome.name)
    for row in ranking:
        if normalize_player_name(row.name) == target:
            return row
    return None


def evaluate_variant(
    variant: str,
    ranking: Sequence[RankedPlayer],
    index: OutcomeIndex,
) -> VariantAccuracy:
    """Score one predicted ranking against the actual outcomes.

    Args:
        variant: Variant identifier for labelling.
        ranking: Predicted ranking with 1-based ranks.
        index: Actual outcomes indexed for matching.

    Returns:
        VariantAccuracy for the day.
    """
    matches: list[tuple[RankedPlayer, int, PlayerOutcome] | None] = []
    for row in ranking:
        found = index.find(row.player_id, row.name)
        matches.append((row, found[0], found[1]) if found else None)

    matched = [m for m in matches if m is not None]
    errors = [abs(row.rank - actual_rank) for row, actual_rank, _ in matched]

    hit_rates: dict[int, float] = {}
    for top_k, window in HIT_WINDOWS.items():
        considered = matches[:top_k]
        if not considered:
            hit_rates[top_k] = 0.0
            continue
        hits = sum(1 for m in considered if m is not None and m[1] <= window)
        hit_rates[top_k] = hits / len(considered)

    winner = index.winner
    winner_row = _find_in_ranking(ranking, winner) if winner else None
    winner_rank = winner_row.rank if winner_row else None

    top_pick = ranking[0] if ranking else None
    top_match = matches[0] if matches else None
    projected = top_pick.player.projected_pra if top_pick else None
    actual = top_match[2].pra if top_match else None
    difference = (
        round(abs(projected - actual), 1)
        if projected is not None and actual is not None
        else None
    )

    return VariantAccuracy(
        variant=variant,
        predicted_winner=top_pick.name if top_pick else None,
        winner_correct=bool(top_match and top_match[1] == 1),
        predicted_rank_of_winner=winner_rank,
        winner_in_top_3=winner_rank is not None and winner_rank <= 3,
        winner_in_top_5=winner_rank is not None and winner_rank <= 5,
        winner_in_top_10=winner_rank is not None and winner_rank <= 10,
        hit_rates=hit_rates,
        avg_rank_error=round(float(np.mean(errors)), 2) if errors else None,
        projected_pra=projected,
        actual_pra=actual,
        pra_difference=difference,
        matched_players=len(matched),
        unmatched_players=len(matches) - len(matched),
    )


def decide_day_winner(
    accuracy: Mapping[str, VariantAccuracy], tie_threshold: float
) -> str | None:
    """Pick the variant with the lowest rank error, or "tie" within threshold."""
    scored = sorted(
        ((a.avg_rank_error, name) for name, a in accuracy.items() if a.avg_rank_error is not None),
        key=lambda pair: pair[0],
    )
    if len(scored) < 2:
        return None
    (best_error, best), (runner_error, _) = scored[0], scored[1]
    if runner_error - best_error > tie_threshold:
        return best
    return TIE


def _normalize_predictions(
    predictions: Ranking | Mapping[Variant | str, Ranking],
) -> dict[str, tuple[RankedPlayer, ...]]:
    if isinstance(predictions, Mapping):
        return {
            (k.value if isinstance(k, Variant) else str(k)): tuple(as_ranked(v))
            for k, v in predictions.items()
        }
    ranked = tuple(as_ranked(predictions))
    name = ranked[0].player.variant.value if ranked else Variant.STATS_FIRST.value
    return {name: ranked}


def run_backtest_day(
    game_date: GameDate,
    predictions: Ranking | Mapping[Variant | str, Ranking],
    outcomes: Iterable[PlayerOutcome],
    tie_threshold: float = DEFAULT_TIE_THRESHOLD,
) -> BacktestResult:
    """Evaluate one day of predictions against known actual outcomes.

    Args:
        game_date: Date label, YYYY-MM-DD.
        predictions: One ranking, or a mapping of variant to ranking. Rankings
            may be ranked rows or scored players in rank order.
        outcomes: Completed box scores for the day.
        tie_threshold: Rank-error margin within which variants tie.

    Returns:
        BacktestResult for the day.
    """
    rankings = _normalize_predictions(predictions)
    actual = actual_ranking(outcomes)
    index = OutcomeIndex(actual)

    accuracy = {name: evaluate_variant(name, r, index) for name, r in rankings.items()}
    result = BacktestResult(
        date=game_date,
        predicted_rankings=rankings,
        actual_ranking=tuple(actual),
        accuracy=accuracy,
        day_winner=decide_day_winner(accuracy, tie_threshold),
    )

    unmatched = sum(a.unmatched_players for a in accuracy.values())
    if unmatched:
        logger.bind(game_date=game_date).warning(
            f"{WARN} {game_date}: {unmatched} predicted players missing from box scores"
        )
    return result


# =============================================================================
# Engine
# =============================================================================


class BacktestEngine:
    """Run and aggregate deterministic backtests over many days.

    Attributes:
        tie_threshold: Rank-error margin within which variants tie.
        variants: Variants scored when replaying stored contexts.
        tables: League tables for replay scoring; embedded season when None.

    Example:
        >>> engine = BacktestEngine()
        >>> summary = engine.replay(contexts_by_date, outcomes_by_date)
        >>> print(summary.days_tested, summary.variant_wins)
    """

    def __init__(
        self,
        tie_threshold: float | None = None,
        variants: Sequence[Variant | str] | None = None,
        tables: LeagueTables | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize BacktestEngine.

        Args:
            tie_threshold: Tie margin; taken from settings when None.
            variants: Variants to replay; weighted variants when None.
            tables: League tables for replay scoring.
            settings: Settings to read defaults from; the singleton when None.
        """
        if tie_threshold is None:
            if settings is None:
                from pra_model.config import get_settings

                settings = get_settings()
            tie_threshold = settings.backtest_tie_threshold
        if tie_threshold < 0:
            raise ValueError("tie_threshold must be >= 0")

        self.tie_threshold = tie_threshold
        self.variants: list[Variant | str] = list(
            variants or (Variant.STATS_FIRST, Variant.CONTEXT_FIRST)
        )
        self.tables = tables

    def run_day(
        self,
        game_date: GameDate,
        predictions: Ranking | Mapping[Variant | str, Ranking],
        outcomes: Iterable[PlayerOutcome],
    ) -> BacktestResult:
        """Evaluate one day with this engine's tie threshold."""
        result = run_backtest_day(game_date, predictions, outcomes, self.tie_threshold)
        primary = result.primary
        if primary is not None:
            logger.bind(game_date=game_date).info(
                f"{SUCCESS} {game_date}: winner rank {primary.predicted_rank_of_winner}, "
                f"top-5 hit {primary.top5_hit_rate:.0%}, day winner {result.day_winner}"
            )
        return result

    def run(
        self,
        days: Iterable[tuple[str, Ranking | Mapping[Variant | str, Ranking], Iterable[PlayerOutcome]]],
    ) -> BacktestSummary:
        """Evaluate many days and aggregate them.

        Args:
            days: ``(date, predictions, outcomes)`` triples.

        Returns:
            BacktestSummary over every day with at least one outcome.
        """
        from pra_model.backtest.metrics import summarize_backtest

        results: list[BacktestResult] = []
        for game_date, predictions, outcomes in days:
            outcome_list = list(outcomes)
            if not outcome_list:
                logger.bind(game_date=game_date).warning(
                    f"{WARN} {game_date}: no completed games, skipping"
                )
                continue
            results.append(self.run_day(game_date, predictions, outcome_list))
        return summarize_backtest(results)

    def replay(
        self,
        contexts_by_date: Mapping[GameDate, Sequence[PlayerGameContext]],
        outcomes_by_date: Mapping[GameDate, Sequence[PlayerOutcome]],
    ) -> BacktestSummary:
        """Score stored contexts with every variant and replay known actuals.

        Dates without outcomes are skipped.

        Args:
            contexts_by_date: Date to the contexts known before tip-off.
            outcomes_by_date: Date to the completed box scores.

        Returns:
            BacktestSummary across the replayed days.
        """
        days = []
        for game_date in sorted(contexts_by_date):
            outcomes = outcomes_by_date.get(game_date)
            if not outcomes:
                logger.debug("No outcomes stored for {}", game_date)
                continue
            days.append(self._rank_day(game_date, contexts_by_date[game_date], outcomes))
        logger.info("Replaying {} day(s) across {} variant(s)", len(days), len(self.variants))
        return self.run(days)

    def replay_sources(
        self,
        context_source: ContextSource,
        outcome_source: OutcomeSource,
        dates: Iterable[GameDate],
    ) -> BacktestSummary:
        """Replay dates pulled one at a time from data-layer sources.

        Outcomes are requested first; contexts are only requested for dates
        with completed games. Dates are replayed in sorted order, and a date
        without contexts or outcomes is skipped.

        Args:
            context_source: Provider of the contexts known before tip-off.
            outcome_source: Provider of completed box scores.
            dates: Dates to replay.

        Returns:
            BacktestSummary across the replayed days.
        """
        days = []
        for game_date in sorted(set(dates)):
            outcomes = outcome_source.outcomes_for_date(game_date)
            if not outcomes:
                logger.debug("No outcomes available for {}", game_date)
                continue
            contexts = context_source.contexts_for_date(game_date)
            if not contexts:
                logger.debug("No contexts available for {}", game_date)
                continue
            days.append(self._rank_day(game_date, contexts, outcomes))
        logger.info("Replaying {} sourced day(s)", len(days))
        return self.run(days)

    def _rank_day(
        self,
        game_date: GameDate,
        contexts: Sequence[PlayerGameContext],
        outcomes: Sequence[PlayerOutcome],
    ) -> tuple[GameDate, dict[Variant, tuple[RankedPlayer, ...]], Sequence[PlayerOutcome]]:
        return game_date, rank_all_variants(contexts, self.variants, self.tables), outcomes
