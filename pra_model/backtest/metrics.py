"""Aggregate metrics across many backtest days.

Per-variant means are computed over the days a variant was evaluated on.
Rank errors and PRA differences skip days where they are undefined (nothing
matched, or the top pick sat out), so a variant is never penalised for
missing box scores beyond its hit rates.

Example:
    >>> summary = summarize_backtest(results)
    >>> print(summary.to_frame())
    >>> summary.variant_wins
    {'stats_first': 12, 'context_first': 7}
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from pra_model.logging import get_logger

if TYPE_CHECKING:
    from pra_model.backtest.engine import BacktestResult, VariantAccuracy

logger = get_logger(__name__)

# Days counted by the recent-form window
RECENT_FORM_DAYS: int = 4

# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class VariantSummary:
    """Mean accuracy of one variant across the tested days.

    Attributes:
        variant: Variant identifier.
        days: Days this variant was evaluated on.
        winner_accuracy: Share of days the predicted #1 was the actual #1.
        winner_top3_rate: Share of days the winner was predicted top 3.
        winner_top5_rate: Share of days the winner was predicted top 5.
        winner_top10_rate: Share of days the winner was predicted top 10.
        avg_top3_hit_rate: Mean top-3 hit rate.
        avg_top5_hit_rate: Mean top-5 hit rate.
        avg_top10_hit_rate: Mean top-10 hit rate.
        avg_rank_error: Mean daily rank error, None when never defined.
        avg_pra_difference: Mean top-pick PRA miss, None when never defined.
        avg_winner_rank: Mean predicted rank of the actual winner, None when
            the winner was never ranked.
        streak_length: Consecutive latest days sharing the last day's top-3 outcome.
        streak_kind: "Top 3" when that run is winners predicted top 3, "Miss"
            otherwise, empty with no days.
        recent_top3: Days within the recent window whose winner was predicted top 3.
        recent_days: Days in the recent window.
    """

    variant: str
    days: int
    winner_accuracy: float
    winner_top3_rate: float
    winner_top5_rate: float
    winner_top10_rate: float
    avg_top3_hit_rate: float
    avg_top5_hit_rate: float
    avg_top10_hit_rate: float
    avg_rank_error: float | None = None
    avg_pra_difference: float | None = None
    avg_winner_rank: float | None = None
    streak_length: int = 0
    streak_kind: str = ""
    recent_top3: int = 0
    recent_days: int = 0

    @property
    def streak(self) -> str:
        """Current run, e.g. "3 Top 3" or "2 Miss"."""
        return f"{self.streak_length} {self.streak_kind}".strip()

    @property
    def recent_form(self) -> str:
        """Top-3 record over the recent window, e.g. "3/4 Top 3"."""
        return f"{self.recent_top3}/{self.recent_days} Top 3"

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        return {
            "variant": self.variant,
            "days": self.days,
            "winner_accuracy": self.winner_accuracy,
            "winner_top3_rate": self.winner_top3_rate,
            "winner_top5_rate": self.winner_top5_rate,
            "winner_top10_rate": self.winner_top10_rate,
            "avg_top3_hit_rate": self.avg_top3_hit_rate,
            "avg_top5_hit_rate": self.avg_top5_hit_rate,
            "avg_top10_hit_rate": self.avg_top10_hit_rate,
            "avg_rank_error": self.avg_rank_error,
            "avg_pra_difference": self.avg_pra_difference,
            "avg_winner_rank": self.avg_winner_rank,
            "streak_length": self.streak_length,
            "streak_kind": self.streak_kind,
            "streak": self.streak,
            "recent_top3": self.recent_top3,
            "recent_days": self.recent_days,
            "recent_form": self.recent_form,
        }


@dataclass(frozen=True)
class DayHighlight:
    """A notable day by the primary variant's top-5 hit rate."""

    date: str
    top5_hit_rate: float
    predicted_winner: str | None
    actual_winner: str | None


@dataclass(frozen=True)
class BacktestSummary:
    """Everything a multi-day backtest produced.

    Attributes:
        start_date: Earliest tested date, None for an empty run.
        end_date: Latest tested date, None for an empty run.
        days_tested: Number of evaluated days.
        primary_variant: Variant used for best/worst day selection.
        variants: Variant identifier to its summary.
        variant_wins: Variant identifier to days won outright.
        ties: Days decided as a tie.
        total_games: Games played across the tested days.
        best_day: Highest primary top-5 hit rate.
        worst_day: Lowest primary top-5 hit rate.
        days: The per-day results in date order.
    """

    start_date: str | None
    end_date: str | None
    days_tested: int
    primary_variant: str | None
    variants: dict[str, VariantSummary] = field(default_factory=dict)
    variant_wins: dict[str, int] = field(default_factory=dict)
    ties: int = 0
    total_games: int = 0
    best_day: DayHighlight | None = None
    worst_day: DayHighlight | None = None
    days: tuple[BacktestResult, ...] = ()

    @property
    def primary(self) -> VariantSummary | None:
        """Summary of the primary variant."""
        if self.primary_variant is None:
            return None
        return self.variants.get(self.primary_variant)

    def to_frame(self) -> pd.DataFrame:
        """One row per (date, variant) with the daily accuracy metrics."""
        rows = []
        for result in self.days:
            for variant, acc in result.accuracy.items():
                rows.append(
                    {
                        "date": result.date,
                        "variant": variant,
                        "predicted_winner": acc.predicted_winner,
                        "winner_correct": acc.winner_correct,
                        "predicted_rank_of_winner": acc.predicted_rank_of_winner,
                        "top3_hit_rate": acc.top3_hit_rate,
                        "top5_hit_rate": acc.top5_hit_rate,
                        "top10_hit_rate": acc.top10_hit_rate,
                        "avg_rank_error": acc.avg_rank_error,
                        "pra_difference": acc.pra_difference,
                        "day_winner": result.day_winner,
                    }
                )
        return pd.DataFrame(
            rows,
            columns=[
                "date",
                "variant",
                "predicted_winner",
                "winner_correct",
                "predicted_rank_of_winner",
                "top3_hit_rate",
                "top5_hit_rate",
                "top10_hit_rate",
                "avg_rank_error",
                "pra_difference",
                "day_winner",
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""

        def highlight(day: DayHighlight | None) -> dict[str, Any] | None:
            if day is None:
                return None
            return {
                "date": day.date,
                "top5_hit_rate": day.top5_hit_rate,
                "predicted_winner": day.predicted_winner,
                "actual_winner": day.actual_winner,
            }

        return {
            "start_date": self.start_date,
            "end_date": self.end_date,
            "days_tested": self.days_tested,
            "primary_variant": self.primary_variant,
            "variants": {k: v.to_dict() for k, v in self.variants.items()},
            "variant_wins": dict(self.variant_wins),
            "ties": self.ties,
            "total_games": self.total_games,
            "best_day": highlight(self.best_day),
            "worst_day": highlight(self.worst_day),
            "days": [d.to_dict() for d in self.days],
        }


# =============================================================================
# Aggregation
# =============================================================================


def _mean(values: list[float]) -> float:
    return round(float(np.mean(values)), 3) if values else 0.0


def _optional_mean(values: list[float | None]) -> float | None:
    defined = [v for v in values if v is not None]
    return round(float(np.mean(defined)), 2) if defined else None


def _top3_streak(hits: list[bool]) -> tuple[int, str]:
    if not hits:
        return 0, ""
    latest = hits[-1]
    length = 0
    for hit in reversed(hits):
        if hit != latest:
            break
        length += 1
    return length, "Top 3" if latest else "Miss"


def summarize_variant(variant: str, accuracies: list[VariantAccuracy]) -> VariantSummary:
    """Average one variant's daily accuracy.

    ``accuracies`` must be in date order; the streak and recent form read
    the latest days.
    """
    top3 = [a.winner_in_top_3 for a in accuracies]
    streak_length, streak_kind = _top3_streak(top3)
    recent = top3[-RECENT_FORM_DAYS:]
    return VariantSummary(
        variant=variant,
        days=len(accuracies),
        winner_accuracy=_mean([float(a.winner_correct) for a in accuracies]),
        winner_top3_rate=_mean([float(hit) for hit in top3]),
        winner_top5_rate=_mean([float(a.winner_in_top_5) for a in accuracies]),
        winner_top10_rate=_mean([float(a.winner_in_top_10) for a in accuracies]),
        avg_top3_hit_rate=_mean([a.top3_hit_rate for a in accuracies]),
        avg_top5_hit_rate=_mean([a.top5_hit_rate for a in accuracies]),
        avg_top10_hit_rate=_mean([a.top10_hit_rate for a in accuracies]),
        avg_rank_error=_optional_mean([a.avg_rank_error for a in accuracies]),
        avg_pra_difference=_optional_mean([a.pra_difference for a in accuracies]),
        avg_winner_rank=_optional_mean(
            [
                float(a.predicted_rank_of_winner) if a.predicted_rank_of_winner else None
                for a in accuracies
            ]
        ),
        streak_length=streak_length,
        streak_kind=streak_kind,
        recent_top3=sum(recent),
        recent_days=len(recent),
    )


def _highlight(result: BacktestResult, variant: str) -> DayHighlight:
    acc = result.accuracy[variant]
    winner = result.actual_winner
    return DayHighlight(
        date=result.date,
        top5_hit_rate=acc.top5_hit_rate,
        predicted_winner=acc.predicted_winner,
        actual_winner=winner.name if winner else None,
    )


def summarize_backtest(results: Iterable[BacktestResult]) -> BacktestSummary:
    """Aggregate daily results into a BacktestSummary.

    Results are ordered by date. The primary variant is the first variant of
    the earliest day; best and worst days are picked by its top-5 hit rate,
    earliest date first on ties.

    Args:
        results: Daily backtest results in any order.

    Returns:
        BacktestSummary; an empty input yields ``days_tested == 0``.
    """
    days = sorted(results, key=lambda r: r.date)
    if not days:
        logger.debug("No backtest days to summarize")
        return BacktestSummary(start_date=None, end_date=None, days_tested=0, primary_variant=None)

    by_variant: dict[str, list[VariantAccuracy]] = {}
    for result in days:
        for variant, acc in result.accuracy.items():
            by_variant.setdefault(variant, []).append(acc)

    primary = days[0].variants[0] if days[0].variants else None
    wins = {variant: 0 for variant in by_variant}
    ties = 0
    for result in days:
        if result.day_winner is None:
            continue
        if result.day_winner == "tie":
            ties += 1
        else:
            wins[result.day_winner] = wins.get(result.day_winner, 0) + 1

    best = worst = None
    if primary is not None:
        scored = [r for r in days if primary in r.accuracy]
        if scored:
            rates = [r.accuracy[primary].top5_hit_rate for r in scored]
            best = _highlight(scored[int(np.argmax(rates))], primary)
            worst = _highlight(scored[int(np.argmin(rates))], primary)

    summary = BacktestSummary(
        start_date=days[0].date,
        end_date=days[-1].date,
        days_tested=len(days),
        primary_variant=primary,
        variants={v: summarize_variant(v, accs) for v, accs in by_variant.items()},
        variant_wins=wins,
        ties=ties,
        total_games=sum(r.num_games for r in days),
        best_day=best,
        worst_day=worst,
        days=tuple(days),
    )
    logger.info(
        "Summarized {} backtest day(s) from {} to {}",
        summary.days_tested,
        summary.start_date,
        summary.end_date,
    )
    return summary
