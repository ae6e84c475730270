"""Backtesting of variant rankings against realised box scores.

Submodules:
    outcomes: Box-score outcomes, fantasy points, actual ranking
    engine: Per-day evaluation and the multi-day BacktestEngine
    metrics: Aggregation across days (BacktestSummary)
    simulation: Seeded illustrative outcome simulator

Key concepts:
    - Replay is deterministic: known actuals against stored predictions
    - Hit-rate windows are wider than the predicted top-K
    - Unmatched players count as misses and never fail a day

Example:
    >>> from pra_model.backtest import BacktestEngine
    >>> summary = BacktestEngine().replay(contexts_by_date, outcomes_by_date)
    >>> print(summary.variant_wins, summary.ties)
"""

from __future__ import annotations

# Per-day evaluation
from pra_model.backtest.engine import (
    HIT_WINDOWS,
    BacktestEngine,
    BacktestResult,
    VariantAccuracy,
    decide_day_winner,
    evaluate_variant,
    run_backtest_day,
)

# Aggregation
from pra_model.backtest.metrics import (
    BacktestSummary,
    DayHighlight,
    VariantSummary,
    summarize_backtest,
    summarize_variant,
)

# Outcomes
from pra_model.backtest.outcomes import (
    OutcomeIndex,
    PlayerOutcome,
    actual_ranking,
    fantasy_points,
)

# Illustrative simulation
from pra_model.backtest.simulation import simulate_outcomes

__all__ = [
    "HIT_WINDOWS",
    "BacktestEngine",
    "BacktestResult",
    "BacktestSummary",
    "DayHighlight",
    "OutcomeIndex",
    "PlayerOutcome",
    "VariantAccuracy",
    "VariantSummary",
    "actual_ranking",
    "decide_day_winner",
    "evaluate_variant",
    "fantasy_points",
    "run_backtest_day",
    "simulate_outcomes",
    "summarize_backtest",
    "summarize_variant",
]
