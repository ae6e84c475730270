"""Per-variant rankings and cross-variant comparison.

Example:
    >>> from pra_model.ranking import compare_variants, rank_players
    >>> a = rank_players(contexts, "stats_first")
    >>> b = rank_players(contexts, "context_first")
    >>> compare_variants(a, b).top_pick_matches
"""

from __future__ import annotations

from pra_model.ranking.comparison import (
    ComparisonSummary,
    MajorDifference,
    RankDelta,
    RankedPlayer,
    RankMove,
    as_ranked,
    assign_ranks,
    compare_variants,
    rank_all_variants,
    rank_players,
)

__all__ = [
    "ComparisonSummary",
    "MajorDifference",
    "RankDelta",
    "RankMove",
    "RankedPlayer",
    "as_ranked",
    "assign_ranks",
    "compare_variants",
    "rank_all_variants",
    "rank_players",
]
