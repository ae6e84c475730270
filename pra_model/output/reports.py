"""Report generation for rankings, comparisons, lineups and backtests.

Structured reports are plain dictionaries ready for ``json.dumps``; the
backtest report additionally renders as fixed-width text for terminals and
log files.

Example:
    >>> from pra_model.output import ReportGenerator
    >>> generator = ReportGenerator()
    >>> report = generator.predictions_report(ranked, game_date="2024-11-19")
    >>> print(generator.backtest_text_report(summary))
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pra_model.logging import get_logger
from pra_model.ranking.comparison import RankedPlayer, as_ranked
from pra_model.scoring.engine import Confidence, ScoredPlayer

if TYPE_CHECKING:
    from pra_model.backtest.metrics import BacktestSummary
    from pra_model.lineup.optimizer import Lineup
    from pra_model.ranking.comparison import ComparisonSummary

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

REPORT_WIDTH: int = 60
SECTION_WIDTH: int = 40
TOP_DAYS_SHOWN: int = 10


# =============================================================================
# Report Generator
# =============================================================================


class ReportGenerator:
    """Generate reports for the prediction, lineup and backtest workflows.

    Provides four report types:
    - Predictions: one variant's ranked slate
    - Comparison: diff of two variant rankings
    - Lineup: salary-capped lineups
    - Backtest: multi-day accuracy summary (dict or fixed-width text)

    Example:
        >>> generator = ReportGenerator()
        >>> daily = generator.predictions_report(ranked)
        >>> diff = generator.comparison_report(summary)
    """

    def __init__(self) -> None:
        """Initialize ReportGenerator."""
        self._generated_at = datetime.now()

    def predictions_report(
        self,
        ranking: Sequence[RankedPlayer | ScoredPlayer],
        game_date: str | None = None,
    ) -> dict[str, Any]:
        """Generate the report for one variant's ranked slate.

        Args:
            ranking: Ranked rows, or scored players already in rank order.
            game_date: Slate date; today when None.

        Returns:
            Dictionary containing:
            - date: Slate date as ISO string
            - generated_at: Timestamp of report generation
            - variant: Variant identifier
            - players: Per-player dictionaries with ``rank``
            - summary: Counts by confidence and injury flag
        """
        rows = as_ranked(ranking)
        logger.info("Generating predictions report for {} players", len(rows))

        players = [{"rank": r.rank, **r.player.to_dict()} for r in rows]
        confidence_counts = {c.value: 0 for c in Confidence}
        for r in rows:
            confidence_counts[r.player.confidence.value] += 1

        top = rows[0].player if rows else None
        return {
            "date": game_date or date.today().isoformat(),
            "generated_at": self._generated_at.isoformat(),
            "variant": top.variant.value if top else None,
            "players": players,
            "summary": {
                "total_players": len(rows),
                "top_pick": top.name if top else None,
                "top_projected_pra": top.projected_pra if top else None,
                "confidence": confidence_counts,
                "injury_flagged": sum(1 for r in rows if r.player.injury_adjustment < 0),
            },
        }

    def comparison_report(self, summary: ComparisonSummary) -> dict[str, Any]:
        """Generate the report for a two-variant comparison."""
        logger.info(
            "Generating comparison report for {} vs {}", summary.variant_a, summary.variant_b
        )
        return {
            "generated_at": self._generated_at.isoformat(),
            **summary.to_dict(),
        }

    def lineup_report(
        self,
        lineups: Sequence[Lineup],
        salary_cap: int | None = None,
    ) -> dict[str, Any]:
        """Generate the report for a set of lineups.

        Args:
            lineups: Lineups, best first.
            salary_cap: Cap the lineups were built under, for display.

        Returns:
            Dictionary with the lineups and the best projected score.
        """
        logger.info("Generating lineup report for {} lineup(s)", len(lineups))
        return {
            "generated_at": self._generated_at.isoformat(),
            "salary_cap": salary_cap,
            "count": len(lineups),
            "best_projected_score": lineups[0].projected_score if lineups else None,
            "lineups": [
                {"index": i, "complete": lu.is_complete, **lu.to_dict()}
                for i, lu in enumerate(lineups, 1)
            ],
        }

    def backtest_report(self, summary: BacktestSummary) -> dict[str, Any]:
        """Generate the structured backtest report."""
        return {
            "generated_at": self._generated_at.isoformat(),
            **summary.to_dict(),
        }

    def backtest_text_report(
        self,
        summary: BacktestSummary,
        title: str = "PRA Backtest Report",
    ) -> str:
        """Render a backtest summary as fixed-width text.

        Args:
            summary: Aggregated backtest summary.
            title: Report title.

        Returns:
            Formatted text report.
        """
        lines = [
            f"{'=' * REPORT_WIDTH}",
            f"{title:^{REPORT_WIDTH}}",
            f"{'=' * REPORT_WIDTH}",
            "",
        ]
        if summary.days_tested == 0:
            lines.extend(["No days with completed games.", "", "=" * REPORT_WIDTH])
            return "\n".join(lines)

        lines.extend(
            [
                "PERIOD",
                "-" * SECTION_WIDTH,
                f"From:             {summary.start_date:>12}",
                f"To:               {summary.end_date:>12}",
                f"Days Tested:      {summary.days_tested:>12}",
                f"Total Games:      {summary.total_games:>12}",
                f"Ties:             {summary.ties:>12}",
            ]
        )

        for name, vs in summary.variants.items():
            error = f"{vs.avg_rank_error:.2f}" if vs.avg_rank_error is not None else "n/a"
            pra_miss = (
                f"{vs.avg_pra_difference:.1f}" if vs.avg_pra_difference is not None else "n/a"
            )
            winner_rank = (
                f"{vs.avg_winner_rank:.1f}" if vs.avg_winner_rank is not None else "n/a"
            )
            lines.extend(
                [
                    "",
                    name.upper(),
                    "-" * SECTION_WIDTH,
                    f"Days Won:         {summary.variant_wins.get(name, 0):>12}",
                    f"Winner Correct:   {vs.winner_accuracy:>12.1%}",
                    f"Winner Top 3:     {vs.winner_top3_rate:>12.1%}",
                    f"Winner Top 5:     {vs.winner_top5_rate:>12.1%}",
                    f"Winner Top 10:    {vs.winner_top10_rate:>12.1%}",
                    f"Top-3 Hit Rate:   {vs.avg_top3_hit_rate:>12.1%}",
                    f"Top-5 Hit Rate:   {vs.avg_top5_hit_rate:>12.1%}",
                    f"Top-10 Hit Rate:  {vs.avg_top10_hit_rate:>12.1%}",
                    f"Avg Rank Error:   {error:>12}",
                    f"Avg PRA Miss:     {pra_miss:>12}",
                    f"Avg Winner Rank:  {winner_rank:>12}",
                    f"Streak:           {vs.streak:>12}",
                    f"Recent Form:      {vs.recent_form:>12}",
                ]
            )

        if summary.best_day and summary.worst_day:
            lines.extend(
                [
                    "",
                    f"HIGHLIGHTS ({summary.primary_variant})",
                    "-" * SECTION_WIDTH,
                    f"Best Day:         {summary.best_day.date:>12} "
                    f"({summary.best_day.top5_hit_rate:.0%})",
                    f"Worst Day:        {summary.worst_day.date:>12} "
                    f"({summary.worst_day.top5_hit_rate:.0%})",
                ]
            )

        lines.extend(["", "DAILY", "-" * SECTION_WIDTH])
        for result in summary.days[-TOP_DAYS_SHOWN:]:
            primary = result.primary
            winner = result.actual_winner
            winner_name = winner.name if winner else "-"
            rank = primary.predicted_rank_of_winner if primary else None
            lines.append(
                f"{result.date}  {winner_name[:22]:<22} "
                f"rank {rank if rank is not None else '-':>3}  "
                f"{result.day_winner or '-'}"
            )

        lines.extend(["", "=" * REPORT_WIDTH])
        return "\n".join(lines)
