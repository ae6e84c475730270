"""CLI entrypoint using Typer.

This module defines the command-line interface for the PRA model. Commands
score and rank a slate, compare two variants, build salary-capped lineups,
replay stored slates against box scores, and run the whole pipeline over
the built-in fixture slate.

Example:
    $ pra-model --help
    $ pra-model score slate.json --variant context_first --top 10
    $ pra-model backtest slates/ box_scores/
    $ pra-model demo --date 2024-11-19
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pra_model import __version__
from pra_model.backtest import BacktestEngine, run_backtest_day, simulate_outcomes
from pra_model.config import Settings, get_settings
from pra_model.data.fixtures import SlateBuilder
from pra_model.data.loaders import (
    DatedDirectorySource,
    load_contexts,
    load_salaries,
)
from pra_model.data.models import PlayerGameContext
from pra_model.data.tables import LeagueTables, default_tables, load_league_tables
from pra_model.lineup import Lineup, generate_lineups, price_players, validate_lineup
from pra_model.logging import FAIL, get_logger, setup_logging
from pra_model.output import ReportGenerator
from pra_model.ranking import RankedPlayer, compare_variants, rank_all_variants, rank_players
from pra_model.scoring import Variant, get_variant
from pra_model.types import PRAModelError

# Initialize console for rich output
console = Console()
logger = get_logger(__name__)

# Create main app
app = typer.Typer(
    name="pra-model",
    help="Nightly PRA leader ranking, comparison and lineup CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

CONFIDENCE_STYLES: dict[str, str] = {"high": "green", "medium": "yellow", "low": "red"}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]pra-model[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-V",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Nightly PRA leader ranking CLI.

    Scores every player on a slate with up to three model variants, compares
    their rankings, builds lineups and backtests against box scores.
    """
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(
        level=log_level,
        log_dir=settings.log_dir_obj,
        console_level=log_level if verbose else "WARNING",
    )


# =============================================================================
# Helpers
# =============================================================================


def _fail(message: str) -> typer.Exit:
    logger.error(f"{FAIL} {message}")
    console.print(f"[red]Error: {message}[/red]")
    return typer.Exit(code=1)


def _tables(settings: Settings) -> LeagueTables:
    path = settings.league_tables_path_obj
    return load_league_tables(path) if path else default_tables()


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[green]Report written to {path}[/green]")


def _ranking_table(ranking: tuple[RankedPlayer, ...], title: str, top: int) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Player", style="cyan")
    table.add_column("Matchup")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Proj", justify="right")
    table.add_column("Ceil", justify="right")
    table.add_column("Conf")
    table.add_column("Key Factors")
    for row in ranking[:top]:
        p = row.player
        style = CONFIDENCE_STYLES.get(p.confidence.value, "white")
        table.add_row(
            str(row.rank),
            p.name,
            p.context.matchup,
            f"{p.composite_score:.1f}",
            f"{p.projected_pra:.1f}",
            f"{p.ceiling_pra:.1f}",
            f"[{style}]{p.confidence.value}[/{style}]",
            "; ".join(p.key_factors),
        )
    return table


def _lineup_table(lineup: Lineup, index: int) -> Table:
    table = Table(
        title=(
            f"Lineup {index}: {lineup.projected_score:.1f} pts, "
            f"${lineup.total_salary:,} (${lineup.remaining_salary:,} left)"
        )
    )
    table.add_column("Slot", style="cyan")
    table.add_column("Player")
    table.add_column("Team")
    table.add_column("Salary", justify="right")
    table.add_column("Score", justify="right", style="green")
    for slot in lineup.slots:
        if slot.player is None:
            table.add_row(slot.position, "[red]empty[/red]", "", "", "")
            continue
        table.add_row(
            slot.position,
            slot.player.name,
            slot.player.team,
            f"${slot.player.salary:,}",
            f"{slot.player.score_for(lineup.variant):.1f}",
        )
    return table


def _print_comparison(ranking_a: tuple[RankedPlayer, ...], ranking_b: tuple[RankedPlayer, ...]) -> None:
    summary = compare_variants(ranking_a, ranking_b)
    riser = summary.biggest_riser
    faller = summary.biggest_faller
    console.print(
        Panel(
            f"Players: {summary.total_players}\n"
            f"Rank changes: {summary.rank_changes}\n"
            f"Top-5 overlap: {summary.top5_overlap} ({summary.agreement_rate:.0%})\n"
            f"Avg rank change: {summary.avg_rank_change:.2f}\n"
            f"Same top pick: {'yes' if summary.top_pick_matches else 'no'}\n"
            f"Biggest riser: {f'{riser.name} (+{riser.change})' if riser else '-'}\n"
            f"Biggest faller: {f'{faller.name} ({faller.change})' if faller else '-'}",
            title=f"{summary.variant_a} vs {summary.variant_b}",
        )
    )
    if summary.major_differences:
        table = Table(title="Major Differences")
        table.add_column("Player", style="cyan")
        table.add_column("Rank A", justify="right")
        table.add_column("Rank B", justify="right")
        table.add_column("Reason")
        for d in summary.major_differences:
            table.add_row(d.name, str(d.rank_a), str(d.rank_b), d.reason)
        console.print(table)


# =============================================================================
# Commands
# =============================================================================


@app.command("score")
def score_command(
    file: Annotated[
        Path,
        typer.Argument(help="Slate file (JSON or CSV) with one record per player"),
    ],
    variant: Annotated[
        str | None,
        typer.Option("--variant", help="Variant: stats_first, context_first, sigmoid_ensemble"),
    ] = None,
    top: Annotated[
        int,
        typer.Option("--top", "-n", help="Number of players to show", min=1),
    ] = 15,
    include_injured: Annotated[
        bool,
        typer.Option("--include-injured", help="Keep OUT and DOUBTFUL players"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON report to this path"),
    ] = None,
) -> None:
    """Score and rank a slate with one variant."""
    settings = get_settings()
    try:
        config = get_variant(variant or settings.default_variant)
        contexts = load_contexts(file)
        exclude = settings.exclude_injured and not include_injured
        ranking = rank_players(contexts, config, _tables(settings), exclude_injured=exclude)
    except PRAModelError as e:
        raise _fail(str(e)) from e

    if not ranking:
        console.print("[yellow]No players to rank[/yellow]")
        return
    console.print(_ranking_table(ranking, f"PRA Rankings ({config.variant.label})", top))
    if output:
        _write_json(output, ReportGenerator().predictions_report(ranking))


@app.command("compare")
def compare_command(
    file: Annotated[
        Path,
        typer.Argument(help="Slate file (JSON or CSV) with one record per player"),
    ],
    variant_a: Annotated[
        str,
        typer.Option("--a", help="First variant"),
    ] = Variant.STATS_FIRST.value,
    variant_b: Annotated[
        str,
        typer.Option("--b", help="Second variant"),
    ] = Variant.CONTEXT_FIRST.value,
) -> None:
    """Compare two variant rankings of the same slate."""
    settings = get_settings()
    try:
        a = get_variant(variant_a).variant
        b = get_variant(variant_b).variant
        contexts = load_contexts(file)
        rankings = rank_all_variants(
            contexts, [a, b], _tables(settings), exclude_injured=settings.exclude_injured
        )
    except PRAModelError as e:
        raise _fail(str(e)) from e

    _print_comparison(rankings[a], rankings[b])


@app.command("lineup")
def lineup_command(
    file: Annotated[
        Path,
        typer.Argument(help="Slate file (JSON or CSV) with one record per player"),
    ],
    variant: Annotated[
        str | None,
        typer.Option("--variant", help="Variant whose scores drive selection"),
    ] = None,
    count: Annotated[
        int | None,
        typer.Option("--count", "-c", help="Number of lineups", min=1, max=50),
    ] = None,
    salary_cap: Annotated[
        int | None,
        typer.Option("--salary-cap", help="Override the configured salary cap"),
    ] = None,
    salaries: Annotated[
        Path | None,
        typer.Option("--salaries", help="Salary sheet (CSV or JSON); estimated when omitted"),
    ] = None,
) -> None:
    """Build salary-capped lineups from a slate."""
    settings = get_settings()
    try:
        opt = settings.optimizer_settings(variant)
        if salary_cap is not None:
            opt = dataclasses.replace(opt, salary_cap=salary_cap)
        contexts = load_contexts(file)
        salary_map = load_salaries(salaries) if salaries else None
        rankings = rank_all_variants(
            contexts, tables=_tables(settings), exclude_injured=settings.exclude_injured
        )
    except PRAModelError as e:
        raise _fail(str(e)) from e

    pool = price_players(
        [row.player for ranking in rankings.values() for row in ranking], salary_map
    )
    lineups = generate_lineups(pool, count or settings.lineup_count, opt)
    for i, lineup in enumerate(lineups, 1):
        console.print(_lineup_table(lineup, i))
        for problem in validate_lineup(lineup, opt):
            console.print(f"  [yellow]{problem}[/yellow]")


@app.command("backtest")
def backtest_command(
    predictions_dir: Annotated[
        Path,
        typer.Argument(help="Directory of stored slates named YYYY-MM-DD.json/.csv"),
    ],
    outcomes_dir: Annotated[
        Path,
        typer.Argument(help="Directory of box scores named YYYY-MM-DD.json/.csv"),
    ],
    variants: Annotated[
        list[str] | None,
        typer.Option("--variant", help="Variants to replay (repeatable)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the JSON report to this path"),
    ] = None,
) -> None:
    """Replay stored slates against known box scores."""
    settings = get_settings()
    try:
        selected = [get_variant(v).variant for v in variants] if variants else None
        slates = DatedDirectorySource(predictions_dir)
        box_scores = DatedDirectorySource(outcomes_dir)
        engine = BacktestEngine(variants=selected, tables=_tables(settings), settings=settings)
        summary = engine.replay_sources(slates, box_scores, slates.dates())
    except PRAModelError as e:
        raise _fail(str(e)) from e

    generator = ReportGenerator()
    console.print(generator.backtest_text_report(summary), markup=False, highlight=False)
    if output:
        _write_json(output, generator.backtest_report(summary))


@app.command("demo")
def demo_command(
    game_date: Annotated[
        str,
        typer.Option("--date", "-d", help="Slate date (YYYY-MM-DD)"),
    ] = "2024-11-19",
    seed: Annotated[
        int,
        typer.Option("--seed", "-s", help="Seed for the fixture slate and simulated outcomes"),
    ] = 0,
) -> None:
    """Run the full pipeline over the built-in fixture slate.

    Outcomes are simulated; the accuracy shown illustrates the workflow only.
    """
    settings = get_settings()
    try:
        contexts: list[PlayerGameContext] = SlateBuilder(seed=seed).build(game_date)
    except ValueError as e:
        raise _fail(f"Invalid date '{game_date}': {e}") from e

    console.print(
        Panel(
            f"Date: {game_date}\nPlayers: {len(contexts)}\nSeed: {seed}",
            title="PRA Model Demo",
        )
    )
    rankings = rank_all_variants(contexts, tables=_tables(settings))
    for variant, ranking in rankings.items():
        console.print(_ranking_table(ranking, f"PRA Rankings ({variant.label})", 10))
    _print_comparison(rankings[Variant.STATS_FIRST], rankings[Variant.CONTEXT_FIRST])

    pool = price_players([row.player for r in rankings.values() for row in r])
    lineups = generate_lineups(pool, 1, settings.optimizer_settings())
    if lineups:
        console.print(_lineup_table(lineups[0], 1))

    outcomes = simulate_outcomes(contexts, seed=seed)
    result = run_backtest_day(
        game_date, rankings, outcomes, tie_threshold=settings.backtest_tie_threshold
    )
    table = Table(title="Simulated Backtest (illustrative)")
    table.add_column("Variant", style="cyan")
    table.add_column("Top Pick")
    table.add_column("Winner Rank", justify="right")
    table.add_column("Top-5 Hit", justify="right")
    table.add_column("Rank Error", justify="right")
    for name, acc in result.accuracy.items():
        table.add_row(
            name,
            acc.predicted_winner or "-",
            str(acc.predicted_rank_of_winner or "-"),
            f"{acc.top5_hit_rate:.0%}",
            f"{acc.avg_rank_error:.2f}" if acc.avg_rank_error is not None else "n/a",
        )
    console.print(table)
    winner = result.actual_winner
    console.print(
        f"Actual leader: [bold]{winner.name if winner else '-'}[/bold]   "
        f"Day winner: [bold]{result.day_winner or '-'}[/bold]"
    )


if __name__ == "__main__":
    app()
