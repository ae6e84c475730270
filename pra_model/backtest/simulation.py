"""Seeded, illustrative outcome simulator.

Draws plausible box scores from each player's recent PRA distribution so the
demo pipeline and tests have actuals to replay against. Simulated outcomes
say nothing about model accuracy; the deterministic replay path in
``pra_model.backtest.engine`` never calls into this module.

Example:
    >>> outcomes = simulate_outcomes(contexts, seed=7)
    >>> result = run_backtest_day("2024-11-19", ranking, outcomes)
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from pra_model.backtest.outcomes import PlayerOutcome
from pra_model.data.models import InjuryStatus, PlayerGameContext
from pra_model.logging import get_logger

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

MIN_SPREAD_FRACTION: float = 0.15
BASE_STEALS: float = 1.0
BASE_BLOCKS: float = 0.6
BASE_TURNOVERS: float = 2.5


def _split_pra(ctx: PlayerGameContext, pra: float) -> tuple[float, float, float]:
    total = ctx.ppg + ctx.rpg + ctx.apg
    if total <= 0:
        shares = np.array([0.6, 0.25, 0.15])
    else:
        shares = np.array([ctx.ppg, ctx.rpg, ctx.apg]) / total
    points, rebounds, assists = np.round(shares * pra)
    return float(points), float(rebounds), float(assists)


def simulate_outcomes(
    contexts: Iterable[PlayerGameContext],
    seed: int | None = None,
) -> list[PlayerOutcome]:
    """Draw one simulated box score per available player.

    PRA is drawn from a normal distribution centred on the player's recent
    average with their observed spread (at least 15% of the average), then
    split into points, rebounds and assists by season ratios. OUT players do
    not play.

    Args:
        contexts: Player contexts for the slate.
        seed: Seed for ``numpy.random.default_rng``; same seed, same draws.

    Returns:
        Simulated outcomes in input order.
    """
    rng = np.random.default_rng(seed)
    outcomes: list[PlayerOutcome] = []
    for ctx in contexts:
        if ctx.injury_status is InjuryStatus.OUT:
            continue
        mean = ctx.avg_pra
        spread = max(ctx.std_dev_pra, mean * MIN_SPREAD_FRACTION)
        pra = max(0.0, float(rng.normal(mean, spread)))
        points, rebounds, assists = _split_pra(ctx, pra)
        outcomes.append(
            PlayerOutcome(
                player_id=ctx.player_id,
                name=ctx.name,
                team=ctx.team,
                points=points,
                rebounds=rebounds,
                assists=assists,
                steals=float(rng.poisson(BASE_STEALS)),
                blocks=float(rng.poisson(BASE_BLOCKS)),
                turnovers=float(rng.poisson(BASE_TURNOVERS)),
                minutes=round(ctx.effective_mpg, 1),
                game_id=ctx.game_id,
            )
        )
    logger.debug("Simulated {} outcome(s) with seed {}", len(outcomes), seed)
    return outcomes
