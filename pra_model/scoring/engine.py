"""Scoring engine: one parameterised pipeline for every variant.

``score`` turns one ``PlayerGameContext`` into one ``ScoredPlayer``,
independently of every other player. ``rank_all`` maps ``score`` over a slate
and stable-sorts by injury-adjusted score, so ties keep their input order.

Composite score ranges:
    - stats_first / context_first: weighted sum of five [0, 100] sub-scores,
      so [0, 100].
    - sigmoid_ensemble: win probability (0-0.35) x 285, so [0, 99.75].

The injury adjustment never enters ``composite_score``; it is reported
separately and only applied through ``adjusted_score`` when ranking.

Example:
    >>> from pra_model.scoring import rank_all
    >>> ranked = rank_all(contexts, "stats_first")
    >>> for player in ranked[:3]:
    ...     print(player.name, player.composite_score, player.key_factors)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pra_model.data.models import InjuryStatus, PlayerGameContext
from pra_model.data.tables import LeagueTables, default_tables
from pra_model.logging import get_logger
from pra_model.scoring.components import (
    BlowoutRisk,
    FactorTone,
    KeyFactor,
    SubScore,
    ceiling_estimate,
    ceiling_score,
    context_adjustment,
    environment_score,
    matchup_score,
    recency_score,
    resolve_opponent,
    summarize_form,
    volume_score,
)
from pra_model.scoring.ensemble import evaluate_ensemble
from pra_model.scoring.injuries import injury_adjustment, injury_label, should_exclude
from pra_model.scoring.variants import Variant, VariantConfig, get_variant

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

MAX_KEY_FACTORS: int = 4

HIGH_CONFIDENCE_MAX_STD: float = 5.0
HIGH_CONFIDENCE_MIN_GAMES: int = 15
LOW_CONFIDENCE_MIN_GAMES: int = 10
LOW_CONFIDENCE_STD: float = 8.0
HIGH_CONTEXT_MULTIPLIER: float = 1.08
LOW_CONTEXT_MULTIPLIER: float = 0.88

DRTG_PROJECTION_DIVISOR: float = 150.0
COMPOSITE_PROJECTION_DIVISOR: float = 60.0
SIGNAL_PROJECTION_BASE: float = 0.9
SIGNAL_PROJECTION_RANGE: float = 0.2


class Confidence(Enum):
    """Confidence level for a prediction."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ScoredPlayer:
    """A player context scored by one variant.

    Attributes:
        context: The input context, unchanged.
        variant: Variant that produced the score.
        composite_score: Bounded score; range depends on the variant.
        projected_pra: Expected PRA, never below the variant floor x avg PRA.
        ceiling_pra: Upside PRA, never below ``projected_pra``.
        component_scores: Sub-score family name to 0-100 value.
        factors: Ordered key factors (at most four).
        confidence: HIGH, MEDIUM or LOW.
        injury_adjustment: Additive availability penalty (<= 0).
        context_multiplier: Game-context multiplier used for projections.
        win_probability: Ensemble probability; None for weighted variants.
    """

    context: PlayerGameContext
    variant: Variant
    composite_score: float
    projected_pra: float
    ceiling_pra: float
    component_scores: dict[str, float] = field(default_factory=dict)
    factors: tuple[KeyFactor, ...] = ()
    confidence: Confidence = Confidence.MEDIUM
    injury_adjustment: float = 0.0
    context_multiplier: float = 1.0
    win_probability: float | None = None

    @property
    def player_id(self) -> str:
        """Player identifier."""
        return self.context.player_id

    @property
    def name(self) -> str:
        """Player display name."""
        return self.context.name

    @property
    def team(self) -> str:
        """Team abbreviation."""
        return self.context.team

    @property
    def position(self) -> str:
        """Listed position."""
        return self.context.position

    @property
    def injury_status(self) -> InjuryStatus:
        """Availability status from the context."""
        return self.context.injury_status

    @property
    def key_factors(self) -> tuple[str, ...]:
        """Key factor display strings."""
        return tuple(f.text for f in self.factors)

    @property
    def adjusted_score(self) -> float:
        """Composite score plus the injury adjustment, used for ranking."""
        return self.composite_score + self.injury_adjustment

    def to_dict(self) -> dict[str, Any]:
        """Field-for-field mapping suitable for JSON serialization."""
        ctx = self.context
        return {
            "player_id": ctx.player_id,
            "name": ctx.name,
            "team": ctx.team,
            "position": ctx.position,
            "matchup": ctx.matchup,
            "opponent": ctx.opponent_abbrev,
            "variant": self.variant.value,
            "composite_score": self.composite_score,
            "adjusted_score": round(self.adjusted_score, 1),
            "projected_pra": self.projected_pra,
            "ceiling_pra": self.ceiling_pra,
            "component_scores": dict(self.component_scores),
            "key_factors": list(self.key_factors),
            "confidence": self.confidence.value,
            "injury_status": ctx.injury_status.value,
            "injury_adjustment": self.injury_adjustment,
            "context_multiplier": round(self.context_multiplier, 3),
            "win_probability": self.win_probability,
            "stats": {
                "avg_pra": round(ctx.avg_pra, 1),
                "max_pra": ctx.max_pra,
                "std_dev_pra": round(ctx.std_dev_pra, 1),
                "usage_rate": ctx.usage_rate,
                "mpg": ctx.mpg,
                "triple_doubles": ctx.triple_double_count,
                "games_played": ctx.games_played,
            },
            "game_context": {
                "spread": ctx.spread,
                "over_under": ctx.over_under,
                "is_home": ctx.is_home,
            },
        }


# =============================================================================
# Helpers
# =============================================================================


def _round(value: float) -> float:
    return round(value, 1)


def order_key_factors(
    player_factors: Iterable[KeyFactor],
    context_factors: Iterable[KeyFactor],
    player_first: bool,
    limit: int = MAX_KEY_FACTORS,
) -> tuple[KeyFactor, ...]:
    """Merge player and context factors in variant order, truncated.

    Neutral context factors (such as home court) sort after the ones that
    argue for or against a big night.
    """
    context = sorted(context_factors, key=lambda f: f.tone is FactorTone.NEUTRAL)
    if player_first:
        ordered = [*player_factors, *context]
    else:
        ordered = [*context, *player_factors]
    seen: set[str] = set()
    result: list[KeyFactor] = []
    for factor in ordered:
        if factor.text in seen:
            continue
        seen.add(factor.text)
        result.append(factor)
    return tuple(result[:limit])


def assess_confidence(
    ctx: PlayerGameContext,
    config: VariantConfig,
    multiplier: float,
    risk: BlowoutRisk,
) -> Confidence:
    """Label prediction confidence; LOW conditions are checked first."""
    std = ctx.std_dev_pra
    context_first = config.variant is Variant.CONTEXT_FIRST

    if (
        ctx.games_played < LOW_CONFIDENCE_MIN_GAMES
        or std > LOW_CONFIDENCE_STD
        or risk is BlowoutRisk.HIGH
        or (context_first and multiplier < LOW_CONTEXT_MULTIPLIER)
    ):
        return Confidence.LOW

    if context_first:
        if risk is BlowoutRisk.NONE and multiplier >= HIGH_CONTEXT_MULTIPLIER:
            return Confidence.HIGH
    elif std <= HIGH_CONFIDENCE_MAX_STD and ctx.games_played >= HIGH_CONFIDENCE_MIN_GAMES:
        return Confidence.HIGH

    return Confidence.MEDIUM


# =============================================================================
# Scoring
# =============================================================================


def score(
    context: PlayerGameContext,
    variant: Variant | str | VariantConfig = Variant.STATS_FIRST,
    tables: LeagueTables | None = None,
) -> ScoredPlayer:
    """Score one player with one variant.

    Never raises for missing or malformed player data; documented defaults
    are substituted instead.

    Args:
        context: Player and game context.
        variant: Variant enum, name or config.
        tables: League lookup tables; the embedded season when None.

    Returns:
        ScoredPlayer for the context.

    Raises:
        ConfigurationError: If ``variant`` names an unknown variant.
    """
    config = get_variant(variant)
    tables = tables or default_tables()

    opponent = resolve_opponent(context, tables)
    form = summarize_form(context, config.streak_threshold)
    adjustment = context_adjustment(context, opponent, form, tables)

    recency = recency_score(context, config)
    ceiling = ceiling_score(context, config)
    volume = volume_score(context)
    matchup = matchup_score(context, config, opponent)
    environment = environment_score(context, config)
    sub_scores: tuple[SubScore, ...] = (recency, ceiling, volume, matchup, environment)

    avg = context.avg_pra
    upside = ceiling_estimate(context, config)
    win_probability: float | None = None

    if config.weights is None:
        ensemble = evaluate_ensemble(
            context,
            opponent,
            tables.winner_profile,
            tables.league_avg_defensive_rating,
            tables.league_avg_pace,
        )
        composite = ensemble.composite
        components = ensemble.component_scores
        win_probability = round(ensemble.probability, 4)
        projected = avg * (
            SIGNAL_PROJECTION_BASE + SIGNAL_PROJECTION_RANGE * ensemble.context_signal
        )
    else:
        weights = config.weights.as_dict()
        components = {s.name: s.score for s in sub_scores}
        composite = sum(components[name] * w for name, w in weights.items())
        if config.variant is Variant.CONTEXT_FIRST:
            projected = avg * adjustment.multiplier
            upside *= adjustment.multiplier
        else:
            drtg_factor = 1 + (
                (opponent.defensive_rating - tables.league_avg_defensive_rating)
                / DRTG_PROJECTION_DIVISOR
                * opponent.position_modifier
            )
            projected = avg * drtg_factor * (composite / COMPOSITE_PROJECTION_DIVISOR)

    projected = max(projected, avg * config.projection_floor)
    ceiling_pra = max(upside, projected)

    player_factors = [
        *recency.factors,
        *volume.factors[:1],
        *ceiling.factors,
        *volume.factors[1:],
    ]
    context_factors = [*matchup.factors, *environment.factors]
    if not config.player_factors_first:
        context_factors = [*environment.factors, *matchup.factors]
    factors = order_key_factors(player_factors, context_factors, config.player_factors_first)

    status = context.injury_status
    if status is not InjuryStatus.HEALTHY:
        factors = (
            KeyFactor(f"Injury: {injury_label(status)}", FactorTone.WARNING),
            *factors,
        )[:MAX_KEY_FACTORS]

    scored = ScoredPlayer(
        context=context,
        variant=config.variant,
        composite_score=_round(composite),
        projected_pra=_round(projected),
        ceiling_pra=_round(ceiling_pra),
        component_scores={name: _round(v) for name, v in components.items()},
        factors=factors,
        confidence=assess_confidence(
            context, config, adjustment.multiplier, adjustment.blowout_risk
        ),
        injury_adjustment=injury_adjustment(status),
        context_multiplier=adjustment.multiplier,
        win_probability=win_probability,
    )
    logger.debug(
        "{} [{}] composite={} projected={} confidence={}",
        context.name,
        config.name,
        scored.composite_score,
        scored.projected_pra,
        scored.confidence.value,
    )
    return scored


def score_all(
    contexts: Iterable[PlayerGameContext],
    variant: Variant | str | VariantConfig = Variant.STATS_FIRST,
    tables: LeagueTables | None = None,
) -> list[ScoredPlayer]:
    """Score every context with one variant, preserving input order."""
    tables = tables or default_tables()
    return [score(ctx, variant, tables) for ctx in contexts]


def rank_scored(players: Sequence[ScoredPlayer]) -> list[ScoredPlayer]:
    """Stable-sort scored players by adjusted score, highest first.

    Sorting an already ranked list returns the same order.
    """
    return sorted(players, key=lambda p: p.adjusted_score, reverse=True)


def rank_all(
    contexts: Iterable[PlayerGameContext],
    variant: Variant | str | VariantConfig = Variant.STATS_FIRST,
    tables: LeagueTables | None = None,
    exclude_injured: bool = False,
) -> list[ScoredPlayer]:
    """Score and rank a slate with one variant.

    Args:
        contexts: Player contexts for the slate.
        variant: Variant enum, name or config.
        tables: League lookup tables; the embedded season when None.
        exclude_injured: Drop OUT and DOUBTFUL players before ranking.

    Returns:
        Scored players sorted by adjusted score descending; equal scores keep
        their input order.
    """
    pool = list(contexts)
    if exclude_injured:
        kept = [ctx for ctx in pool if not should_exclude(ctx.injury_status)]
        if len(kept) != len(pool):
            logger.debug("Excluded {} OUT/DOUBTFUL players", len(pool) - len(kept))
        pool = kept

    ranked = rank_scored(score_all(pool, variant, tables))
    config = get_variant(variant)
    logger.info("Ranked {} players with {}", len(ranked), config.name)
    return ranked
