"""Sub-score families shared by every scoring variant.

Each family maps one ``PlayerGameContext`` to a score clamped to [0, 100]
together with the key factors whose thresholds fired:

- Recency: linearly weighted moving average of recent PRA (newest game
  heaviest), normalised by a 60 PRA ceiling, plus a hot/cold streak term.
- Ceiling: blend of window best, season best and a statistical ceiling
  (avg + 1.5 std), plus a capped triple-double bonus.
- Volume: minutes and usage against elite thresholds.
- Matchup: opponent defensive rating, position-specific defense, pace and
  spread closeness around a neutral 50.
- Environment: over/under, blowout risk, home court and rest around 50.

The module also computes the multiplicative game-context adjustment that
drives projected PRA and context-first confidence.

Missing signals never contribute: a None spread or over/under omits its term
instead of being read as zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from pra_model.logging import get_logger

if TYPE_CHECKING:
    from pra_model.data.models import PlayerGameContext
    from pra_model.data.tables import LeagueTables
    from pra_model.scoring.variants import VariantConfig

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0
NEUTRAL_SCORE: float = 50.0

# PRA treated as a realistic nightly ceiling when normalising to 0-100
PRA_NORMALIZER: float = 60.0
STAT_CEILING_STD_MULTIPLIER: float = 1.5

TRIPLE_DOUBLE_BONUS_PER_GAME: float = 3.0
TRIPLE_DOUBLE_BONUS_CAP: float = 15.0
TD_THREAT_THRESHOLD: int = 3

ELITE_USAGE: float = 30.0
ELITE_MINUTES: float = 36.0
HIGH_USAGE: float = 28.0
HIGH_MINUTES: float = 35.0
MINUTES_POINTS: float = 60.0
USAGE_POINTS: float = 40.0

CLOSE_GAME_SPREAD: float = 4.0
BLOWOUT_SPREAD: float = 14.0
LARGE_SPREAD: float = 10.0

STREAK_GAMES: int = 3


class FactorTone(Enum):
    """Whether a key factor argues for or against a big night."""

    BOOST = "boost"
    WARNING = "warning"
    NEUTRAL = "neutral"


class BlowoutRisk(Enum):
    """Blowout risk derived from the absolute spread."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class KeyFactor:
    """A short human-readable reason behind a score.

    Attributes:
        text: Display string, e.g. "Elite usage (32.5%)".
        tone: Boost, warning or neutral.
        intrinsic: True for player factors, False for game-context factors.
    """

    text: str
    tone: FactorTone = FactorTone.NEUTRAL
    intrinsic: bool = True

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class SubScore:
    """One sub-score family result."""

    name: str
    score: float
    factors: tuple[KeyFactor, ...] = ()


@dataclass(frozen=True)
class OpponentProfile:
    """Opponent strength after table fallbacks are applied."""

    defensive_rating: float
    pace: float
    position_modifier: float


@dataclass(frozen=True)
class FormSummary:
    """Recent form statistics for one player.

    Attributes:
        weighted_avg: Linearly weighted moving average of the window.
        window_avg: Plain mean of the window.
        last3_avg: Mean of the three most recent games.
        hot_streak: Last-3 mean above the window mean by the threshold.
        cold_streak: Last-3 mean below the window mean by the threshold.
    """

    weighted_avg: float
    window_avg: float
    last3_avg: float
    hot_streak: bool
    cold_streak: bool


@dataclass(frozen=True)
class ContextAdjustment:
    """Multiplicative game-context adjustment.

    Attributes:
        multiplier: Product of every context factor.
        blowout_risk: Risk level from the spread.
    """

    multiplier: float
    blowout_risk: BlowoutRisk


# =============================================================================
# Helpers
# =============================================================================


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def _signed(value: float) -> str:
    return f"{value:+g}"


def resolve_opponent(ctx: PlayerGameContext, tables: LeagueTables) -> OpponentProfile:
    """Resolve opponent ratings, preferring explicit context values.

    Unknown opponents fall back to league average through the tables.
    """
    drtg = ctx.opponent_defensive_rating
    if drtg is None:
        drtg = tables.defensive_rating(ctx.opponent_abbrev)
    pace = ctx.opponent_pace
    if pace is None:
        pace = tables.team_pace(ctx.opponent_abbrev)
    return OpponentProfile(
        defensive_rating=drtg,
        pace=pace,
        position_modifier=tables.position_modifier(ctx.position, ctx.opponent_abbrev),
    )


def summarize_form(ctx: PlayerGameContext, streak_threshold: float) -> FormSummary:
    """Compute weighted average and streak flags for the recent window.

    An empty window is treated as a single game at the season average.
    """
    window = ctx.recent_window or (ctx.season_pra_avg,)
    values = np.asarray(window, dtype=float)
    weights = np.arange(1, len(values) + 1, dtype=float)
    weighted_avg = float(np.average(values, weights=weights))
    window_avg = float(values.mean())
    last3_avg = float(values[-STREAK_GAMES:].mean())
    return FormSummary(
        weighted_avg=weighted_avg,
        window_avg=window_avg,
        last3_avg=last3_avg,
        hot_streak=last3_avg > window_avg * (1 + streak_threshold),
        cold_streak=last3_avg < window_avg * (1 - streak_threshold),
    )


# =============================================================================
# Sub-score families
# =============================================================================


def recency_score(ctx: PlayerGameContext, config: VariantConfig) -> SubScore:
    """Recent-form score."""
    form = summarize_form(ctx, config.streak_threshold)
    score = form.weighted_avg / PRA_NORMALIZER * 100
    factors: list[KeyFactor] = []
    if form.hot_streak:
        score += config.hot_streak_bonus
        factors.append(
            KeyFactor(f"Hot streak (last 3: {form.last3_avg:.1f})", FactorTone.BOOST)
        )
    elif form.cold_streak:
        score -= config.cold_streak_penalty
        factors.append(
            KeyFactor(f"Cold streak (last 3: {form.last3_avg:.1f})", FactorTone.WARNING)
        )
    if not ctx.has_history:
        logger.debug("{}: no recent games, recency uses season average", ctx.name)
    return SubScore("recency", clamp(score), tuple(factors))


def ceiling_estimate(ctx: PlayerGameContext, config: VariantConfig) -> float:
    """Blended upside PRA estimate for a player."""
    stat_ceiling = ctx.avg_pra + STAT_CEILING_STD_MULTIPLIER * ctx.std_dev_pra
    w_window, w_max, w_stat = config.ceiling_blend
    return w_window * ctx.window_max_pra + w_max * ctx.max_pra + w_stat * stat_ceiling


def ceiling_score(ctx: PlayerGameContext, config: VariantConfig) -> SubScore:
    """Upside score; the triple-double bonus is capped."""
    score = ceiling_estimate(ctx, config) / PRA_NORMALIZER * 100
    score += min(TRIPLE_DOUBLE_BONUS_PER_GAME * ctx.triple_double_count, TRIPLE_DOUBLE_BONUS_CAP)
    factors: list[KeyFactor] = []
    if ctx.triple_double_count >= TD_THREAT_THRESHOLD:
        factors.append(KeyFactor(f"TD threat ({ctx.triple_double_count})", FactorTone.BOOST))
    return SubScore("ceiling", clamp(score), tuple(factors))


def volume_score(ctx: PlayerGameContext) -> SubScore:
    """Minutes and usage score."""
    mpg = ctx.effective_mpg
    usage = ctx.effective_usage_rate
    score = min(mpg / ELITE_MINUTES * MINUTES_POINTS, MINUTES_POINTS)
    score += min(usage / ELITE_USAGE * USAGE_POINTS, USAGE_POINTS)
    if mpg >= ELITE_MINUTES and usage >= ELITE_USAGE:
        score += 10
    elif mpg >= HIGH_MINUTES and usage >= HIGH_USAGE:
        score += 5

    factors: list[KeyFactor] = []
    if usage >= ELITE_USAGE:
        factors.append(KeyFactor(f"Elite usage ({usage:.1f}%)", FactorTone.BOOST))
    if mpg >= ELITE_MINUTES:
        factors.append(KeyFactor(f"Heavy minutes ({mpg:.1f} mpg)", FactorTone.BOOST))
    return SubScore("volume", clamp(score), tuple(factors))


def matchup_score(
    ctx: PlayerGameContext, config: VariantConfig, opponent: OpponentProfile
) -> SubScore:
    """Opponent-driven score around a neutral 50."""
    score = NEUTRAL_SCORE
    factors: list[KeyFactor] = []
    drtg = opponent.defensive_rating

    if drtg >= 117:
        score += 18
        factors.append(KeyFactor(f"Weak D ({drtg:.0f} DRTG)", FactorTone.BOOST, False))
    elif drtg >= 114:
        score += 10
        factors.append(KeyFactor(f"Good matchup ({drtg:.0f} DRTG)", FactorTone.BOOST, False))
    elif drtg >= 112:
        score += 4
    elif drtg <= 107:
        score -= 12
        factors.append(KeyFactor(f"Elite D ({drtg:.0f} DRTG)", FactorTone.WARNING, False))
    elif drtg <= 109:
        score -= 6
        factors.append(KeyFactor(f"Tough D ({drtg:.0f} DRTG)", FactorTone.WARNING, False))

    modifier = opponent.position_modifier
    if modifier >= 1.06:
        score += 8 * config.position_sensitivity
        factors.append(
            KeyFactor(
                f"{ctx.position} feast vs {ctx.opponent_abbrev}", FactorTone.BOOST, False
            )
        )
    elif modifier <= 0.95:
        score -= 6 * config.position_sensitivity
        factors.append(
            KeyFactor(
                f"{ctx.position} stopper in {ctx.opponent_abbrev}",
                FactorTone.WARNING,
                False,
            )
        )

    pace = opponent.pace
    if pace >= 102:
        score += 10
        factors.append(KeyFactor(f"Fast pace ({pace:.1f})", FactorTone.BOOST, False))
    elif pace >= 100:
        score += 5
    elif pace <= 96:
        score -= 6
        factors.append(KeyFactor(f"Slow pace ({pace:.1f})", FactorTone.WARNING, False))

    if ctx.spread is not None:
        if abs(ctx.spread) <= CLOSE_GAME_SPREAD:
            score += 4
        elif abs(ctx.spread) >= LARGE_SPREAD:
            score -= 6

    return SubScore("matchup", clamp(score), tuple(factors))


def environment_score(ctx: PlayerGameContext, config: VariantConfig) -> SubScore:
    """Game-environment score around a neutral 50."""
    score = NEUTRAL_SCORE
    factors: list[KeyFactor] = []

    total = ctx.over_under
    if total is not None:
        if total >= 235:
            score += 18
            factors.append(KeyFactor(f"High O/U ({total:g})", FactorTone.BOOST, False))
        elif total >= 228:
            score += 10
            factors.append(KeyFactor(f"Good O/U ({total:g})", FactorTone.BOOST, False))
        elif total < 218:
            score -= 12
            factors.append(KeyFactor(f"Low O/U ({total:g})", FactorTone.WARNING, False))

    spread = ctx.spread
    if spread is not None:
        magnitude = abs(spread)
        if magnitude >= BLOWOUT_SPREAD:
            score -= 25
            factors.append(
                KeyFactor(f"Blowout risk ({_signed(spread)})", FactorTone.WARNING, False)
            )
        elif magnitude >= LARGE_SPREAD:
            score -= 15
            factors.append(
                KeyFactor(
                    f"Blowout possible ({_signed(spread)})", FactorTone.WARNING, False
                )
            )
        elif magnitude <= CLOSE_GAME_SPREAD:
            score += 10
            factors.append(KeyFactor("Close game expected", FactorTone.BOOST, False))

        if config.underdog_bonus:
            usage = ctx.effective_usage_rate
            if spread >= 6 and usage >= 28:
                score += 6
                factors.append(KeyFactor("Underdog carry mode", FactorTone.BOOST, False))
            elif spread >= 3 and usage >= 26:
                score += 3
                factors.append(KeyFactor("Underdog boost", FactorTone.BOOST, False))

    if ctx.is_home:
        score += 5
        factors.append(KeyFactor("Home", FactorTone.NEUTRAL, False))
    if ctx.is_back_to_back:
        score -= 8
        factors.append(KeyFactor("Back-to-back", FactorTone.WARNING, False))
    if ctx.opponent_back_to_back:
        score += 6
        factors.append(KeyFactor("Opponent on back-to-back", FactorTone.BOOST, False))

    return SubScore("environment", clamp(score), tuple(factors))


# =============================================================================
# Context multiplier
# =============================================================================


def blowout_risk(spread: float | None) -> BlowoutRisk:
    """Classify blowout risk from a spread; None means no signal."""
    if spread is None:
        return BlowoutRisk.NONE
    magnitude = abs(spread)
    if magnitude >= 14:
        return BlowoutRisk.HIGH
    if magnitude >= 11:
        return BlowoutRisk.MEDIUM
    if magnitude >= 8:
        return BlowoutRisk.LOW
    return BlowoutRisk.NONE


def context_adjustment(
    ctx: PlayerGameContext,
    opponent: OpponentProfile,
    form: FormSummary,
    tables: LeagueTables,
) -> ContextAdjustment:
    """Multiply every game-context factor into one projection multiplier.

    Args:
        ctx: Player context.
        opponent: Resolved opponent profile.
        form: Recent form summary, for the streak factor.
        tables: League tables supplying the league averages.

    Returns:
        ContextAdjustment with the product and the risk level.
    """
    multiplier = 1.0
    spread = ctx.spread
    risk = blowout_risk(spread)
    if spread is not None:
        magnitude = abs(spread)
        if magnitude >= 14:
            multiplier *= 0.70
        elif magnitude >= 11:
            multiplier *= 0.78
        elif magnitude >= 8:
            multiplier *= 0.88
        elif magnitude <= 4:
            multiplier *= 1.08

    diff = opponent.defensive_rating - tables.league_avg_defensive_rating
    defense = 1.0
    if diff >= 6:
        defense = 1.12
    elif diff >= 3:
        defense = 1.06
    elif diff <= -5:
        defense = 0.90
    elif diff <= -3:
        defense = 0.94
    multiplier *= defense * opponent.position_modifier

    pace_diff = opponent.pace - tables.league_avg_pace
    if pace_diff >= 2.5:
        multiplier *= 1.05
    elif pace_diff >= 1:
        multiplier *= 1.02
    elif pace_diff <= -3:
        multiplier *= 0.95
    elif pace_diff <= -1.5:
        multiplier *= 0.98

    total = ctx.over_under
    if total is not None:
        if total >= 235:
            multiplier *= 1.08
        elif total >= 228:
            multiplier *= 1.04
        elif total <= 215:
            multiplier *= 0.92
        elif total <= 220:
            multiplier *= 0.96

    if spread is not None:
        usage = ctx.effective_usage_rate
        if spread >= 6 and usage >= 28:
            multiplier *= 1.06
        elif spread >= 3 and usage >= 26:
            multiplier *= 1.03

    if ctx.is_home:
        multiplier *= 1.03
    if form.hot_streak:
        multiplier *= 1.05
    elif form.cold_streak:
        multiplier *= 0.95
    if ctx.is_back_to_back:
        multiplier *= 0.96
    if ctx.opponent_back_to_back:
        multiplier *= 1.03

    return ContextAdjustment(multiplier=multiplier, blowout_risk=risk)
