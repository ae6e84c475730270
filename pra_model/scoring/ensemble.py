"""Sigmoid-ensemble scoring (Variant C).

Instead of combining bounded sub-scores, every raw feature is passed through
a logistic transform ``expit(k * (x - midpoint))`` and the transformed
features are averaged with fixed weights. The PRA midpoints are calibrated on
the historical ``WinnerProfile``: a player's recent average is judged against
the lowest PRA that has ever won a night, their best game against the average
winning line, and their triple-double count against the winners' triple-double
rate.

The weighted mean is scaled into a probability of leading the slate, capped
at 0.35, and reported as ``composite = probability * 285`` so the composite
range is 0-99.75, comparable with the weighted variants.

Missing over/under or spread are dropped from the mean and the remaining
weights renormalised, rather than being read as zero.

Example:
    >>> from pra_model.scoring.ensemble import evaluate_ensemble
    >>> result = evaluate_ensemble(ctx, opponent, tables.winner_profile)
    >>> 0.0 <= result.probability <= 0.35
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from scipy.special import expit

if TYPE_CHECKING:
    from pra_model.data.models import PlayerGameContext
    from pra_model.data.tables import WinnerProfile
    from pra_model.scoring.components import OpponentProfile

# =============================================================================
# Constants
# =============================================================================

BASE_PROBABILITY_SCALE: float = 0.30
MAX_PROBABILITY: float = 0.35
COMPOSITE_SCALE: float = 285.0

# Triple-doubles needed to sit at the sigmoid midpoint per unit of winner TD rate
TD_MIDPOINT_SCALE: float = 5.0

USAGE_MIDPOINT: float = 28.0
MINUTES_MIDPOINT: float = 34.0
TOTAL_MIDPOINT: float = 225.0
SPREAD_CLOSENESS_MIDPOINT: float = 8.0


@dataclass(frozen=True)
class FeatureSpec:
    """Logistic transform of one raw feature."""

    name: str
    weight: float
    steepness: float
    context: bool = False


FEATURES: tuple[FeatureSpec, ...] = (
    FeatureSpec("avg_pra", 0.22, 0.20),
    FeatureSpec("max_pra", 0.14, 0.15),
    FeatureSpec("usage", 0.14, 0.35),
    FeatureSpec("minutes", 0.10, 0.50),
    FeatureSpec("triple_doubles", 0.10, 0.60),
    FeatureSpec("defense", 0.10, 0.35, context=True),
    FeatureSpec("pace", 0.06, 0.40, context=True),
    FeatureSpec("over_under", 0.07, 0.15, context=True),
    FeatureSpec("spread_closeness", 0.07, 0.40, context=True),
)

# Feature groups reported as the five component families (x 100)
COMPONENT_FEATURES: dict[str, tuple[str, ...]] = {
    "recency": ("avg_pra",),
    "ceiling": ("max_pra", "triple_doubles"),
    "volume": ("usage", "minutes"),
    "matchup": ("defense", "pace"),
    "environment": ("over_under", "spread_closeness"),
}

NEUTRAL_SIGNAL: float = 0.5


@dataclass(frozen=True)
class EnsembleResult:
    """Outcome of the sigmoid ensemble for one player.

    Attributes:
        probability: Estimated probability of leading the slate, 0-0.35.
        composite: ``probability * 285``.
        context_signal: Weighted mean of the context features, 0-1.
        features: Transformed value of every present feature.
        component_scores: Five-family breakdown on a 0-100 scale.
    """

    probability: float
    composite: float
    context_signal: float
    features: dict[str, float] = field(default_factory=dict)
    component_scores: dict[str, float] = field(default_factory=dict)


def _sigmoid(x: float, midpoint: float, steepness: float) -> float:
    return float(expit(steepness * (x - midpoint)))


def _weighted_mean(values: dict[str, float], specs: tuple[FeatureSpec, ...]) -> float:
    present = [s for s in specs if s.name in values]
    total_weight = sum(s.weight for s in present)
    if total_weight <= 0:
        return NEUTRAL_SIGNAL
    return sum(values[s.name] * s.weight for s in present) / total_weight


def transform_features(
    ctx: PlayerGameContext,
    opponent: OpponentProfile,
    profile: WinnerProfile,
    league_avg_defensive_rating: float = 112.0,
    league_avg_pace: float = 100.0,
) -> dict[str, float]:
    """Apply the logistic transform to each available raw feature.

    Returns:
        Mapping of feature name to a value in (0, 1); features without a
        signal are absent.
    """
    steep = {s.name: s.steepness for s in FEATURES}
    td_midpoint = TD_MIDPOINT_SCALE * profile.triple_double_rate

    features = {
        "avg_pra": _sigmoid(ctx.avg_pra, profile.min_pra, steep["avg_pra"]),
        "max_pra": _sigmoid(ctx.max_pra, profile.avg_pra, steep["max_pra"]),
        "usage": _sigmoid(ctx.effective_usage_rate, USAGE_MIDPOINT, steep["usage"]),
        "minutes": _sigmoid(ctx.effective_mpg, MINUTES_MIDPOINT, steep["minutes"]),
        "triple_doubles": _sigmoid(
            ctx.triple_double_count, td_midpoint, steep["triple_doubles"]
        ),
        "defense": _sigmoid(
            opponent.defensive_rating * opponent.position_modifier,
            league_avg_defensive_rating,
            steep["defense"],
        ),
        "pace": _sigmoid(opponent.pace, league_avg_pace, steep["pace"]),
    }
    if ctx.over_under is not None:
        features["over_under"] = _sigmoid(
            ctx.over_under, TOTAL_MIDPOINT, steep["over_under"]
        )
    if ctx.spread is not None:
        # Closeness: small spreads sit above the midpoint
        features["spread_closeness"] = _sigmoid(
            SPREAD_CLOSENESS_MIDPOINT, abs(ctx.spread), steep["spread_closeness"]
        )
    return features


def interaction_bonus(ctx: PlayerGameContext) -> float:
    """Probability bonus for feature combinations typical of winners."""
    bonus = 0.0
    if ctx.effective_usage_rate >= 30 and ctx.effective_mpg >= 35:
        bonus += 0.02
    if ctx.triple_double_count >= 3 and ctx.avg_pra >= 50:
        bonus += 0.02
    if (
        ctx.spread is not None
        and ctx.over_under is not None
        and abs(ctx.spread) <= 4
        and ctx.over_under >= 228
    ):
        bonus += 0.01
    return bonus


def evaluate_ensemble(
    ctx: PlayerGameContext,
    opponent: OpponentProfile,
    profile: WinnerProfile,
    league_avg_defensive_rating: float = 112.0,
    league_avg_pace: float = 100.0,
) -> EnsembleResult:
    """Score a player with the sigmoid ensemble.

    Args:
        ctx: Player context.
        opponent: Resolved opponent profile.
        profile: Historical winner profile calibrating the PRA midpoints.
        league_avg_defensive_rating: Defense midpoint.
        league_avg_pace: Pace midpoint.

    Returns:
        EnsembleResult with probability, composite and breakdown.
    """
    features = transform_features(
        ctx, opponent, profile, league_avg_defensive_rating, league_avg_pace
    )
    mean = _weighted_mean(features, FEATURES)
    probability = min(
        BASE_PROBABILITY_SCALE * mean + interaction_bonus(ctx), MAX_PROBABILITY
    )
    context_signal = _weighted_mean(
        features, tuple(s for s in FEATURES if s.context)
    )

    components: dict[str, float] = {}
    for family, names in COMPONENT_FEATURES.items():
        present = [features[n] for n in names if n in features]
        value = sum(present) / len(present) if present else NEUTRAL_SIGNAL
        components[family] = value * 100

    return EnsembleResult(
        probability=probability,
        composite=probability * COMPOSITE_SCALE,
        context_signal=context_signal,
        features=features,
        component_scores=components,
    )
