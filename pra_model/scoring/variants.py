"""Scoring variants and their constants.

A variant is a named strategy for turning a ``PlayerGameContext`` into a
``ScoredPlayer``. All variants share one engine; what differs between them
lives entirely in a frozen ``VariantConfig``:

- ``stats_first`` (Variant A): Recency + Ceiling + Volume carry 75% of the
  weight; projections are anchored on recent form with a 0.88 floor.
- ``context_first`` (Variant B): Matchup + Environment carry 75% of the
  weight; projections follow the game-context multiplier with a 0.65 floor.
- ``sigmoid_ensemble`` (Variant C): every raw feature passes through a
  logistic transform calibrated on the historical winner profile; the
  composite is a scaled probability (0-99.75) rather than a weighted sum.

Example:
    >>> from pra_model.scoring.variants import get_variant
    >>> config = get_variant("context_first")
    >>> config.weights.matchup
    0.4
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pra_model.types import ConfigurationError

WEIGHT_SUM_TOLERANCE: float = 1e-6


class Variant(Enum):
    """Named scoring strategies."""

    STATS_FIRST = "stats_first"
    CONTEXT_FIRST = "context_first"
    SIGMOID_ENSEMBLE = "sigmoid_ensemble"

    @property
    def label(self) -> str:
        """Human-readable variant name."""
        return _LABELS[self]


_LABELS = {
    Variant.STATS_FIRST: "Stats-first",
    Variant.CONTEXT_FIRST: "Context-first",
    Variant.SIGMOID_ENSEMBLE: "Sigmoid ensemble",
}


@dataclass(frozen=True)
class WeightVector:
    """Composite weights for the five sub-score families.

    Attributes:
        recency: Weight of the recent-form score.
        ceiling: Weight of the upside score.
        volume: Weight of the minutes/usage score.
        matchup: Weight of the opponent score.
        environment: Weight of the game-environment score.
    """

    recency: float
    ceiling: float
    volume: float
    matchup: float
    environment: float

    def as_dict(self) -> dict[str, float]:
        """Weights keyed by component name."""
        return {
            "recency": self.recency,
            "ceiling": self.ceiling,
            "volume": self.volume,
            "matchup": self.matchup,
            "environment": self.environment,
        }

    @property
    def total(self) -> float:
        """Sum of all weights."""
        return sum(self.as_dict().values())

    @property
    def player_share(self) -> float:
        """Combined weight of the player-intrinsic families."""
        return self.recency + self.ceiling + self.volume

    @property
    def context_share(self) -> float:
        """Combined weight of the game-context families."""
        return self.matchup + self.environment

    def is_normalized(self) -> bool:
        """Whether the weights sum to 1.0 within tolerance."""
        return abs(self.total - 1.0) <= WEIGHT_SUM_TOLERANCE


@dataclass(frozen=True)
class VariantConfig:
    """Every per-variant constant the scoring engine reads.

    Attributes:
        variant: Variant this config belongs to.
        weights: Composite weights of the sub-scores. None for the sigmoid
            ensemble, whose composite comes from its feature probabilities.
        streak_threshold: Relative last-3 deviation that marks a streak.
        hot_streak_bonus: Recency bonus for a hot streak.
        cold_streak_penalty: Recency penalty for a cold streak.
        ceiling_blend: Weights of (window max, max PRA, statistical ceiling).
        position_sensitivity: Scale applied to the position-defense bonus.
        underdog_bonus: Whether the environment score rewards volume underdogs.
        projection_floor: Minimum projected PRA as a fraction of avg PRA.
        player_factors_first: Key-factor ordering philosophy.
    """

    variant: Variant
    weights: WeightVector | None = None
    streak_threshold: float = 0.10
    hot_streak_bonus: float = 5.0
    cold_streak_penalty: float = 3.0
    ceiling_blend: tuple[float, float, float] = (0.55, 0.25, 0.20)
    position_sensitivity: float = 1.0
    underdog_bonus: bool = False
    projection_floor: float = 0.88
    player_factors_first: bool = True

    def __post_init__(self) -> None:
        weighted = self.variant is not Variant.SIGMOID_ENSEMBLE
        if weighted and self.weights is None:
            raise ConfigurationError(f"Variant {self.variant.value} needs composite weights")
        if not weighted and self.weights is not None:
            raise ConfigurationError(f"Variant {self.variant.value} takes no composite weights")

    @property
    def name(self) -> str:
        """Variant identifier string."""
        return self.variant.value

    @property
    def uses_weighted_sum(self) -> bool:
        """Whether the composite is the weighted sum of sub-scores."""
        return self.weights is not None


# =============================================================================
# Registry
# =============================================================================

STATS_FIRST = VariantConfig(
    variant=Variant.STATS_FIRST,
    weights=WeightVector(
        recency=0.35, ceiling=0.25, volume=0.15, matchup=0.15, environment=0.10
    ),
    streak_threshold=0.10,
    hot_streak_bonus=5.0,
    cold_streak_penalty=3.0,
    ceiling_blend=(0.55, 0.25, 0.20),
    position_sensitivity=1.0,
    underdog_bonus=False,
    projection_floor=0.88,
    player_factors_first=True,
)

CONTEXT_FIRST = VariantConfig(
    variant=Variant.CONTEXT_FIRST,
    weights=WeightVector(
        recency=0.10, ceiling=0.08, volume=0.07, matchup=0.40, environment=0.35
    ),
    streak_threshold=0.12,
    hot_streak_bonus=10.0,
    cold_streak_penalty=8.0,
    ceiling_blend=(0.50, 0.30, 0.20),
    position_sensitivity=1.5,
    underdog_bonus=True,
    projection_floor=0.65,
    player_factors_first=False,
)

SIGMOID_ENSEMBLE = VariantConfig(
    variant=Variant.SIGMOID_ENSEMBLE,
    streak_threshold=0.10,
    hot_streak_bonus=5.0,
    cold_streak_penalty=3.0,
    ceiling_blend=(0.55, 0.25, 0.20),
    position_sensitivity=1.0,
    underdog_bonus=False,
    projection_floor=0.80,
    player_factors_first=True,
)

VARIANTS: dict[Variant, VariantConfig] = {
    Variant.STATS_FIRST: STATS_FIRST,
    Variant.CONTEXT_FIRST: CONTEXT_FIRST,
    Variant.SIGMOID_ENSEMBLE: SIGMOID_ENSEMBLE,
}

_BY_VALUE: dict[str, Variant] = {v.value: v for v in Variant}

# Aliases accepted on the command line and in stored predictions
_ALIASES: dict[str, Variant] = {
    "a": Variant.STATS_FIRST,
    "v1": Variant.STATS_FIRST,
    "stats": Variant.STATS_FIRST,
    "b": Variant.CONTEXT_FIRST,
    "v2": Variant.CONTEXT_FIRST,
    "context": Variant.CONTEXT_FIRST,
    "c": Variant.SIGMOID_ENSEMBLE,
    "sigmoid": Variant.SIGMOID_ENSEMBLE,
    "ensemble": Variant.SIGMOID_ENSEMBLE,
}


def resolve_variant(variant: Variant | str) -> Variant:
    """Resolve a variant enum, identifier or alias.

    Raises:
        ConfigurationError: If the name is not a known variant.
    """
    if isinstance(variant, Variant):
        return variant
    key = variant.strip().lower().replace("-", "_")
    if key in _BY_VALUE:
        return _BY_VALUE[key]
    if key in _ALIASES:
        return _ALIASES[key]
    known = ", ".join(v.value for v in Variant)
    raise ConfigurationError(f"Unknown variant '{variant}', expected one of {known}")


def get_variant(variant: Variant | str | VariantConfig) -> VariantConfig:
    """Look up the configuration for a variant.

    Args:
        variant: Variant enum, identifier string, alias or a config to pass
            through unchanged.

    Returns:
        VariantConfig for the variant.

    Raises:
        ConfigurationError: If the name is not a known variant.
    """
    if isinstance(variant, VariantConfig):
        return variant
    return VARIANTS[resolve_variant(variant)]
