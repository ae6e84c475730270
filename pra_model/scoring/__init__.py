"""Player scoring for the nightly PRA race.

Every variant runs through one parameterised engine; variants differ only in
their ``VariantConfig``.

Submodules:
    variants: Variant enum, weight vectors and the variant registry
    components: The five sub-score families and the context multiplier
    ensemble: Sigmoid-ensemble probability scoring
    injuries: Availability penalties, exclusion and name normalisation
    engine: ScoredPlayer, score(), rank_all()

Example:
    >>> from pra_model.scoring import Variant, rank_all
    >>> ranked = rank_all(contexts, Variant.CONTEXT_FIRST, exclude_injured=True)
    >>> print(ranked[0].name, ranked[0].composite_score)
"""

from __future__ import annotations

from pra_model.scoring.components import BlowoutRisk, FactorTone, KeyFactor
from pra_model.scoring.engine import (
    Confidence,
    ScoredPlayer,
    rank_all,
    rank_scored,
    score,
    score_all,
)
from pra_model.scoring.injuries import (
    InjuryStatus,
    injury_adjustment,
    normalize_player_name,
    parse_injury_status,
    should_exclude,
)
from pra_model.scoring.variants import (
    VARIANTS,
    Variant,
    VariantConfig,
    WeightVector,
    get_variant,
    resolve_variant,
)

__all__ = [
    "VARIANTS",
    "BlowoutRisk",
    "Confidence",
    "FactorTone",
    "InjuryStatus",
    "KeyFactor",
    "ScoredPlayer",
    "Variant",
    "VariantConfig",
    "WeightVector",
    "get_variant",
    "injury_adjustment",
    "normalize_player_name",
    "parse_injury_status",
    "rank_all",
    "rank_scored",
    "resolve_variant",
    "score",
    "score_all",
    "should_exclude",
]
