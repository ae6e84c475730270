"""Tests for the scoring engine."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace

import pytest

from pra_model.data.models import InjuryStatus, PlayerGameContext
from pra_model.scoring.components import FactorTone, KeyFactor
from pra_model.scoring.engine import (
    Confidence,
    order_key_factors,
    rank_all,
    rank_scored,
    score,
    score_all,
)
from pra_model.scoring.variants import VARIANTS, Variant
from pra_model.types import ConfigurationError

ContextFactory = Callable[..., PlayerGameContext]


class TestScore:
    """Tests for score."""

    def test_elite_scenario_stats_first(self, luka_context: PlayerGameContext) -> None:
        """A high-usage guard in a good spot should score highly."""
        result = score(luka_context, Variant.STATS_FIRST)

        assert result.composite_score >= 75
        assert result.key_factors[0] == "Elite usage (32.5%)"
        assert "TD threat (6)" in result.key_factors
        assert len(result.key_factors) <= 4

    def test_blowout_favours_stats_first(self, blowout_context: PlayerGameContext) -> None:
        """A blowout should hurt context_first more than stats_first."""
        stats = score(blowout_context, Variant.STATS_FIRST)
        context = score(blowout_context, Variant.CONTEXT_FIRST)

        assert context.composite_score < stats.composite_score
        assert context.confidence is Confidence.LOW
        assert any(f.startswith("Blowout risk") for f in context.key_factors)

    def test_context_first_leads_with_game_factors(
        self, luka_context: PlayerGameContext
    ) -> None:
        """Context-first key factors should open with game context."""
        result = score(luka_context, Variant.CONTEXT_FIRST)

        assert result.factors[0].intrinsic is False

    @pytest.mark.parametrize("variant", list(Variant))
    def test_bounds_hold_for_every_variant(
        self, variant: Variant, sample_slate: list[PlayerGameContext]
    ) -> None:
        """Composite, projection and ceiling invariants hold on a real slate."""
        floor = VARIANTS[variant].projection_floor
        for ctx in sample_slate:
            result = score(ctx, variant)

            assert 0 <= result.composite_score <= 100
            assert result.ceiling_pra >= result.projected_pra
            assert result.projected_pra >= round(ctx.avg_pra * floor, 1) - 0.1
            assert all(0 <= v <= 100 for v in result.component_scores.values())

    def test_weighted_composite(self, make_context: ContextFactory) -> None:
        """Weighted variants should sum their weighted sub-scores."""
        result = score(make_context(), Variant.CONTEXT_FIRST)
        weights = VARIANTS[Variant.CONTEXT_FIRST].weights.as_dict()

        expected = sum(result.component_scores[k] * w for k, w in weights.items())

        assert result.composite_score == pytest.approx(expected, abs=0.1)
        assert result.win_probability is None

    def test_ensemble_composite_is_scaled_probability(
        self, luka_context: PlayerGameContext
    ) -> None:
        """The ensemble composite should be probability x 285."""
        result = score(luka_context, Variant.SIGMOID_ENSEMBLE)

        assert result.win_probability is not None
        assert 0 < result.win_probability <= 0.35
        assert result.composite_score == pytest.approx(
            result.win_probability * 285, abs=0.1
        )

    def test_missing_data_never_raises(self) -> None:
        """A bare context should score with defaults."""
        ctx = PlayerGameContext(player_id="1", name="Unknown", team="")

        for variant in Variant:
            result = score(ctx, variant)
            assert result.composite_score >= 0

    def test_unknown_variant(self, make_context: ContextFactory) -> None:
        """An unknown variant name should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            score(make_context(), "moneyball")

    def test_to_dict(self, luka_context: PlayerGameContext) -> None:
        """to_dict should expose the score and its context."""
        data = score(luka_context, "stats_first").to_dict()

        assert data["variant"] == "stats_first"
        assert data["name"] == "Luka Dončić"
        assert data["confidence"] in {"high", "medium", "low"}
        assert data["game_context"]["spread"] == -2.5


class TestConfidence:
    """Tests for confidence labels."""

    def test_consistent_veteran_is_high(self, make_context: ContextFactory) -> None:
        """Low variance over many games should be HIGH confidence."""
        ctx = make_context()

        assert score(ctx, Variant.STATS_FIRST).confidence is Confidence.HIGH
        assert score(ctx, Variant.CONTEXT_FIRST).confidence is Confidence.HIGH

    def test_small_sample_is_low(self, make_context: ContextFactory) -> None:
        """Fewer than ten games should be LOW confidence."""
        ctx = make_context(games_played=5)

        assert score(ctx, Variant.STATS_FIRST).confidence is Confidence.LOW

    def test_context_first_low_on_bad_context(self, make_context: ContextFactory) -> None:
        """A poor context multiplier only lowers context_first confidence."""
        ctx = make_context(opponent_abbrev="CLE", spread=-9.0)

        assert score(ctx, Variant.CONTEXT_FIRST).confidence is Confidence.LOW
        assert score(ctx, Variant.STATS_FIRST).confidence is Confidence.HIGH


class TestInjuries:
    """Tests for the injury adjustment in scoring and ranking."""

    def test_adjustment_is_separate_from_composite(
        self, make_context: ContextFactory
    ) -> None:
        """A questionable tag should not change the composite."""
        healthy = score(make_context(), Variant.STATS_FIRST)
        questionable = score(
            make_context(injury_status=InjuryStatus.QUESTIONABLE), Variant.STATS_FIRST
        )

        assert questionable.composite_score == healthy.composite_score
        assert questionable.injury_adjustment == -15.0
        assert questionable.adjusted_score == pytest.approx(healthy.composite_score - 15)
        assert questionable.key_factors[0] == "Injury: Questionable"

    def test_out_player_ranks_last(self, sample_slate: list[PlayerGameContext]) -> None:
        """An OUT star should rank below every healthy player."""
        slate = [replace(sample_slate[0], injury_status=InjuryStatus.OUT), *sample_slate[1:]]

        ranked = rank_all(slate, Variant.STATS_FIRST)

        assert ranked[-1].player_id == sample_slate[0].player_id

    def test_exclude_injured(self, sample_slate: list[PlayerGameContext]) -> None:
        """exclude_injured should drop OUT and DOUBTFUL players only."""
        slate = [
            replace(sample_slate[0], injury_status=InjuryStatus.OUT),
            replace(sample_slate[1], injury_status=InjuryStatus.DOUBTFUL),
            replace(sample_slate[2], injury_status=InjuryStatus.QUESTIONABLE),
            *sample_slate[3:],
        ]

        ranked = rank_all(slate, Variant.STATS_FIRST, exclude_injured=True)

        ids = {p.player_id for p in ranked}
        assert len(ranked) == len(sample_slate) - 2
        assert sample_slate[2].player_id in ids


class TestRanking:
    """Tests for score_all, rank_scored and rank_all."""

    def test_sorted_descending(self, sample_slate: list[PlayerGameContext]) -> None:
        """Rankings should be ordered by adjusted score."""
        ranked = rank_all(sample_slate, Variant.CONTEXT_FIRST)
        scores = [p.adjusted_score for p in ranked]

        assert scores == sorted(scores, reverse=True)
        assert len(ranked) == len(sample_slate)

    def test_ties_keep_input_order(self, make_context: ContextFactory) -> None:
        """Players with equal scores should keep their input order."""
        slate = [make_context(player_id=str(i), name=f"Twin {i}") for i in range(4)]

        ranked = rank_all(slate, Variant.STATS_FIRST)

        assert [p.player_id for p in ranked] == ["0", "1", "2", "3"]

    def test_ranking_is_idempotent(self, sample_slate: list[PlayerGameContext]) -> None:
        """Re-ranking a ranked list should not change it."""
        ranked = rank_all(sample_slate, Variant.SIGMOID_ENSEMBLE)

        assert rank_scored(ranked) == ranked

    def test_scores_are_independent(self, sample_slate: list[PlayerGameContext]) -> None:
        """A player's score should not depend on the rest of the slate."""
        alone = score(sample_slate[3], Variant.STATS_FIRST)
        together = score_all(sample_slate, Variant.STATS_FIRST)[3]

        assert alone == together

    def test_empty_slate(self) -> None:
        """An empty slate should rank to an empty list."""
        assert rank_all([], Variant.STATS_FIRST) == []


class TestOrderKeyFactors:
    """Tests for order_key_factors."""

    def test_order_and_dedup(self) -> None:
        """Neutral context factors sort last and duplicates are dropped."""
        player = [KeyFactor("Elite usage (31.0%)", FactorTone.BOOST)]
        context = [
            KeyFactor("Home", FactorTone.NEUTRAL, False),
            KeyFactor("Fast pace (103.5)", FactorTone.BOOST, False),
            KeyFactor("Elite usage (31.0%)", FactorTone.BOOST),
        ]

        ordered = order_key_factors(player, context, player_first=False)

        assert [f.text for f in ordered] == [
            "Fast pace (103.5)",
            "Elite usage (31.0%)",
            "Home",
        ]
