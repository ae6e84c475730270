"""Tests for the deterministic backtest engine."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from pra_model.backtest.engine import (
    TIE,
    BacktestEngine,
    VariantAccuracy,
    decide_day_winner,
    evaluate_variant,
    run_backtest_day,
)
from pra_model.backtest.outcomes import OutcomeIndex, PlayerOutcome, actual_ranking
from pra_model.backtest.simulation import simulate_outcomes
from pra_model.config import Settings
from pra_model.data.fixtures import SlateBuilder
from pra_model.data.models import PlayerGameContext
from pra_model.ranking.comparison import as_ranked
from pra_model.scoring.engine import ScoredPlayer, score
from pra_model.scoring.variants import Variant

OutcomeFactory = Callable[..., PlayerOutcome]


@pytest.fixture
def predicted(make_context: Callable[..., PlayerGameContext]) -> list[ScoredPlayer]:
    """Return players A-D scored with stats_first, in predicted order."""
    return [
        score(make_context(player_id=pid, name=f"Player {pid}"), Variant.STATS_FIRST)
        for pid in "ABCD"
    ]


@pytest.fixture
def outcomes(make_outcome: OutcomeFactory) -> list[PlayerOutcome]:
    """Return box scores whose actual order is D, A, B, C."""
    return [
        make_outcome("A", "Player A", points=50),
        make_outcome("B", "Player B", points=40),
        make_outcome("C", "Player C", points=30),
        make_outcome("D", "Player D", points=60),
    ]


class TestEvaluateVariant:
    """Tests for evaluate_variant."""

    def test_winner_ranked_fourth(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """The actual winner predicted fourth is a top-5 hit but not correct."""
        index = OutcomeIndex(actual_ranking(outcomes))

        acc = evaluate_variant("stats_first", as_ranked(predicted), index)

        assert acc.winner_correct is False
        assert acc.predicted_winner == "Player A"
        assert acc.predicted_rank_of_winner == 4
        assert acc.winner_in_top_3 is False
        assert acc.winner_in_top_5 is True
        assert acc.winner_in_top_10 is True
        assert acc.avg_rank_error == 1.5
        assert acc.matched_players == 4
        assert acc.unmatched_players == 0

    def test_hit_windows_are_asymmetric(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """Predicted top-3 players finishing inside the top 5 are all hits."""
        index = OutcomeIndex(actual_ranking(outcomes))

        acc = evaluate_variant("stats_first", as_ranked(predicted), index)

        assert acc.top3_hit_rate == 1.0
        assert acc.top5_hit_rate == 1.0
        assert acc.top10_hit_rate == 1.0

    def test_pra_difference(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """The top pick's projection should be compared with their actual PRA."""
        index = OutcomeIndex(actual_ranking(outcomes))

        acc = evaluate_variant("stats_first", as_ranked(predicted), index)

        assert acc.actual_pra == 50
        assert acc.pra_difference == pytest.approx(
            round(abs(predicted[0].projected_pra - 50), 1)
        )

    def test_unmatched_players_are_misses(
        self,
        predicted: list[ScoredPlayer],
        outcomes: list[PlayerOutcome],
        make_context: Callable[..., PlayerGameContext],
    ) -> None:
        """A predicted player without a box score counts as a miss."""
        ghost = score(make_context(player_id="E", name="Ghost"), Variant.STATS_FIRST)
        ranking = as_ranked([ghost, *predicted])
        index = OutcomeIndex(actual_ranking(outcomes))

        acc = evaluate_variant("stats_first", ranking, index)

        assert acc.unmatched_players == 1
        assert acc.matched_players == 4
        assert acc.top3_hit_rate == pytest.approx(2 / 3)
        assert acc.winner_correct is False
        assert acc.actual_pra is None
        assert acc.pra_difference is None

    def test_empty_ranking(self, outcomes: list[PlayerOutcome]) -> None:
        """An empty prediction should produce an empty accuracy."""
        acc = evaluate_variant("stats_first", [], OutcomeIndex(actual_ranking(outcomes)))

        assert acc.predicted_winner is None
        assert acc.avg_rank_error is None
        assert acc.hit_rates == {3: 0.0, 5: 0.0, 10: 0.0}


class TestDecideDayWinner:
    """Tests for decide_day_winner and run_backtest_day."""

    def test_clear_winner(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """A rank-error margin above the threshold should name a winner."""
        perfect = [predicted[3], *predicted[:3]]

        result = run_backtest_day(
            "2024-11-19",
            {"context_first": perfect, "stats_first": predicted},
            outcomes,
        )

        assert result.accuracy["context_first"].avg_rank_error == 0.0
        assert result.day_winner == "context_first"
        assert result.accuracy["context_first"].winner_correct is True

    def test_tie_within_threshold(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """Identical rankings should tie."""
        result = run_backtest_day(
            "2024-11-19",
            {Variant.STATS_FIRST: predicted, Variant.CONTEXT_FIRST: predicted},
            outcomes,
        )

        assert result.day_winner == TIE
        assert result.variants == ["stats_first", "context_first"]

    def test_margin_equal_to_threshold_is_tie(self) -> None:
        """A margin exactly at the threshold should still be a tie."""

        def acc(error: float) -> VariantAccuracy:
            return VariantAccuracy(
                variant="x",
                predicted_winner=None,
                winner_correct=False,
                predicted_rank_of_winner=None,
                winner_in_top_3=False,
                winner_in_top_5=False,
                winner_in_top_10=False,
                hit_rates={},
                avg_rank_error=error,
                projected_pra=None,
                actual_pra=None,
                pra_difference=None,
                matched_players=0,
                unmatched_players=0,
            )

        assert decide_day_winner({"a": acc(1.0), "b": acc(2.0)}, 1.0) == TIE
        assert decide_day_winner({"a": acc(1.0), "b": acc(2.5)}, 1.0) == "a"

    def test_single_variant_has_no_winner(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """One ranking alone cannot win a head-to-head."""
        result = run_backtest_day("2024-11-19", predicted, outcomes)

        assert result.day_winner is None
        assert result.variants == ["stats_first"]
        assert result.actual_winner is not None
        assert result.actual_winner.player_id == "D"
        assert result.num_players_predicted == 4

    def test_num_games(
        self, predicted: list[ScoredPlayer], make_outcome: OutcomeFactory
    ) -> None:
        """Games are counted by id, pairing teams when the id is missing."""
        outcomes = [
            make_outcome("A", points=50, team="BOS", game_id="g1"),
            make_outcome("B", points=40, team="NYK", game_id="g1"),
            make_outcome("C", points=30, team="DEN", game_id="g2"),
            make_outcome("D", points=60, team="LAL"),
            make_outcome("E", points=20, team="GSW"),
        ]

        result = run_backtest_day("2024-11-19", predicted, outcomes)

        assert result.num_games == 3
        assert result.to_dict()["num_games"] == 3

    def test_to_dict(self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]) -> None:
        """to_dict should include accuracy per variant."""
        data = run_backtest_day("2024-11-19", predicted, outcomes).to_dict()

        assert data["date"] == "2024-11-19"
        assert "stats_first" in data["accuracy"]


class TestBacktestEngine:
    """Tests for BacktestEngine."""

    def test_threshold_from_settings(self, test_settings: Settings) -> None:
        """The tie threshold should default to the configured value."""
        engine = BacktestEngine(settings=test_settings)

        assert engine.tie_threshold == test_settings.backtest_tie_threshold
        assert engine.variants == [Variant.STATS_FIRST, Variant.CONTEXT_FIRST]

    def test_negative_threshold(self) -> None:
        """A negative threshold should be rejected."""
        with pytest.raises(ValueError):
            BacktestEngine(tie_threshold=-0.5)

    def test_run_skips_days_without_outcomes(
        self, predicted: list[ScoredPlayer], outcomes: list[PlayerOutcome]
    ) -> None:
        """Days with no completed games should not be evaluated."""
        engine = BacktestEngine(tie_threshold=1.0)

        summary = engine.run(
            [
                ("2024-11-20", predicted, []),
                ("2024-11-19", predicted, outcomes),
            ]
        )

        assert summary.days_tested == 1
        assert summary.start_date == "2024-11-19"

    def test_replay_fixture_slates(self) -> None:
        """Replaying seeded slates against simulated box scores is deterministic."""
        contexts = SlateBuilder(seed=1).build_range("2024-11-18", 3)
        actuals = {
            day: simulate_outcomes(slate, seed=i) for i, (day, slate) in enumerate(contexts.items())
        }
        engine = BacktestEngine(tie_threshold=1.0)

        first = engine.replay(contexts, actuals)
        second = engine.replay(contexts, actuals)

        assert first.days_tested == 3
        assert set(first.variants) == {"stats_first", "context_first"}
        assert first.to_dict() == second.to_dict()
        for result in first.days:
            for acc in result.accuracy.values():
                assert acc.unmatched_players == 0

    def test_replay_skips_dates_without_outcomes(self) -> None:
        """Contexts without stored box scores should be ignored."""
        contexts = SlateBuilder().build_range("2024-11-18", 2)

        summary = BacktestEngine(tie_threshold=1.0).replay(contexts, {})

        assert summary.days_tested == 0
        assert summary.primary is None


class _RecordingSource:
    """In-memory data-layer source that records which dates were requested."""

    def __init__(
        self,
        contexts: dict[str, list[PlayerGameContext]],
        outcomes: dict[str, list[PlayerOutcome]],
    ) -> None:
        self.contexts = contexts
        self.outcomes = outcomes
        self.requests: list[tuple[str, str]] = []

    def contexts_for_date(self, game_date: str) -> list[PlayerGameContext]:
        self.requests.append(("contexts", game_date))
        return self.contexts.get(game_date, [])

    def outcomes_for_date(self, game_date: str) -> list[PlayerOutcome]:
        self.requests.append(("outcomes", game_date))
        return self.outcomes.get(game_date, [])


class TestReplaySources:
    """Tests for BacktestEngine.replay_sources."""

    @pytest.fixture
    def source(self) -> _RecordingSource:
        """Return three fixture days with box scores stored for two of them."""
        contexts = SlateBuilder(seed=4).build_range("2024-11-18", 3)
        outcomes = {
            day: simulate_outcomes(slate, seed=9)
            for day, slate in contexts.items()
            if day != "2024-11-19"
        }
        return _RecordingSource(contexts, outcomes)

    def test_matches_in_memory_replay(self, source: _RecordingSource) -> None:
        """Pulling days from sources should equal replaying the same mappings."""
        engine = BacktestEngine(tie_threshold=1.0)

        pulled = engine.replay_sources(source, source, ["2024-11-20", "2024-11-18", "2024-11-19"])
        stored = engine.replay(source.contexts, source.outcomes)

        assert pulled.days_tested == 2
        assert pulled.to_dict() == stored.to_dict()

    def test_requests_one_day_at_a_time(self, source: _RecordingSource) -> None:
        """Contexts are only requested for dates that have completed games."""
        BacktestEngine(tie_threshold=1.0).replay_sources(
            source, source, ["2024-11-20", "2024-11-18", "2024-11-19", "2024-11-18"]
        )

        assert source.requests == [
            ("outcomes", "2024-11-18"),
            ("contexts", "2024-11-18"),
            ("outcomes", "2024-11-19"),
            ("outcomes", "2024-11-20"),
            ("contexts", "2024-11-20"),
        ]

    def test_dates_without_contexts_are_skipped(
        self, source: _RecordingSource, outcomes: list[PlayerOutcome]
    ) -> None:
        """Box scores for a date without stored contexts should be ignored."""
        source.outcomes["2024-11-25"] = outcomes

        summary = BacktestEngine(tie_threshold=1.0).replay_sources(
            source, source, ["2024-11-25"]
        )

        assert summary.days_tested == 0
