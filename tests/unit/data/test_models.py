"""Tests for the player game context model."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import FrozenInstanceError

import pytest

from pra_model.data.models import (
    DEFAULT_MINUTES,
    DEFAULT_USAGE_RATE,
    InjuryStatus,
    PlayerGameContext,
)


class TestDerivedStatistics:
    """Tests for PlayerGameContext derived properties."""

    def test_avg_and_extremes(self, luka_context: PlayerGameContext) -> None:
        """Window statistics should come from the recent PRA values."""
        assert luka_context.avg_pra == pytest.approx(54.0)
        assert luka_context.max_pra == 62
        assert luka_context.min_pra == 48
        assert luka_context.std_dev_pra == pytest.approx(15.6**0.5)

    def test_window_keeps_last_ten_oldest_first(self) -> None:
        """Only the ten most recent games, at the end, should be used."""
        history = tuple(range(1, 13))
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS", last_n_pra=history)

        assert ctx.recent_window == tuple(range(3, 13))
        assert ctx.min_pra == 3

    def test_empty_history_falls_back_to_season_average(self) -> None:
        """Without recent games, the season average stands in."""
        ctx = PlayerGameContext(
            player_id="1", name="A", team="BOS", ppg=20.0, rpg=5.0, apg=5.0
        )

        assert ctx.has_history is False
        assert ctx.avg_pra == 30.0
        assert ctx.max_pra == 30.0
        assert ctx.std_dev_pra == 0.0

    def test_single_game_has_zero_std(self) -> None:
        """Standard deviation needs at least two games."""
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS", last_n_pra=(40,))

        assert ctx.std_dev_pra == 0.0

    def test_season_max_overrides_window_max(
        self, make_context: Callable[..., PlayerGameContext]
    ) -> None:
        """An explicit season best above the window should be used."""
        ctx = make_context(season_max_pra=58.0)

        assert ctx.max_pra == 58.0
        assert ctx.window_max_pra == 36

    def test_effective_defaults(self) -> None:
        """Missing usage and minutes should fall back to league defaults."""
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS")

        assert ctx.effective_usage_rate == DEFAULT_USAGE_RATE
        assert ctx.effective_mpg == DEFAULT_MINUTES

    def test_matchup_label(self, make_context: Callable[..., PlayerGameContext]) -> None:
        """Matchup should read "vs" at home and "@" on the road."""
        assert make_context(is_home=True).matchup == "BOS vs SAC"
        assert make_context(is_home=False).matchup == "BOS@SAC"


class TestNormalization:
    """Tests for construction-time normalisation."""

    def test_unknown_position_becomes_util(self) -> None:
        """Unknown positions should map to UTIL."""
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS", position="wing")

        assert ctx.position == "UTIL"

    def test_position_is_uppercased(self) -> None:
        """Valid positions should be uppercased."""
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS", position="pg")

        assert ctx.position == "PG"

    def test_percent_field_goal_is_scaled(self) -> None:
        """Field goal percentages above 1 should be read as percent."""
        ctx = PlayerGameContext(player_id="1", name="A", team="BOS", field_goal_pct=48.0)

        assert ctx.field_goal_pct == pytest.approx(0.48)

    def test_frozen(self, luka_context: PlayerGameContext) -> None:
        """Contexts should be immutable."""
        with pytest.raises(FrozenInstanceError):
            luka_context.spread = 0.0  # type: ignore[misc]


class TestFromDict:
    """Tests for PlayerGameContext.from_dict."""

    def test_aliases_and_string_numbers(self) -> None:
        """Alternative keys and string numbers should be accepted."""
        ctx = PlayerGameContext.from_dict(
            {
                "id": 77,
                "player_name": "Luka Dončić",
                "team_abbrev": "dal",
                "pos": "PG",
                "games_played": "25",
                "ppg": "28.5",
                "last_games_pra": "50|52|54",
                "triple_doubles": "6",
                "opp_def_rating": "117.2",
                "is_b2b": "yes",
                "injury_status": "GTD",
                "fgpct": 48,
            }
        )

        assert ctx.player_id == "77"
        assert ctx.name == "Luka Dončić"
        assert ctx.team == "DAL"
        assert ctx.games_played == 25
        assert ctx.ppg == 28.5
        assert ctx.last_n_pra == (50.0, 52.0, 54.0)
        assert ctx.triple_double_count == 6
        assert ctx.opponent_defensive_rating == 117.2
        assert ctx.is_back_to_back is True
        assert ctx.injury_status is InjuryStatus.QUESTIONABLE
        assert ctx.field_goal_pct == pytest.approx(0.48)

    def test_bad_values_fall_back_to_defaults(self) -> None:
        """Unparseable values should never raise."""
        ctx = PlayerGameContext.from_dict(
            {
                "player_id": "9",
                "name": "Bad Data",
                "ppg": "n/a",
                "usage_rate": "",
                "spread": None,
                "last_n_pra": ["40", "x", -5, None, "42"],
                "games_played": "many",
            }
        )

        assert ctx.ppg == 0.0
        assert ctx.usage_rate is None
        assert ctx.spread is None
        assert ctx.last_n_pra == (40.0, 42.0)
        assert ctx.games_played == 0

    def test_missing_name_uses_id(self) -> None:
        """A record without a name should be labelled by its id."""
        ctx = PlayerGameContext.from_dict({"player_id": "123"})

        assert ctx.name == "123"
        assert ctx.injury_status is InjuryStatus.HEALTHY

    def test_to_dict_round_trips_core_fields(self, luka_context: PlayerGameContext) -> None:
        """to_dict output should rebuild an equal context."""
        assert PlayerGameContext.from_dict(luka_context.to_dict()) == luka_context
