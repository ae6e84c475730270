"""Shared pytest fixtures for PRA model tests.

This module contains fixtures used across multiple test modules:
- Configuration fixtures (test settings with temporary directories)
- Player context fixtures (reference scenarios and a context factory)
- Slate fixtures (seeded fixture slate, box scores)

Example:
    def test_something(make_context, sample_slate):
        ctx = make_context(spread=-14.5)
        assert len(sample_slate) == 10
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from pra_model.backtest.outcomes import PlayerOutcome
from pra_model.config import Settings, reset_settings
from pra_model.data.fixtures import SlateBuilder
from pra_model.data.models import PlayerGameContext
from pra_model.data.tables import LeagueTables, default_tables

LUKA_HISTORY: tuple[float, ...] = (55, 52, 58, 48, 62, 51, 54, 50, 57, 53)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def test_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Settings, None, None]:
    """Provide test settings with a temporary log directory.

    Automatically resets the settings singleton after the test.
    """
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    reset_settings()
    from pra_model.config import get_settings

    settings = get_settings()
    settings.ensure_directories()

    yield settings

    reset_settings()


# =============================================================================
# Player contexts
# =============================================================================


@pytest.fixture
def tables() -> LeagueTables:
    """Return the embedded season tables."""
    return default_tables()


@pytest.fixture
def make_context() -> Callable[..., PlayerGameContext]:
    """Return a factory for a mid-tier healthy starter with overrides."""

    def _make(**overrides: Any) -> PlayerGameContext:
        values: dict[str, Any] = {
            "player_id": "p1",
            "name": "Test Player",
            "team": "BOS",
            "position": "SF",
            "games_played": 30,
            "ppg": 22.0,
            "rpg": 7.0,
            "apg": 5.0,
            "mpg": 34.0,
            "last_n_pra": (33, 35, 34, 36, 32, 34, 35, 33, 34, 34),
            "usage_rate": 26.0,
            "triple_double_count": 0,
            "opponent_abbrev": "SAC",
            "spread": -3.0,
            "over_under": 226.0,
        }
        values.update(overrides)
        return PlayerGameContext(**values)

    return _make


@pytest.fixture
def luka_context() -> PlayerGameContext:
    """Return the high-usage guard facing a weak, fast defense in a close game."""
    return PlayerGameContext(
        player_id="3945274",
        name="Luka Dončić",
        team="DAL",
        position="PG",
        games_played=25,
        ppg=28.5,
        rpg=8.8,
        apg=8.2,
        mpg=37.2,
        last_n_pra=LUKA_HISTORY,
        usage_rate=32.5,
        triple_double_count=6,
        opponent_abbrev="CHA",
        opponent_defensive_rating=117.0,
        opponent_pace=103.5,
        spread=-2.5,
        over_under=228.0,
    )


@pytest.fixture
def blowout_context(luka_context: PlayerGameContext) -> PlayerGameContext:
    """Return the same player in a lopsided, low-total game."""
    from dataclasses import replace

    return replace(luka_context, spread=-14.5, over_under=212.0)


# =============================================================================
# Slates
# =============================================================================


@pytest.fixture
def sample_slate() -> list[PlayerGameContext]:
    """Return the seeded ten-player fixture slate."""
    return SlateBuilder(seed=0).build("2024-11-19")


@pytest.fixture
def make_outcome() -> Callable[..., PlayerOutcome]:
    """Return a factory for box-score outcomes."""

    def _make(player_id: str, name: str | None = None, **stats: float) -> PlayerOutcome:
        return PlayerOutcome(player_id=player_id, name=name or player_id, **stats)

    return _make
