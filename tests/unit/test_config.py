"""Tests for configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from pra_model.config import Settings, get_settings, reset_settings
from pra_model.lineup.optimizer import OptimizerSettings
from pra_model.scoring.variants import Variant


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.default_variant == "stats_first"
        assert settings.exclude_injured is True
        assert settings.salary_cap == 50000
        assert settings.max_players_per_team == 3
        assert settings.lineup_count == 5
        assert settings.backtest_tie_threshold == 1.0

    def test_path_properties(self) -> None:
        """Path properties should return Path objects."""
        settings = Settings()

        assert isinstance(settings.log_dir_obj, Path)
        assert settings.league_tables_path_obj is None

    def test_league_tables_path_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """PRA_LEAGUE_TABLES should become a Path."""
        monkeypatch.setenv("PRA_LEAGUE_TABLES", "tables/2025.json")

        assert Settings().league_tables_path_obj == Path("tables/2025.json")

    def test_positions_are_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Roster positions should be split, stripped and uppercased."""
        monkeypatch.setenv("PRA_ROSTER_POSITIONS", " pg, sg ,util,")

        assert Settings().positions == ["PG", "SG", "UTIL"]

    def test_validation_rejects_empty_positions(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An empty slot template should be rejected."""
        monkeypatch.setenv("PRA_ROSTER_POSITIONS", " , ")
        with pytest.raises(ValueError, match="cannot be empty"):
            Settings()

    def test_validation_rejects_empty_path(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Empty paths should be rejected."""
        monkeypatch.setenv("LOG_DIR", "   ")
        with pytest.raises(ValueError, match="cannot be empty"):
            Settings()

    def test_validation_rejects_unknown_variant(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The default variant must be a known variant name."""
        monkeypatch.setenv("PRA_DEFAULT_VARIANT", "v9")
        with pytest.raises(ValueError, match="Unknown variant"):
            Settings()

    def test_variant_is_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Variant names should be case-insensitive."""
        monkeypatch.setenv("PRA_DEFAULT_VARIANT", "Context_First")

        assert Settings().default_variant == "context_first"

    def test_validation_rejects_non_positive_cap(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The salary cap must be positive."""
        monkeypatch.setenv("PRA_SALARY_CAP", "0")
        with pytest.raises(ValueError):
            Settings()

    def test_validation_rejects_lineup_count_out_of_range(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Lineup count must be within 1..50."""
        monkeypatch.setenv("PRA_LINEUP_COUNT", "51")
        with pytest.raises(ValueError):
            Settings()

    def test_optimizer_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """optimizer_settings should carry the configured constraints."""
        monkeypatch.setenv("PRA_SALARY_CAP", "60000")
        monkeypatch.setenv("PRA_ROSTER_POSITIONS", "PG,SG,SF,PF,C")

        opt = Settings().optimizer_settings("context_first")

        assert isinstance(opt, OptimizerSettings)
        assert opt.salary_cap == 60000
        assert opt.roster_size == 5
        assert opt.positions == ("PG", "SG", "SF", "PF", "C")
        assert opt.target_variant is Variant.CONTEXT_FIRST

    def test_optimizer_settings_uses_default_variant(self) -> None:
        """Without a variant, the default variant should be optimised."""
        assert Settings().optimizer_settings().target_variant is Variant.STATS_FIRST

    def test_ensure_directories_creates_dirs(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """ensure_directories should create required directories."""
        monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

        settings = Settings()
        settings.ensure_directories()

        assert (tmp_path / "logs").exists()


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self) -> None:
        """Reset settings before each test."""
        reset_settings()

    def teardown_method(self) -> None:
        """Reset settings after each test."""
        reset_settings()

    def test_returns_singleton(self) -> None:
        """get_settings should return the same instance."""
        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

    def test_loads_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings should load from environment variables."""
        monkeypatch.setenv("PRA_MAX_PER_TEAM", "2")
        monkeypatch.setenv("PRA_EXCLUDE_INJURED", "false")

        reset_settings()
        settings = get_settings()

        assert settings.max_players_per_team == 2
        assert settings.exclude_injured is False


class TestResetSettings:
    """Tests for reset_settings function."""

    def test_reset_clears_singleton(self) -> None:
        """reset_settings should clear the cached instance."""
        settings1 = get_settings()
        reset_settings()
        settings2 = get_settings()

        assert settings1 is not settings2
        assert settings1.salary_cap == settings2.salary_cap
