"""Tests for league lookup tables."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pra_model.data.tables import (
    LEAGUE_AVG_DEFENSIVE_RATING,
    LEAGUE_AVG_PACE,
    LeagueTables,
    WinnerProfile,
    default_tables,
    load_league_tables,
)
from pra_model.types import TableLoadError


class TestEmbeddedTables:
    """Tests for the embedded season dataset."""

    def test_covers_every_team(self, tables: LeagueTables) -> None:
        """All 30 teams should have a rating and a pace."""
        assert len(tables.defensive_ratings) == 30
        assert len(tables.pace) == 30
        assert tables.season == "2024-25"

    def test_lookups(self, tables: LeagueTables) -> None:
        """Known teams should return their table values, case-insensitively."""
        assert tables.defensive_rating("uta") == 117.2
        assert tables.team_pace("IND") == 103.5
        assert tables.position_modifier("pg", "WAS") == 1.12

    def test_unknown_team_falls_back_to_league_average(self, tables: LeagueTables) -> None:
        """Unknown or missing teams should get neutral values."""
        assert tables.defensive_rating("XXX") == LEAGUE_AVG_DEFENSIVE_RATING
        assert tables.team_pace(None) == LEAGUE_AVG_PACE
        assert tables.position_modifier("UTIL", "WAS") == 1.0
        assert tables.position_modifier("PG", "LAL") == 1.0

    def test_winner_profile(self, tables: LeagueTables) -> None:
        """The winner profile should be derived from the stored history."""
        profile = tables.winner_profile

        assert profile.avg_pra == pytest.approx(53.7)
        assert profile.min_pra == 45
        assert profile.max_pra == 61
        assert profile.triple_double_rate == pytest.approx(0.71)
        assert profile.sample_size == 7

    def test_default_tables_cached(self) -> None:
        """default_tables should load once per process."""
        assert default_tables() is default_tables()

    def test_tables_are_read_only(self, tables: LeagueTables) -> None:
        """Table mappings should reject mutation."""
        with pytest.raises(TypeError):
            tables.defensive_ratings["BOS"] = 100.0  # type: ignore[index]


class TestWinnerProfile:
    """Tests for WinnerProfile.from_history."""

    def test_empty_history_uses_defaults(self) -> None:
        """No history should yield the default profile."""
        assert WinnerProfile.from_history([]) == WinnerProfile()

    def test_triple_double_rate(self) -> None:
        """Only lines with ten in all three categories count."""
        profile = WinnerProfile.from_history(
            [
                {"points": 30, "rebounds": 10, "assists": 10},
                {"points": 40, "rebounds": 9, "assists": 12},
            ]
        )

        assert profile.triple_double_rate == 0.5
        assert profile.avg_pra == 55.5


class TestLoadLeagueTables:
    """Tests for load_league_tables."""

    def test_loads_override_file(self, tmp_path: Path) -> None:
        """A custom file should replace the embedded season."""
        path = tmp_path / "tables.json"
        path.write_text(
            json.dumps(
                {
                    "season": "2025-26",
                    "defensive_ratings": {"bos": 104.0},
                    "pace": {"BOS": 98.0},
                }
            ),
            encoding="utf-8",
        )

        tables = load_league_tables(path)

        assert tables.season == "2025-26"
        assert tables.defensive_rating("BOS") == 104.0
        assert tables.winner_profile == WinnerProfile()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """A missing file should raise TableLoadError."""
        with pytest.raises(TableLoadError):
            load_league_tables(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """Invalid JSON should raise TableLoadError."""
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(TableLoadError):
            load_league_tables(path)

    def test_malformed_table_raises(self) -> None:
        """A table that is not a mapping should raise TableLoadError."""
        with pytest.raises(TableLoadError):
            LeagueTables.from_dict({"defensive_ratings": ["BOS", 104.0]})

    def test_non_utf8_file_raises(self, tmp_path: Path) -> None:
        """A file that is not UTF-8 text should raise TableLoadError."""
        path = tmp_path / "tables.json"
        path.write_bytes(b'{"season": "2024-25", "note": "\xff"}')

        with pytest.raises(TableLoadError):
            load_league_tables(path)

    @pytest.mark.parametrize(
        "history",
        [
            [{"points": "abc", "rebounds": 10, "assists": 10}],
            ["Nikola Jokic 35/15/12"],
            5,
        ],
    )
    def test_malformed_winner_history_raises(self, tmp_path: Path, history: object) -> None:
        """Bad winner lines should raise TableLoadError instead of escaping."""
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"winner_history": history}), encoding="utf-8")

        with pytest.raises(TableLoadError, match="Malformed"):
            load_league_tables(path)

    def test_malformed_league_average_raises(self) -> None:
        """A non-numeric league average should raise TableLoadError."""
        with pytest.raises(TableLoadError):
            LeagueTables.from_dict({"league_average_pace": "fast"})
