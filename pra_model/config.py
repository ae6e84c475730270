"""Configuration management using Pydantic Settings.

This module provides centralized configuration for the PRA model, supporting
environment variables and .env file loading. The scoring core itself takes
no settings; these values drive the CLI, the lineup optimizer defaults and
the backtest engine.

Example:
    >>> from pra_model.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.salary_cap)
    50000
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from pra_model.lineup.optimizer import OptimizerSettings

VARIANT_NAMES: tuple[str, ...] = ("stats_first", "context_first", "sigmoid_ensemble")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables take precedence over .env file values.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Directory for log files.
        default_variant: Scoring variant used when a command does not name one.
        exclude_injured: Drop OUT/DOUBTFUL players before ranking.
        league_tables_path: Optional JSON file overriding the embedded tables.
        salary_cap: Lineup salary cap in dollars.
        roster_positions: Comma separated slot template.
        max_players_per_team: Per-team player cap in a lineup.
        min_salary_per_player: Informational salary floor per player.
        lineup_count: Number of lineups to generate.
        backtest_tie_threshold: Rank-error margin below which variants tie.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_dir: str = Field(
        default="logs",
        alias="LOG_DIR",
        description="Directory for log files",
    )

    # Scoring
    default_variant: str = Field(
        default="stats_first",
        alias="PRA_DEFAULT_VARIANT",
        description="Scoring variant used when none is given",
    )
    exclude_injured: bool = Field(
        default=True,
        alias="PRA_EXCLUDE_INJURED",
        description="Drop OUT/DOUBTFUL players before ranking",
    )
    league_tables_path: str | None = Field(
        default=None,
        alias="PRA_LEAGUE_TABLES",
        description="Optional league table JSON overriding the embedded season",
    )

    # Lineup optimizer
    salary_cap: int = Field(
        default=50000,
        alias="PRA_SALARY_CAP",
        gt=0,
        description="Lineup salary cap in dollars",
    )
    roster_positions: str = Field(
        default="G,G,F,F,UTIL,UTIL",
        alias="PRA_ROSTER_POSITIONS",
        description="Comma separated lineup slot template",
    )
    max_players_per_team: int = Field(
        default=3,
        alias="PRA_MAX_PER_TEAM",
        ge=1,
        description="Maximum players from one team in a lineup",
    )
    min_salary_per_player: int = Field(
        default=3000,
        alias="PRA_MIN_SALARY",
        ge=0,
        description="Informational salary floor per player",
    )
    lineup_count: int = Field(
        default=5,
        alias="PRA_LINEUP_COUNT",
        ge=1,
        le=50,
        description="Number of lineups to generate",
    )

    # Backtesting
    backtest_tie_threshold: float = Field(
        default=1.0,
        alias="PRA_BACKTEST_TIE_THRESHOLD",
        ge=0.0,
        description="Average rank error margin below which two variants tie",
    )

    @field_validator("log_dir")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure path strings are valid."""
        if not v or v.isspace():
            raise ValueError("Path cannot be empty or whitespace")
        return v

    @field_validator("default_variant")
    @classmethod
    def validate_variant(cls, v: str) -> str:
        """Ensure the default variant is a known variant name."""
        name = v.strip().lower()
        if name not in VARIANT_NAMES:
            raise ValueError(
                f"Unknown variant '{v}', expected one of {', '.join(VARIANT_NAMES)}"
            )
        return name

    @field_validator("roster_positions")
    @classmethod
    def validate_positions(cls, v: str) -> str:
        """Ensure the slot template has at least one slot."""
        slots = [s.strip() for s in v.split(",") if s.strip()]
        if not slots:
            raise ValueError("Roster positions cannot be empty")
        return ",".join(s.upper() for s in slots)

    @property
    def positions(self) -> list[str]:
        """Return the roster template as a list of slot labels."""
        return self.roster_positions.split(",")

    @property
    def log_dir_obj(self) -> Path:
        """Return log directory as Path object."""
        return Path(self.log_dir)

    @property
    def league_tables_path_obj(self) -> Path | None:
        """Return the league table override as a Path, if configured."""
        return Path(self.league_tables_path) if self.league_tables_path else None

    def optimizer_settings(self, variant: str | None = None) -> OptimizerSettings:
        """Build lineup optimizer settings from this configuration.

        Args:
            variant: Variant to optimise for; defaults to ``default_variant``.

        Returns:
            OptimizerSettings instance.
        """
        from pra_model.lineup.optimizer import OptimizerSettings

        positions = self.positions
        return OptimizerSettings(
            salary_cap=self.salary_cap,
            roster_size=len(positions),
            positions=tuple(positions),
            min_salary_per_player=self.min_salary_per_player,
            max_players_per_team=self.max_players_per_team,
            variant=variant or self.default_variant,
        )

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.log_dir_obj.mkdir(parents=True, exist_ok=True)


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        Settings instance loaded from environment.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
