"""Type definitions and protocols for the PRA model.

This module defines the date alias, the protocols the external data layer
implements, and the exception hierarchy used at the package boundaries.

The scoring, ranking, lineup and backtest core never raises for bad player or
game data; it substitutes documented defaults instead. The exceptions below
are reserved for configuration errors and file loading.

Example:
    >>> from pra_model.types import ContextSource
    >>> def run(source: ContextSource) -> None:
    ...     contexts = source.contexts_for_date("2024-11-19")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pra_model.backtest.outcomes import PlayerOutcome
    from pra_model.data.models import PlayerGameContext

# =============================================================================
# Type Aliases
# =============================================================================

GameDate = str  # ISO format, YYYY-MM-DD


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class ContextSource(Protocol):
    """Protocol for the data layer that feeds the scoring core.

    Implementations own all network access, caching and retries. They hand
    the core fully materialised records.
    """

    def contexts_for_date(self, game_date: GameDate) -> list[PlayerGameContext]:
        """Return the player contexts for every game on a date."""
        ...


class OutcomeSource(Protocol):
    """Protocol for providers of completed box scores."""

    def outcomes_for_date(self, game_date: GameDate) -> list[PlayerOutcome]:
        """Return box-score outcomes for every completed game on a date."""
        ...


# =============================================================================
# Exceptions
# =============================================================================


class PRAModelError(Exception):
    """Base exception for PRA model errors."""


class ConfigurationError(PRAModelError):
    """Invalid optimizer settings or unknown variant name."""


class DataLoadError(PRAModelError):
    """Input file could not be read or has an unsupported format."""


class TableLoadError(DataLoadError):
    """League table file is malformed."""
