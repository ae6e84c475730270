"""PRA leader prediction model.

Scores NBA players on how likely they are to lead a slate in Points +
Rebounds + Assists, using competing heuristic and sigmoid-ensemble variants,
and builds salary-capped lineups and accuracy backtests on top of those
scores.

Example:
    >>> from pra_model.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.default_variant)
    stats_first
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "PRA Model Team"

# Public API exports
from pra_model.config import Settings, get_settings

__all__ = [
    "Settings",
    "__author__",
    "__version__",
    "get_settings",
]
