"""Salary-capped lineup construction on top of variant scores.

Example:
    >>> from pra_model.lineup import OptimizerSettings, build_lineup, validate_lineup
    >>> lineup = build_lineup(pool, OptimizerSettings(salary_cap=50000))
    >>> validate_lineup(lineup)
    []
"""

from __future__ import annotations

from pra_model.lineup.optimizer import (
    POSITION_ELIGIBILITY,
    Lineup,
    LineupSlot,
    OptimizerSettings,
    SalariedPlayer,
    build_lineup,
    can_fill,
    eligible_slots,
    estimate_salary,
    generate_lineups,
    price_players,
    validate_lineup,
)

__all__ = [
    "POSITION_ELIGIBILITY",
    "Lineup",
    "LineupSlot",
    "OptimizerSettings",
    "SalariedPlayer",
    "build_lineup",
    "can_fill",
    "eligible_slots",
    "estimate_salary",
    "generate_lineups",
    "price_players",
    "validate_lineup",
]
