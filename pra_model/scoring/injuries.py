"""Injury and availability handling for scored players.

The availability adjustment is layered on top of the composite score rather
than folded into the weighted sum. OUT and DOUBTFUL carry penalties large
enough to sort a player below every healthy player in any variant, while
QUESTIONABLE and PROBABLE are small residual-risk penalties.

Whether OUT/DOUBTFUL players are dropped from a ranking entirely is the
caller's decision; ``should_exclude`` only answers the question.

Example:
    >>> from pra_model.scoring.injuries import injury_adjustment, parse_injury_status
    >>> status = parse_injury_status("Day-To-Day")
    >>> status
    <InjuryStatus.QUESTIONABLE: 'QUESTIONABLE'>
    >>> injury_adjustment(status)
    -15.0
"""

from __future__ import annotations

import re
import unicodedata

from pra_model.data.models import InjuryStatus

# =============================================================================
# Constants
# =============================================================================

INJURY_ADJUSTMENTS: dict[InjuryStatus, float] = {
    InjuryStatus.OUT: -1000.0,
    InjuryStatus.DOUBTFUL: -500.0,
    InjuryStatus.QUESTIONABLE: -15.0,
    InjuryStatus.PROBABLE: -3.0,
    InjuryStatus.HEALTHY: 0.0,
}

EXCLUDED_STATUSES: frozenset[InjuryStatus] = frozenset(
    {InjuryStatus.OUT, InjuryStatus.DOUBTFUL}
)

INJURY_LABELS: dict[InjuryStatus, str] = {
    InjuryStatus.OUT: "OUT",
    InjuryStatus.DOUBTFUL: "Doubtful",
    InjuryStatus.QUESTIONABLE: "Questionable",
    InjuryStatus.PROBABLE: "Probable",
    InjuryStatus.HEALTHY: "",
}

_NON_LETTERS = re.compile(r"[^a-z]")


# =============================================================================
# Functions
# =============================================================================


def injury_adjustment(status: InjuryStatus) -> float:
    """Additive score adjustment for an availability status."""
    return INJURY_ADJUSTMENTS.get(status, 0.0)


def should_exclude(status: InjuryStatus) -> bool:
    """Whether a player with this status should be left out of rankings."""
    return status in EXCLUDED_STATUSES


def injury_label(status: InjuryStatus) -> str:
    """Short display label, empty for healthy players."""
    return INJURY_LABELS.get(status, "")


def parse_injury_status(status_str: str) -> InjuryStatus:
    """Parse a raw injury feed status string into an ``InjuryStatus``.

    Exact short codes are matched first, then substrings in priority order
    so that "doubtful" is not mistaken for "out". Unrecognized non-empty
    strings are treated as QUESTIONABLE.

    Args:
        status_str: Raw status string, e.g. "Out", "GTD", "Day-To-Day".

    Returns:
        Standardized InjuryStatus.
    """
    status_lower = status_str.lower().strip()
    if not status_lower:
        return InjuryStatus.HEALTHY

    exact_mappings = {
        "out": InjuryStatus.OUT,
        "o": InjuryStatus.OUT,
        "doubtful": InjuryStatus.DOUBTFUL,
        "d": InjuryStatus.DOUBTFUL,
        "questionable": InjuryStatus.QUESTIONABLE,
        "q": InjuryStatus.QUESTIONABLE,
        "gtd": InjuryStatus.QUESTIONABLE,
        "probable": InjuryStatus.PROBABLE,
        "p": InjuryStatus.PROBABLE,
        "available": InjuryStatus.HEALTHY,
        "active": InjuryStatus.HEALTHY,
        "healthy": InjuryStatus.HEALTHY,
    }
    if status_lower in exact_mappings:
        return exact_mappings[status_lower]

    partial_mappings = [
        ("doubtful", InjuryStatus.DOUBTFUL),
        ("questionable", InjuryStatus.QUESTIONABLE),
        ("game time decision", InjuryStatus.QUESTIONABLE),
        ("day-to-day", InjuryStatus.QUESTIONABLE),
        ("probable", InjuryStatus.PROBABLE),
        ("available", InjuryStatus.HEALTHY),
        ("active", InjuryStatus.HEALTHY),
        ("healthy", InjuryStatus.HEALTHY),
        ("out", InjuryStatus.OUT),  # last, so "doubtful" wins over "out"
    ]
    for key, value in partial_mappings:
        if key in status_lower:
            return value

    return InjuryStatus.QUESTIONABLE


def normalize_player_name(name: str) -> str:
    """Normalize a player name for cross-source matching.

    Lowercases, strips diacritics and removes every non-letter, so
    "Luka Dončić" and "luka doncic" both become "lukadoncic".
    """
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_LETTERS.sub("", stripped)


__all__ = [
    "EXCLUDED_STATUSES",
    "INJURY_ADJUSTMENTS",
    "InjuryStatus",
    "injury_adjustment",
    "injury_label",
    "normalize_player_name",
    "parse_injury_status",
    "should_exclude",
]
