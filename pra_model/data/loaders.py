"""File readers for slates, salaries and box scores.

Every reader accepts JSON (a list of records, or an object holding the list
under ``players``/``outcomes``/``salaries``) or CSV. Records are handed to the
tolerant ``from_dict`` constructors, so bad values inside a readable file
fall back to defaults. Only unreadable or unsupported files raise.

Example:
    >>> contexts = load_contexts("slates/2024-11-19.json")
    >>> salaries = load_salaries("salaries.csv")
    >>> outcomes_by_date = load_dated_directory("box_scores/", load_outcomes)
    >>> slates = DatedDirectorySource("slates/")
    >>> slates.contexts_for_date("2024-11-19")
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import pandas as pd

from pra_model.backtest.outcomes import PlayerOutcome
from pra_model.data.models import PlayerGameContext
from pra_model.logging import get_logger
from pra_model.types import DataLoadError, GameDate

logger = get_logger(__name__)

T = TypeVar("T")

# =============================================================================
# Constants
# =============================================================================

SUPPORTED_SUFFIXES: frozenset[str] = frozenset({".json", ".csv"})
RECORD_KEYS: tuple[str, ...] = ("players", "outcomes", "salaries", "records")
DATED_FILE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})$")


# =============================================================================
# Raw records
# =============================================================================


def _records_from_json(source: Path) -> list[dict[str, Any]]:
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON in {source}: {e}") from e

    if isinstance(raw, dict):
        for key in RECORD_KEYS:
            if isinstance(raw.get(key), list):
                raw = raw[key]
                break
        else:
            raise DataLoadError(
                f"{source} holds an object without a {'/'.join(RECORD_KEYS)} list"
            )
    if not isinstance(raw, list):
        raise DataLoadError(f"{source} does not hold a list of records")
    return [r for r in raw if isinstance(r, dict)]


def _records_from_csv(source: Path) -> list[dict[str, Any]]:
    try:
        df = pd.read_csv(source, dtype={"player_id": str, "id": str, "game_id": str})
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise DataLoadError(f"Invalid CSV in {source}: {e}") from e
    # NaN cells become None so the record constructors apply their defaults
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


def read_records(path: str | Path) -> list[dict[str, Any]]:
    """Read raw records from a JSON or CSV file.

    Args:
        path: File to read.

    Returns:
        List of record dictionaries.

    Raises:
        DataLoadError: If the file is missing, unreadable, not UTF-8, or not JSON/CSV.
    """
    source = Path(path)
    suffix = source.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise DataLoadError(f"Unsupported file type '{suffix}' for {source}")
    if not source.is_file():
        raise DataLoadError(f"File not found: {source}")

    try:
        records = _records_from_json(source) if suffix == ".json" else _records_from_csv(source)
    except UnicodeDecodeError as e:
        raise DataLoadError(f"{source} is not UTF-8 text: {e}") from e
    except OSError as e:
        raise DataLoadError(f"Cannot read {source}: {e}") from e

    logger.debug("Read {} record(s) from {}", len(records), source)
    return records


# =============================================================================
# Typed loaders
# =============================================================================


def load_contexts(path: str | Path) -> list[PlayerGameContext]:
    """Load a slate of player contexts."""
    return [PlayerGameContext.from_dict(r) for r in read_records(path)]


def load_outcomes(path: str | Path) -> list[PlayerOutcome]:
    """Load completed box-score outcomes."""
    return [PlayerOutcome.from_dict(r) for r in read_records(path)]


def load_salaries(path: str | Path) -> dict[str, int]:
    """Load a salary sheet keyed by player id, or by name when id is absent.

    Rows without a parseable salary are skipped.
    """
    salaries: dict[str, int] = {}
    skipped = 0
    for record in read_records(path):
        key = record.get("player_id") or record.get("id") or record.get("name")
        try:
            salary = int(float(record.get("salary")))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            skipped += 1
            continue
        if key:
            salaries[str(key)] = salary
        else:
            skipped += 1
    if skipped:
        logger.debug("Skipped {} salary row(s) without id or salary in {}", skipped, path)
    return salaries


def _dated_files(root: Path) -> dict[GameDate, Path]:
    files: dict[GameDate, Path] = {}
    for file in sorted(root.iterdir()):
        match = DATED_FILE_PATTERN.match(file.stem)
        if match and file.suffix.lower() in SUPPORTED_SUFFIXES:
            files.setdefault(match.group(1), file)
    return files


def load_dated_directory(
    directory: str | Path,
    loader: Callable[[Path], list[T]],
) -> dict[GameDate, list[T]]:
    """Load every ``YYYY-MM-DD.json``/``.csv`` file of a directory.

    Files whose stem is not a date are ignored. When both a JSON and a CSV
    file exist for a date, the CSV file wins (it sorts first).

    Args:
        directory: Directory to scan.
        loader: Typed loader applied to each file.

    Returns:
        Date to loaded records, in date order.

    Raises:
        DataLoadError: If the directory does not exist.
    """
    root = Path(directory)
    if not root.is_dir():
        raise DataLoadError(f"Directory not found: {root}")

    loaded = {day: loader(file) for day, file in _dated_files(root).items()}
    logger.info("Loaded {} dated file(s) from {}", len(loaded), root)
    return loaded


# =============================================================================
# Directory-backed sources
# =============================================================================


class DatedDirectorySource:
    """Serve stored slates or box scores from a directory, one date at a time.

    Satisfies both ``ContextSource`` and ``OutcomeSource``, so one class backs
    the prediction and the outcome side of a replay. Each call reads only the
    file for the requested date; a date without a file yields an empty list.

    Example:
        >>> slates = DatedDirectorySource("slates/")
        >>> scores = DatedDirectorySource("box_scores/")
        >>> engine.replay_sources(slates, scores, slates.dates())
    """

    def __init__(self, directory: str | Path) -> None:
        """Initialize the source.

        Raises:
            DataLoadError: If the directory does not exist.
        """
        self.root = Path(directory)
        if not self.root.is_dir():
            raise DataLoadError(f"Directory not found: {self.root}")
        self._files = _dated_files(self.root)

    def dates(self) -> list[GameDate]:
        """Dates with a stored file, in date order."""
        return list(self._files)

    def contexts_for_date(self, game_date: GameDate) -> list[PlayerGameContext]:
        """Player contexts stored for a date."""
        file = self._files.get(game_date)
        return load_contexts(file) if file is not None else []

    def outcomes_for_date(self, game_date: GameDate) -> list[PlayerOutcome]:
        """Box scores stored for a date."""
        file = self._files.get(game_date)
        return load_outcomes(file) if file is not None else []
