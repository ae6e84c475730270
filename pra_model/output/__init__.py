"""Output generation for rankings, lineups and backtests.

Submodules:
    reports: JSON-ready report dictionaries and the fixed-width backtest report

Example:
    >>> from pra_model.output import ReportGenerator
    >>> report = ReportGenerator().predictions_report(ranked)
"""

from __future__ import annotations

from pra_model.output.reports import ReportGenerator

__all__ = [
    "ReportGenerator",
]
