"""
Reporting module for per-project status lines and fleet summaries.
"""

from fleetclone.reporting.report import FleetReport
from fleetclone.reporting.reporter import FleetReporter
from fleetclone.reporting.formatter import format_outcome, format_summary
from fleetclone.utils.units import format_duration, format_size

__all__ = [
    "FleetReport",
    "FleetReporter",
    "format_duration",
    "format_outcome",
    "format_size",
    "format_summary",
]
