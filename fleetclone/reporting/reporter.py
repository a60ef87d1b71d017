"""
Aggregator for the outcome stream.
"""

import logging
from typing import Callable, Iterable

import click

from fleetclone.cloning.outcome import CloneOutcome
from fleetclone.reporting.formatter import format_outcome, format_summary
from fleetclone.reporting.report import FleetReport

logger = logging.getLogger(__name__)


class FleetReporter:
    """
    Prints one line per outcome and accumulates the fleet totals.

    Purely observational: it never influences scheduling.
    """

    def __init__(self, echo: Callable[[str], None] = click.echo, color: bool = True):
        self.echo = echo
        self.color = color
        self.report = FleetReport()

    def handle(self, outcome: CloneOutcome) -> None:
        """Record and print a single outcome."""
        self.report.record(outcome)
        self.echo(format_outcome(outcome, color=self.color))

    def consume(self, outcomes: Iterable[CloneOutcome]) -> FleetReport:
        """
        Drain the outcome stream, then print the summary.

        Returns:
            The finished FleetReport.
        """
        for outcome in outcomes:
            self.handle(outcome)
        return self.finish()

    def finish(self) -> FleetReport:
        """Freeze the report and print the summary."""
        report = self.report.finish()
        self.echo(format_summary(report, color=self.color))
        logger.info(f"Run complete: {report.to_dict()}")
        return report
