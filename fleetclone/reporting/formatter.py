"""
Console formatting for clone outcomes and fleet summaries.
"""

import click

from fleetclone.cloning.outcome import CloneOutcome
from fleetclone.reporting.report import FleetReport
from fleetclone.utils.units import format_duration, format_size


def format_outcome(outcome: CloneOutcome, color: bool = True) -> str:
    """One status line for a finished project."""
    path = outcome.project.path_with_namespace
    if outcome.ok:
        tag = click.style("OK  ", fg="green", bold=True) if color else "OK  "
        return (
            f"{tag} {path} ({format_size(outcome.received_bytes)}, "
            f"{outcome.received_objects} objects, {format_duration(outcome.elapsed)})"
        )

    tag = click.style("FAIL", fg="red", bold=True) if color else "FAIL"
    kind = outcome.error_kind.value if outcome.error_kind else "unknown"
    line = f"{tag} {path} [{kind}]"
    if outcome.message:
        line += f": {outcome.message}"
    return line


def format_summary(report: FleetReport, color: bool = True) -> str:
    """Final summary block for a run."""
    headline = report.summary_line()
    if color:
        headline = click.style(headline, fg="green" if report.failed == 0 else "yellow", bold=True)

    lines = ["=" * 60, headline]
    if report.failed:
        lines.append(f"Failed: {report.failed}")
        for kind, count in sorted(report.failures_by_kind.items()):
            lines.append(f"  {kind}: {count}")
    lines.append("=" * 60)
    return "\n".join(lines)
