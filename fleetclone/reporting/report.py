"""
Run-level report data structures.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from fleetclone.cloning.outcome import CloneOutcome
from fleetclone.utils.units import format_duration, format_size


@dataclass
class FleetReport:
    """
    Totals for one fleet run.

    Mutated only by the reporter as outcomes arrive; the accumulation is
    order-independent.
    """

    succeeded: int = 0
    failed: int = 0
    total_bytes: int = 0
    total_objects: int = 0
    failures_by_kind: Dict[str, int] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    _started: float = field(default_factory=time.monotonic, repr=False)
    _duration: Optional[float] = field(default=None, repr=False)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def duration(self) -> float:
        """Wall-clock seconds since the run started, frozen once finished."""
        if self._duration is not None:
            return self._duration
        return time.monotonic() - self._started

    def record(self, outcome: CloneOutcome) -> None:
        """Add one outcome to the totals."""
        if self.finished:
            raise RuntimeError("Cannot record outcomes on a finished report")

        if outcome.ok:
            self.succeeded += 1
            self.total_bytes += outcome.received_bytes
            self.total_objects += outcome.received_objects
        else:
            self.failed += 1
            kind = outcome.error_kind.value if outcome.error_kind else "unknown"
            self.failures_by_kind[kind] = self.failures_by_kind.get(kind, 0) + 1

    def finish(self) -> "FleetReport":
        """Freeze the duration and mark the report complete."""
        if not self.finished:
            self._duration = time.monotonic() - self._started
            self.finished_at = datetime.now()
        return self

    def summary_line(self) -> str:
        """One-line headline, e.g. 'Cloned 2/3 projects, 1.5 MiB in 3.2s'."""
        return (
            f"Cloned {self.succeeded}/{self.total} projects, "
            f"{format_size(self.total_bytes)} in {format_duration(self.duration)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "total": self.total,
            "total_bytes": self.total_bytes,
            "total_objects": self.total_objects,
            "failures_by_kind": dict(self.failures_by_kind),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration,
        }
