"""
Per-project clone results.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from fleetclone.directory.project import Project


class ErrorKind(Enum):
    """Classification of a failed clone."""
    NETWORK_UNREACHABLE = "network unreachable"
    AUTH_REJECTED = "authentication rejected"
    NOT_FOUND = "not found"
    PATH_COLLISION = "path collision"
    LOCAL_FS_ERROR = "local filesystem error"
    TRANSPORT_UNAVAILABLE = "transport unavailable"
    UNKNOWN = "unknown"


class CloneStatus(Enum):
    """Terminal status of a clone attempt."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class CloneOutcome:
    """Result of attempting to clone one project."""

    project: Project
    status: CloneStatus
    elapsed: float = 0.0
    received_bytes: int = 0
    received_objects: int = 0
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def succeeded(
        cls, project: Project, received_bytes: int, received_objects: int, elapsed: float
    ) -> "CloneOutcome":
        return cls(
            project=project,
            status=CloneStatus.SUCCEEDED,
            elapsed=elapsed,
            received_bytes=received_bytes,
            received_objects=received_objects,
        )

    @classmethod
    def failed(
        cls, project: Project, kind: ErrorKind, message: str, elapsed: float = 0.0
    ) -> "CloneOutcome":
        return cls(
            project=project,
            status=CloneStatus.FAILED,
            elapsed=elapsed,
            error_kind=kind,
            message=message,
        )

    @property
    def ok(self) -> bool:
        return self.status == CloneStatus.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "project": self.project.path_with_namespace,
            "status": self.status.value,
            "elapsed": self.elapsed,
            "received_bytes": self.received_bytes,
            "received_objects": self.received_objects,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }
