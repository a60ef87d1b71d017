"""
Cloning of individual projects over the git transport.
"""

from fleetclone.cloning.outcome import CloneOutcome, CloneStatus, ErrorKind
from fleetclone.cloning.git_handler import GitTransport, TransferStats, classify_git_error
from fleetclone.cloning.task import CloneTask

__all__ = [
    "CloneOutcome",
    "CloneStatus",
    "ErrorKind",
    "GitTransport",
    "TransferStats",
    "classify_git_error",
    "CloneTask",
]
