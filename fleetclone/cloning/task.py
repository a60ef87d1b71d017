"""
Clone task: one project, one transport invocation, one outcome.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Optional, Set

from fleetclone.cloning.git_handler import GitTransport, TransferStats
from fleetclone.cloning.outcome import CloneOutcome, ErrorKind
from fleetclone.core.config import CloneConfig
from fleetclone.core.exceptions import TransportError
from fleetclone.directory.project import Project

logger = logging.getLogger(__name__)


class CloneTask:
    """
    Clones single projects below a root directory.

    Safe to call from several worker threads at once. Every call returns
    a CloneOutcome; per-project errors never propagate.

    Two projects that resolve to the same destination (symlinks followed,
    compared case-insensitively) are never both cloned: the first one to claim
    the path proceeds, later ones fail with PATH_COLLISION.
    """

    def __init__(self, config: CloneConfig, transport: Optional[GitTransport] = None):
        self.config = config
        self.method = config.method
        self.root_dir = config.root_path
        self.transport = transport if transport is not None else GitTransport()
        self._claimed: Set[str] = set()
        self._lock = threading.Lock()

    def __call__(self, project: Project) -> CloneOutcome:
        return self.clone(project)

    def _claim(self, destination: Path) -> bool:
        key = os.path.normcase(str(Path(destination).resolve())).casefold()
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def clone(self, project: Project) -> CloneOutcome:
        """
        Clone a project and report the outcome.

        Args:
            project: Project to clone.

        Returns:
            CloneOutcome describing success or the classified failure.
        """
        started = time.monotonic()
        destination = project.destination(self.root_dir)

        def elapsed() -> float:
            return time.monotonic() - started

        if not self._claim(destination):
            logger.warning(
                f"Skipping {project.path_with_namespace}: destination {destination} "
                f"already claimed by another project in this run"
            )
            return CloneOutcome.failed(
                project, ErrorKind.PATH_COLLISION,
                f"destination {destination} already used by another project",
                elapsed(),
            )

        try:
            if destination.exists() and (not destination.is_dir() or any(destination.iterdir())):
                return CloneOutcome.failed(
                    project, ErrorKind.PATH_COLLISION,
                    f"destination {destination} already exists and is not empty",
                    elapsed(),
                )
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot prepare {destination}: {e}")
            return CloneOutcome.failed(project, ErrorKind.LOCAL_FS_ERROR, str(e), elapsed())

        url = project.clone_url(self.method)
        logger.debug(f"Cloning project {project.path_with_namespace} from {url} to {destination}")

        def on_progress(stats: TransferStats) -> None:
            logger.debug(
                f"{project.path_with_namespace}: {stats.received_objects}/{stats.total_objects} "
                f"objects, {stats.received_bytes} bytes"
            )

        try:
            stats = self.transport.clone(url, destination, progress=on_progress)
        except TransportError as e:
            logger.error(f"Failed to clone {project.path_with_namespace}: {e}")
            return CloneOutcome.failed(
                project, e.kind or ErrorKind.UNKNOWN, e.args[0] if e.args else str(e),
                elapsed(),
            )
        except OSError as e:
            logger.error(f"Failed to clone {project.path_with_namespace}: {e}")
            return CloneOutcome.failed(project, ErrorKind.LOCAL_FS_ERROR, str(e), elapsed())

        logger.info(f"Cloned project {project.path_with_namespace} to {destination}")
        return CloneOutcome.succeeded(
            project, stats.received_bytes, stats.received_objects, elapsed()
        )
