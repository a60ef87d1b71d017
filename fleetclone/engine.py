"""
Main engine for fleetclone.

Wires the directory client, scheduler, clone task and reporter into a
single run driven by one FleetConfig.
"""

import logging
from typing import Callable, Iterator, Optional

import click
import requests

from fleetclone.cloning.git_handler import GitTransport
from fleetclone.cloning.task import CloneTask
from fleetclone.core.config import FleetConfig
from fleetclone.core.exceptions import EnumerationError
from fleetclone.directory.client import DirectoryClient
from fleetclone.directory.project import Project
from fleetclone.reporting.report import FleetReport
from fleetclone.reporting.reporter import FleetReporter
from fleetclone.scheduling.scheduler import Scheduler

logger = logging.getLogger(__name__)


class FleetCloneEngine:
    """
    High-level interface for mirroring a project fleet.

    Data flows one way: listing -> scheduler -> clone tasks -> reporter.
    """

    def __init__(
        self,
        config: FleetConfig,
        session: Optional[requests.Session] = None,
        transport: Optional[GitTransport] = None,
        echo: Callable[[str], None] = click.echo,
        color: bool = True,
    ):
        self.config = config
        self.config.validate()

        self.directory = DirectoryClient(self.config.directory, session=session)
        self.clone_task = CloneTask(self.config.clone, transport=transport)
        self.scheduler = Scheduler(self.config.scheduler)
        self.echo = echo
        self.color = color

    def list_projects(self) -> Iterator[Project]:
        """Lazily enumerate the fleet without cloning."""
        return self.directory.iter_projects()

    def run(self) -> FleetReport:
        """
        Clone every project in the fleet.

        Returns:
            The finished FleetReport.

        Raises:
            EnumerationError: If the listing fails. Clones already in
                flight finish and are reported first.
        """
        logger.info(
            f"Starting fleet clone: url={self.config.directory.base_url} "
            f"method={self.config.clone.clone_method} root={self.clone_task.root_dir} "
            f"workers={self.scheduler.worker_count}"
        )

        reporter = FleetReporter(echo=self.echo, color=self.color)
        outcomes = self.scheduler.run(self.directory.iter_projects(), self.clone_task)

        try:
            report = reporter.consume(outcomes)
        except EnumerationError:
            reporter.finish()
            raise

        logger.info(f"Peak concurrent clones: {self.scheduler.peak_in_flight}")
        return report
