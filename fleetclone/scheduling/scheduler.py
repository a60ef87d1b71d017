"""
Bounded-concurrency scheduler for clone tasks.

A dispatcher thread pulls projects from the (possibly still paginating)
listing only when a worker slot is free, hands them to a thread pool,
and funnels every outcome into a single queue that the caller drains
in completion order.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from fleetclone.cloning.outcome import CloneOutcome, ErrorKind
from fleetclone.core.config import SchedulerConfig
from fleetclone.core.exceptions import ConfigurationError, EnumerationError
from fleetclone.directory.project import Project

logger = logging.getLogger(__name__)

CloneFunction = Callable[[Project], CloneOutcome]


@dataclass
class _DispatchFinished:
    """Queued once the dispatcher has stopped pulling projects."""

    dispatched: int
    error: Optional[BaseException] = None


class Scheduler:
    """
    Runs clone tasks with at most worker_count in flight.

    A slot is taken before a project is pulled from the listing and
    given back when the caller receives that project's outcome, so
    neither pending projects nor unread outcomes pile up in memory.
    """

    def __init__(self, config: SchedulerConfig):
        if config.worker_count < 1:
            raise ConfigurationError(
                f"Worker count must be at least 1, got {config.worker_count}",
                details={"worker_count": config.worker_count},
            )
        self.config = config
        self.worker_count = config.worker_count
        self.dispatched = 0
        self.peak_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def _work(self, project: Project, clone_fn: CloneFunction, results: queue.Queue) -> None:
        with self._lock:
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)

        try:
            outcome = clone_fn(project)
        except Exception as e:
            logger.exception(f"Unexpected error cloning {project.path_with_namespace}")
            outcome = CloneOutcome.failed(project, ErrorKind.UNKNOWN, str(e))

        with self._lock:
            self._in_flight -= 1
        results.put(outcome)

    def _dispatch(
        self,
        projects: Iterable[Project],
        clone_fn: CloneFunction,
        slots: threading.Semaphore,
        cancelled: threading.Event,
        results: queue.Queue,
    ) -> None:
        dispatched = 0
        error = None
        try:
            with ThreadPoolExecutor(
                max_workers=self.worker_count, thread_name_prefix="fleetclone-worker"
            ) as executor:
                iterator = iter(projects)
                while True:
                    slots.acquire()
                    if cancelled.is_set():
                        break
                    try:
                        project = next(iterator)
                    except StopIteration:
                        slots.release()
                        break
                    except Exception as e:
                        slots.release()
                        logger.error(f"Project listing failed after {dispatched} projects: {e}")
                        error = e
                        break

                    dispatched += 1
                    self.dispatched = dispatched
                    logger.debug(f"Dispatching project {project.path_with_namespace}")
                    executor.submit(self._work, project, clone_fn, results)
        finally:
            results.put(_DispatchFinished(dispatched=dispatched, error=error))

    def run(self, projects: Iterable[Project], clone_fn: CloneFunction) -> Iterator[CloneOutcome]:
        """
        Clone every project and yield outcomes as they complete.

        Args:
            projects: Lazy project stream; pulled one at a time.
            clone_fn: Called once per project from a worker thread.

        Yields:
            Exactly one CloneOutcome per dispatched project, in
            completion order.

        Raises:
            EnumerationError: After in-flight clones have drained, if the
                project stream failed.
        """
        self.dispatched = 0
        self.peak_in_flight = 0
        self._in_flight = 0

        results: queue.Queue = queue.Queue()
        slots = threading.Semaphore(self.worker_count)
        cancelled = threading.Event()

        dispatcher = threading.Thread(
            target=self._dispatch,
            args=(projects, clone_fn, slots, cancelled, results),
            name="fleetclone-dispatcher",
            daemon=True,
        )
        dispatcher.start()

        received = 0
        expected = None
        error = None
        try:
            while expected is None or received < expected:
                item = results.get()
                if isinstance(item, _DispatchFinished):
                    expected = item.dispatched
                    error = item.error
                    continue
                received += 1
                slots.release()
                yield item
        finally:
            if expected is None or received < expected:
                # Consumer stopped early: wake the dispatcher so it exits
                cancelled.set()
                for _ in range(self.worker_count):
                    slots.release()

        dispatcher.join()
        logger.info(f"Scheduler finished: {received} outcomes for {expected} projects")

        if error is not None:
            if isinstance(error, EnumerationError):
                raise error
            raise EnumerationError(
                f"Project listing failed: {error}",
                details={"dispatched": expected},
            ) from error
