"""Background work handoff for imports and thumbnail generation."""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

_logger = logging.getLogger(__name__)


class JobRunner(Protocol):
    """Interface for dispatching fire-and-forget work."""

    def submit(self, name: str, job: Callable[[], object]) -> None:
        """Run ``job`` in the background; failures are logged, not raised."""

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for running jobs."""


@dataclass
class ThreadPoolJobRunner(JobRunner):
    """Job runner backed by a bounded thread pool."""

    executor: ThreadPoolExecutor

    @classmethod
    def create(cls, max_workers: int) -> "ThreadPoolJobRunner":
        """Create a runner with its own executor."""
        return cls(
            executor=ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="photo-library-job"
            )
        )

    def submit(self, name: str, job: Callable[[], object]) -> None:
        """Queue ``job`` and log its outcome when it finishes."""
        future = self.executor.submit(job)
        future.add_done_callback(lambda done: _log_outcome(name, done))
        _logger.debug("Queued job %s", name)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor."""
        self.executor.shutdown(wait=wait, cancel_futures=not wait)


def _log_outcome(name: str, future: Future) -> None:
    if future.cancelled():
        _logger.warning("Job %s was cancelled before it ran", name)
        return
    error = future.exception()
    if error is not None:
        _logger.error(
            "Job %s failed", name, exc_info=(type(error), error, error.__traceback__)
        )
        return
    _logger.debug("Job %s finished", name)
