import logging
import time
from threading import Event, Thread
from typing import Callable

from abicat.jobs.table import JobTable

LOGGER = logging.getLogger(__name__)


class Reaper:
    """
    Periodically evicts old jobs from a :class:`JobTable`.

    Every ``interval`` seconds all jobs older than ``ttl`` are removed,
    pending or not. A pending job that is reaped still gets its contract
    stored by the dispatcher, it just can't be polled anymore. A new
    request for the same contract creates a fresh job.

    Args:
        jobs: the table to sweep
        ttl: job lifetime, seconds
        interval: sweep period, seconds
        clock: source of UNIX timestamps
    """

    def __init__(
        self,
        jobs: JobTable,
        ttl: float = 300,
        interval: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._jobs = jobs
        self._ttl = ttl
        self._interval = interval
        self._clock = clock
        self._stopped = Event()
        self._thread: Thread | None = None

    def sweep(self, now: float | None = None) -> int:
        """
        Remove jobs created more than ``ttl`` seconds before ``now``.

        Args:
            now: UNIX timestamp, current time by default

        Returns:
            Number of removed jobs
        """
        if now is None:
            now = self._clock()
        removed = self._jobs.reap(now - self._ttl)
        if removed > 0:
            LOGGER.debug("Reaped %d jobs, %d left", removed, len(self._jobs))
        return removed

    def start(self):
        """
        Start sweeping in a background thread
        """
        if self._thread is not None:
            return
        self._thread = Thread(target=self.run, name="job-reaper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None):
        """
        Stop the background thread
        """
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self):
        """
        Sweep loop, runs until :meth:`stop` is called
        """
        while not self._stopped.wait(self._interval):
            try:
                self.sweep()
            except Exception:
                LOGGER.exception("Job sweep failed")
