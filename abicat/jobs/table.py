import logging
import time
from threading import Lock
from typing import Callable, Dict, Iterable, Tuple

from abicat.contracts.contract import ContractRecord
from abicat.jobs.job import Job, job_id

LOGGER = logging.getLogger(__name__)


class JobTable:
    """
    In-memory table of fetch jobs, keyed by :func:`abicat.jobs.job_id`.

    This is the only mutable state shared between request handlers,
    the dispatcher and the reaper. All access goes through a single
    lock, and jobs are immutable values, so readers always see either
    the pending or the complete version of a job.

    Invariant: there's at most one job per ``(chain, address)``.

    Job state lives as long as the process, restarting it drops
    in-flight jobs (fetched contracts are in the database).

    Args:
        clock: source of UNIX timestamps for new jobs
    """

    _jobs: Dict[str, Job]

    def __init__(self, clock: Callable[[], float] = time.time):
        self._jobs = {}
        self._lock = Lock()
        self._clock = clock

    def get(self, id: str) -> Job | None:
        """
        Get a job by id, ``None`` if there's no such job
        """
        with self._lock:
            return self._jobs.get(id)

    def get_many(self, ids: Iterable[str]) -> Dict[str, Job]:
        """
        Get jobs by ids. Unknown ids are skipped.

        Args:
            ids: job ids

        Returns:
            A dict from job id to :class:`Job`
        """
        with self._lock:
            return {i: self._jobs[i] for i in ids if i in self._jobs}

    def admit(
        self, chain: str, address: str, enqueue: Callable[[Job], None]
    ) -> Tuple[Job, bool]:
        """
        Get the live job for a contract or create a new pending one.

        A new job is inserted only after ``enqueue`` returns. If it
        raises, the error propagates and the table is left unchanged,
        so there are never pending jobs nobody is going to complete.

        Args:
            chain: chain name
            address: contract address
            enqueue: callback scheduling the fetch for a new job

        Returns:
            A tuple of the job and a flag telling if it was created
        """
        id = job_id(chain, address)
        with self._lock:
            existing = self._jobs.get(id)
            if existing is not None:
                return existing, False
            job = Job.pending(chain, address, self._clock())
            enqueue(job)
            self._jobs[id] = job
            return job, True

    def complete(self, id: str, contract: ContractRecord | None) -> Job | None:
        """
        Mark a job complete.

        Args:
            id: job id
            contract: resolved contract, ``None`` if the fetch failed

        Returns:
            Completed job or ``None`` if the job was already reaped
        """
        with self._lock:
            job = self._jobs.get(id)
            if job is None:
                LOGGER.debug("Job %s was reaped before completion", id)
                return None
            job = job.completed(contract)
            self._jobs[id] = job
            return job

    def reap(self, older_than: float) -> int:
        """
        Remove all jobs created before ``older_than``, whatever their status.

        Args:
            older_than: UNIX timestamp

        Returns:
            Number of removed jobs
        """
        with self._lock:
            expired = [i for i, j in self._jobs.items() if j.created_at < older_than]
            for i in expired:
                del self._jobs[i]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def __contains__(self, id: str) -> bool:
        with self._lock:
            return id in self._jobs
