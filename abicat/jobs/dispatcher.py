from __future__ import annotations
import logging
import math
import sqlite3
import time
from queue import Queue
from threading import Lock, Thread
from typing import Callable

from abicat.contracts.contract import ContractRecord
from abicat.contracts.repo import ContractsRepo
from abicat.errors import DispatcherClosed, SourceError
from abicat.etherscan.client import MetadataSource
from abicat.fn_selectors.fn_selector import FnSelector
from abicat.fn_selectors.repo import FnSelectorsRepo
from abicat.jobs.job import FetchRequest, Job
from abicat.jobs.table import JobTable

LOGGER = logging.getLogger(__name__)

_STOP = object()


def call_gap(rate_limit: int) -> float:
    """
    Minimum delay between two calls to the metadata source.

    Args:
        rate_limit: allowed calls per second

    Returns:
        ``ceil(1000 / rate_limit) + 1`` milliseconds, in seconds
    """
    return (math.ceil(1000 / rate_limit) + 1) / 1000


class FetchDispatcher:
    """
    The single worker that fetches contract metadata.

    Every outbound call to the metadata source goes through this
    dispatcher, so the source quota holds for the whole process no
    matter how many clients are waiting.

    **Request/Response flow**

    ::

                +-----------------+         +----------------+ +---------------+ +----------+
                | FetchDispatcher |         | MetadataSource | | ContractsRepo | | JobTable |
                +-----------------+         +----------------+ +---------------+ +----------+
        -------------------  |                       |                 |               |
        | Next FetchRequest |-|                       |                 |               |
        |-------------------| |                       |                 |               |
                             | Fetch metadata        |                 |               |
                             |---------------------->|                 |               |
                             |                       |                 |               |
                             | If success: upsert    |                 |               |
                             |---------------------------------------->|               |
                             |                       |                 |               |
                             | Complete job          |                 |               |
                             |-------------------------------------------------------->|
                             |                       |                 |               |
                             | Sleep for the call gap|                 |               |
                             |-|                     |                 |               |
                             | |                     |                 |               |
                             |<|                     |                 |               |

    Requests are processed one at a time in FIFO order. After each
    request the worker sleeps for :func:`call_gap` regardless of the
    outcome. A failed fetch completes the job without a contract and is
    not retried. Storage errors are logged and don't fail the job.
    A fetch in flight is never cancelled, :meth:`stop` waits for it.

    Args:
        source: metadata source
        jobs: table of jobs to complete
        contracts_repo: repo to store fetched contracts
        fn_selectors_repo: repo to index functions of fetched ABIs (optional)
        rate_limit: metadata source calls per second
        clock: source of UNIX timestamps
        sleep: sleep function
    """

    _queue: Queue

    def __init__(
        self,
        source: MetadataSource,
        jobs: JobTable,
        contracts_repo: ContractsRepo,
        fn_selectors_repo: FnSelectorsRepo | None = None,
        rate_limit: int = 3,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._source = source
        self._jobs = jobs
        self._contracts_repo = contracts_repo
        self._fn_selectors_repo = fn_selectors_repo
        self._gap = call_gap(rate_limit)
        self._clock = clock
        self._sleep = sleep
        self._queue = Queue()
        self._submit_lock = Lock()
        self._closed = False
        self._thread: Thread | None = None

    @property
    def gap(self) -> float:
        """
        Delay between two fetches, seconds
        """
        return self._gap

    @property
    def queue_size(self) -> int:
        """
        Approximate number of queued requests
        """
        return self._queue.qsize()

    def submit(self, request: FetchRequest):
        """
        Queue a request. Never blocks.

        Raises:
            DispatcherClosed: if the dispatcher is stopped
        """
        with self._submit_lock:
            if self._closed:
                raise DispatcherClosed("Fetch dispatcher is stopped")
            self._queue.put(request)

    def start(self):
        """
        Start the worker thread
        """
        if self._thread is not None:
            return
        self._thread = Thread(target=self.run, name="fetch-dispatcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None):
        """
        Stop accepting requests and stop the worker once the
        requests queued so far are processed.

        Args:
            timeout: how long to wait for the worker, seconds
        """
        with self._submit_lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)

    def wait_idle(self):
        """
        Block until every queued request is processed
        """
        self._queue.join()

    def run(self):
        """
        Worker loop, runs until :meth:`stop` is called
        """
        while True:
            request = self._queue.get()
            try:
                if request is _STOP:
                    return
                try:
                    self.process(request)
                except Exception:
                    LOGGER.exception("Failed to process %s", request.job_id)
                self._sleep(self._gap)
            finally:
                self._queue.task_done()

    def process(self, request: FetchRequest) -> Job | None:
        """
        Fetch one contract, store it and complete its job.

        The job is completed whatever happens after it was dequeued.
        Selector indexing is best-effort and never affects the job.

        Args:
            request: the request to process

        Returns:
            The completed job or ``None`` if it was reaped in the meantime
        """
        contract = None
        try:
            fetched = self._source.fetch(request.chain_id, request.address)
            contract = ContractRecord(
                chain=request.chain,
                address=request.address,
                name=fetched.name,
                abi=fetched.abi,
                src=fetched.src,
                updated_at=int(self._clock()),
            )
            contract = self._store(contract)
        except SourceError as exc:
            LOGGER.info("Fetch failed for %s: %s", request.job_id, exc)
        except Exception:
            LOGGER.exception("Unexpected error processing %s", request.job_id)

        return self._jobs.complete(request.job_id, contract)

    def _store(self, contract: ContractRecord) -> ContractRecord:
        # the connection is shared with request threads, a rollback must
        # not interleave with their uncommitted writes
        repo = self._contracts_repo
        with repo.lock:
            try:
                repo.save([contract])
                repo.commit()
                stored = repo.find(contract.chain, contract.address)
            except sqlite3.Error:
                LOGGER.exception(
                    "Failed to store contract %s:%s", contract.chain, contract.address
                )
                repo.rollback()
                return contract

        if self._fn_selectors_repo is not None:
            self._index_selectors(contract)

        return stored or contract

    def _index_selectors(self, contract: ContractRecord):
        repo = self._fn_selectors_repo
        with repo.lock:
            try:
                repo.save(FnSelector.from_abi(contract.abi))
                repo.commit()
            except Exception:
                LOGGER.exception("Failed to index selectors of %s", contract.address)
                repo.rollback()
