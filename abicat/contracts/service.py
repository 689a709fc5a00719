from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, Iterable, List

from abicat.chains import get_chain_id
from abicat.config import Settings
from abicat.contracts.contract import ContractRecord
from abicat.contracts.repo import ContractsRepo
from abicat.errors import DispatcherClosed, InvalidInput, PayloadTooLarge, UnknownChain
from abicat.etherscan.client import EtherscanClient, MetadataSource
from abicat.fn_selectors.fn_selector import FnSelector, normalize_selector
from abicat.fn_selectors.repo import FnSelectorsRepo
from abicat.jobs.dispatcher import FetchDispatcher
from abicat.jobs.job import FetchRequest, Job
from abicat.jobs.reaper import Reaper
from abicat.jobs.table import JobTable
from abicat.utils import short_address, unique

LOGGER = logging.getLogger(__name__)

#: Max number of addresses (or job ids) in a single request
MAX_BATCH_SIZE = 1000


def _require(value: str | None, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"`{field}` must not be empty")
    return value


def _require_batch(items: Iterable[str] | None, field: str) -> List[str]:
    if isinstance(items, str) or items is None:
        raise InvalidInput(f"`{field}` must be a list")
    items = unique(items)
    if len(items) == 0:
        raise InvalidInput(f"`{field}` must not be empty")
    if len(items) > MAX_BATCH_SIZE:
        raise PayloadTooLarge(field, len(items), MAX_BATCH_SIZE)
    for item in items:
        _require(item, field)
    return items


class ContractsService:
    """
    Read-through cache of contract metadata.

    Contracts already in the database are returned right away. Missing
    contracts, and incomplete ones that weren't updated for a while, are
    fetched in the background by :class:`abicat.jobs.FetchDispatcher`.
    Clients get job ids back and poll them with :meth:`poll_jobs`.

    **Request/Response flow**

    ::

                +------------------+               +---------------+ +----------+ +-----------------+
                | ContractsService |               | ContractsRepo | | JobTable | | FetchDispatcher |
                +------------------+               +---------------+ +----------+ +-----------------+
        --------------------  |                            |               |                |
        | Request contracts |-|                            |               |                |
        |-------------------| |                            |               |                |
                              | Find contracts             |               |                |
                              |--------------------------->|               |                |
                              |                            |               |                |
                              | Missing or stale: get job  |               |                |
                              |------------------------------------------->|                |
                              |                            |               |                |
                              | If no job: queue fetch     |               |                |
                              |------------------------------------------------------------>|
              --------------- |                            |               |                |
              | Contracts,  |-|                            |               |                |
              | job ids     | |                            |               |                |
              |-------------| |                            |               |                |

    Source code can be large, so it's only returned by
    :meth:`get_contract`. Other responses carry a ``has_src`` flag.

    Args:
        contracts_repo: :class:`ContractsRepo` instance
        fn_selectors_repo: :class:`FnSelectorsRepo` instance
        jobs: :class:`JobTable` shared with the dispatcher
        dispatcher: :class:`FetchDispatcher` instance
        reaper: :class:`Reaper` instance (optional)
        freshness_window: seconds before an incomplete record is refetched
        clock: source of UNIX timestamps
    """

    _contracts_repo: ContractsRepo
    _fn_selectors_repo: FnSelectorsRepo
    _jobs: JobTable
    _dispatcher: FetchDispatcher
    _reaper: Reaper | None

    def __init__(
        self,
        contracts_repo: ContractsRepo,
        fn_selectors_repo: FnSelectorsRepo,
        jobs: JobTable,
        dispatcher: FetchDispatcher,
        reaper: Reaper | None = None,
        freshness_window: float = 24 * 3600,
        clock: Callable[[], float] = time.time,
    ):
        self._contracts_repo = contracts_repo
        self._fn_selectors_repo = fn_selectors_repo
        self._jobs = jobs
        self._dispatcher = dispatcher
        self._reaper = reaper
        self._freshness_window = freshness_window
        self._clock = clock

    @staticmethod
    def create(
        settings: Settings | None = None, source: MetadataSource | None = None
    ) -> ContractsService:
        """
        Create an instance of :class:`ContractsService`

        Args:
            settings: service settings, read from the environment by default
            source: metadata source, Etherscan by default

        Returns:
            An instance of :class:`ContractsService`. Call :meth:`start` to
            start processing jobs.
        """
        settings = settings or Settings.from_env()
        contracts_repo = ContractsRepo(cache_path=settings.cache_path)
        fn_selectors_repo = FnSelectorsRepo(cache_path=settings.cache_path)
        source = source or EtherscanClient(
            settings.etherscan_api_key,
            api_url=settings.etherscan_api_url,
            timeout=settings.etherscan_timeout,
        )
        jobs = JobTable()
        dispatcher = FetchDispatcher(
            source,
            jobs,
            contracts_repo,
            fn_selectors_repo,
            rate_limit=settings.rate_limit,
        )
        reaper = Reaper(jobs, ttl=settings.job_ttl, interval=settings.reap_interval)
        return ContractsService(
            contracts_repo,
            fn_selectors_repo,
            jobs,
            dispatcher,
            reaper,
            freshness_window=settings.freshness_window,
        )

    @property
    def jobs(self) -> JobTable:
        return self._jobs

    @property
    def dispatcher(self) -> FetchDispatcher:
        return self._dispatcher

    def start(self):
        """
        Start the dispatcher and reaper threads
        """
        self._dispatcher.start()
        if self._reaper is not None:
            self._reaper.start()

    def stop(self, timeout: float | None = None):
        """
        Stop background threads. Queued fetches are still processed.

        Args:
            timeout: how long to wait for each thread, seconds
        """
        if self._reaper is not None:
            self._reaper.stop(timeout)
        self._dispatcher.stop(timeout)

    def submit_batch(self, chain: str, addresses: Iterable[str]) -> Dict[str, Any]:
        """
        Get known contracts and schedule fetches for the rest.

        A record is (re)fetched if it's missing or it's stale
        (see :meth:`ContractRecord.is_stale`). At most one job exists
        per contract, so a contract that is already being fetched
        reuses its job.

        Args:
            chain: chain name, e.g. ``eth-mainnet``
            addresses: contract addresses (at most 1000, duplicates are ignored)

        Returns:
            ``{"contracts": [...], "job_ids": [...]}``, contracts have
            source code redacted

        Raises:
            InvalidInput: empty chain or addresses
            PayloadTooLarge: too many addresses
            UnknownChain: chain is not supported
        """
        _require(chain, "chain")
        addresses = _require_batch(addresses, "addresses")
        chain_id = get_chain_id(chain)
        if chain_id is None:
            raise UnknownChain(chain)

        records = self._contracts_repo.find_many(chain, addresses)
        found = {r.address: r for r in records}
        now = self._clock()
        to_fetch = [
            a
            for a in addresses
            if a not in found or found[a].is_stale(now, self._freshness_window)
        ]

        def enqueue(job: Job):
            self._dispatcher.submit(FetchRequest(job.id, chain, chain_id, job.address))

        job_ids = []
        for address in to_fetch:
            try:
                job, created = self._jobs.admit(chain, address, enqueue)
            except DispatcherClosed:
                LOGGER.warning(
                    "Could not queue fetch of %s on %s", short_address(address), chain
                )
                continue
            if created:
                LOGGER.debug("Queued %s", job.id)
            job_ids.append(job.id)

        return {
            "contracts": [r.to_dict(redact_src=True) for r in records],
            "job_ids": job_ids,
        }

    def poll_jobs(self, job_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Get the state of jobs.

        Args:
            job_ids: job ids (at most 1000)

        Returns:
            A dict from job id to job. Unknown (or already reaped) jobs
            are left out.

        Raises:
            InvalidInput: empty job ids
            PayloadTooLarge: too many job ids
        """
        job_ids = _require_batch(job_ids, "job_ids")
        return {i: job.to_dict() for i, job in self._jobs.get_many(job_ids).items()}

    def get_contract(self, chain: str, address: str) -> ContractRecord | None:
        """
        Get a contract from the database, including the source code.

        This never schedules a fetch.

        Args:
            chain: chain name
            address: contract address

        Returns:
            An instance of :class:`ContractRecord` or ``None`` if not found
        """
        _require(chain, "chain")
        _require(address, "address")
        return self._contracts_repo.find(chain, address)

    def set_label(self, chain: str, address: str, label: str | None):
        """
        Set the free-text label of a contract.

        Args:
            chain: chain name
            address: contract address
            label: new label, ``None`` clears it

        Raises:
            InvalidInput: empty chain or address
            UnknownChain: chain is not supported
        """
        _require(chain, "chain")
        _require(address, "address")
        if get_chain_id(chain) is None:
            raise UnknownChain(chain)
        with self._contracts_repo.lock:
            self._contracts_repo.set_label(chain, address, label)
            self._contracts_repo.commit()

    def get_fn_selector(self, selector: str) -> List[FnSelector]:
        """
        Get functions matching a 4-byte selector.

        Args:
            selector: hex selector, e.g. ``0xa9059cbb``

        Returns:
            A list of :class:`FnSelector`
        """
        _require(selector, "selector")
        try:
            selector = normalize_selector(selector)
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc
        return self._fn_selectors_repo.find(selector)
