from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict

from abicat.contracts.contract import ContractRecord


def job_id(chain: str, address: str) -> str:
    """
    Identifier of the fetch job for a contract.

    The identifier is a pure function of ``(chain, address)``, so clients
    can derive it without asking the server and two submissions of the
    same contract always land on the same job.

    Args:
        chain: chain name
        address: contract address

    Returns:
        ``"{chain}:{address}"``
    """
    return f"{chain}:{address}"


class JobStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Job:
    """
    A fetch attempt for one contract.

    Jobs are immutable, completing a job replaces it in
    :class:`abicat.jobs.JobTable` with a new value. A complete job
    without :attr:`contract` means the fetch failed.
    """

    #: Job identifier, see :func:`job_id`
    id: str
    #: Chain name
    chain: str
    #: Contract address
    address: str
    #: Creation timestamp (UNIX, seconds)
    created_at: float
    status: JobStatus = JobStatus.PENDING
    #: Resolved contract (complete jobs only)
    contract: ContractRecord | None = None

    @staticmethod
    def pending(chain: str, address: str, created_at: float) -> Job:
        """
        Create a new pending :class:`Job`
        """
        return Job(job_id(chain, address), chain, address, created_at)

    def completed(self, contract: ContractRecord | None) -> Job:
        """
        A complete copy of this job with the fetch result

        Args:
            contract: resolved contract or ``None`` if the fetch failed
        """
        return replace(self, status=JobStatus.COMPLETE, contract=contract)

    @property
    def is_complete(self) -> bool:
        return self.status is JobStatus.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`Job` to dict. Contract source code is redacted.
        """
        out = {
            "id": self.id,
            "status": self.status.value,
            "chain": self.chain,
            "address": self.address,
            "created_at": self.created_at,
        }
        if self.contract is not None:
            out["contract"] = self.contract.to_dict(redact_src=True)
        return out


@dataclass(frozen=True)
class FetchRequest:
    """
    Work item of :class:`abicat.jobs.FetchDispatcher`.
    """

    job_id: str
    chain: str
    chain_id: int
    address: str
