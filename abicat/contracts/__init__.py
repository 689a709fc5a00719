"""
Module for caching contract metadata (name, ABI, source code).

The main class of this module is
:class:`abicat.contracts.service.ContractsService`.

Example:
    ::

        from abicat.contracts.service import ContractsService

        service = ContractsService.create()
        service.start()
        res = service.submit_batch(
            "eth-mainnet", ["0x6B175474E89094C44Da98b954EedeAC495271d0F"]
        )
        # => {"contracts": [], "job_ids": ["eth-mainnet:0x6B175474E89094C44Da98b954EedeAC495271d0F"]}
        service.poll_jobs(res["job_ids"])
        # => {"eth-mainnet:0x6B17...": {"status": "pending", ...}}
"""

from abicat.contracts.contract import ContractRecord
from abicat.contracts.repo import ContractsRepo
