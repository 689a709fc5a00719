"""
abicat is a read-through cache of smart contract metadata
(name, ABI, source code).

Contracts that are already cached are served from an sqlite3
database. The rest are fetched from Etherscan in the background by a
single rate-limited worker, and clients poll for the results.

+----------------------------------------------------+---------------------------------+
| Class                                              | Description                     |
+====================================================+=================================+
| :class:`abicat.contracts.service.ContractsService` | Cached contracts and fetch jobs |
+----------------------------------------------------+---------------------------------+
| :class:`abicat.jobs.FetchDispatcher`               | Rate-limited fetch worker       |
+----------------------------------------------------+---------------------------------+
| :class:`abicat.jobs.JobTable`                      | In-memory fetch jobs            |
+----------------------------------------------------+---------------------------------+
| :class:`abicat.jobs.Reaper`                        | Evicts old jobs                 |
+----------------------------------------------------+---------------------------------+
| :class:`abicat.etherscan.EtherscanClient`          | Etherscan metadata source       |
+----------------------------------------------------+---------------------------------+
| :class:`abicat.fn_selectors.FnSelectorsRepo`       | Function selectors lookup       |
+----------------------------------------------------+---------------------------------+

The best way to get started is :meth:`abicat.contracts.service.ContractsService.create`.
"""
