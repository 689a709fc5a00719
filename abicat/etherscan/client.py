from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Protocol

import requests

from abicat.config import DEFAULT_ETHERSCAN_API_URL
from abicat.contracts.contract import Abi
from abicat.errors import SourceError
from abicat.utils import short_address

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceContract:
    """
    Contract metadata resolved by a metadata source.
    """

    address: str
    name: str | None
    abi: Abi | None
    src: str | None


class MetadataSource(Protocol):
    """
    Anything that resolves contract metadata, one contract per call.

    Implementations don't space their calls, that's the job of
    :class:`abicat.jobs.FetchDispatcher`.
    """

    def fetch(self, chain_id: int, address: str) -> SourceContract:
        """
        Resolve metadata of ``address`` on chain ``chain_id``.

        Raises:
            SourceError: if the contract can't be resolved
        """


class EtherscanClient:
    """
    Metadata source backed by the Etherscan v2 multichain API
    (``module=contract&action=getsourcecode``).

    Every call to :meth:`fetch` is exactly one HTTP request. Etherscan
    enforces a per-second quota for the API key, so calls must be
    spaced by the caller.

    Args:
        api_key: Etherscan API key
        api_url: Etherscan v2 endpoint
        timeout: request timeout in seconds
        session: :class:`requests.Session` to use (a new one by default)
    """

    _api_key: str | None
    _api_url: str
    _timeout: float
    _session: requests.Session

    def __init__(
        self,
        api_key: str | None,
        api_url: str = DEFAULT_ETHERSCAN_API_URL,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = timeout
        self._session = session or requests.Session()

    def fetch(self, chain_id: int, address: str) -> SourceContract:
        """
        Fetch contract name, ABI and source code.

        Args:
            chain_id: numeric chain id
            address: contract address

        Returns:
            An instance of :class:`SourceContract`. Fields Etherscan doesn't
            know (e.g. for unverified contracts) are ``None``.

        Raises:
            SourceError: on network errors, non-2xx responses, malformed
                         payloads and errors reported by Etherscan
        """
        if not self._api_key:
            raise SourceError("Etherscan API key is not set")

        params = {
            "chainid": chain_id,
            "module": "contract",
            "action": "getsourcecode",
            "address": address,
            "apikey": self._api_key,
        }
        try:
            res = self._session.get(self._api_url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise SourceError(f"Etherscan request failed: {exc}") from exc

        if not res.ok:
            LOGGER.info("HTTP %s for %s: %s", res.status_code, address, res.text[:200])
            raise SourceError(f"HTTP {res.status_code}", status=res.status_code)

        try:
            body = res.json()
        except ValueError as exc:
            raise SourceError(f"Malformed Etherscan response: {exc}") from exc

        return _parse_response(address, body)


def _parse_response(address: str, body: Any) -> SourceContract:
    if not isinstance(body, dict) or "result" not in body:
        raise SourceError("Malformed Etherscan response: no `result`")

    result = body["result"]
    if isinstance(result, str):
        LOGGER.info("Etherscan error for %s: %s", short_address(address), result)
        raise SourceError(result)
    if not isinstance(result, list):
        raise SourceError("Malformed Etherscan response: unexpected `result`")

    first: Dict[str, Any] = result[0] if result and isinstance(result[0], dict) else {}
    return SourceContract(
        address=address,
        name=first.get("ContractName") or None,
        abi=_parse_abi(first.get("ABI")),
        src=first.get("SourceCode") or None,
    )


def _parse_abi(raw: Any) -> Abi | None:
    # unverified contracts come back as "Contract source code not verified"
    if not isinstance(raw, str) or not raw:
        return None
    try:
        abi = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(abi, (list, dict)):
        return None
    return abi
