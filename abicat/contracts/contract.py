from __future__ import annotations
import json
from typing import Any, Dict, List, Tuple

Abi = List[Dict[str, Any]] | Dict[str, Any]


class ContractRecord:
    """
    Cached metadata of a contract on a single chain.

    Records are unique by ``(chain, address)``. Fetch results overwrite
    ``name``, ``abi``, ``src`` and ``updated_at`` while ``label`` is
    only changed explicitly.
    """

    #: Chain name, e.g. ``eth-mainnet``
    chain: str
    #: Contract address, as requested by the client
    address: str
    #: Contract name
    name: str | None
    #: Contract ABI
    abi: Abi | None
    #: Free-text label
    label: str | None
    #: Contract source code
    src: str | None
    #: UNIX timestamp of the last successful fetch
    updated_at: int | None

    def __init__(
        self,
        chain: str,
        address: str,
        name: str | None = None,
        abi: Abi | None = None,
        label: str | None = None,
        src: str | None = None,
        updated_at: int | None = None,
    ):
        self.chain = chain
        self.address = address
        self.name = name
        self.abi = abi
        self.label = label
        self.src = src
        self.updated_at = updated_at

    @property
    def has_src(self) -> bool:
        """
        ``True`` if the source code is known
        """
        return bool(self.src)

    def is_stale(self, now: float, window: float) -> bool:
        """
        Check if the record should be fetched again.

        A record is stale when its name or source code is missing and it
        wasn't updated within ``window``. Complete records are never stale.

        Args:
            now: current UNIX timestamp
            window: freshness window in seconds

        Returns:
            ``True`` if the record is stale
        """
        if self.name and self.src:
            return False
        return self.updated_at is None or self.updated_at < now - window

    @staticmethod
    def from_row(row: Tuple[str, str, str, str, str, str, int]) -> ContractRecord:
        """
        Deserialize from database row

        Args:
            row: database row
        """
        chain, address, name, abi, label, src, updated_at = row
        return ContractRecord(
            chain,
            address,
            name,
            None if abi is None else json.loads(abi),
            label,
            src,
            updated_at,
        )

    def to_row(self) -> Tuple[str, str, str, str, str, str, int]:
        """
        Serialize to database row

        Returns:
            database row
        """
        return (
            self.chain,
            self.address,
            self.name,
            None if self.abi is None else json.dumps(self.abi),
            self.label,
            self.src,
            self.updated_at,
        )

    def to_dict(self, redact_src: bool = False) -> Dict[str, Any]:
        """
        Convert :class:`ContractRecord` to dict

        Args:
            redact_src: replace ``src`` with a ``has_src`` flag
        """
        out = {
            "chain": self.chain,
            "address": self.address,
            "name": self.name,
            "abi": self.abi,
            "label": self.label,
            "updated_at": self.updated_at,
        }
        if redact_src:
            out["has_src"] = self.has_src
        else:
            out["src"] = self.src
        return out

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> ContractRecord:
        """
        Create :class:`ContractRecord` from dict
        """
        return ContractRecord(
            chain=d["chain"],
            address=d["address"],
            name=d.get("name"),
            abi=d.get("abi"),
            label=d.get("label"),
            src=d.get("src"),
            updated_at=d.get("updated_at"),
        )

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"ContractRecord({json.dumps(self.to_dict(redact_src=True))})"
