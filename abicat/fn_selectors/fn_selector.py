from __future__ import annotations
import json
from typing import Any, Dict, List, Tuple
from eth_utils import encode_hex, function_abi_to_4byte_selector
from hexbytes import HexBytes

SELECTOR_SIZE = 4


def normalize_selector(selector: str) -> str:
    """
    Normalize a function selector to the ``0x`` prefixed lowercase format.

    Args:
        selector: hex selector with or without the ``0x`` prefix

    Returns:
        Normalized selector, e.g. ``0xa9059cbb``

    Raises:
        ValueError: if ``selector`` is not a 4-byte hex string
    """
    data = HexBytes(selector.strip())
    if len(data) != SELECTOR_SIZE:
        raise ValueError(f"Selector must be {SELECTOR_SIZE} bytes, got `{selector}`")
    return encode_hex(data)


class FnSelector:
    """
    A function signature known for a 4-byte selector.

    Several functions may share a selector, so
    ``(selector, name, inputs)`` is the identity of a record.
    """

    #: 4-byte selector, ``0x`` prefixed and lowercase
    selector: str
    #: Function name
    name: str
    #: ABI inputs of the function
    inputs: List[Dict[str, Any]] | None
    #: ABI outputs of the function
    outputs: List[Dict[str, Any]] | None

    def __init__(
        self,
        selector: str,
        name: str,
        inputs: List[Dict[str, Any]] | None = None,
        outputs: List[Dict[str, Any]] | None = None,
    ):
        self.selector = selector
        self.name = name
        self.inputs = inputs
        self.outputs = outputs

    @staticmethod
    def from_abi(abi: Any) -> List[FnSelector]:
        """
        Extract selectors of all functions in a contract ABI.

        Entries that aren't functions or can't be encoded are skipped.

        Args:
            abi: contract ABI (a list of ABI entries)

        Returns:
            A list of :class:`FnSelector`, one per function
        """
        if not isinstance(abi, list):
            return []
        out = []
        for entry in abi:
            if not isinstance(entry, dict) or entry.get("type") != "function":
                continue
            if not entry.get("name"):
                continue
            try:
                selector = encode_hex(function_abi_to_4byte_selector(entry))
            except (AttributeError, KeyError, TypeError, ValueError):
                continue
            out.append(
                FnSelector(
                    selector,
                    entry["name"],
                    entry.get("inputs", []),
                    entry.get("outputs", []),
                )
            )
        return out

    @staticmethod
    def from_row(row: Tuple[str, str, str, str]) -> FnSelector:
        """
        Deserialize from database row

        Args:
            row: database row
        """
        selector, name, inputs, outputs = row
        return FnSelector(
            selector,
            name,
            None if inputs is None else json.loads(inputs),
            None if outputs is None else json.loads(outputs),
        )

    def to_row(self) -> Tuple[str, str, str, str]:
        """
        Serialize to database row

        Returns:
            database row
        """
        return (
            self.selector,
            self.name,
            None if self.inputs is None else json.dumps(self.inputs),
            None if self.outputs is None else json.dumps(self.outputs),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`FnSelector` to dict
        """
        return {
            "selector": self.selector,
            "name": self.name,
            "inputs": self.inputs,
            "outputs": self.outputs,
        }

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"FnSelector({json.dumps(self.to_dict())})"
