"""
Utility functions.
"""

from typing import Iterable, List, TypeVar

T = TypeVar("T")


def short_address(address: str) -> str:
    """
    Converts ethereum address to short version (for display purposes only).

    Args:
        address: Ethereum address to shorten

    Returns:
        Short version of the address.

    Examples:
        ::

            print(short_address("0x6B175474E89094C44Da98b954EedeAC495271d0F"))
            # 0x6B17...1d0F

    """
    if len(address) <= 13:
        return address
    return f"{address[:6]}...{address[-4:]}"


def unique(items: Iterable[T]) -> List[T]:
    """
    Drop duplicates keeping the first occurrence of each item.

    Args:
        items: hashable items

    Returns:
        A list of unique items in the original order
    """
    return list(dict.fromkeys(items))
