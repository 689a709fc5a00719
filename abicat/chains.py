"""
Chain names supported by the metadata source and their numeric chain ids.
"""

from typing import Dict

CHAIN_IDS: Dict[str, int] = {
    "eth-mainnet": 1,
    "eth-sepolia": 11155111,
    "arb-mainnet": 42161,
    "arb-sepolia": 421614,
    "base-mainnet": 8453,
    "base-sepolia": 84532,
    "foundry-test": 0,
    "hyperliquid-mainnet": 999,
    "monad-mainnet": 10143,
    "monad-testnet": 101431,
    "unichain-mainnet": 130,
    "unichain-sepolia": 1301,
    "polygon-mainnet": 137,
    "polygon-amoy": 80002,
    "zksync-mainnet": 324,
    "zksync-sepolia": 300,
}


def get_chain_id(chain: str) -> int | None:
    """
    Numeric chain id for a chain name.

    Args:
        chain: chain name, e.g. ``eth-mainnet``

    Returns:
        Chain id or ``None`` if the chain is not supported

    Note:
        ``foundry-test`` maps to ``0``, so compare the result with ``None``
        rather than relying on truthiness.
    """
    return CHAIN_IDS.get(chain)
