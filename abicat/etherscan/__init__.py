"""
Etherscan metadata source.
"""

from abicat.etherscan.client import EtherscanClient, MetadataSource, SourceContract
