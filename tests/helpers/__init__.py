"""Test helpers module for shared test utilities.

- constants: Token, pool and wallet addresses
- fakes: Chain client stand-in that records the calls it receives
"""

from tests.helpers.constants import (
    DAI,
    KNOWN_POOLS,
    RECIPIENT,
    UNI,
    USDC,
    USDC_WETH_500_POOL,
    USDC_WETH_3000_POOL,
    USDT,
    WALLET,
    WETH,
    WETH_DAI_3000_POOL,
)
from tests.helpers.fakes import APPROVE_TX_HASH, SWAP_TX_HASH, FakeChainClient

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "UNI",
    "WETH_DAI_3000_POOL",
    "USDC_WETH_500_POOL",
    "USDC_WETH_3000_POOL",
    "KNOWN_POOLS",
    "WALLET",
    "RECIPIENT",
    # Fakes
    "FakeChainClient",
    "APPROVE_TX_HASH",
    "SWAP_TX_HASH",
]
