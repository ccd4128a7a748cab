"""UniswapV3 protocol constants: fee tiers, deployment addresses and defaults.

All addresses are mainnet deployments in checksummed form.
"""

from enum import IntEnum


class FeeTier(IntEnum):
    """V3 fee tiers in Uniswap units (hundredths of a basis point).

    Fee = units / 1,000,000 (e.g., 3000 = 0.3%)
    """

    LOWEST = 100  # 0.01% - stable pairs
    LOW = 500  # 0.05% - stable pairs
    MEDIUM = 3000  # 0.30% - most pairs
    HIGH = 10000  # 1.00% - exotic pairs


# Tried in this order by the quote selector (cheapest first)
DEFAULT_FEE_TIERS: tuple[FeeTier, ...] = (FeeTier.LOW, FeeTier.MEDIUM, FeeTier.HIGH)

# uint24 upper bound for the fee field
MAX_FEE = 2**24 - 1

# Pool address derivation (CREATE2 over the factory)
FACTORY_ADDRESS = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
POOL_INIT_CODE_HASH = "0xe34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54"
CREATE2_PREFIX = b"\xff"

# Periphery contracts
SWAP_ROUTER_ADDRESS = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
QUOTER_ADDRESS = "0xb27308f9F90D607463bb33eA1BeBb41C27CE5AB6"
QUOTER_V2_ADDRESS = "0x61fFE014bA17989E743c5F6cB21bF9697530B21e"

# Well-known tokens
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"

# User-facing alias for native ether; swaps route it through WETH
NATIVE_TOKEN_ALIAS = "eth"

UINT256_MAX = 2**256 - 1

# Transaction defaults
DEFAULT_GAS_LIMIT = 500_000
DEFAULT_DEADLINE_SECONDS = 300

__all__ = [
    "FeeTier",
    "DEFAULT_FEE_TIERS",
    "MAX_FEE",
    "FACTORY_ADDRESS",
    "POOL_INIT_CODE_HASH",
    "CREATE2_PREFIX",
    "SWAP_ROUTER_ADDRESS",
    "QUOTER_ADDRESS",
    "QUOTER_V2_ADDRESS",
    "WETH",
    "DAI",
    "USDC",
    "USDT",
    "NATIVE_TOKEN_ALIAS",
    "UINT256_MAX",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_DEADLINE_SECONDS",
]
