"""UniswapV3 swapper - quote and execute single-hop swaps."""

from swapper.pool import compute_pool_address
from swapper.selector import Quote, select_best_quote

__version__ = "0.1.0"
__all__ = ["compute_pool_address", "select_best_quote", "Quote", "__version__"]
