"""Contract ABIs and SwapRouter calldata encoding."""

from __future__ import annotations

from eth_abi import encode

from swapper.constants import SWAP_ROUTER_ADDRESS
from swapper.types import normalize_address

# Function selector for SwapRouter
# exactInputSingle((address,address,uint24,address,uint256,uint256,uint256,uint160))
EXACT_INPUT_SINGLE_SELECTOR = bytes.fromhex("414bf389")

EXACT_INPUT_SINGLE_PARAMS = "(address,address,uint24,address,uint256,uint256,uint256,uint160)"

# SwapRouter ABI - minimal, just the functions we need
SWAP_ROUTER_ABI = [
    {
        "name": "exactInputSingle",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "deadline", "type": "uint256"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
            }
        ],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
]

# Quoter (V1) ABI - flat arguments, single return value
QUOTER_ABI = [
    {
        "name": "quoteExactInputSingle",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "tokenIn", "type": "address"},
            {"name": "tokenOut", "type": "address"},
            {"name": "fee", "type": "uint24"},
            {"name": "amountIn", "type": "uint256"},
            {"name": "sqrtPriceLimitX96", "type": "uint160"},
        ],
        "outputs": [{"name": "amountOut", "type": "uint256"}],
    },
]

# QuoterV2 ABI - struct argument
QUOTER_V2_ABI = [
    {
        "name": "quoteExactInputSingle",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "params",
                "type": "tuple",
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
            }
        ],
        "outputs": [
            {"name": "amountOut", "type": "uint256"},
            {"name": "sqrtPriceX96After", "type": "uint160"},
            {"name": "initializedTicksCrossed", "type": "uint32"},
            {"name": "gasEstimate", "type": "uint256"},
        ],
    },
]

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


def encode_exact_input_single(
    token_in: str,
    token_out: str,
    fee: int,
    recipient: str,
    deadline: int,
    amount_in: int,
    amount_out_minimum: int,
    sqrt_price_limit_x96: int = 0,
    router: str = SWAP_ROUTER_ADDRESS,
) -> tuple[str, str]:
    """Encode SwapRouter.exactInputSingle call.

    Args:
        token_in: Input token address
        token_out: Output token address
        fee: Pool fee tier (e.g., 3000 for 0.3%)
        recipient: Address to receive output tokens
        deadline: Unix timestamp after which the swap reverts
        amount_in: Amount of input tokens
        amount_out_minimum: Minimum output amount (slippage protection)
        sqrt_price_limit_x96: Price limit (0 = no limit)
        router: SwapRouter address the calldata is meant for

    Returns:
        Tuple of (router_address, calldata_hex)
    """
    # Convert to bytes for encoding
    token_in_bytes = bytes.fromhex(normalize_address(token_in)[2:])
    token_out_bytes = bytes.fromhex(normalize_address(token_out)[2:])
    recipient_bytes = bytes.fromhex(normalize_address(recipient)[2:])

    encoded_params = encode(
        [EXACT_INPUT_SINGLE_PARAMS],
        [
            (
                token_in_bytes,
                token_out_bytes,
                int(fee),
                recipient_bytes,
                deadline,
                amount_in,
                amount_out_minimum,
                sqrt_price_limit_x96,
            )
        ],
    )

    calldata = EXACT_INPUT_SINGLE_SELECTOR + encoded_params
    return router, "0x" + calldata.hex()


__all__ = [
    "EXACT_INPUT_SINGLE_SELECTOR",
    "EXACT_INPUT_SINGLE_PARAMS",
    "SWAP_ROUTER_ABI",
    "QUOTER_ABI",
    "QUOTER_V2_ABI",
    "ERC20_ABI",
    "encode_exact_input_single",
]
