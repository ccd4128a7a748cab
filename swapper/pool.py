"""Deterministic UniswapV3 pool address derivation.

Pools are deployed by the factory with CREATE2, so their address is a pure
function of the factory, the pool init code hash and the salt
keccak256(abi.encode(token0, token1, fee)). No RPC access is needed to
locate a pool.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_abi import encode
from web3 import Web3

from swapper.constants import CREATE2_PREFIX, FACTORY_ADDRESS, MAX_FEE, POOL_INIT_CODE_HASH
from swapper.errors import ValidationError
from swapper.types import sort_tokens, to_checksum_address


def _validate_fee(fee: int) -> int:
    if isinstance(fee, bool) or not isinstance(fee, int):
        raise ValidationError(f"Fee tier must be an integer, got {type(fee).__name__}")
    if not 0 <= fee <= MAX_FEE:
        raise ValidationError(f"Fee tier out of uint24 range: {fee}")
    return int(fee)


@dataclass(frozen=True)
class PoolKey:
    """Ordered token pair plus fee tier; identifies exactly one pool.

    token0 is always the lexicographically smaller address (compared in
    lowercase), so (A, B) and (B, A) produce equal keys.
    """

    token0: str
    token1: str
    fee: int

    @classmethod
    def from_tokens(cls, token_a: str, token_b: str, fee: int) -> PoolKey:
        """Build a key from an unordered pair.

        Raises:
            InvalidAddress: If either token is not a well-formed address
            ValidationError: If the fee does not fit in uint24
        """
        token0, token1 = sort_tokens(token_a, token_b)
        return cls(token0=token0, token1=token1, fee=_validate_fee(fee))

    @property
    def salt(self) -> bytes:
        """keccak256(abi.encode(token0, token1, fee)), as the factory computes it."""
        encoded = encode(
            ["address", "address", "uint24"],
            [self.token0, self.token1, self.fee],
        )
        return bytes(Web3.keccak(encoded))


class PoolLocator:
    """Computes pool addresses for one factory deployment.

    The defaults are the mainnet factory and init code hash; other chains
    that reuse the same pool bytecode only need a different factory.
    """

    def __init__(
        self,
        factory: str = FACTORY_ADDRESS,
        init_code_hash: str = POOL_INIT_CODE_HASH,
    ) -> None:
        self.factory = to_checksum_address(factory)
        self._factory_bytes = bytes.fromhex(self.factory[2:])
        self._init_code_hash = bytes.fromhex(init_code_hash.removeprefix("0x"))
        if len(self._init_code_hash) != 32:
            raise ValidationError(f"Init code hash must be 32 bytes: {init_code_hash}")

    def address_for(self, key: PoolKey) -> str:
        """Return the checksummed CREATE2 address for a pool key."""
        digest = Web3.keccak(
            CREATE2_PREFIX + self._factory_bytes + key.salt + self._init_code_hash
        )
        # Address is the low 20 bytes of the hash
        return to_checksum_address("0x" + bytes(digest[12:]).hex())

    def locate(self, token_a: str, token_b: str, fee: int) -> str:
        """Return the pool address for an unordered token pair and fee tier."""
        return self.address_for(PoolKey.from_tokens(token_a, token_b, fee))


MAINNET_POOL_LOCATOR = PoolLocator()


def compute_pool_address(
    token_a: str,
    token_b: str,
    fee: int,
    *,
    factory: str = FACTORY_ADDRESS,
    init_code_hash: str = POOL_INIT_CODE_HASH,
) -> str:
    """Compute the UniswapV3 pool address for a token pair and fee tier.

    Args:
        token_a: Either token of the pair (any case)
        token_b: The other token of the pair (any case)
        fee: Pool fee tier (e.g., 3000)
        factory: Factory that deploys the pool
        init_code_hash: keccak256 of the pool creation code

    Returns:
        Checksummed pool address

    Raises:
        InvalidAddress: If either token is not a well-formed address
    """
    if factory == FACTORY_ADDRESS and init_code_hash == POOL_INIT_CODE_HASH:
        return MAINNET_POOL_LOCATOR.locate(token_a, token_b, fee)
    return PoolLocator(factory, init_code_hash).locate(token_a, token_b, fee)


__all__ = ["PoolKey", "PoolLocator", "MAINNET_POOL_LOCATOR", "compute_pool_address"]
