"""Quoter clients: read-only simulation of exact-input single-hop swaps."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import structlog

from swapper.constants import QUOTER_ADDRESS, QUOTER_V2_ADDRESS
from swapper.encoding import QUOTER_ABI, QUOTER_V2_ABI
from swapper.types import normalize_address, to_checksum_address

if TYPE_CHECKING:
    from web3 import Web3

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuoteResult:
    """Outcome of simulating one exact-input swap against one fee tier.

    The quoter reports failures as values so callers can move on to the
    next tier without exception handling.

    Attributes:
        fee: Fee tier that was simulated.
        amount_out: Simulated output amount, or None if the simulation failed.
        error: Failure reason (missing pool, insufficient liquidity, revert).
    """

    fee: int
    amount_out: int | None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        """True if the simulation produced an output amount."""
        return self.error is None and self.amount_out is not None

    @property
    def is_error(self) -> bool:
        """True if the simulation failed."""
        return not self.is_valid

    @classmethod
    def ok(cls, fee: int, amount_out: int) -> QuoteResult:
        return cls(fee=fee, amount_out=amount_out)

    @classmethod
    def failed(cls, fee: int, error: str) -> QuoteResult:
        return cls(fee=fee, amount_out=None, error=error)


class Quoter(Protocol):
    """Protocol for quoter implementations.

    Implemented by the RPC-backed Web3Quoter and the in-memory MockQuoter.
    """

    def quote_exact_input(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoteResult:
        """Simulate an exact-input single-hop swap.

        Args:
            token_in: Input token address
            token_out: Output token address
            fee: Pool fee tier (e.g., 3000)
            amount_in: Input amount in base units

        Returns:
            QuoteResult holding either the output amount or the failure reason
        """
        ...


class QuoterVersion(str, Enum):
    """Quoter contract generation.

    V1 takes flat arguments and returns the output amount; V2 takes a struct
    and additionally returns price/tick/gas information.
    """

    V1 = "v1"
    V2 = "v2"

    @property
    def default_address(self) -> str:
        return QUOTER_ADDRESS if self is QuoterVersion.V1 else QUOTER_V2_ADDRESS


@dataclass
class QuoteKey:
    """Key for looking up quotes in MockQuoter."""

    token_in: str
    token_out: str
    fee: int
    amount: int

    def __hash__(self) -> int:
        return hash(
            (
                normalize_address(self.token_in),
                normalize_address(self.token_out),
                int(self.fee),
                self.amount,
            )
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuoteKey):
            return False
        return (
            normalize_address(self.token_in) == normalize_address(other.token_in)
            and normalize_address(self.token_out) == normalize_address(other.token_out)
            and self.fee == other.fee
            and self.amount == other.amount
        )


class MockQuoter:
    """In-memory quoter answering from a fixed table.

    Every call is recorded so tests can assert which tiers were tried.
    Any quote that is not configured fails as if the pool did not exist.
    """

    def __init__(
        self,
        quotes: dict[QuoteKey, int] | None = None,
        default_rate: tuple[int, int] | None = None,
        failing_fees: set[int] | None = None,
    ):
        """Build the quote table.

        Args:
            quotes: Mapping of QuoteKey -> amount_out for specific quotes
            default_rate: If set, (numerator, denominator) ratio for any
                unconfigured quote: amount_out = amount_in * num // denom
            failing_fees: Fee tiers that always fail, even with a default rate
        """
        self.quotes = quotes or {}
        self.default_rate = default_rate
        self.failing_fees = failing_fees or set()
        self.calls: list[tuple[str, str, int, int]] = []  # (in, out, fee, amount)

    def quote_exact_input(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoteResult:
        """Answer from the table, then the default rate, else fail."""
        self.calls.append((token_in, token_out, int(fee), amount_in))

        if fee in self.failing_fees:
            return QuoteResult.failed(fee, "execution reverted")

        key = QuoteKey(token_in, token_out, fee, amount_in)
        if key in self.quotes:
            return QuoteResult.ok(fee, self.quotes[key])

        if self.default_rate is not None:
            num, denom = self.default_rate
            # floor, never over-quotes
            return QuoteResult.ok(fee, amount_in * num // denom)

        return QuoteResult.failed(fee, "no pool configured")

    @property
    def fees_tried(self) -> list[int]:
        """Fee tiers in the order they were quoted."""
        return [fee for _, _, fee, _ in self.calls]


class Web3Quoter:
    """Real quoter that calls the Quoter contract via RPC.

    This makes actual eth_call requests; nothing is ever submitted on-chain.
    """

    def __init__(
        self,
        w3: Web3,
        quoter_address: str | None = None,
        version: QuoterVersion = QuoterVersion.V1,
    ):
        """Initialize quoter with a connected Web3 instance.

        Args:
            w3: Web3 instance for the target chain
            quoter_address: Quoter contract address (default: mainnet address for version)
            version: Quoter contract generation
        """
        self.w3 = w3
        self.version = QuoterVersion(version)
        address = quoter_address or self.version.default_address
        self.quoter = self.w3.eth.contract(
            address=to_checksum_address(address),
            abi=QUOTER_ABI if self.version is QuoterVersion.V1 else QUOTER_V2_ABI,
        )

    def quote_exact_input(
        self,
        token_in: str,
        token_out: str,
        fee: int,
        amount_in: int,
    ) -> QuoteResult:
        """Simulate through eth_call; failures come back as error results."""
        try:
            token_in_cs = to_checksum_address(token_in)
            token_out_cs = to_checksum_address(token_out)
            if self.version is QuoterVersion.V1:
                call = self.quoter.functions.quoteExactInputSingle(
                    token_in_cs,
                    token_out_cs,
                    int(fee),
                    amount_in,
                    0,  # sqrtPriceLimitX96 = 0 means no limit
                )
            else:
                call = self.quoter.functions.quoteExactInputSingle(
                    (token_in_cs, token_out_cs, amount_in, int(fee), 0)
                )
            result = call.call()

            # V2 returns (amountOut, sqrtPriceX96After, initializedTicksCrossed, gasEstimate)
            amount_out = result[0] if isinstance(result, (list, tuple)) else result
            return QuoteResult.ok(fee, int(amount_out))
        except Exception as e:
            logger.warning(
                "quote_exact_input_failed",
                token_in=token_in,
                token_out=token_out,
                fee=int(fee),
                amount_in=amount_in,
                error=str(e),
            )
            return QuoteResult.failed(fee, str(e) or type(e).__name__)


__all__ = [
    "QuoteResult",
    "Quoter",
    "QuoterVersion",
    "QuoteKey",
    "MockQuoter",
    "Web3Quoter",
]
