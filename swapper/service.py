"""Quote and swap flows shared by the CLI and the HTTP service.

The swap flow is strictly sequential: balance check, allowance check and
approval (confirmed before continuing), fee tier selection, then the swap
itself, awaited until mined.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

import structlog
from web3 import Web3

from swapper.chain import ChainClient
from swapper.config import Settings
from swapper.constants import UINT256_MAX
from swapper.encoding import encode_exact_input_single
from swapper.errors import InsufficientBalance, ValidationError
from swapper.quoter import Quoter, Web3Quoter
from swapper.selector import Quote, select_best_quote
from swapper.slippage import FixedSlippage, SlippagePolicy, SlippageStrategy, minimum_amount_out
from swapper.tokens import ResolvedToken, TokenRegistry
from swapper.types import format_units, parse_units, to_checksum_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class QuoteSummary:
    """Selected fee tier and output for a resolved pair."""

    token_in: ResolvedToken
    token_out: ResolvedToken
    amount_in: int
    fee: int
    amount_out: int

    @property
    def amount_out_formatted(self) -> str:
        return format_units(self.amount_out, self.token_out.decimals)


@dataclass(frozen=True)
class SwapReceipt:
    """Outcome of a confirmed swap."""

    transaction_hash: str
    fee: int
    amount_in: int
    quoted_amount_out: int
    amount_out_minimum: int
    slippage: Decimal
    approval_hash: str | None = None


class SwapService:
    """Resolves tokens, selects a fee tier and submits exactInputSingle swaps.

    Args:
        settings: Router address, fee tiers, gas limit and deadline
        quoter: Quoter used for fee tier selection
        registry: Token lookup (default: built-in tokens only)
        slippage: Tolerance policy (default: SlippagePolicy from settings)
        clock: Returns the current unix time; used for swap deadlines
    """

    def __init__(
        self,
        settings: Settings,
        quoter: Quoter,
        registry: TokenRegistry | None = None,
        slippage: SlippageStrategy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.quoter = quoter
        self.registry = registry or TokenRegistry()
        self.slippage = slippage or SlippagePolicy(
            base=settings.base_slippage, maximum=settings.max_slippage
        )
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        w3: Web3,
        registry: TokenRegistry | None = None,
    ) -> SwapService:
        """Build a service that quotes through the configured Quoter contract."""
        quoter = Web3Quoter(w3, settings.quoter_address, settings.quoter_version)
        if registry is None:
            registry = (
                TokenRegistry.from_file(settings.token_mapping_path)
                if settings.token_mapping_path is not None
                else TokenRegistry()
            )
        return cls(settings, quoter, registry)

    def resolve_pair(self, token_in: str, token_out: str) -> tuple[ResolvedToken, ResolvedToken]:
        resolved_in = self.registry.resolve(token_in)
        resolved_out = self.registry.resolve(token_out)
        if resolved_in.address == resolved_out.address:
            raise ValidationError(f"Input and output token are the same: {resolved_in.address}")
        return resolved_in, resolved_out

    def _select(self, token_in: ResolvedToken, token_out: ResolvedToken, amount_in: int) -> Quote:
        return select_best_quote(
            self.quoter,
            token_in.address,
            token_out.address,
            amount_in,
            self.settings.fee_tiers,
        )

    def quote(self, amount: str, token_in: str, token_out: str) -> QuoteSummary:
        """Quote a human-readable amount of token_in for token_out.

        Raises:
            ValidationError: For unknown tokens or malformed amounts
            NoLiquidityAvailable: If no fee tier can service the amount
        """
        resolved_in, resolved_out = self.resolve_pair(token_in, token_out)
        amount_in = parse_units(amount, resolved_in.decimals)
        quote = self._select(resolved_in, resolved_out, amount_in)
        return QuoteSummary(
            token_in=resolved_in,
            token_out=resolved_out,
            amount_in=amount_in,
            fee=quote.fee,
            amount_out=quote.amount_out,
        )

    def ensure_allowance(self, client: ChainClient, token: str, amount: int) -> str | None:
        """Approve the router for the maximum uint256 if the current allowance is short.

        Waits for the approval to be mined before returning.

        Returns:
            Approval transaction hash, or None if no approval was needed
        """
        allowance = client.allowance(token, self.settings.router_address)
        if allowance >= amount:
            return None

        logger.info("insufficient_allowance", token=token, allowance=allowance, required=amount)
        tx_hash = client.approve(token, self.settings.router_address, UINT256_MAX)
        client.wait_for_receipt(tx_hash, operation="approve")
        return tx_hash

    def approve(self, client: ChainClient, token: str, amount: str) -> str:
        """Approve the router to spend a fixed amount and wait for confirmation."""
        resolved = self.registry.resolve(token)
        if resolved.is_native:
            raise ValidationError("Native ether does not need an approval")
        units = parse_units(amount, resolved.decimals)
        tx_hash = client.approve(resolved.address, self.settings.router_address, units)
        client.wait_for_receipt(tx_hash, operation="approve")
        return tx_hash

    def swap(
        self,
        client: ChainClient,
        amount: str,
        token_in: str,
        token_out: str,
        *,
        recipient: str | None = None,
        slippage: Decimal | None = None,
    ) -> SwapReceipt:
        """Swap an exact input amount and wait for the swap to be mined.

        Native ether is attached as transaction value and wrapped by the
        router; ERC-20 input needs balance and allowance first.

        Args:
            client: Signing wallet
            amount: Human-readable input amount
            token_in: Input token (alias, address, name or symbol)
            token_out: Output token (alias, address, name or symbol)
            recipient: Receiver of the output (default: the wallet)
            slippage: Fixed tolerance overriding the policy

        Raises:
            ValidationError: Unknown tokens, malformed amount, insufficient balance
            NoLiquidityAvailable: If no fee tier can service the amount
            RemoteCallError: If the node rejects or reverts approval or swap
        """
        resolved_in, resolved_out = self.resolve_pair(token_in, token_out)
        amount_in = parse_units(amount, resolved_in.decimals)

        value = 0
        approval_hash = None
        if resolved_in.is_native:
            value = amount_in
        else:
            balance = client.balance_of(resolved_in.address)
            if balance < amount_in:
                raise InsufficientBalance(resolved_in.label, balance, amount_in)
            approval_hash = self.ensure_allowance(client, resolved_in.address, amount_in)

        quote = self._select(resolved_in, resolved_out, amount_in)

        strategy = FixedSlippage(slippage) if slippage is not None else self.slippage
        tolerance = strategy.tolerance(resolved_in.address, resolved_out.address)
        amount_out_minimum = minimum_amount_out(quote.amount_out, tolerance)

        receiver = to_checksum_address(recipient) if recipient else client.address
        deadline = int(self.clock()) + self.settings.deadline_seconds
        router, calldata = encode_exact_input_single(
            token_in=resolved_in.address,
            token_out=resolved_out.address,
            fee=quote.fee,
            recipient=receiver,
            deadline=deadline,
            amount_in=amount_in,
            amount_out_minimum=amount_out_minimum,
            router=self.settings.router_address,
        )

        logger.info(
            "swap_submitting",
            token_in=resolved_in.label,
            token_out=resolved_out.label,
            fee=quote.fee,
            amount_in=amount_in,
            quoted_amount_out=quote.amount_out,
            amount_out_minimum=amount_out_minimum,
            slippage=str(tolerance),
        )
        tx_hash = client.send_transaction(router, calldata, value=value, gas=self.settings.gas_limit)
        client.wait_for_receipt(tx_hash, operation="swap")

        return SwapReceipt(
            transaction_hash=tx_hash,
            fee=quote.fee,
            amount_in=amount_in,
            quoted_amount_out=quote.amount_out,
            amount_out_minimum=amount_out_minimum,
            slippage=tolerance,
            approval_hash=approval_hash,
        )


__all__ = ["QuoteSummary", "SwapReceipt", "SwapService"]
