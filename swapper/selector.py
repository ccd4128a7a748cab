"""Fee tier selection: find the cheapest tier that can service a swap."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from swapper.constants import DEFAULT_FEE_TIERS
from swapper.errors import NoLiquidityAvailable, ValidationError
from swapper.quoter import Quoter

logger = structlog.get_logger()


@dataclass(frozen=True)
class Quote:
    """Output amount for one fee tier.

    Only valid for the exact pair and input amount it was computed from.
    Prices move every block, so quotes are never cached.
    """

    fee: int
    amount_out: int
    token_in: str
    token_out: str
    amount_in: int


def select_best_quote(
    quoter: Quoter,
    token_in: str,
    token_out: str,
    amount_in: int,
    fee_tiers: Sequence[int] = DEFAULT_FEE_TIERS,
) -> Quote:
    """Return the first fee tier that yields a quote.

    Tiers are tried strictly in the given order, one remote call at a time,
    and the scan stops at the first success. With tiers sorted by fee this
    picks the cheapest pool that exists and has enough liquidity for the
    amount, which is not necessarily the best price.

    Args:
        quoter: Quoter used to simulate each tier
        token_in: Input token address
        token_out: Output token address
        amount_in: Input amount in base units
        fee_tiers: Candidate tiers, cheapest first

    Returns:
        Quote for the first tier that succeeded

    Raises:
        ValidationError: If amount_in is not positive or no tiers are given
        NoLiquidityAvailable: If every tier failed
    """
    if amount_in <= 0:
        raise ValidationError(f"Amount in must be positive: {amount_in}")
    if not fee_tiers:
        raise ValidationError("At least one fee tier is required")

    failures: dict[int, str] = {}
    for fee in fee_tiers:
        result = quoter.quote_exact_input(token_in, token_out, fee, amount_in)
        if result.is_valid and result.amount_out is not None:
            logger.info(
                "quote_selected",
                token_in=token_in,
                token_out=token_out,
                fee=int(fee),
                amount_in=amount_in,
                amount_out=result.amount_out,
            )
            return Quote(
                fee=int(fee),
                amount_out=result.amount_out,
                token_in=token_in,
                token_out=token_out,
                amount_in=amount_in,
            )

        failures[int(fee)] = result.error or "no output"
        logger.info("quote_tier_failed", fee=int(fee), error=failures[int(fee)])

    logger.warning(
        "no_liquidity_available",
        token_in=token_in,
        token_out=token_out,
        amount_in=amount_in,
        tiers_tried=list(failures),
    )
    raise NoLiquidityAvailable(token_in, token_out, amount_in, failures)


__all__ = ["Quote", "select_best_quote"]
