"""Slippage tolerance policies.

A policy maps a resolved token pair to a tolerance (a fraction in [0, 1)),
and the tolerance turns a quoted output into the amountOutMinimum the
router enforces.
"""

from __future__ import annotations

import decimal
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal
from typing import Protocol

from swapper.constants import USDT, WETH
from swapper.errors import ValidationError
from swapper.types import DECIMAL_HIGH_PREC_CONTEXT, normalize_address

DEFAULT_BASE_SLIPPAGE = Decimal("0.01")  # 1%
DEFAULT_MAX_SLIPPAGE = Decimal("0.10")  # 10%


def validate_tolerance(value: Decimal | str | float) -> Decimal:
    """Return the tolerance as a Decimal, rejecting values outside [0, 1)."""
    try:
        tolerance = Decimal(str(value))
    except decimal.InvalidOperation as err:
        raise ValidationError(f"Slippage tolerance must be a number: {value!r}") from err
    if not tolerance.is_finite() or not Decimal(0) <= tolerance < Decimal(1):
        raise ValidationError(f"Slippage tolerance must be in [0, 1): {value}")
    return tolerance


def minimum_amount_out(amount_out: int, tolerance: Decimal) -> int:
    """Lowest acceptable output: floor(amount_out * (1 - tolerance))."""
    if amount_out < 0:
        raise ValidationError(f"Quoted amount cannot be negative: {amount_out}")
    tolerance = validate_tolerance(tolerance)
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        minimum = (Decimal(amount_out) * (Decimal(1) - tolerance)).to_integral_value(
            rounding=ROUND_FLOOR
        )
    return int(minimum)


class SlippageStrategy(Protocol):
    """Anything that picks a tolerance for a token pair."""

    def tolerance(self, token_in: str, token_out: str) -> Decimal: ...


@dataclass(frozen=True)
class FixedSlippage:
    """Same tolerance for every pair."""

    value: Decimal = DEFAULT_BASE_SLIPPAGE

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", validate_tolerance(self.value))

    def tolerance(self, token_in: str, token_out: str) -> Decimal:
        return self.value


@dataclass(frozen=True)
class SlippagePolicy:
    """Three-branch volatility heuristic.

    - configured stable pair (directional): base tolerance
    - either leg is the anchor token (WETH): twice the base, capped at maximum
    - anything else is treated as illiquid: maximum tolerance

    Tokens are compared as lowercase addresses.
    """

    base: Decimal = DEFAULT_BASE_SLIPPAGE
    maximum: Decimal = DEFAULT_MAX_SLIPPAGE
    anchor_token: str = WETH
    stable_pairs: frozenset[tuple[str, str]] = field(
        default_factory=lambda: frozenset({(normalize_address(WETH), normalize_address(USDT))})
    )

    def __post_init__(self) -> None:
        base = validate_tolerance(self.base)
        maximum = validate_tolerance(self.maximum)
        if base > maximum:
            raise ValidationError(f"Base slippage {base} exceeds maximum {maximum}")
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "maximum", maximum)
        object.__setattr__(self, "anchor_token", normalize_address(self.anchor_token))
        object.__setattr__(
            self,
            "stable_pairs",
            frozenset((normalize_address(a), normalize_address(b)) for a, b in self.stable_pairs),
        )

    @classmethod
    def with_stable_pairs(
        cls,
        pairs: Iterable[tuple[str, str]],
        base: Decimal = DEFAULT_BASE_SLIPPAGE,
        maximum: Decimal = DEFAULT_MAX_SLIPPAGE,
    ) -> SlippagePolicy:
        return cls(base=base, maximum=maximum, stable_pairs=frozenset(pairs))

    def tolerance(self, token_in: str, token_out: str) -> Decimal:
        pair = (normalize_address(token_in), normalize_address(token_out))
        if pair in self.stable_pairs:
            return self.base
        if self.anchor_token in pair:
            return min(self.base * 2, self.maximum)
        return self.maximum


__all__ = [
    "DEFAULT_BASE_SLIPPAGE",
    "DEFAULT_MAX_SLIPPAGE",
    "validate_tolerance",
    "minimum_amount_out",
    "SlippageStrategy",
    "FixedSlippage",
    "SlippagePolicy",
]
