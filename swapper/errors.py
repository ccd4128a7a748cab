"""Error classes for quoting and swapping.

Library code raises these; the CLI and HTTP layers translate them into exit
codes and status codes.
"""

from __future__ import annotations

from collections.abc import Mapping


class SwapperError(Exception):
    """Base error for swapper operations."""

    pass


class ConfigurationError(SwapperError):
    """Missing or malformed RPC endpoint, credential or setting."""

    pass


class ValidationError(SwapperError):
    """Malformed request body, address or amount."""

    pass


class InvalidAddress(ValidationError):
    """Value is not a well-formed 20-byte account identifier."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid address: {value!r} (must be 0x + 40 hex chars)")
        self.value = value


class UnknownToken(ValidationError):
    """Token string is neither an address nor a known name or symbol."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Could not find a token with name or symbol matching {token!r}")
        self.token = token


class InsufficientBalance(ValidationError):
    """Wallet holds less of the input token than the requested amount."""

    def __init__(self, token: str, balance: int, required: int) -> None:
        super().__init__(f"Insufficient token balance for {token}: have {balance}, need {required}")
        self.token = token
        self.balance = balance
        self.required = required


class NoLiquidityAvailable(SwapperError):
    """Every candidate fee tier failed to produce a quote."""

    def __init__(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        failures: Mapping[int, str] | None = None,
    ) -> None:
        self.token_in = token_in
        self.token_out = token_out
        self.amount_in = amount_in
        self.failures = dict(failures or {})
        tiers = ", ".join(str(fee) for fee in self.failures) or "none"
        super().__init__(
            f"No valid liquidity pool found for {token_in} -> {token_out} (tried fee tiers: {tiers})"
        )


class RemoteCallError(SwapperError):
    """The RPC node rejected or reverted a call."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


__all__ = [
    "SwapperError",
    "ConfigurationError",
    "ValidationError",
    "InvalidAddress",
    "UnknownToken",
    "InsufficientBalance",
    "NoLiquidityAvailable",
    "RemoteCallError",
]
