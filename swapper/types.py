"""Shared address and amount primitives.

Addresses are compared in lowercase form and displayed in EIP-55 checksum
form. Amounts cross the user boundary as decimal strings and are handled
internally as integer base units.
"""

from __future__ import annotations

import decimal
import re
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BeforeValidator, Field
from web3 import Web3

from swapper.constants import UINT256_MAX
from swapper.errors import InvalidAddress, ValidationError

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# 78 digits of precision: enough for uint256 values (up to ~10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase.

    Args:
        address: An Ethereum address (with or without 0x prefix)
        validate: If True, raises InvalidAddress for malformed addresses.

    Returns:
        Lowercase address with 0x prefix
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise InvalidAddress(address)

    return addr


def is_valid_address(address: Any) -> bool:
    """Check if a value is a well-formed Ethereum address (0x + 40 hex chars)."""
    if not isinstance(address, str):
        return False
    return _ADDRESS_RE.match(address) is not None


def to_checksum_address(address: Any) -> str:
    """Return the EIP-55 checksummed form of an address.

    Raises:
        InvalidAddress: If the value is not a well-formed address
    """
    if not is_valid_address(address):
        raise InvalidAddress(address)
    return Web3.to_checksum_address(address)


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Order two tokens ascending by lowercase value, as the factory does.

    Returns:
        Tuple of (token0, token1) in checksummed form
    """
    a = to_checksum_address(token_a)
    b = to_checksum_address(token_b)
    if a.lower() < b.lower():
        return a, b
    return b, a


def _to_decimal(value: str | int | Decimal) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise ValidationError(f"Amount must be a decimal string, got {type(value).__name__}")
    try:
        result = Decimal(value.strip() if isinstance(value, str) else value)
    except decimal.InvalidOperation as err:
        raise ValidationError(f"Amount must be a decimal number: {value!r}") from err
    if not result.is_finite():
        raise ValidationError(f"Amount must be finite: {value!r}")
    return result


def parse_units(amount: str | int | Decimal, decimals: int = 18) -> int:
    """Convert a human-readable amount to integer base units.

    Args:
        amount: Decimal amount (e.g., "0.0005")
        decimals: Token decimals

    Returns:
        Amount in base units (e.g., 500000000000000 for 0.0005 at 18 decimals)

    Raises:
        ValidationError: If the amount is not a positive number representable
            in base units without rounding, or exceeds uint256
    """
    value = _to_decimal(amount)
    if value <= 0:
        raise ValidationError(f"Amount must be positive: {amount}")
    try:
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            scaled = value.scaleb(decimals)
            integral = scaled.to_integral_value()
    except decimal.DecimalException as err:
        raise ValidationError(f"Amount overflow: {amount} exceeds uint256") from err
    if scaled != integral:
        raise ValidationError(f"Amount {amount} has more than {decimals} decimal places")
    # uint256 has at most 78 digits
    if scaled.adjusted() >= 78:
        raise ValidationError(f"Amount overflow: {amount} exceeds uint256")
    units = int(scaled)

    if units <= 0:
        raise ValidationError(f"Amount must be positive: {amount}")
    if units > UINT256_MAX:
        raise ValidationError(f"Amount overflow: {amount} exceeds uint256")
    return units


def format_units(amount: int, decimals: int = 18) -> str:
    """Convert integer base units to a plain decimal string.

    Trailing zeros are trimmed: 1500000 at 6 decimals -> "1.5".
    """
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        text = format(Decimal(amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def validate_amount(value: Any) -> str:
    """Validate a request amount, keeping it as a decimal string."""
    if isinstance(value, float):
        value = repr(value)
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError(f"Amount must be a decimal string, got {type(value).__name__}")
    try:
        parsed = Decimal(value)
    except decimal.InvalidOperation as err:
        raise ValueError(f"Amount must be a decimal number: '{value}'") from err
    if not parsed.is_finite() or parsed <= 0:
        raise ValueError(f"Amount must be a positive number: '{value}'")
    return value


# Positive human-readable amount as decimal string
AmountString = Annotated[
    str,
    BeforeValidator(validate_amount),
    Field(description="Positive amount in whole-token units as decimal string"),
]

__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "normalize_address",
    "is_valid_address",
    "to_checksum_address",
    "sort_tokens",
    "parse_units",
    "format_units",
    "validate_amount",
    "AmountString",
]
