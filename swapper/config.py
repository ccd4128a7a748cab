"""Runtime configuration loaded from environment variables.

Settings are built once by an entry point and passed explicitly to the
objects that need them; nothing reads the environment at import time.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from swapper.constants import (
    DEFAULT_DEADLINE_SECONDS,
    DEFAULT_FEE_TIERS,
    DEFAULT_GAS_LIMIT,
    MAX_FEE,
    SWAP_ROUTER_ADDRESS,
)
from swapper.errors import ConfigurationError, SwapperError
from swapper.quoter import QuoterVersion
from swapper.slippage import DEFAULT_BASE_SLIPPAGE, DEFAULT_MAX_SLIPPAGE, validate_tolerance
from swapper.types import to_checksum_address

TRUTHY = ("true", "1", "yes")


@dataclass(frozen=True)
class Settings:
    """Everything an entry point needs to talk to the chain.

    Attributes:
        rpc_url: JSON-RPC endpoint of the node
        private_key: Signing key for script-style swaps (None for quote-only use)
        router_address: SwapRouter the swaps are sent to
        quoter_address: Quoter contract (None = default for quoter_version)
        quoter_version: Quoter generation (v1 flat args, v2 struct args)
        fee_tiers: Candidate fee tiers, tried in order
        token_mapping_path: Optional JSON token mapping file
        gas_limit: Gas limit attached to swap transactions
        deadline_seconds: Swap deadline relative to submission time
        base_slippage: Tolerance for stable pairs
        max_slippage: Tolerance for illiquid pairs
        host: HTTP bind address
        port: HTTP port
        debug: Enable reload mode and debug logging
    """

    rpc_url: str
    private_key: str | None = field(default=None, repr=False)
    router_address: str = SWAP_ROUTER_ADDRESS
    quoter_address: str | None = None
    quoter_version: QuoterVersion = QuoterVersion.V1
    fee_tiers: tuple[int, ...] = tuple(int(fee) for fee in DEFAULT_FEE_TIERS)
    token_mapping_path: Path | None = None
    gas_limit: int = DEFAULT_GAS_LIMIT
    deadline_seconds: int = DEFAULT_DEADLINE_SECONDS
    base_slippage: Decimal = DEFAULT_BASE_SLIPPAGE
    max_slippage: Decimal = DEFAULT_MAX_SLIPPAGE
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


def _int(environ: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        result = int(value)
    except ValueError as err:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from err
    if result < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {result}")
    return result


def _tolerance(environ: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return validate_tolerance(value)
    except SwapperError as err:
        raise ConfigurationError(f"{name}: {err}") from err


def _fee_tiers(value: str | None) -> tuple[int, ...]:
    if not value:
        return tuple(int(fee) for fee in DEFAULT_FEE_TIERS)
    try:
        tiers = tuple(int(part) for part in value.split(",") if part.strip())
    except ValueError as err:
        raise ConfigurationError(f"SWAPPER_FEE_TIERS must be comma-separated integers: {value!r}") from err
    if not tiers:
        raise ConfigurationError("SWAPPER_FEE_TIERS must name at least one fee tier")
    for fee in tiers:
        if not 0 < fee <= MAX_FEE:
            raise ConfigurationError(f"Fee tier out of range: {fee}")
    return tiers


def _address(environ: Mapping[str, str], name: str, default: str | None) -> str | None:
    value = environ.get(name)
    if not value:
        return default
    try:
        return to_checksum_address(value)
    except SwapperError as err:
        raise ConfigurationError(f"{name}: {err}") from err


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    require_private_key: bool = False,
) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Variables to read (default: os.environ)
        require_private_key: Fail if PRIVATE_KEY is not set

    Raises:
        ConfigurationError: If a required variable is missing or a value is malformed
    """
    env = os.environ if environ is None else environ

    rpc_url = env.get("RPC_URL", "").strip()
    if not rpc_url:
        raise ConfigurationError("RPC_URL must be set")

    private_key = env.get("PRIVATE_KEY", "").strip() or None
    if require_private_key and private_key is None:
        raise ConfigurationError("PRIVATE_KEY must be set")

    version_name = env.get("SWAPPER_QUOTER_VERSION", QuoterVersion.V1.value).strip().lower()
    try:
        quoter_version = QuoterVersion(version_name)
    except ValueError as err:
        raise ConfigurationError(f"SWAPPER_QUOTER_VERSION must be v1 or v2, got {version_name!r}") from err

    mapping = env.get("SWAPPER_TOKEN_MAPPING", "").strip()

    base_slippage = _tolerance(env, "SWAPPER_BASE_SLIPPAGE", DEFAULT_BASE_SLIPPAGE)
    max_slippage = _tolerance(env, "SWAPPER_MAX_SLIPPAGE", DEFAULT_MAX_SLIPPAGE)
    if base_slippage > max_slippage:
        raise ConfigurationError(
            f"SWAPPER_BASE_SLIPPAGE ({base_slippage}) exceeds SWAPPER_MAX_SLIPPAGE ({max_slippage})"
        )

    return Settings(
        rpc_url=rpc_url,
        private_key=private_key,
        router_address=_address(env, "SWAPPER_ROUTER_ADDRESS", SWAP_ROUTER_ADDRESS) or SWAP_ROUTER_ADDRESS,
        quoter_address=_address(env, "SWAPPER_QUOTER_ADDRESS", None),
        quoter_version=quoter_version,
        fee_tiers=_fee_tiers(env.get("SWAPPER_FEE_TIERS")),
        token_mapping_path=Path(mapping) if mapping else None,
        gas_limit=_int(env, "SWAPPER_GAS_LIMIT", DEFAULT_GAS_LIMIT),
        deadline_seconds=_int(env, "SWAPPER_DEADLINE_SECONDS", DEFAULT_DEADLINE_SECONDS),
        base_slippage=base_slippage,
        max_slippage=max_slippage,
        host=env.get("SWAPPER_HOST", "0.0.0.0"),
        port=_int(env, "SWAPPER_PORT", 8000),
        debug=env.get("SWAPPER_DEBUG", "false").lower() in TRUTHY,
    )


__all__ = ["Settings", "load_settings"]
