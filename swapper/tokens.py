"""Token resolution: user input (alias, address, name or symbol) to addresses.

The optional mapping file is a flat JSON object keyed by contract address:

    {"0x6B17...1d0F": {"name": "Dai Stablecoin", "symbol": "DAI", "decimals": 18}}

It is read once at startup and never written by the service.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from swapper.constants import DAI, NATIVE_TOKEN_ALIAS, USDC, USDT, WETH
from swapper.errors import ConfigurationError, UnknownToken, ValidationError
from swapper.types import is_valid_address, to_checksum_address

logger = structlog.get_logger()

MAPPING_CSV_HEADER = "ContractAddress"


class TokenInfo(BaseModel):
    """Display metadata for one token contract."""

    name: str
    symbol: str
    decimals: int = Field(default=18, ge=0, le=255)


BUILTIN_TOKENS: dict[str, TokenInfo] = {
    WETH: TokenInfo(name="Wrapped Ether", symbol="WETH", decimals=18),
    DAI: TokenInfo(name="Dai Stablecoin", symbol="DAI", decimals=18),
    USDC: TokenInfo(name="USD Coin", symbol="USDC", decimals=6),
    USDT: TokenInfo(name="Tether USD", symbol="USDT", decimals=6),
}


@dataclass(frozen=True)
class ResolvedToken:
    """A token ready for use in a swap.

    Native ether resolves to WETH with is_native set; the router wraps the
    attached value itself.
    """

    address: str
    decimals: int = 18
    symbol: str | None = None
    is_native: bool = False

    @property
    def label(self) -> str:
        return self.symbol or self.address


class TokenRegistry:
    """Read-only lookup of token metadata by address, name or symbol."""

    def __init__(self, tokens: Mapping[str, TokenInfo] | None = None, include_builtin: bool = True):
        entries: dict[str, TokenInfo] = dict(BUILTIN_TOKENS) if include_builtin else {}
        for address, info in (tokens or {}).items():
            entries[to_checksum_address(address)] = info
        self._tokens = entries

    @classmethod
    def from_file(cls, path: str | Path) -> TokenRegistry:
        """Load a registry from a JSON mapping file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        return cls(load_token_mapping(path))

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tokens)

    def get(self, address: str) -> TokenInfo | None:
        if not is_valid_address(address):
            return None
        return self._tokens.get(to_checksum_address(address))

    def find(self, name_or_symbol: str) -> str | None:
        """Return the address whose name or symbol matches, ignoring case."""
        wanted = name_or_symbol.strip().lower()
        for address, info in self._tokens.items():
            if info.name.lower() == wanted or info.symbol.lower() == wanted:
                return address
        return None

    def decimals_for(self, address: str) -> int:
        info = self.get(address)
        return info.decimals if info is not None else 18

    def resolve(self, token: str) -> ResolvedToken:
        """Resolve user input to a token.

        Accepts the native alias ("eth"), a contract address in any case, or
        a name/symbol present in the registry.

        Raises:
            UnknownToken: If nothing matches
        """
        text = token.strip()
        if not text:
            raise ValidationError("Token must not be empty")

        if text.lower() == NATIVE_TOKEN_ALIAS:
            return ResolvedToken(address=WETH, decimals=18, symbol="ETH", is_native=True)

        if text.lower().startswith("0x"):
            address = to_checksum_address(text)
        else:
            found = self.find(text)
            if found is None:
                raise UnknownToken(text)
            address = found

        info = self._tokens.get(address)
        if info is None:
            return ResolvedToken(address=address)
        return ResolvedToken(address=address, decimals=info.decimals, symbol=info.symbol)


def load_token_mapping(path: str | Path) -> dict[str, TokenInfo]:
    """Read a JSON mapping file of address -> {name, symbol[, decimals]}."""
    path = Path(path)
    try:
        with open(path) as f:
            raw = json.load(f)
    except FileNotFoundError as err:
        raise ConfigurationError(f"Token mapping file not found: {path}") from err
    except json.JSONDecodeError as err:
        raise ConfigurationError(f"Token mapping file is not valid JSON: {path}: {err}") from err

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Token mapping must be a JSON object: {path}")

    mapping: dict[str, TokenInfo] = {}
    for address, entry in raw.items():
        if not is_valid_address(address):
            logger.warning("token_mapping_invalid_address", path=str(path), address=address)
            continue
        try:
            mapping[address] = TokenInfo.model_validate(entry)
        except PydanticValidationError as err:
            raise ConfigurationError(f"Invalid token mapping entry for {address}: {err}") from err

    logger.info("token_mapping_loaded", path=str(path), tokens=len(mapping))
    return mapping


def build_token_mapping(csv_path: str | Path, json_path: str | Path) -> int:
    """Convert a ContractAddress,TokenName,TokenSymbol export to a JSON mapping.

    Blank lines, the header line and lines with fewer than three columns are
    skipped.

    Returns:
        Number of tokens written
    """
    mapping: dict[str, dict[str, str]] = {}
    with open(csv_path, newline="") as f:
        for row in csv.reader(f):
            if not row or row[0].strip().startswith(MAPPING_CSV_HEADER):
                continue
            if len(row) < 3:
                continue
            address, name, symbol = (part.strip() for part in row[:3])
            mapping[address] = {"name": name, "symbol": symbol}

    with open(json_path, "w") as f:
        json.dump(mapping, f, indent=2)

    logger.info("token_mapping_written", source=str(csv_path), output=str(json_path), tokens=len(mapping))
    return len(mapping)


@dataclass(frozen=True)
class SwapQuery:
    """Parsed "swap <amount> <tokenIn> with <tokenOut>" request."""

    amount: str
    token_in: str
    token_out: str


def parse_swap_query(query: str) -> SwapQuery:
    """Parse a plain-text swap request such as "swap 0.0005 WETH with DAI".

    Raises:
        ValidationError: If the query does not have that exact shape
    """
    parts = query.lower().split()
    if len(parts) != 5 or parts[0] != "swap" or parts[3] != "with":
        raise ValidationError("Query format should be: 'swap <amount> <tokenIn> with <tokenOut>'")
    return SwapQuery(amount=parts[1], token_in=parts[2], token_out=parts[4])


__all__ = [
    "TokenInfo",
    "BUILTIN_TOKENS",
    "ResolvedToken",
    "TokenRegistry",
    "load_token_mapping",
    "build_token_mapping",
    "SwapQuery",
    "parse_swap_query",
]
