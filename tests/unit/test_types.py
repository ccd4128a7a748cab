"""Unit tests for address and amount primitives."""

from decimal import Decimal

import pytest

from swapper.constants import UINT256_MAX
from swapper.errors import InvalidAddress, ValidationError
from swapper.types import (
    format_units,
    is_valid_address,
    normalize_address,
    parse_units,
    sort_tokens,
    to_checksum_address,
    validate_amount,
)
from tests.helpers import DAI, WETH


class TestAddresses:
    def test_normalize_adds_prefix(self):
        assert normalize_address(WETH[2:].upper()) == WETH

    def test_normalize_validate(self):
        with pytest.raises(InvalidAddress):
            normalize_address("0x1234", validate=True)

    @pytest.mark.parametrize(
        ("value", "valid"),
        [
            (WETH, True),
            (WETH.upper().replace("0X", "0x"), True),
            (WETH[2:], False),
            ("0x1234", False),
            ("0x" + "g" * 40, False),
            (None, False),
            (123, False),
        ],
    )
    def test_is_valid_address(self, value, valid):
        assert is_valid_address(value) is valid

    def test_checksum(self):
        assert to_checksum_address(WETH) == "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

    def test_checksum_rejects_malformed(self):
        with pytest.raises(InvalidAddress):
            to_checksum_address("weth")

    def test_sort_tokens(self):
        token0, token1 = sort_tokens(WETH, DAI)

        assert token0.lower() == DAI
        assert token1.lower() == WETH
        assert sort_tokens(DAI, WETH) == (token0, token1)


class TestParseUnits:
    @pytest.mark.parametrize(
        ("amount", "decimals", "expected"),
        [
            ("0.0005", 18, 500_000_000_000_000),
            ("1", 18, 10**18),
            ("1.5", 6, 1_500_000),
            ("0.000001", 6, 1),
            (" 2 ", 0, 2),
            (3, 6, 3_000_000),
            (Decimal("0.25"), 2, 25),
        ],
    )
    def test_valid(self, amount, decimals, expected):
        assert parse_units(amount, decimals) == expected

    @pytest.mark.parametrize("amount", ["0", "-1", "abc", "", "NaN", "Infinity"])
    def test_invalid(self, amount):
        with pytest.raises(ValidationError):
            parse_units(amount)

    def test_too_many_decimals(self):
        with pytest.raises(ValidationError, match="decimal places"):
            parse_units("0.0000001", 6)

    def test_overflow(self):
        with pytest.raises(ValidationError, match="overflow"):
            parse_units(str(UINT256_MAX + 1), 0)

    @pytest.mark.parametrize("amount", ["1e1000000", "1e100", "9" * 100])
    def test_huge_exponent_is_overflow(self, amount):
        with pytest.raises(ValidationError, match="overflow"):
            parse_units(amount)

    def test_tiny_exponent_has_too_many_decimals(self):
        with pytest.raises(ValidationError, match="decimal places"):
            parse_units("1e-1000000")

    def test_uint256_max(self):
        assert parse_units(str(UINT256_MAX), 0) == UINT256_MAX

    def test_rejects_bool_and_float(self):
        with pytest.raises(ValidationError):
            parse_units(True)  # type: ignore[arg-type]
        with pytest.raises(ValidationError):
            parse_units(0.5)  # type: ignore[arg-type]


class TestFormatUnits:
    @pytest.mark.parametrize(
        ("amount", "decimals", "expected"),
        [
            (1_500_000, 6, "1.5"),
            (10**18, 18, "1"),
            (500_000_000_000_000, 18, "0.0005"),
            (0, 18, "0"),
            (1, 6, "0.000001"),
            (1980 * 10**18, 18, "1980"),
        ],
    )
    def test_format(self, amount, decimals, expected):
        assert format_units(amount, decimals) == expected


class TestValidateAmount:
    @pytest.mark.parametrize(("value", "expected"), [("0.5", "0.5"), (2, "2"), (0.25, "0.25")])
    def test_valid(self, value, expected):
        assert validate_amount(value) == expected

    @pytest.mark.parametrize("value", ["0", "-1", "abc", None, True, "inf"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            validate_amount(value)
