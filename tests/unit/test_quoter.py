"""Unit tests for quoter implementations."""

from unittest.mock import MagicMock

import pytest
from web3 import Web3

from swapper.constants import QUOTER_ADDRESS, QUOTER_V2_ADDRESS
from swapper.quoter import MockQuoter, QuoteKey, QuoteResult, QuoterVersion, Web3Quoter
from tests.helpers import DAI, WETH


def make_web3_quoter(version: QuoterVersion = QuoterVersion.V1) -> tuple[Web3Quoter, MagicMock]:
    """Web3Quoter over a mocked Web3; returns (quoter, quoteExactInputSingle mock)."""
    w3 = MagicMock()
    contract = MagicMock()
    w3.eth.contract.return_value = contract
    quoter = Web3Quoter(w3, version=version)
    return quoter, contract.functions.quoteExactInputSingle


class TestQuoteResult:
    """Tests for QuoteResult."""

    def test_ok(self):
        result = QuoteResult.ok(3000, 100)

        assert result.is_valid
        assert not result.is_error
        assert result.amount_out == 100

    def test_failed(self):
        result = QuoteResult.failed(500, "execution reverted")

        assert not result.is_valid
        assert result.is_error
        assert result.amount_out is None
        assert result.error == "execution reverted"


class TestQuoteKey:
    """Tests for QuoteKey equality."""

    def test_case_insensitive(self):
        """Keys compare addresses case-insensitively."""
        lower = QuoteKey(WETH, DAI, 3000, 1)
        checksummed = QuoteKey(Web3.to_checksum_address(WETH), Web3.to_checksum_address(DAI), 3000, 1)

        assert lower == checksummed
        assert hash(lower) == hash(checksummed)

    def test_direction_matters(self):
        assert QuoteKey(WETH, DAI, 3000, 1) != QuoteKey(DAI, WETH, 3000, 1)


class TestMockQuoter:
    """Tests for MockQuoter."""

    def test_configured_quote(self):
        quoter = MockQuoter(quotes={QuoteKey(WETH, DAI, 3000, 10**18): 2000 * 10**18})

        result = quoter.quote_exact_input(WETH, DAI, 3000, 10**18)

        assert result == QuoteResult.ok(3000, 2000 * 10**18)

    def test_unconfigured_quote_fails(self):
        result = MockQuoter().quote_exact_input(WETH, DAI, 3000, 10**18)

        assert result.is_error

    def test_default_rate(self):
        result = MockQuoter(default_rate=(3, 2)).quote_exact_input(WETH, DAI, 500, 1001)

        assert result.amount_out == 1501

    def test_failing_fees_override_default_rate(self):
        quoter = MockQuoter(default_rate=(1, 1), failing_fees={500})

        assert quoter.quote_exact_input(WETH, DAI, 500, 10).is_error
        assert quoter.quote_exact_input(WETH, DAI, 3000, 10).is_valid

    def test_records_calls(self):
        quoter = MockQuoter()
        quoter.quote_exact_input(WETH, DAI, 500, 10)
        quoter.quote_exact_input(WETH, DAI, 3000, 10)

        assert quoter.calls == [(WETH, DAI, 500, 10), (WETH, DAI, 3000, 10)]
        assert quoter.fees_tried == [500, 3000]


class TestWeb3Quoter:
    """Tests for Web3Quoter against a mocked contract."""

    def test_default_addresses(self):
        """Each version targets its own mainnet deployment."""
        assert QuoterVersion.V1.default_address == QUOTER_ADDRESS
        assert QuoterVersion.V2.default_address == QUOTER_V2_ADDRESS

    def test_contract_bound_to_quoter_address(self):
        w3 = MagicMock()
        Web3Quoter(w3)

        assert w3.eth.contract.call_args.kwargs["address"] == QUOTER_ADDRESS

    def test_custom_address_checksummed(self):
        w3 = MagicMock()
        Web3Quoter(w3, quoter_address=QUOTER_V2_ADDRESS.lower(), version=QuoterVersion.V2)

        assert w3.eth.contract.call_args.kwargs["address"] == QUOTER_V2_ADDRESS

    def test_v1_flat_arguments(self):
        """V1 is called with (tokenIn, tokenOut, fee, amountIn, 0)."""
        quoter, function = make_web3_quoter()
        function.return_value.call.return_value = 2000 * 10**18

        result = quoter.quote_exact_input(WETH, DAI, 3000, 10**18)

        assert result == QuoteResult.ok(3000, 2000 * 10**18)
        function.assert_called_once_with(
            Web3.to_checksum_address(WETH),
            Web3.to_checksum_address(DAI),
            3000,
            10**18,
            0,
        )

    def test_v2_struct_argument(self):
        """V2 takes one struct and returns a 4-tuple."""
        quoter, function = make_web3_quoter(QuoterVersion.V2)
        function.return_value.call.return_value = [1234, 1, 2, 90_000]

        result = quoter.quote_exact_input(WETH, DAI, 500, 10**18)

        assert result.amount_out == 1234
        function.assert_called_once_with(
            (Web3.to_checksum_address(WETH), Web3.to_checksum_address(DAI), 10**18, 500, 0)
        )

    def test_revert_becomes_error_result(self):
        """A reverted simulation is reported, not raised."""
        quoter, function = make_web3_quoter()
        function.return_value.call.side_effect = Exception("execution reverted")

        result = quoter.quote_exact_input(WETH, DAI, 10000, 10**18)

        assert result.is_error
        assert result.fee == 10000
        assert "execution reverted" in (result.error or "")

    def test_transport_error_becomes_error_result(self):
        quoter, function = make_web3_quoter()
        function.return_value.call.side_effect = ConnectionError()

        result = quoter.quote_exact_input(WETH, DAI, 500, 10**18)

        assert result.is_error
        assert result.error == "ConnectionError"

    @pytest.mark.parametrize("bad_token", ["0x1234", "weth"])
    def test_invalid_token_becomes_error_result(self, bad_token):
        quoter, function = make_web3_quoter()

        result = quoter.quote_exact_input(bad_token, DAI, 500, 10**18)

        assert result.is_error
        function.assert_not_called()
