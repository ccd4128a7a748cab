"""Unit tests for the quote and swap flows."""

from decimal import Decimal

import pytest
from eth_abi import decode
from web3 import Web3

from swapper.config import Settings
from swapper.constants import SWAP_ROUTER_ADDRESS, UINT256_MAX
from swapper.encoding import EXACT_INPUT_SINGLE_PARAMS
from swapper.errors import InsufficientBalance, NoLiquidityAvailable, RemoteCallError, UnknownToken, ValidationError
from swapper.quoter import MockQuoter
from swapper.service import SwapService
from tests.conftest import FIXED_NOW
from tests.helpers import APPROVE_TX_HASH, DAI, RECIPIENT, SWAP_TX_HASH, USDC, WALLET, WETH, FakeChainClient

ONE_WETH = 10**18


def decode_swap(calldata: str) -> tuple:
    (params,) = decode([EXACT_INPUT_SINGLE_PARAMS], bytes.fromhex(calldata[10:]))
    return params


class TestQuote:
    """Tests for SwapService.quote."""

    def test_selects_medium_tier(self, service, mock_quoter):
        summary = service.quote("1", "weth", "dai")

        assert summary.fee == 3000
        assert summary.amount_in == ONE_WETH
        assert summary.amount_out == 2000 * 10**18
        assert summary.amount_out_formatted == "2000"
        assert mock_quoter.fees_tried == [500, 3000]

    def test_native_alias_quotes_through_weth(self, service):
        summary = service.quote("1", "eth", "dai")

        assert summary.token_in.is_native
        assert summary.token_in.address == Web3.to_checksum_address(WETH)

    def test_uses_input_decimals(self, settings, registry):
        quoter = MockQuoter(default_rate=(1, 1))
        service = SwapService(settings, quoter, registry)

        summary = service.quote("2.5", "usdc", "dai")

        assert summary.amount_in == 2_500_000

    def test_custom_fee_tiers(self, registry):
        quoter = MockQuoter(default_rate=(1, 1))
        service = SwapService(Settings(rpc_url="http://x", fee_tiers=(10000,)), quoter, registry)

        assert service.quote("1", "weth", "dai").fee == 10000

    def test_no_liquidity(self, service):
        with pytest.raises(NoLiquidityAvailable):
            service.quote("1", "dai", "usdc")

    def test_unknown_token(self, service):
        with pytest.raises(UnknownToken):
            service.quote("1", "weth", "doge")

    def test_same_token(self, service):
        with pytest.raises(ValidationError, match="same"):
            service.quote("1", "eth", "weth")

    def test_bad_amount(self, service, mock_quoter):
        with pytest.raises(ValidationError):
            service.quote("-1", "weth", "dai")
        assert mock_quoter.calls == []


class TestSwap:
    """Tests for SwapService.swap."""

    def test_erc20_flow_order(self, service, chain_client):
        """Balance, allowance, approval confirmed, then the swap."""
        service.swap(chain_client, "1", "weth", "dai")

        assert chain_client.event_names == [
            "balance_of",
            "allowance",
            "approve",
            "wait_for_receipt",
            "send_transaction",
            "wait_for_receipt",
        ]
        assert chain_client.events[3] == ("wait_for_receipt", APPROVE_TX_HASH, "approve")
        assert chain_client.events[5] == ("wait_for_receipt", SWAP_TX_HASH, "swap")

    def test_approves_max_for_router(self, service, chain_client):
        receipt = service.swap(chain_client, "1", "weth", "dai")

        _, token, spender, amount = chain_client.events[2]
        assert token == Web3.to_checksum_address(WETH)
        assert spender == SWAP_ROUTER_ADDRESS
        assert amount == UINT256_MAX
        assert receipt.approval_hash == APPROVE_TX_HASH

    def test_receipt(self, service, chain_client):
        receipt = service.swap(chain_client, "1", "weth", "dai")

        assert receipt.transaction_hash == SWAP_TX_HASH
        assert receipt.fee == 3000
        assert receipt.amount_in == ONE_WETH
        assert receipt.quoted_amount_out == 2000 * 10**18
        assert receipt.slippage == Decimal("0.02")
        assert receipt.amount_out_minimum == 1960 * 10**18

    def test_calldata(self, service, chain_client, settings):
        service.swap(chain_client, "1", "weth", "dai")

        to, data, value, gas = chain_client.sent_transaction()
        token_in, token_out, fee, recipient, deadline, amount_in, minimum, limit = decode_swap(data)
        assert to == SWAP_ROUTER_ADDRESS
        assert value == 0
        assert gas == settings.gas_limit
        assert token_in.lower() == WETH
        assert token_out.lower() == DAI
        assert fee == 3000
        assert recipient.lower() == WALLET.lower()
        assert deadline == FIXED_NOW + 300
        assert amount_in == ONE_WETH
        assert minimum == 1960 * 10**18
        assert limit == 0

    def test_sufficient_allowance_skips_approval(self, service):
        client = FakeChainClient(allowance=ONE_WETH)

        receipt = service.swap(client, "1", "weth", "dai")

        assert "approve" not in client.event_names
        assert receipt.approval_hash is None

    def test_insufficient_balance(self, service, mock_quoter):
        client = FakeChainClient(balance=ONE_WETH - 1)

        with pytest.raises(InsufficientBalance) as exc_info:
            service.swap(client, "1", "weth", "dai")

        assert exc_info.value.balance == ONE_WETH - 1
        assert exc_info.value.required == ONE_WETH
        assert client.event_names == ["balance_of"]
        assert mock_quoter.calls == []

    def test_native_input_attaches_value(self, service, chain_client):
        """Native ether skips balance and allowance checks."""
        service.swap(chain_client, "1", "eth", "dai")

        assert chain_client.event_names == ["send_transaction", "wait_for_receipt"]
        _, data, value, _ = chain_client.sent_transaction()
        assert value == ONE_WETH
        assert decode_swap(data)[0].lower() == WETH

    def test_recipient_override(self, service, chain_client):
        service.swap(chain_client, "1", "weth", "dai", recipient=RECIPIENT)

        _, data, _, _ = chain_client.sent_transaction()
        assert decode_swap(data)[3].lower() == RECIPIENT.lower()

    def test_fixed_slippage_override(self, service, chain_client):
        receipt = service.swap(chain_client, "1", "weth", "dai", slippage=Decimal("0.005"))

        assert receipt.slippage == Decimal("0.005")
        assert receipt.amount_out_minimum == 1990 * 10**18

    def test_no_liquidity_sends_nothing(self, service):
        client = FakeChainClient(allowance=UINT256_MAX)

        with pytest.raises(NoLiquidityAvailable):
            service.swap(client, "1", "dai", "usdc")

        assert "send_transaction" not in client.event_names

    def test_reverted_approval_stops_flow(self, service):
        client = FakeChainClient(fail_operation="approve")

        with pytest.raises(RemoteCallError, match="approve failed"):
            service.swap(client, "1", "weth", "dai")

        assert "send_transaction" not in client.event_names

    def test_reverted_swap(self, service):
        client = FakeChainClient(allowance=UINT256_MAX, fail_operation="swap")

        with pytest.raises(RemoteCallError, match="swap failed"):
            service.swap(client, "1", "weth", "dai")

    def test_custom_router(self, registry, mock_quoter):
        router = Web3.to_checksum_address("0x" + "12" * 20)
        service = SwapService(Settings(rpc_url="http://x", router_address=router), mock_quoter, registry)
        client = FakeChainClient()

        service.swap(client, "1", "weth", "dai")

        assert client.events[1] == ("allowance", Web3.to_checksum_address(WETH), router)
        assert client.sent_transaction()[0] == router


class TestApprove:
    def test_fixed_amount(self, service, chain_client):
        tx_hash = service.approve(chain_client, "usdc", "10")

        assert tx_hash == APPROVE_TX_HASH
        assert chain_client.events[0] == (
            "approve",
            Web3.to_checksum_address(USDC),
            SWAP_ROUTER_ADDRESS,
            10_000_000,
        )
        assert chain_client.events[1] == ("wait_for_receipt", APPROVE_TX_HASH, "approve")

    def test_native_rejected(self, service, chain_client):
        with pytest.raises(ValidationError):
            service.approve(chain_client, "eth", "1")

        assert chain_client.events == []
