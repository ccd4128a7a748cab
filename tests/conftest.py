"""Pytest configuration and fixtures."""

import pytest

from swapper.config import Settings
from swapper.quoter import MockQuoter, QuoteKey
from swapper.service import SwapService
from swapper.tokens import TokenRegistry
from tests.helpers import DAI, WETH, FakeChainClient

FIXED_NOW = 1_700_000_000


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a local node; never contacted by unit tests."""
    return Settings(rpc_url="http://127.0.0.1:8545")


@pytest.fixture
def registry() -> TokenRegistry:
    """Built-in tokens only."""
    return TokenRegistry()


@pytest.fixture
def mock_quoter() -> MockQuoter:
    """1 WETH -> 2000 DAI on the 0.3% tier only; every other tier fails."""
    return MockQuoter(
        quotes={
            QuoteKey(WETH, DAI, 3000, 10**18): 2000 * 10**18,
            QuoteKey(DAI, WETH, 3000, 2000 * 10**18): 10**18,
        }
    )


@pytest.fixture
def service(settings: Settings, mock_quoter: MockQuoter, registry: TokenRegistry) -> SwapService:
    """SwapService with a mock quoter and a frozen clock."""
    return SwapService(settings, mock_quoter, registry, clock=lambda: FIXED_NOW)


@pytest.fixture
def chain_client() -> FakeChainClient:
    """Wallet with plenty of balance and no allowance."""
    return FakeChainClient()
