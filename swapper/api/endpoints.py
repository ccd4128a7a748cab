"""API endpoints for quoting and swapping."""

import asyncio
from functools import partial

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field
from web3 import Web3

from swapper.chain import ChainClient, make_web3
from swapper.config import Settings, load_settings
from swapper.service import SwapService
from swapper.tokens import TokenRegistry
from swapper.types import AmountString

logger = structlog.get_logger()

router = APIRouter()


class SwapRequest(BaseModel):
    """Body shared by /quote and /swap."""

    amount_in: AmountString = Field(alias="amountIn")
    token_in: str = Field(alias="tokenIn", min_length=1)
    token_out: str = Field(alias="tokenOut", min_length=1)

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    fee_tier: int = Field(alias="feeTier")
    amount_out: str = Field(alias="amountOut", description="Output in whole-token units")
    amount_out_raw: str = Field(alias="amountOutRaw", description="Output in base units")

    model_config = {"populate_by_name": True}


class SwapResponse(BaseModel):
    transaction_hash: str = Field(alias="transactionHash")
    fee_tier: int = Field(alias="feeTier")
    amount_out_minimum: str = Field(alias="amountOutMinimum")

    model_config = {"populate_by_name": True}


def get_settings(request: Request) -> Settings:
    """Settings attached to the app, loaded from the environment on first use.

    Override in tests:
        app.dependency_overrides[get_settings] = lambda: Settings(rpc_url=...)
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = load_settings()
        request.app.state.settings = settings
    return settings


def get_registry(request: Request, settings: Settings = Depends(get_settings)) -> TokenRegistry:
    """Token registry read once from the configured mapping file."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        if settings.token_mapping_path is not None:
            registry = TokenRegistry.from_file(settings.token_mapping_path)
        else:
            registry = TokenRegistry()
        request.app.state.registry = registry
    return registry


def get_web3(settings: Settings = Depends(get_settings)) -> Web3:
    """A fresh node connection for this request."""
    return make_web3(settings.rpc_url)


def get_service(
    settings: Settings = Depends(get_settings),
    w3: Web3 = Depends(get_web3),
    registry: TokenRegistry = Depends(get_registry),
) -> SwapService:
    """Dependency provider for the swap service.

    Override this in tests to inject a service with a mock quoter:
        app.dependency_overrides[get_service] = lambda: service
    """
    return SwapService.from_settings(settings, w3, registry)


def get_signer(
    authorization: str | None = Header(default=None),
    w3: Web3 = Depends(get_web3),
) -> ChainClient:
    """Signing wallet built from the private key in the Authorization header."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Private key required in Authorization header")
    return ChainClient.from_private_key(w3, authorization)


@router.post("/quote", response_model=QuoteResponse)
async def quote(
    body: SwapRequest,
    service: SwapService = Depends(get_service),
) -> QuoteResponse:
    """Estimate the output for an exact input amount.

    Error Handling:
        - Malformed body, amount or token: 400
        - No fee tier can service the amount: 500
    """
    logger.info("received_quote", token_in=body.token_in, token_out=body.token_out, amount_in=body.amount_in)

    loop = asyncio.get_running_loop()
    summary = await loop.run_in_executor(
        None, service.quote, body.amount_in, body.token_in, body.token_out
    )

    return QuoteResponse(
        fee_tier=summary.fee,
        amount_out=summary.amount_out_formatted,
        amount_out_raw=str(summary.amount_out),
    )


@router.post("/swap", response_model=SwapResponse)
async def swap(
    body: SwapRequest,
    service: SwapService = Depends(get_service),
    signer: ChainClient = Depends(get_signer),
) -> SwapResponse:
    """Execute an exact-input swap signed with the caller's key.

    Error Handling:
        - Missing Authorization header: 401
        - Malformed body, amount, token or key; insufficient balance: 400
        - No fee tier can service the amount: 500
        - Node rejected or reverted approval or swap: 502
    """
    logger.info(
        "received_swap",
        token_in=body.token_in,
        token_out=body.token_out,
        amount_in=body.amount_in,
        sender=signer.address,
    )

    loop = asyncio.get_running_loop()
    receipt = await loop.run_in_executor(
        None,
        partial(service.swap, signer, body.amount_in, body.token_in, body.token_out),
    )

    logger.info("swap_confirmed", tx_hash=receipt.transaction_hash, fee=receipt.fee)

    return SwapResponse(
        transaction_hash=receipt.transaction_hash,
        fee_tier=receipt.fee,
        amount_out_minimum=str(receipt.amount_out_minimum),
    )
