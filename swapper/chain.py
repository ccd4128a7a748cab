"""Wallet-side RPC access: ERC-20 reads, approvals and raw transaction submission.

Every call goes to the node; any failure is re-raised as RemoteCallError so
callers see one error type for rejected or reverted calls.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from swapper.encoding import ERC20_ABI
from swapper.errors import RemoteCallError, SwapperError, ValidationError
from swapper.types import to_checksum_address

logger = structlog.get_logger()


def make_web3(rpc_url: str) -> Web3:
    """Create a Web3 instance for an HTTP JSON-RPC endpoint."""
    return Web3(Web3.HTTPProvider(rpc_url))


@contextmanager
def remote_call(operation: str) -> Iterator[None]:
    """Re-raise anything the node or transport throws as RemoteCallError."""
    try:
        yield
    except SwapperError:
        raise
    except Exception as e:
        logger.error("remote_call_failed", operation=operation, error=str(e))
        raise RemoteCallError(operation, str(e) or type(e).__name__) from e


class ChainClient:
    """Signing wallet bound to one node connection.

    Each request or script run builds its own client; nothing is shared
    between invocations.
    """

    def __init__(self, w3: Web3, account: LocalAccount):
        self.w3 = w3
        self.account = account

    @classmethod
    def from_private_key(cls, w3: Web3, private_key: str) -> ChainClient:
        """Build a client from a hex private key.

        Raises:
            ValidationError: If the key is malformed
        """
        try:
            account = Account.from_key(private_key.strip())
        except Exception as err:
            raise ValidationError("Malformed private key") from err
        return cls(w3, account)

    @property
    def address(self) -> str:
        return self.account.address

    def erc20(self, token: str) -> Any:
        return self.w3.eth.contract(address=to_checksum_address(token), abi=ERC20_ABI)

    def balance_of(self, token: str, owner: str | None = None) -> int:
        with remote_call("balanceOf"):
            return int(self.erc20(token).functions.balanceOf(owner or self.address).call())

    def allowance(self, token: str, spender: str, owner: str | None = None) -> int:
        with remote_call("allowance"):
            return int(
                self.erc20(token)
                .functions.allowance(owner or self.address, to_checksum_address(spender))
                .call()
            )

    def _base_params(self) -> dict[str, Any]:
        """Sender, nonce, chain id and fee fields for a new transaction."""
        params: dict[str, Any] = {
            "from": self.address,
            "nonce": self.w3.eth.get_transaction_count(self.address, "pending"),
            "chainId": self.w3.eth.chain_id,
        }
        base_fee = self.w3.eth.get_block("latest").get("baseFeePerGas")
        if base_fee is None:
            params["gasPrice"] = self.w3.eth.gas_price
        else:
            priority_fee = self.w3.eth.max_priority_fee
            params["maxPriorityFeePerGas"] = priority_fee
            params["maxFeePerGas"] = base_fee * 2 + priority_fee
        return params

    def _sign_and_send(self, tx: dict[str, Any]) -> str:
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return self.w3.to_hex(tx_hash)

    def approve(self, token: str, spender: str, amount: int) -> str:
        """Submit ERC-20 approve(spender, amount).

        Returns:
            Transaction hash (hex)
        """
        with remote_call("approve"):
            tx = (
                self.erc20(token)
                .functions.approve(to_checksum_address(spender), amount)
                .build_transaction(self._base_params())
            )
            tx_hash = self._sign_and_send(tx)
        logger.info("approval_sent", token=token, spender=spender, amount=amount, tx_hash=tx_hash)
        return tx_hash

    def send_transaction(self, to: str, data: str, value: int = 0, gas: int | None = None) -> str:
        """Sign and submit a transaction with prepared calldata.

        Returns:
            Transaction hash (hex)
        """
        with remote_call("send_transaction"):
            tx = self._base_params()
            tx.update({"to": to_checksum_address(to), "data": data, "value": value})
            tx["gas"] = gas if gas is not None else int(self.w3.eth.estimate_gas(tx))
            tx_hash = self._sign_and_send(tx)
        logger.info("transaction_sent", to=to, value=value, gas=tx["gas"], tx_hash=tx_hash)
        return tx_hash

    def wait_for_receipt(self, tx_hash: str, operation: str = "transaction") -> Any:
        """Block until the transaction is mined.

        Raises:
            RemoteCallError: If the wait fails or the transaction reverted
        """
        with remote_call(operation):
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt.get("status") == 0:
            raise RemoteCallError(operation, f"transaction {tx_hash} reverted")
        logger.info(
            "transaction_confirmed",
            operation=operation,
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
        )
        return receipt


__all__ = ["make_web3", "remote_call", "ChainClient"]
