"""
Ledger Capability
==================

Submits a payload to an external, append-only ledger and returns the
transaction reference. The production implementation sends a zero-value
self-transfer on an EVM chain with the payload in the transaction data,
signed with a process-held key.

Implementations may raise; the LedgerAnchor turns every failure into an
AnchorReceipt instead.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger("credverify.anchor.ledger")


class BaseLedger(ABC):
    """Abstract append-only ledger."""

    @abstractmethod
    async def submit(self, payload: bytes) -> str:
        """
        Record payload on the ledger.

        Args:
            payload: Bytes to embed in the transaction.

        Returns:
            Transaction reference (hash).
        """
        ...


class Web3Ledger(BaseLedger):
    """
    EVM ledger via web3.py.

    Each submission is a zero-value transfer from the signing account to
    itself, carrying the payload as calldata. web3.py is synchronous, so
    the whole sign/broadcast/wait sequence runs in a worker thread.

    Usage:
        ledger = Web3Ledger("https://rpc.sepolia.org", private_key="0x...")
        tx_ref = await ledger.submit(b"9f86d081884c7d65...")

    Args:
        provider_url: JSON-RPC endpoint.
        private_key: Hex private key of the signing account.
        gas_limit: Fixed gas, or None to let the node estimate it.
        receipt_timeout_s: How long to wait for the transaction to be mined.
    """

    def __init__(
        self,
        provider_url: str,
        private_key: str,
        gas_limit: Optional[int] = None,
        receipt_timeout_s: float = 60.0,
    ):
        self.provider_url = provider_url
        self.gas_limit = gas_limit
        self.receipt_timeout_s = receipt_timeout_s
        self._private_key = private_key
        self._w3 = None
        self._account = None

    def _connect(self):
        """Lazy-initialize the provider and signing account."""
        if self._w3 is None:
            from web3 import Web3

            self._w3 = Web3(
                Web3.HTTPProvider(
                    self.provider_url,
                    request_kwargs={"timeout": self.receipt_timeout_s},
                )
            )
            self._account = self._w3.eth.account.from_key(self._private_key)
            logger.info(f"Ledger account {self._account.address} via {self.provider_url}")
        return self._w3, self._account

    async def submit(self, payload: bytes) -> str:
        return await asyncio.to_thread(self._submit_sync, payload)

    def _submit_sync(self, payload: bytes) -> str:
        from web3 import Web3

        w3, account = self._connect()
        tx = {
            "from": account.address,
            "to": account.address,
            "value": 0,
            "data": Web3.to_hex(payload),
            "nonce": w3.eth.get_transaction_count(account.address, "pending"),
            "chainId": w3.eth.chain_id,
            "gasPrice": w3.eth.gas_price,
        }
        tx["gas"] = self.gas_limit or w3.eth.estimate_gas(tx)

        signed = account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_s)
        if receipt["status"] != 1:
            raise RuntimeError(f"Ledger transaction {Web3.to_hex(tx_hash)} reverted")
        return Web3.to_hex(receipt["transactionHash"])
