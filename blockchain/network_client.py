"""
Network Client
Connection to a JSON-RPC endpoint: submit transactions and await their confirmation
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

import requests
from web3 import Web3
from web3.exceptions import TransactionNotFound, Web3RPCError
from loguru import logger

from utils.exceptions import (
    ConfirmationTimeoutError,
    NetworkUnavailableError,
    TransactionRejectedError,
)


# Transport-level failures (endpoint down, DNS, timeouts)
# Their messages can contain the full URL, so only the type name is reported
TRANSPORT_ERRORS = (requests.exceptions.RequestException, OSError)


@dataclass(frozen=True)
class PendingTransaction:
    """Handle to a submitted, not yet confirmed transaction"""

    tx_hash: str
    sender: str
    nonce: int
    expected_address: Optional[str] = None
    submitted_at: float = field(default_factory=time.time)


def redact_url(url: str) -> str:
    """
    Strip credentials, path and query from an RPC URL for logging

    Hosted endpoints put API keys in the path (Alchemy, Infura) or in userinfo.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return '<invalid url>'

    if not parts.scheme or not parts.hostname:
        return '<invalid url>'

    host = parts.hostname
    try:
        if parts.port:
            host = f"{host}:{parts.port}"
    except ValueError:
        pass

    return f"{parts.scheme}://{host}"


class NetworkClient:
    """
    Wraps a Web3 HTTP connection to one remote execution endpoint
    """

    def __init__(
        self,
        rpc_url: str,
        request_timeout: float = 30,
        confirmation_timeout: float = 300,
        poll_interval: float = 2.0,
        confirmations: int = 1,
        w3: Optional[Web3] = None
    ):
        """
        Initialize Network Client

        Args:
            rpc_url: HTTP JSON-RPC endpoint
            request_timeout: Per-request HTTP timeout (seconds)
            confirmation_timeout: Default bound for wait_for_confirmation (seconds)
            poll_interval: Delay between receipt polls (seconds)
            confirmations: Blocks required on top of the receipt, inclusive
            w3: Pre-built Web3 instance (tests, custom providers)
        """
        self.endpoint = redact_url(rpc_url)
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.confirmations = max(1, confirmations)

        self.w3 = w3 if w3 is not None else Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': request_timeout})
        )

        self.chain_id: Optional[int] = None
        self.connected = False

    def connect(self) -> int:
        """
        Verify the endpoint answers and read its chain id

        Returns:
            Chain id reported by the endpoint
        """
        if self.connected:
            return self.chain_id

        logger.info(f"Connecting to {self.endpoint}...")

        try:
            is_connected = self.w3.is_connected()
        except TRANSPORT_ERRORS as e:
            raise NetworkUnavailableError(f"Endpoint {self.endpoint} unreachable ({type(e).__name__})") from e

        if not is_connected:
            raise NetworkUnavailableError(f"Failed to connect to {self.endpoint}")

        self.chain_id = int(self._call(lambda: self.w3.eth.chain_id, "chain id"))
        self.connected = True

        logger.success(f"Connected to {self.endpoint} (chain id {self.chain_id})")
        return self.chain_id

    def _call(self, fn: Callable[[], Any], description: str) -> Any:
        """Run a read-only RPC call, mapping transport failures"""
        try:
            return fn()
        except TRANSPORT_ERRORS as e:
            raise NetworkUnavailableError(
                f"Endpoint {self.endpoint} unreachable while fetching {description} ({type(e).__name__})"
            ) from e

    def get_transaction_count(self, address: str) -> int:
        """Next nonce for address (includes pending transactions)"""
        return int(self._call(
            lambda: self.w3.eth.get_transaction_count(address, 'pending'),
            "nonce"
        ))

    def get_balance(self, address: str) -> int:
        """Balance in wei"""
        return int(self._call(lambda: self.w3.eth.get_balance(address), "balance"))

    def gas_price(self) -> int:
        """Legacy gas price in wei"""
        return int(self._call(lambda: self.w3.eth.gas_price, "gas price"))

    def max_priority_fee(self) -> int:
        """Node-suggested priority fee in wei"""
        return int(self._call(lambda: self.w3.eth.max_priority_fee, "priority fee"))

    def get_latest_block(self) -> Dict:
        """Latest block header"""
        return self._call(lambda: self.w3.eth.get_block('latest'), "latest block")

    def estimate_gas(self, tx: Dict) -> int:
        """Gas estimate from the node (RPC errors propagate unchanged)"""
        return int(self._call(lambda: self.w3.eth.estimate_gas(tx), "gas estimate"))

    def block_number(self) -> int:
        """Current block height"""
        return int(self._call(lambda: self.w3.eth.block_number, "block number"))

    def send_raw_transaction(
        self,
        raw_transaction: bytes,
        sender: str,
        nonce: int,
        expected_address: Optional[str] = None
    ) -> PendingTransaction:
        """
        Submit a signed transaction

        Args:
            raw_transaction: Signed, RLP-encoded transaction
            sender: Sender address (for reporting)
            nonce: Nonce the transaction was signed with
            expected_address: Predicted contract address, if a deployment

        Returns:
            PendingTransaction
        """
        logger.info("Sending deployment transaction...")

        try:
            tx_hash = self.w3.eth.send_raw_transaction(raw_transaction)
        except TRANSPORT_ERRORS as e:
            raise NetworkUnavailableError(
                f"Endpoint {self.endpoint} unreachable while sending transaction ({type(e).__name__})"
            ) from e
        except (Web3RPCError, ValueError) as e:
            raise TransactionRejectedError(f"Transaction rejected by {self.endpoint}: {e}") from e

        pending = PendingTransaction(
            tx_hash=Web3.to_hex(tx_hash),
            sender=sender,
            nonce=nonce,
            expected_address=expected_address
        )

        logger.info(f"Transaction sent: {pending.tx_hash}")
        return pending

    async def wait_for_confirmation(
        self,
        pending: PendingTransaction,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None
    ) -> Dict:
        """
        Wait until the transaction is mined with enough confirmations

        Args:
            pending: Handle returned by send_raw_transaction
            timeout: Bound in seconds (None = client default)
            poll_interval: Delay between polls (None = client default)

        Returns:
            Transaction receipt
        """
        timeout = self.confirmation_timeout if timeout is None else timeout
        poll_interval = self.poll_interval if poll_interval is None else poll_interval

        logger.info(f"Waiting for confirmation (timeout {timeout}s)...")

        try:
            receipt = await asyncio.wait_for(
                self._poll_receipt(pending.tx_hash, poll_interval),
                timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise ConfirmationTimeoutError(
                f"Transaction {pending.tx_hash} not confirmed within {timeout}s"
            ) from e

        logger.info(
            f"Confirmed in block {receipt['blockNumber']} "
            f"({time.time() - pending.submitted_at:.1f}s after submission)"
        )
        return receipt

    async def _poll_receipt(self, tx_hash: str, poll_interval: float) -> Dict:
        """
        Poll for the receipt

        RPC calls run in the default executor so wait_for can cancel the
        wait while a request is still in flight.
        """
        loop = asyncio.get_running_loop()

        while True:
            try:
                receipt = await loop.run_in_executor(
                    None,
                    self.w3.eth.get_transaction_receipt,
                    tx_hash
                )
            except TransactionNotFound:
                receipt = None
            except TRANSPORT_ERRORS as e:
                raise NetworkUnavailableError(
                    f"Endpoint {self.endpoint} unreachable while awaiting {tx_hash} ({type(e).__name__})"
                ) from e

            if receipt is not None and receipt.get('blockNumber') is not None:
                if self.confirmations == 1:
                    return receipt

                head = await loop.run_in_executor(None, self.block_number)
                depth = head - receipt['blockNumber'] + 1
                if depth >= self.confirmations:
                    return receipt

                logger.debug(f"Mined, {depth}/{self.confirmations} confirmations")

            await asyncio.sleep(poll_interval)
