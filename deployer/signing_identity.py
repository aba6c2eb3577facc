"""
Signing Identity
Holds the deployer key and turns deployment intents into signed, submitted transactions
"""

import re
from dataclasses import dataclass
from typing import Any, Tuple

from web3 import Web3
from web3.utils.address import get_create_address
from eth_account import Account
from loguru import logger

from blockchain.network_client import PendingTransaction
from blockchain.transaction_builder import TransactionBuilder
from utils.exceptions import InsufficientFundsError, InvalidCredentialError
from utils.gas_calculator import GasCalculator


PRIVATE_KEY_PATTERN = re.compile(r'^(0x)?[0-9a-fA-F]{64}$')


@dataclass(frozen=True)
class DeploymentIntent:
    """Deploy this payload with these constructor arguments"""

    artifact: Any
    constructor_args: Tuple = ()
    value: int = 0


class SigningIdentity:
    """
    Deployer account bound to one network client

    The private key stays inside the eth_account object; it is never logged,
    echoed in errors or exposed as an attribute.
    """

    def __init__(self, private_key: str, network_client, transaction_builder: TransactionBuilder = None):
        """
        Initialize Signing Identity

        Args:
            private_key: Hex-encoded secp256k1 key (with or without 0x)
            network_client: NetworkClient used for submission
            transaction_builder: Deployment transaction builder
        """
        self._account = self._load_account(private_key)
        self.address = self._account.address

        self.network_client = network_client
        self.network_client.connect()

        self.transaction_builder = transaction_builder or TransactionBuilder(network_client)

        logger.info(f"Deploying from: {self.address}")

    @staticmethod
    def _load_account(private_key: str):
        """Create the eth_account object, never echoing the key"""
        if not isinstance(private_key, str) or not PRIVATE_KEY_PATTERN.match(private_key.strip()):
            raise InvalidCredentialError("Private key must be 32 bytes of hex (optionally 0x-prefixed)")

        try:
            return Account.from_key(private_key.strip())
        except Exception:
            # Suppress the cause: library messages may include the key material
            raise InvalidCredentialError("Private key is not a valid secp256k1 key") from None

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address!r})"

    def authorize_and_submit(self, intent: DeploymentIntent) -> PendingTransaction:
        """
        Build, sign and submit a deployment transaction

        Args:
            intent: Artifact, constructor arguments and value to deploy

        Returns:
            PendingTransaction handle
        """
        artifact = intent.artifact
        logger.info(
            f"Deploying {artifact.contract_name} "
            f"{TransactionBuilder.constructor_signature(artifact)}"
        )

        tx = self.transaction_builder.build_deployment_tx(
            artifact,
            self.address,
            constructor_args=intent.constructor_args,
            value=intent.value
        )

        self._check_balance(tx)

        expected_address = get_create_address(self.address, tx['nonce'])
        logger.info(f"Expected contract address: {expected_address}")

        logger.info("Signing transaction...")
        signed_tx = self._account.sign_transaction(tx)

        return self.network_client.send_raw_transaction(
            signed_tx.raw_transaction,
            sender=self.address,
            nonce=tx['nonce'],
            expected_address=expected_address
        )

    def _check_balance(self, tx):
        """Refuse to submit when the balance cannot cover the worst-case cost"""
        balance = self.network_client.get_balance(self.address)
        cost = GasCalculator.estimate_cost(tx)

        logger.info(f"Account balance: {Web3.from_wei(balance, 'ether')} ETH")
        logger.info(f"Estimated deployment cost: {Web3.from_wei(cost, 'ether')} ETH")

        if balance < cost:
            raise InsufficientFundsError(
                f"Insufficient balance for deployment: have {Web3.from_wei(balance, 'ether')}, "
                f"need up to {Web3.from_wei(cost, 'ether')}"
            )
