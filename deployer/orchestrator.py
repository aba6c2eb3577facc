"""
Deployment Orchestrator
Single-shot flow: load artifact, submit deployment, await confirmation, report address
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from web3 import Web3
from loguru import logger

from blockchain.artifact_loader import DeployableArtifact, load_artifact, resolve_artifact_path
from blockchain.network_client import NetworkClient, PendingTransaction
from blockchain.transaction_builder import TransactionBuilder
from deployer.config import DeploymentConfig
from deployer.signing_identity import DeploymentIntent, SigningIdentity
from utils.exceptions import (
    ConfigurationError,
    DeploymentError,
    DeploymentRevertedError,
    TransactionRejectedError,
)
from utils.gas_calculator import GasCalculator


class DeploymentState(str, Enum):
    START = "START"
    LOADED = "LOADED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


# FAILED is reachable from every non-terminal state
TRANSITIONS = {
    DeploymentState.START: {DeploymentState.LOADED},
    DeploymentState.LOADED: {DeploymentState.SUBMITTED},
    DeploymentState.SUBMITTED: {DeploymentState.CONFIRMED},
    DeploymentState.CONFIRMED: set(),
    DeploymentState.FAILED: set(),
}


@dataclass
class DeploymentResult:
    """Outcome of one deployment run"""

    state: DeploymentState
    contract_name: str
    address: Optional[str] = None
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    error: Optional[DeploymentError] = None

    @property
    def succeeded(self) -> bool:
        return self.state is DeploymentState.CONFIRMED

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1


def create_network_client(config: DeploymentConfig) -> NetworkClient:
    """Network client configured from deployment settings"""
    return NetworkClient(
        config.rpc_url,
        request_timeout=config.request_timeout,
        confirmation_timeout=config.confirmation_timeout,
        poll_interval=config.poll_interval,
        confirmations=config.confirmations
    )


class DeploymentOrchestrator:
    """
    Sequences loader, signing identity and network client for one deployment

    An orchestrator deploys once; create a new one for every run.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        network_client_factory: Callable[[DeploymentConfig], NetworkClient] = create_network_client,
        identity_factory: Callable = SigningIdentity,
        artifact_loader: Callable[..., DeployableArtifact] = load_artifact
    ):
        """
        Initialize Deployment Orchestrator

        Args:
            config: Deployment settings
            network_client_factory: Builds the network client from config
            identity_factory: Builds the signing identity (key, client, builder)
            artifact_loader: Loads the artifact (path, contract_name)
        """
        self.config = config
        self.network_client_factory = network_client_factory
        self.identity_factory = identity_factory
        self.artifact_loader = artifact_loader

        self.state = DeploymentState.START
        self.step = "artifact loading"
        self.network_client: Optional[NetworkClient] = None
        self.transaction_builder: Optional[TransactionBuilder] = None
        self.pending_transaction: Optional[PendingTransaction] = None
        self.result: Optional[DeploymentResult] = None

    def _transition(self, new_state: DeploymentState):
        if new_state is not DeploymentState.FAILED and new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal deployment transition {self.state.value} -> {new_state.value}")

        if new_state is DeploymentState.FAILED and not TRANSITIONS[self.state]:
            raise RuntimeError(f"Deployment already finished in {self.state.value}")

        logger.debug(f"Deployment state: {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def deploy(self) -> DeploymentResult:
        """
        Run the deployment

        Returns:
            DeploymentResult in CONFIRMED or FAILED state
        """
        if self.state is not DeploymentState.START:
            raise RuntimeError("Deployment orchestrator is single-shot; create a new one per run")

        contract_name = self.config.contract_name
        logger.info(f"Deploying {contract_name} contract...")

        try:
            artifact = self._load_artifact()
            self._transition(DeploymentState.LOADED)

            self.step = "connection"
            identity = self._create_identity()

            self.step = "transaction building"
            self.transaction_builder.encode_deployment_data(artifact, self.config.constructor_args)

            self.step = "submission"
            self.pending_transaction = identity.authorize_and_submit(
                DeploymentIntent(artifact=artifact, constructor_args=self.config.constructor_args)
            )
            self._transition(DeploymentState.SUBMITTED)

            self.step = "confirmation"
            receipt = await self.network_client.wait_for_confirmation(self.pending_transaction)
            address = self._extract_address(receipt)
            self._transition(DeploymentState.CONFIRMED)

        except DeploymentError as e:
            self._transition(DeploymentState.FAILED)
            logger.error(f"❌ Deployment failed in {self.step}: {type(e).__name__}: {e}")
            self.result = DeploymentResult(
                state=self.state,
                contract_name=contract_name,
                tx_hash=self.pending_transaction.tx_hash if self.pending_transaction else None,
                error=e
            )
            return self.result

        except BaseException:
            # Unexpected errors and cancellation still end the run
            if TRANSITIONS[self.state]:
                self._transition(DeploymentState.FAILED)
            raise

        logger.success("✅ Contract deployed successfully!")
        logger.success(f"Contract address: {address}")
        logger.success(f"Transaction hash: {self.pending_transaction.tx_hash}")
        logger.success(f"Gas used: {receipt.get('gasUsed')}")

        self.result = DeploymentResult(
            state=self.state,
            contract_name=contract_name,
            address=address,
            tx_hash=self.pending_transaction.tx_hash,
            block_number=receipt.get('blockNumber'),
            gas_used=receipt.get('gasUsed')
        )
        return self.result

    def _load_artifact(self) -> DeployableArtifact:
        """Resolve and load the artifact; no network access happens before this"""
        path = self.config.artifact_path or resolve_artifact_path(self.config.contract_name)
        return self.artifact_loader(path, self.config.contract_name)

    def _create_identity(self):
        """Create network client and signing identity (connects to the endpoint)"""
        self.network_client = self.network_client_factory(self.config)

        gas_calculator = GasCalculator(
            self.network_client,
            gas_limit_multiplier=self.config.gas_limit_multiplier,
            default_gas_limit=self.config.default_gas_limit,
            priority_fee_gwei=self.config.priority_fee_gwei,
            max_fee_gwei=self.config.max_fee_gwei
        )
        self.transaction_builder = TransactionBuilder(self.network_client, gas_calculator)

        identity = self.identity_factory(
            self.config.private_key, self.network_client, self.transaction_builder
        )

        expected_chain = self.config.chain_id
        if expected_chain is not None and self.network_client.chain_id != expected_chain:
            raise ConfigurationError(
                f"Endpoint {self.network_client.endpoint} is on chain "
                f"{self.network_client.chain_id}, expected {expected_chain}"
            )

        return identity

    def _extract_address(self, receipt: Dict) -> str:
        """Deployed address from a receipt; reverted or address-less receipts fail"""
        tx_hash = self.pending_transaction.tx_hash

        if receipt.get('status') != 1:
            raise DeploymentRevertedError(f"Deployment transaction {tx_hash} reverted")

        contract_address = receipt.get('contractAddress')
        if not contract_address:
            raise TransactionRejectedError(f"Receipt for {tx_hash} has no contract address")

        contract_address = Web3.to_checksum_address(contract_address)

        expected = self.pending_transaction.expected_address
        if expected and expected != contract_address:
            logger.warning(f"Receipt address {contract_address} differs from expected {expected}")

        return contract_address
