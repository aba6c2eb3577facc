"""
Preflight Check
Verifies configuration, artifact, RPC connection and deployer funds without sending anything
"""

import sys
from typing import Callable, Mapping, Optional

from web3 import Web3
from loguru import logger

from blockchain.artifact_loader import load_artifact, resolve_artifact_path
from blockchain.transaction_builder import TransactionBuilder
from deployer.config import DeploymentConfig, load_config
from deployer.orchestrator import create_network_client
from deployer.signing_identity import SigningIdentity
from utils.exceptions import DeploymentError
from utils.gas_calculator import GasCalculator


def check_configuration(config_path: Optional[str] = None, env: Optional[Mapping[str, str]] = None):
    """Load settings; returns DeploymentConfig or None"""
    logger.info("Checking configuration...")

    try:
        config = load_config(config_path, env)
    except DeploymentError as e:
        logger.error(f"  ✗ {e}")
        return None

    logger.success(f"  ✓ Endpoint {config.endpoint}, contract {config.contract_name}")
    return config


def check_credential(config: DeploymentConfig) -> Optional[str]:
    """Validate the private key; returns the deployer address or None"""
    logger.info("Checking deployer key...")

    try:
        account = SigningIdentity._load_account(config.private_key)
    except DeploymentError as e:
        logger.error(f"  ✗ {e}")
        return None

    logger.success(f"  ✓ Deployer: {account.address}")
    return account.address


def check_artifact(config: DeploymentConfig):
    """Load the artifact; returns DeployableArtifact or None"""
    logger.info("Checking contract artifact...")

    try:
        path = config.artifact_path or resolve_artifact_path(config.contract_name)
        artifact = load_artifact(path, config.contract_name)
    except DeploymentError as e:
        logger.error(f"  ✗ {e}")
        return None

    logger.success(f"  ✓ {artifact.source_path} ({artifact.bytecode_size} bytes)")
    return artifact


def check_rpc_connection(config: DeploymentConfig, network_client_factory: Callable = create_network_client):
    """Connect to the endpoint; returns NetworkClient or None"""
    logger.info("Checking RPC connection...")

    try:
        client = network_client_factory(config)
        chain_id = client.connect()
        block = client.block_number()
    except DeploymentError as e:
        logger.error(f"  ✗ {e}")
        return None

    if config.chain_id is not None and chain_id != config.chain_id:
        logger.error(f"  ✗ Endpoint is on chain {chain_id}, expected {config.chain_id}")
        return None

    logger.success(f"  ✓ {config.endpoint}: chain {chain_id}, block {block}")
    return client


def check_deployment_cost(config: DeploymentConfig, client, artifact, address: str) -> bool:
    """Build (but do not sign) the deployment transaction and compare cost with balance"""
    logger.info("Checking deployer balance...")

    gas_calculator = GasCalculator(
        client,
        gas_limit_multiplier=config.gas_limit_multiplier,
        default_gas_limit=config.default_gas_limit,
        priority_fee_gwei=config.priority_fee_gwei,
        max_fee_gwei=config.max_fee_gwei
    )
    builder = TransactionBuilder(client, gas_calculator)

    try:
        tx = builder.build_deployment_tx(artifact, address, constructor_args=config.constructor_args)
        balance = client.get_balance(address)
    except DeploymentError as e:
        logger.error(f"  ✗ {e}")
        return False

    cost = GasCalculator.estimate_cost(tx)
    logger.info(f"  Balance: {Web3.from_wei(balance, 'ether')} ETH")
    logger.info(f"  Estimated cost: {Web3.from_wei(cost, 'ether')} ETH")

    if balance < cost:
        logger.error("  ✗ Insufficient balance for deployment")
        return False

    logger.success("  ✓ Balance sufficient")
    return True


def run_preflight(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    network_client_factory: Callable = create_network_client
) -> int:
    """
    Run all checks

    Returns:
        0 if every check passed, 1 otherwise
    """
    logger.info("=" * 70)
    logger.info("Deployment Preflight Check")
    logger.info("=" * 70)

    results = []

    config = check_configuration(config_path, env)
    results.append(("Configuration", config is not None))

    if config is not None:
        address = check_credential(config)
        results.append(("Deployer Key", address is not None))

        artifact = check_artifact(config)
        results.append(("Contract Artifact", artifact is not None))

        client = check_rpc_connection(config, network_client_factory)
        results.append(("RPC Connection", client is not None))

        if address and artifact and client:
            results.append(("Deployer Balance", check_deployment_cost(config, client, artifact, address)))
        else:
            logger.warning("Skipping balance check")
            results.append(("Deployer Balance", False))

    # Summary
    logger.info("")
    logger.info("=" * 70)
    logger.info("Summary")
    logger.info("=" * 70)

    passed = sum(1 for _, result in results if result)
    for name, result in results:
        status = "✓ PASS" if result else "✗ FAIL"
        logger.info(f"  {status}: {name}")

    logger.info(f"Total: {passed}/{len(results)} checks passed")

    if passed == len(results) and config is not None:
        logger.success("✅ Ready to deploy: python main.py")
        return 0

    logger.error("❌ Not ready - fix issues above")
    return 1


def main():
    sys.exit(run_preflight())


if __name__ == "__main__":
    main()
