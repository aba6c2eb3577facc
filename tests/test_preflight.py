"""
Unit Tests for the Preflight Check
"""

import dataclasses

import pytest

from deployer.preflight import (
    check_artifact,
    check_credential,
    check_deployment_cost,
    check_rpc_connection,
    run_preflight,
)
from tests.fakes import TEST_ADDRESS, TEST_PRIVATE_KEY, FakeNetworkClient


@pytest.fixture
def env(artifact_path):
    return {
        'DEPLOY_RPC_URL': 'http://127.0.0.1:8545',
        'DEPLOYER_PRIVATE_KEY': TEST_PRIVATE_KEY,
        'ARTIFACT_PATH': artifact_path
    }


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_all_checks_pass(env, fake_client):
    assert run_preflight(env=env, network_client_factory=lambda _config: fake_client) == 0
    assert fake_client.sent == []


def test_missing_configuration():
    assert run_preflight(env={}) == 1


def test_unreachable_endpoint(env):
    client = FakeNetworkClient(reachable=False)

    assert run_preflight(env=env, network_client_factory=lambda _config: client) == 1


def test_missing_artifact(env, fake_client, tmp_path):
    env = dict(env, ARTIFACT_PATH=str(tmp_path / 'missing.json'))

    assert run_preflight(env=env, network_client_factory=lambda _config: fake_client) == 1


def test_check_credential(config):
    assert check_credential(config) == TEST_ADDRESS


def test_check_credential_invalid(config):
    assert check_credential(dataclasses.replace(config, private_key='0x1234')) is None


def test_check_artifact(config):
    artifact = check_artifact(config)

    assert artifact.contract_name == 'Router'
    assert artifact.bytecode == '0x00'


def test_chain_id_mismatch(config, fake_client):
    config = dataclasses.replace(config, chain_id=1)

    assert check_rpc_connection(config, lambda _config: fake_client) is None


def test_insufficient_balance(config, artifact):
    client = FakeNetworkClient(balance=1)
    client.connect()

    assert check_deployment_cost(config, client, artifact, TEST_ADDRESS) is False


def test_sufficient_balance(config, fake_client, artifact):
    fake_client.connect()

    assert check_deployment_cost(config, fake_client, artifact, TEST_ADDRESS) is True
    assert fake_client.sent == []


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
