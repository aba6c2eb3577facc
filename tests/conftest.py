"""
Shared fixtures: artifact files, configuration and log capture
"""

import json

import pytest
from loguru import logger

from blockchain.artifact_loader import DeployableArtifact
from deployer.config import DeploymentConfig
from tests.fakes import TEST_PRIVATE_KEY, FakeNetworkClient


@pytest.fixture
def fake_client():
    return FakeNetworkClient()


@pytest.fixture
def artifact():
    """Minimal deployable artifact: no ABI, STOP as init code"""
    return DeployableArtifact(
        contract_name='Router',
        abi=(),
        bytecode='0x00',
        source_path='out/Router.sol/Router.json'
    )


@pytest.fixture
def write_artifact(tmp_path):
    """Write an artifact JSON file and return its path"""
    def _write(content, name='Router.json'):
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(json.dumps(content))
        return str(path)
    return _write


@pytest.fixture
def artifact_path(write_artifact):
    return write_artifact({'abi': [], 'bytecode': '0x00'})


@pytest.fixture
def config(artifact_path):
    return DeploymentConfig(
        rpc_url='http://127.0.0.1:8545',
        private_key=TEST_PRIVATE_KEY,
        contract_name='Router',
        artifact_path=artifact_path,
        confirmation_timeout=1,
        poll_interval=0.01
    )


@pytest.fixture
def log_messages():
    """Capture loguru output"""
    messages = []
    handler_id = logger.add(messages.append, level='DEBUG', format='{message}')
    yield messages
    logger.remove(handler_id)
