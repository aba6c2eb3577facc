"""
Unit Tests for Deployment Configuration
"""

import json

import pytest

from deployer.config import DeploymentConfig, load_config
from utils.exceptions import ConfigurationError
from tests.fakes import TEST_PRIVATE_KEY


RPC_URL = 'https://eth-sepolia.g.alchemy.com/v2/s3cr3t-api-key'


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """No stray config/deploy_config.json from the working tree"""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def minimal_env():
    return {'DEPLOY_RPC_URL': RPC_URL, 'DEPLOYER_PRIVATE_KEY': TEST_PRIVATE_KEY}


@pytest.fixture
def config_file(tmp_path):
    def _write(settings):
        path = tmp_path / 'deploy.json'
        path.write_text(json.dumps(settings))
        return str(path)
    return _write


class TestEnvironment:
    """Test environment-only configuration"""

    def test_defaults(self, minimal_env):
        config = load_config(env=minimal_env)

        assert config.rpc_url == RPC_URL
        assert config.private_key == TEST_PRIVATE_KEY
        assert config.contract_name == 'Router'
        assert config.artifact_path is None
        assert config.constructor_args == ()
        assert config.chain_id is None
        assert config.confirmation_timeout == 300
        assert config.confirmations == 1
        assert config.gas_limit_multiplier == 1.2
        assert config.default_gas_limit == 3_000_000

    def test_overrides(self, minimal_env):
        env = dict(
            minimal_env,
            CONTRACT_NAME='Vault',
            CONSTRUCTOR_ARGS='["0x70997970C51812dc3A010C7d01b50e0d17dc79C8", 30]',
            CHAIN_ID='0x7a69',
            CONFIRMATION_TIMEOUT='45',
            CONFIRMATIONS='2',
            MAX_FEE_GWEI='80'
        )

        config = load_config(env=env)

        assert config.contract_name == 'Vault'
        assert config.constructor_args == ('0x70997970C51812dc3A010C7d01b50e0d17dc79C8', 30)
        assert config.chain_id == 31337
        assert config.confirmation_timeout == 45.0
        assert config.confirmations == 2
        assert config.max_fee_gwei == 80.0

    @pytest.mark.parametrize('missing', ['DEPLOY_RPC_URL', 'DEPLOYER_PRIVATE_KEY'])
    def test_required_setting_missing(self, minimal_env, missing):
        env = dict(minimal_env)
        del env[missing]

        with pytest.raises(ConfigurationError, match=missing):
            load_config(env=env)

    def test_placeholder_counts_as_missing(self, minimal_env):
        env = dict(minimal_env, DEPLOYER_PRIVATE_KEY='CHANGE_ME')

        with pytest.raises(ConfigurationError, match='DEPLOYER_PRIVATE_KEY'):
            load_config(env=env)

    def test_invalid_number(self, minimal_env):
        env = dict(minimal_env, CONFIRMATION_TIMEOUT='soon')

        with pytest.raises(ConfigurationError, match='CONFIRMATION_TIMEOUT'):
            load_config(env=env)

    def test_constructor_args_not_a_list(self, minimal_env):
        with pytest.raises(ConfigurationError, match='constructor_args'):
            load_config(env=dict(minimal_env, CONSTRUCTOR_ARGS='{"owner": 1}'))

    @pytest.mark.parametrize('value', ['0', '-5', 'inf', 'nan', '-inf'])
    def test_timeout_must_be_bounded(self, minimal_env, value):
        with pytest.raises(ConfigurationError, match='confirmation_timeout'):
            load_config(env=dict(minimal_env, CONFIRMATION_TIMEOUT=value))

    @pytest.mark.parametrize('setting', ['POLL_INTERVAL', 'RPC_REQUEST_TIMEOUT'])
    def test_other_timeouts_must_be_finite(self, minimal_env, setting):
        with pytest.raises(ConfigurationError):
            load_config(env=dict(minimal_env, **{setting: 'inf'}))

    def test_fee_settings_must_be_finite(self, minimal_env):
        with pytest.raises(ConfigurationError, match='max_fee_gwei'):
            load_config(env=dict(minimal_env, MAX_FEE_GWEI='nan'))

    def test_error_is_a_value_error(self, minimal_env):
        with pytest.raises(ValueError):
            load_config(env=dict(minimal_env, CONFIRMATIONS='0'))


class TestConfigFile:
    """Test JSON settings file"""

    def test_file_only(self, config_file):
        path = config_file({
            'endpoint': 'http://127.0.0.1:8545',
            'credential': TEST_PRIVATE_KEY,
            'contract_name': 'Router',
            'artifact_path': 'out/Router.sol/Router.json',
            'constructor_args': [1, 'two'],
            'chain_id': 31337,
            'confirmation_timeout': 120
        })

        config = load_config(config_path=path, env={})

        assert config.rpc_url == 'http://127.0.0.1:8545'
        assert config.artifact_path == 'out/Router.sol/Router.json'
        assert config.constructor_args == (1, 'two')
        assert config.chain_id == 31337
        assert config.confirmation_timeout == 120.0

    def test_environment_wins(self, config_file, minimal_env):
        path = config_file({'endpoint': 'http://127.0.0.1:8545', 'contract_name': 'Vault'})

        config = load_config(config_path=path, env=minimal_env)

        assert config.rpc_url == RPC_URL
        assert config.contract_name == 'Vault'

    def test_placeholder_env_falls_back_to_file(self, config_file, minimal_env):
        path = config_file({'endpoint': 'http://127.0.0.1:8545'})
        env = dict(minimal_env, DEPLOY_RPC_URL='YOUR_RPC_URL')

        config = load_config(config_path=path, env=env)

        assert config.rpc_url == 'http://127.0.0.1:8545'

    def test_path_from_environment(self, config_file, minimal_env):
        path = config_file({'contract_name': 'Vault'})

        config = load_config(env=dict(minimal_env, DEPLOY_CONFIG=path))

        assert config.contract_name == 'Vault'

    def test_default_path(self, tmp_path, minimal_env):
        (tmp_path / 'config').mkdir()
        (tmp_path / 'config' / 'deploy_config.json').write_text(json.dumps({'contract_name': 'Vault'}))

        config = load_config(env=minimal_env)

        assert config.contract_name == 'Vault'

    def test_missing_file(self, tmp_path, minimal_env):
        with pytest.raises(ConfigurationError, match='not found'):
            load_config(config_path=str(tmp_path / 'nope.json'), env=minimal_env)

    def test_invalid_json(self, tmp_path, minimal_env):
        path = tmp_path / 'broken.json'
        path.write_text('{endpoint: ')

        with pytest.raises(ConfigurationError, match='not valid JSON'):
            load_config(config_path=str(path), env=minimal_env)

    def test_not_an_object(self, config_file, minimal_env):
        with pytest.raises(ConfigurationError, match='JSON object'):
            load_config(config_path=config_file([1, 2]), env=minimal_env)

    def test_float_chain_id_rejected(self, config_file, minimal_env):
        with pytest.raises(ConfigurationError, match='CHAIN_ID'):
            load_config(config_path=config_file({'chain_id': 1.5}), env=minimal_env)

    def test_infinite_chain_id_rejected(self, config_file, minimal_env):
        with pytest.raises(ConfigurationError, match='CHAIN_ID'):
            load_config(config_path=config_file({'chain_id': float('inf')}), env=minimal_env)

    @pytest.mark.parametrize('key', ['endpoint', 'credential', 'contract_name', 'artifact_path'])
    def test_text_settings_must_be_strings(self, config_file, key):
        settings = {'endpoint': 'http://127.0.0.1:8545', 'credential': TEST_PRIVATE_KEY}
        settings[key] = 8545

        with pytest.raises(ConfigurationError, match=key) as exc_info:
            load_config(config_path=config_file(settings), env={})

        assert '8545' not in str(exc_info.value)


class TestSecrets:
    """Test that secrets stay out of output"""

    def test_repr_hides_secrets(self, minimal_env):
        config = load_config(env=minimal_env)

        assert TEST_PRIVATE_KEY[2:] not in repr(config)
        assert 's3cr3t-api-key' not in repr(config)
        assert 'Router' in repr(config)

    def test_endpoint_is_redacted(self, minimal_env):
        config = load_config(env=minimal_env)

        assert config.endpoint == 'https://eth-sepolia.g.alchemy.com'

    def test_secrets_not_logged(self, minimal_env, log_messages):
        load_config(env=minimal_env)

        assert log_messages
        for message in log_messages:
            assert TEST_PRIVATE_KEY[2:] not in message
            assert 's3cr3t-api-key' not in message


def test_direct_construction_validates():
    with pytest.raises(ConfigurationError):
        DeploymentConfig(rpc_url='http://x', private_key=TEST_PRIVATE_KEY, gas_limit_multiplier=0.5)


if __name__ == "__main__":
    pytest.main([__file__, '-v'])
