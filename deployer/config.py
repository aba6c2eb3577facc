"""
Deployment Configuration
Settings from environment variables, .env and an optional JSON file
"""

import json
import math
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv
from loguru import logger

from blockchain.network_client import redact_url
from utils.exceptions import ConfigurationError


DEFAULT_CONFIG_PATH = "config/deploy_config.json"

# Values left over from unedited templates
PLACEHOLDERS = {'', 'CHANGE_ME', 'changeme', 'YOUR_RPC_URL', 'YOUR_PRIVATE_KEY'}

# field name -> (environment variable, JSON key)
SETTINGS = {
    'rpc_url': ('DEPLOY_RPC_URL', 'endpoint'),
    'private_key': ('DEPLOYER_PRIVATE_KEY', 'credential'),
    'contract_name': ('CONTRACT_NAME', 'contract_name'),
    'artifact_path': ('ARTIFACT_PATH', 'artifact_path'),
    'constructor_args': ('CONSTRUCTOR_ARGS', 'constructor_args'),
    'chain_id': ('CHAIN_ID', 'chain_id'),
    'confirmation_timeout': ('CONFIRMATION_TIMEOUT', 'confirmation_timeout'),
    'poll_interval': ('POLL_INTERVAL', 'poll_interval'),
    'confirmations': ('CONFIRMATIONS', 'confirmations'),
    'request_timeout': ('RPC_REQUEST_TIMEOUT', 'request_timeout'),
    'gas_limit_multiplier': ('GAS_LIMIT_MULTIPLIER', 'gas_limit_multiplier'),
    'default_gas_limit': ('DEFAULT_GAS_LIMIT', 'default_gas_limit'),
    'priority_fee_gwei': ('PRIORITY_FEE_GWEI', 'priority_fee_gwei'),
    'max_fee_gwei': ('MAX_FEE_GWEI', 'max_fee_gwei'),
}


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Everything one deployment run needs

    rpc_url and private_key are excluded from repr so the config can be logged.
    """

    rpc_url: str = field(repr=False)
    private_key: str = field(repr=False)
    contract_name: str = "Router"
    artifact_path: Optional[str] = None
    constructor_args: Tuple = ()
    chain_id: Optional[int] = None
    confirmation_timeout: float = 300
    poll_interval: float = 2.0
    confirmations: int = 1
    request_timeout: float = 30
    gas_limit_multiplier: float = 1.2
    default_gas_limit: int = 3_000_000
    priority_fee_gwei: float = 1.5
    max_fee_gwei: Optional[float] = None

    def __post_init__(self):
        for name in ('confirmation_timeout', 'poll_interval', 'request_timeout'):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive, finite number of seconds")

        if self.confirmations < 1:
            raise ConfigurationError("confirmations must be at least 1")

        for name in ('gas_limit_multiplier', 'priority_fee_gwei', 'max_fee_gwei'):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite")

        if self.gas_limit_multiplier < 1:
            raise ConfigurationError("gas_limit_multiplier must be at least 1.0")

        if self.default_gas_limit < 21000:
            raise ConfigurationError("default_gas_limit must be at least 21000")

    @property
    def endpoint(self) -> str:
        """Redacted endpoint, safe to log"""
        return redact_url(self.rpc_url)


def _to_tuple(value) -> Tuple:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"constructor_args must be a JSON list: {e}") from e

    if not isinstance(value, (list, tuple)):
        raise ConfigurationError("constructor_args must be a list")

    return tuple(value)


def _to_str(name: str) -> Callable[[Any], str]:
    """Converter for text settings; the value is not echoed since it may be a secret"""
    def convert(value) -> str:
        if not isinstance(value, str):
            raise ConfigurationError(f"{name} must be a string, got {type(value).__name__}")
        return value.strip()
    return convert


def _to_int(value) -> int:
    if isinstance(value, str):
        value = value.strip()
        return int(value, 16) if value.lower().startswith('0x') else int(value)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or int(value) != value:
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    'rpc_url': _to_str('endpoint'),
    'private_key': _to_str('credential'),
    'contract_name': _to_str('contract_name'),
    'artifact_path': _to_str('artifact_path'),
    'constructor_args': _to_tuple,
    'chain_id': _to_int,
    'confirmation_timeout': float,
    'poll_interval': float,
    'confirmations': _to_int,
    'request_timeout': float,
    'gas_limit_multiplier': float,
    'default_gas_limit': _to_int,
    'priority_fee_gwei': float,
    'max_fee_gwei': float,
}


def load_config_file(path: str) -> Dict:
    """
    Load JSON settings file

    Args:
        path: JSON file path

    Returns:
        Dict of settings keyed by JSON key
    """
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    return data


def load_config(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None
) -> DeploymentConfig:
    """
    Build DeploymentConfig from file and environment (environment wins)

    Args:
        config_path: JSON file (None = $DEPLOY_CONFIG, else config/deploy_config.json if present)
        env: Environment mapping (None = os.environ after loading .env)

    Returns:
        DeploymentConfig
    """
    if env is None:
        load_dotenv()
        env = os.environ

    if config_path is None:
        config_path = env.get('DEPLOY_CONFIG')
        if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
            config_path = DEFAULT_CONFIG_PATH

    file_settings = load_config_file(config_path) if config_path else {}

    values = {}
    for name, (env_var, json_key) in SETTINGS.items():
        raw = env.get(env_var)
        if raw is None or raw.strip() in PLACEHOLDERS:
            raw = file_settings.get(json_key)

        if raw is None or (isinstance(raw, str) and raw.strip() in PLACEHOLDERS):
            continue

        try:
            values[name] = CONVERTERS[name](raw)
        except ConfigurationError:
            raise
        except (TypeError, ValueError, OverflowError) as e:
            raise ConfigurationError(f"Invalid {env_var} / '{json_key}': {raw!r}") from e

    missing = [
        SETTINGS[name][0] for name in ('rpc_url', 'private_key') if name not in values
    ]
    if missing:
        raise ConfigurationError(f"{' and '.join(missing)} must be set (environment, .env or config file)")

    config = DeploymentConfig(**values)

    source = f" (file: {config_path})" if config_path else ""
    logger.debug(f"Loaded {config}{source}")
    return config
