"""
Contract Deployer Package
Handles configuration, the signing identity and the deployment flow
"""

from .config import DeploymentConfig, load_config
from .signing_identity import DeploymentIntent, SigningIdentity
from .orchestrator import DeploymentOrchestrator, DeploymentResult, DeploymentState

__all__ = [
    'DeploymentConfig',
    'load_config',
    'DeploymentIntent',
    'SigningIdentity',
    'DeploymentOrchestrator',
    'DeploymentResult',
    'DeploymentState'
]
