"""
Blockchain Interaction Package
Handles artifact loading, deployment transaction building and RPC access
"""

from .artifact_loader import DeployableArtifact, load_artifact, resolve_artifact_path
from .network_client import NetworkClient, PendingTransaction
from .transaction_builder import TransactionBuilder

__all__ = [
    'DeployableArtifact',
    'load_artifact',
    'resolve_artifact_path',
    'NetworkClient',
    'PendingTransaction',
    'TransactionBuilder'
]
