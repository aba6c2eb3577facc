"""
Deployment Errors
Error taxonomy shared by the loader, network client, signer and orchestrator
"""


class DeploymentError(Exception):
    """Base class for every error that fails a deployment run"""


class ConfigurationError(DeploymentError, ValueError):
    """Missing or invalid deployment settings"""


class ArtifactError(DeploymentError):
    """Problem with the compiled contract artifact"""


class ArtifactNotFoundError(ArtifactError):
    """Artifact file does not exist"""


class ArtifactMalformedError(ArtifactError):
    """Artifact does not parse into an ABI and bytecode"""


class ConstructorArgumentError(DeploymentError):
    """Constructor arguments do not match the ABI constructor"""


class InvalidCredentialError(DeploymentError):
    """Signing secret is malformed (never carries the secret itself)"""


class NetworkConnectionError(DeploymentError, ConnectionError):
    """Network client could not be reached"""


class NetworkUnavailableError(NetworkConnectionError):
    """RPC endpoint is unreachable or stopped answering"""


class TransactionRejectedError(DeploymentError):
    """Remote endpoint refused the transaction"""


class InsufficientFundsError(TransactionRejectedError):
    """Sender balance does not cover gas and value"""


class DeploymentRevertedError(TransactionRejectedError):
    """Deployment transaction was mined but reverted"""


class ConfirmationTimeoutError(DeploymentError, TimeoutError):
    """Finality was not observed within the configured bound"""
