"""
Utilities Package
Error taxonomy and gas/fee policy
"""

from .exceptions import DeploymentError
from .gas_calculator import GasCalculator

__all__ = [
    'DeploymentError',
    'GasCalculator'
]
