"""
Gas Calculator
Gas limit and fee parameters for deployment transactions
"""

from decimal import Decimal
from typing import Dict, Optional
from web3 import Web3
from loguru import logger

from utils.exceptions import NetworkUnavailableError


class GasCalculator:
    """
    Picks gas limit and fee fields for a transaction

    EIP-1559 fields are used when the latest block carries a base fee,
    legacy gasPrice otherwise.
    """

    def __init__(
        self,
        network_client,
        gas_limit_multiplier: float = 1.2,
        default_gas_limit: int = 3_000_000,
        priority_fee_gwei: float = 1.5,
        max_fee_gwei: Optional[float] = None
    ):
        """
        Initialize Gas Calculator

        Args:
            network_client: NetworkClient used for node queries
            gas_limit_multiplier: Buffer applied on top of the node's estimate
            default_gas_limit: Used when estimation fails
            priority_fee_gwei: Tip used when the node suggests none
            max_fee_gwei: Hard cap for maxFeePerGas (None = uncapped)
        """
        self.network_client = network_client
        self.gas_limit_multiplier = gas_limit_multiplier
        self.default_gas_limit = default_gas_limit
        self.priority_fee_wei = _gwei_to_wei(priority_fee_gwei)
        self.max_fee_wei = _gwei_to_wei(max_fee_gwei) if max_fee_gwei is not None else None

    def estimate_gas_limit(self, tx: Dict) -> int:
        """
        Estimate gas limit with buffer

        Args:
            tx: Transaction fields ('from', 'data', 'value')

        Returns:
            Gas limit
        """
        try:
            gas_estimate = self.network_client.estimate_gas(tx)
        except NetworkUnavailableError:
            raise
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}, using default {self.default_gas_limit}")
            return self.default_gas_limit

        gas_limit = int(gas_estimate * self.gas_limit_multiplier)
        logger.info(f"Gas limit: {gas_limit} (estimate {gas_estimate})")
        return gas_limit

    def get_fee_params(self) -> Dict[str, int]:
        """
        Get fee fields for the next transaction

        Returns:
            {'maxFeePerGas', 'maxPriorityFeePerGas'} or {'gasPrice'}
        """
        latest_block = self.network_client.get_latest_block()
        base_fee_wei = latest_block.get('baseFeePerGas')

        if base_fee_wei is None:
            gas_price = self.network_client.gas_price()
            logger.info(f"Gas price: {Web3.from_wei(gas_price, 'gwei')} gwei (legacy)")
            return {'gasPrice': int(gas_price)}

        priority_fee_wei = self._suggested_priority_fee()

        # Max fee = base fee * 2 + priority fee (buffer for fluctuations)
        max_fee_wei = int(base_fee_wei) * 2 + priority_fee_wei

        if self.max_fee_wei is not None and max_fee_wei > self.max_fee_wei:
            logger.warning(
                f"Max fee {Web3.from_wei(max_fee_wei, 'gwei')} gwei capped at "
                f"{Web3.from_wei(self.max_fee_wei, 'gwei')} gwei"
            )
            max_fee_wei = self.max_fee_wei
            priority_fee_wei = min(priority_fee_wei, max_fee_wei)

        logger.info(
            f"Max fee: {Web3.from_wei(max_fee_wei, 'gwei')} gwei, "
            f"priority fee: {Web3.from_wei(priority_fee_wei, 'gwei')} gwei"
        )
        return {
            'maxFeePerGas': max_fee_wei,
            'maxPriorityFeePerGas': priority_fee_wei
        }

    def _suggested_priority_fee(self) -> int:
        """Node-suggested tip, falling back to the configured one"""
        try:
            return int(self.network_client.max_priority_fee())
        except NetworkUnavailableError:
            raise
        except Exception as e:
            logger.debug(f"No priority fee suggestion from node ({e}), using configured tip")
            return self.priority_fee_wei

    @staticmethod
    def estimate_cost(tx: Dict) -> int:
        """
        Upper bound of what a transaction can cost the sender

        Args:
            tx: Transaction dict with gas and fee fields

        Returns:
            Cost in wei (gas * fee + value)
        """
        fee_per_gas = tx.get('maxFeePerGas', tx.get('gasPrice', 0))
        return int(tx['gas']) * int(fee_per_gas) + int(tx.get('value', 0))


def _gwei_to_wei(amount_gwei: float) -> int:
    return int(Web3.to_wei(Decimal(str(amount_gwei)), 'gwei'))
