"""
Transaction Builder
Constructs contract deployment transactions
"""

from typing import Dict, List, Sequence
from eth_abi import encode
from eth_abi.exceptions import EncodingError, ParseError
from loguru import logger

from utils.exceptions import ConstructorArgumentError
from utils.gas_calculator import GasCalculator


def abi_type(abi_input: Dict) -> str:
    """
    Canonical type string of an ABI input, expanding tuples

    Args:
        abi_input: ABI parameter entry ({'type': ..., 'components': ...})

    Returns:
        Type string usable with eth_abi, e.g. '(address,uint256)[]'
    """
    type_str = abi_input['type']

    if type_str.startswith('tuple'):
        components = ','.join(abi_type(c) for c in abi_input.get('components', []))
        return f"({components}){type_str[len('tuple'):]}"

    return type_str


class TransactionBuilder:
    """
    Builds deployment transactions: bytecode + ABI-encoded constructor arguments
    """

    def __init__(self, network_client, gas_calculator: GasCalculator = None):
        """
        Initialize Transaction Builder

        Args:
            network_client: NetworkClient for nonce, chain id and gas queries
            gas_calculator: Gas/fee policy (defaults to GasCalculator defaults)
        """
        self.network_client = network_client
        self.gas_calculator = gas_calculator or GasCalculator(network_client)

    def encode_deployment_data(self, artifact, constructor_args: Sequence = ()) -> str:
        """
        Encode init code for a deployment

        Args:
            artifact: DeployableArtifact
            constructor_args: Constructor arguments, in ABI order

        Returns:
            Hex string: bytecode followed by encoded arguments
        """
        inputs = artifact.constructor_inputs
        args = list(constructor_args)

        if len(args) != len(inputs):
            raise ConstructorArgumentError(
                f"{artifact.contract_name} constructor takes {len(inputs)} "
                f"argument(s), got {len(args)}"
            )

        if not inputs:
            return artifact.bytecode

        types = [abi_type(inp) for inp in inputs]

        try:
            encoded_args = encode(types, args)
        except (EncodingError, ParseError, TypeError, ValueError) as e:
            raise ConstructorArgumentError(
                f"Cannot encode {artifact.contract_name} constructor arguments "
                f"as ({','.join(types)}): {e}"
            ) from e

        return artifact.bytecode + encoded_args.hex()

    def build_deployment_tx(
        self,
        artifact,
        sender: str,
        constructor_args: Sequence = (),
        value: int = 0
    ) -> Dict:
        """
        Build an unsigned deployment transaction

        Args:
            artifact: DeployableArtifact
            sender: Deployer address
            constructor_args: Constructor arguments
            value: Wei sent to a payable constructor

        Returns:
            Transaction dict (no 'to' field)
        """
        logger.info("Building deployment transaction...")

        data = self.encode_deployment_data(artifact, constructor_args)

        nonce = self.network_client.get_transaction_count(sender)
        chain_id = self.network_client.chain_id
        if chain_id is None:
            chain_id = self.network_client.connect()

        gas_limit = self.gas_calculator.estimate_gas_limit({
            'from': sender,
            'data': data,
            'value': value
        })

        tx = {
            'from': sender,
            'nonce': nonce,
            'value': value,
            'gas': gas_limit,
            'data': data,
            'chainId': chain_id
        }
        tx.update(self.gas_calculator.get_fee_params())

        logger.debug(f"Deployment transaction: nonce {nonce}, chain {chain_id}, gas {gas_limit}")
        return tx

    @staticmethod
    def constructor_signature(artifact) -> str:
        """Human-readable constructor signature for logs"""
        inputs: List[Dict] = artifact.constructor_inputs
        params = ', '.join(
            f"{abi_type(inp)} {inp.get('name', '')}".strip() for inp in inputs
        )
        return f"constructor({params})"
