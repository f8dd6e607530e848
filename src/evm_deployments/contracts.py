"""Live contract handles for evm-deployments library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from eth_utils import to_checksum_address

from .abi import contract_factory, decode_output
from .types import DeploymentRecord


@dataclass
class ContractHandle:
    """A deployed contract bound to a chain client, for read-only calls."""

    name: str
    address: str
    abi: List[Dict[str, Any]]
    client: Any = field(repr=False, compare=False)

    def __post_init__(self):
        self.address = to_checksum_address(self.address)
        self._contract = contract_factory(self.abi, address=self.address)

    @classmethod
    def from_record(cls, name: str, record: DeploymentRecord, client: Any) -> "ContractHandle":
        return cls(name=name, address=record.address, abi=record.abi, client=client)

    def call(self, function_name: str, *args: Any, block: str = "latest") -> Any:
        """
        Call a view function through eth_call.

        Returns:
            The single return value, or a tuple when the function returns several

        Raises:
            ValueError: If the ABI has no function of that name
            web3.exceptions.Web3Exception: If the arguments do not fit the function
            RpcError: If the call fails on the node
        """
        function = self._contract.get_function_by_name(function_name)
        data = self._contract.encode_abi(function_name, args=list(args))
        raw = self.client.call({"to": self.address, "data": data}, block)
        decoded = decode_output(function.abi, raw)
        if len(decoded) == 1:
            return decoded[0]
        return decoded
