"""Data types and dataclasses for evm-deployments library."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ArtifactReference:
    """
    How to find a compiled contract.

    A bare contract name is enough when it is unique in the artifact tree.
    Contracts sharing a name (e.g. several ``UltraVerifier``) are told apart by
    the source file that defines them.
    """

    contract_name: str  # e.g., "UltraVerifier"
    source_path: Optional[str] = None  # e.g., "contracts/lock/plonk_vk.sol"

    @property
    def qualified_name(self) -> str:
        if self.source_path:
            return f"{self.source_path}:{self.contract_name}"
        return self.contract_name

    @classmethod
    def parse(cls, name: str) -> "ArtifactReference":
        """
        Build a reference from a bare or fully qualified name.

        Args:
            name: "Contract" or "path/to/File.sol:Contract"

        Returns:
            ArtifactReference

        Raises:
            ValueError: If either part of a qualified name is empty
        """
        if ":" not in name:
            if not name:
                raise ValueError("Empty contract name")
            return cls(contract_name=name)

        source_path, _, contract_name = name.rpartition(":")
        if not source_path or not contract_name:
            raise ValueError(f"Malformed qualified contract name: '{name}'")
        return cls(contract_name=contract_name, source_path=source_path)

    def __str__(self) -> str:
        return self.qualified_name


@dataclass(frozen=True)
class ContractArtifact:
    """Compiled contract produced by the external compiler."""

    name: str  # Qualified name the artifact was resolved from
    abi: List[Dict[str, Any]] = field(hash=False)
    bytecode: str  # 0x-prefixed deployment bytecode
    reference: Optional[ArtifactReference] = None


@dataclass
class DeploymentRecord:
    """Persisted outcome of one deployment on one network."""

    # Required fields
    address: str  # Checksummed address
    abi: List[Dict[str, Any]]  # Full contract ABI
    bytecode: str  # Deployment bytecode, the fingerprint
    network: str  # e.g., "sepolia"
    chain_id: int  # e.g., 11155111
    receipt: Dict[str, Any]  # Raw JSON-RPC receipt fields

    # Optional fields
    constructor_args: Optional[List[Any]] = None  # JSON-safe resolved args

    @property
    def transaction_hash(self) -> Optional[str]:
        return self.receipt.get("transactionHash")

    @property
    def block_number(self) -> Optional[int]:
        block = self.receipt.get("blockNumber")
        if isinstance(block, str):
            return int(block, 16)
        return block


@dataclass(frozen=True)
class NetworkConfig:
    """Identity and timing policy of a target chain."""

    name: str  # Logical network name, ledger key
    chain_id: int
    rpc_url: str
    settle_delay: float  # Seconds to wait after each confirmed deployment
    is_local: bool = False
    block_explorer_url: Optional[str] = None
