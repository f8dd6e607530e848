"""
evm-deployments: deploy interdependent contracts and keep a per-network deployment ledger
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import HardhatArtifactProvider
from .config import DeploySettings, build_signer, get_network
from .contracts import ContractHandle
from .driver import TransactionDriver
from .exceptions import (
    ArtifactNotFound,
    ConfigurationError,
    ContractNotFoundError,
    DefectiveRecordError,
    DependencyOrderError,
    DeploymentError,
    DeploymentFailed,
    LedgerUnavailable,
    NetworkMismatchError,
    NetworkNotFoundError,
    ReceiptTimeout,
    RpcError,
    RpcTransportError,
    RunAborted,
    RunCancelled,
    SignerRejected,
)
from .fingerprint import Deploy, Reuse, decide
from .ledger import DeploymentLedger
from .orchestrator import NodeState, Orchestrator, RunReport, RunStatus
from .rpc import JsonRpcClient
from .sequencer import AddressRef, DependencyNode, DeploymentPlan, LiteralArg, load_plan
from .signers import LocalAccountSigner, NodeAccountSigner
from .types import ArtifactReference, ContractArtifact, DeploymentRecord, NetworkConfig

try:
    __version__ = version("evm-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Orchestrator",
    "RunReport",
    "RunStatus",
    "NodeState",
    "DeploymentLedger",
    "TransactionDriver",
    "decide",
    "Reuse",
    "Deploy",
    "DeploymentPlan",
    "DependencyNode",
    "LiteralArg",
    "AddressRef",
    "load_plan",
    "HardhatArtifactProvider",
    "JsonRpcClient",
    "NodeAccountSigner",
    "LocalAccountSigner",
    "ContractHandle",
    "DeploySettings",
    "build_signer",
    "get_network",
    "ArtifactReference",
    "ContractArtifact",
    "DeploymentRecord",
    "NetworkConfig",
    "DeploymentError",
    "LedgerUnavailable",
    "DefectiveRecordError",
    "ArtifactNotFound",
    "DependencyOrderError",
    "NetworkNotFoundError",
    "NetworkMismatchError",
    "ContractNotFoundError",
    "ConfigurationError",
    "RpcError",
    "RpcTransportError",
    "SignerRejected",
    "DeploymentFailed",
    "ReceiptTimeout",
    "RunAborted",
    "RunCancelled",
]
