"""Custom exception classes for evm-deployments library."""

from typing import Any, Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class LedgerUnavailable(DeploymentError, OSError):
    """Raised when the deployment ledger cannot be read or written."""

    pass


class DefectiveRecordError(DeploymentError, ValueError):
    """Raised when a ledger document holds a malformed deployment record."""

    pass


class ArtifactNotFound(DeploymentError, LookupError):
    """Raised when a compiled artifact cannot be resolved."""

    pass


class DependencyOrderError(DeploymentError, ValueError):
    """Raised when a plan references a contract that is not deployed before it."""

    pass


class NetworkNotFoundError(DeploymentError, ValueError):
    """Raised when requested network is not configured."""

    pass


class ContractNotFoundError(DeploymentError, ValueError):
    """Raised when requested contract is not in the ledger for a network."""

    pass


class NetworkMismatchError(DeploymentError, ValueError):
    """Raised when the RPC endpoint reports a different chain than configured."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when required settings are missing or malformed."""

    pass


class RpcError(DeploymentError, RuntimeError):
    """Raised when a JSON-RPC call returns an error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class RpcTransportError(RpcError):
    """Raised when the RPC endpoint cannot be reached or answers with a bad status."""

    pass


class SignerRejected(DeploymentError, RuntimeError):
    """Raised when the signer refuses or fails to sign a transaction."""

    pass


class DeploymentFailed(DeploymentError, RuntimeError):
    """Raised when a contract-creation transaction cannot be completed."""

    def __init__(self, logical_name: str, cause: Any):
        super().__init__(f"Deployment of '{logical_name}' failed: {cause}")
        self.logical_name = logical_name
        self.cause = cause


class ReceiptTimeout(DeploymentError, TimeoutError):
    """Raised when no receipt is available within the configured bound."""

    def __init__(self, logical_name: str, tx_hash: str, timeout: float):
        super().__init__(
            f"No receipt for '{logical_name}' transaction {tx_hash} "
            f"after {timeout:g}s; re-run to resume"
        )
        self.logical_name = logical_name
        self.tx_hash = tx_hash
        self.timeout = timeout


class RunAborted(DeploymentError, RuntimeError):
    """Raised when a node fails and the rest of the plan is abandoned."""

    def __init__(self, report: Any):
        last = report.last_committed or "none"
        super().__init__(
            f"Run of plan '{report.plan}' on '{report.network}' aborted at "
            f"'{report.failed_node}' (last committed: {last}): {report.error}"
        )
        self.report = report


class RunCancelled(DeploymentError, RuntimeError):
    """Raised when a cancellation request is honored between nodes."""

    def __init__(self, report: Any):
        last = report.last_committed or "none"
        super().__init__(
            f"Run of plan '{report.plan}' on '{report.network}' cancelled "
            f"(last committed: {last})"
        )
        self.report = report
