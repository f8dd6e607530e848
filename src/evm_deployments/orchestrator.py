"""End-to-end deployment runs for evm-deployments library."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from eth_utils import to_checksum_address

from .artifacts import ArtifactProvider
from .contracts import ContractHandle
from .driver import TransactionDriver
from .exceptions import DeploymentError, NetworkMismatchError, RunAborted, RunCancelled
from .fingerprint import Deploy, Reuse, decide
from .ledger import DeploymentLedger
from .sequencer import DependencyNode, DeploymentPlan
from .types import DeploymentRecord, NetworkConfig

logger = logging.getLogger(__name__)


class NodeState(Enum):
    """
    Lifecycle of one plan node within a run.

    PENDING -> SKIPPED | DEPLOYED -> COMMITTED, or FAILED.
    """

    PENDING = "pending"
    SKIPPED = "skipped"
    DEPLOYED = "deployed"
    COMMITTED = "committed"
    FAILED = "failed"


class RunStatus(Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


@dataclass
class RunReport:
    """Working state and outcome of one orchestration run."""

    plan: str
    network: str
    status: RunStatus = RunStatus.RUNNING
    states: Dict[str, NodeState] = field(default_factory=dict)
    records: Dict[str, DeploymentRecord] = field(default_factory=dict)
    decisions: Dict[str, str] = field(default_factory=dict)  # "reuse" or "deploy"
    handles: Dict[str, ContractHandle] = field(default_factory=dict)
    committed: List[str] = field(default_factory=list)  # In commit order
    transactions_sent: int = 0
    failed_node: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def addresses(self) -> Dict[str, str]:
        """Checksummed addresses of nodes committed in this run."""
        return {name: to_checksum_address(self.records[name].address) for name in self.committed}

    @property
    def last_committed(self) -> Optional[str]:
        return self.committed[-1] if self.committed else None

    @property
    def deployed(self) -> List[str]:
        return [n for n in self.committed if self.decisions.get(n) == "deploy"]

    @property
    def reused(self) -> List[str]:
        return [n for n in self.committed if self.decisions.get(n) == "reuse"]


class Orchestrator:
    """
    Walks a deployment plan, reusing current deployments and deploying the rest.

    Nodes run strictly one after another: each node's constructor needs the
    addresses of earlier nodes, and a single signer cannot safely issue
    concurrent nonces. A cancellation request is only honored between nodes.
    """

    def __init__(
        self,
        ledger: DeploymentLedger,
        artifacts: ArtifactProvider,
        driver: TransactionDriver,
        network: NetworkConfig,
        *,
        force_redeploy: bool = False,
        reuse_ignores_arg_changes: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.ledger = ledger
        self.artifacts = artifacts
        self.driver = driver
        self.network = network
        self.force_redeploy = force_redeploy
        self.reuse_ignores_arg_changes = reuse_ignores_arg_changes
        self.cancel_event = cancel_event

    def run(self, plan: DeploymentPlan) -> RunReport:
        """
        Bring every contract of the plan up to date on the network.

        Args:
            plan: Topologically ordered deployment plan

        Returns:
            RunReport with status COMPLETED

        Raises:
            DependencyOrderError: If the plan is not properly ordered
            LedgerUnavailable: If the ledger cannot be loaded (nothing was sent)
            NetworkMismatchError: If the RPC endpoint serves another chain
            RunAborted: If a node failed; earlier nodes stay committed
            RunCancelled: If cancellation was requested between nodes
        """
        plan.validate()
        report = RunReport(
            plan=plan.name,
            network=self.network.name,
            states={node.logical_name: NodeState.PENDING for node in plan},
        )

        # Working copy for the run; writes go to disk and here
        working = self.ledger.load()
        self._check_chain()

        logger.info(
            "Running plan '%s' on %s (%d contracts)", plan.name, self.network.name, len(plan)
        )

        for node in plan:
            if self.cancel_event is not None and self.cancel_event.is_set():
                report.status = RunStatus.CANCELLED
                logger.warning(
                    "Run cancelled before %s; last committed: %s",
                    node.logical_name,
                    report.last_committed,
                )
                raise RunCancelled(report)

            try:
                self._run_node(node, report, working)
            except DeploymentError as e:
                report.states[node.logical_name] = NodeState.FAILED
                report.failed_node = node.logical_name
                report.error = e
                report.status = RunStatus.ABORTED
                logger.error(
                    "%s failed: %s. Committed: %s",
                    node.logical_name,
                    e,
                    ", ".join(report.committed) or "none",
                )
                raise RunAborted(report) from e

        report.status = RunStatus.COMPLETED
        logger.info(
            "Plan '%s' complete on %s: %d deployed, %d reused",
            plan.name,
            self.network.name,
            len(report.deployed),
            len(report.reused),
        )
        return report

    def _check_chain(self) -> None:
        chain_id = self.driver.client.chain_id()
        if chain_id != self.network.chain_id:
            raise NetworkMismatchError(
                f"RPC endpoint for '{self.network.name}' serves chain {chain_id}, "
                f"expected {self.network.chain_id}"
            )

    def _run_node(
        self,
        node: DependencyNode,
        report: RunReport,
        working: Dict[str, Dict[str, DeploymentRecord]],
    ) -> None:
        name = node.logical_name
        artifact = self.artifacts.get_artifact(node.artifact)

        # Only addresses committed in this run, never values from a previous run
        args = node.resolve_args(report.addresses)

        cached = working.get(name, {}).get(self.network.name)
        decision = decide(
            cached,
            artifact,
            self.network.name,
            self.force_redeploy,
            constructor_args=args,
            reuse_ignores_arg_changes=self.reuse_ignores_arg_changes,
        )

        match decision:
            case Reuse(record=record):
                logger.info("%s contract found at %s, skipping deployment.", name, record.address)
                report.states[name] = NodeState.SKIPPED
                report.decisions[name] = "reuse"
            case Deploy(reason=reason):
                logger.info("Deploying %s (%s)", name, reason)
                record = self.driver.submit(name, artifact, args)
                report.transactions_sent += 1
                report.states[name] = NodeState.DEPLOYED
                report.decisions[name] = "deploy"
                self.ledger.write(name, self.network.name, record)
                working.setdefault(name, {})[self.network.name] = record

        report.records[name] = record
        report.handles[name] = ContractHandle.from_record(name, record, self.driver.client)
        report.committed.append(name)
        report.states[name] = NodeState.COMMITTED
