"""Shared pytest fixtures for evm-deployments tests."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from evm_deployments.artifacts import HardhatArtifactProvider
from evm_deployments.constants import HARDHAT_DEFAULT_ACCOUNT
from evm_deployments.driver import TransactionDriver
from evm_deployments.exceptions import RpcError
from evm_deployments.ledger import DeploymentLedger
from evm_deployments.orchestrator import Orchestrator
from evm_deployments.sequencer import AddressRef, DependencyNode, DeploymentPlan
from evm_deployments.signers import NodeAccountSigner
from evm_deployments.types import ArtifactReference, DeploymentRecord, NetworkConfig

TOKEN_BYTECODE = "0x6080604052348015600f57600080fd5b50aa01"
WRAPPER_BYTECODE = "0x6080604052348015600f57600080fd5b50bb01"

TOKEN_ABI: List[Dict[str, Any]] = [
    {"type": "constructor", "inputs": [], "stateMutability": "nonpayable"},
    {
        "type": "function",
        "name": "decimals",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
    },
]

WRAPPER_ABI: List[Dict[str, Any]] = [
    {
        "type": "constructor",
        "inputs": [{"name": "token", "type": "address"}],
        "stateMutability": "nonpayable",
    },
]


class FakeChain:
    """In-memory chain client: every transaction creates a contract."""

    def __init__(self, chain_id: int = 31337, pending_polls: int = 0):
        self.chain_id_value = chain_id
        self.pending_polls = pending_polls  # Receipt misses before each receipt appears
        self.sent: List[Dict[str, Any]] = []
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.polls: Dict[str, int] = {}
        self.revert_prefixes: List[str] = []  # Deployments starting with these revert
        self.reject_prefixes: List[str] = []  # Deployments starting with these are refused
        self.receipt_overrides: Dict[str, Any] = {}  # Merged into every receipt
        self.call_results: Dict[str, str] = {}  # Lowercase address -> eth_call result
        self.calls: List[Dict[str, Any]] = []

    def chain_id(self) -> int:
        return self.chain_id_value

    def send_transaction(self, tx: Dict[str, Any]) -> str:
        data = tx["data"]
        if any(data.startswith(p) for p in self.reject_prefixes):
            raise RpcError("RPC error in eth_sendTransaction: insufficient funds", code=-32000)

        self.sent.append(tx)
        index = len(self.sent)
        tx_hash = "0x" + f"{index:064x}"
        reverted = any(data.startswith(p) for p in self.revert_prefixes)
        self.receipts[tx_hash] = {
            "transactionHash": tx_hash,
            "blockNumber": hex(100 + index),
            "blockHash": "0x" + "ab" * 32,
            "from": tx["from"].lower(),
            "status": "0x0" if reverted else "0x1",
            "contractAddress": None if reverted else "0x" + f"{0xC0DE0000 + index:040x}",
        }
        self.receipts[tx_hash].update(self.receipt_overrides)
        self.polls[tx_hash] = 0
        return tx_hash

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        self.polls[tx_hash] = self.polls.get(tx_hash, 0) + 1
        if self.polls[tx_hash] <= self.pending_polls:
            return None
        return self.receipts.get(tx_hash)

    def call(self, tx: Dict[str, Any], block: str = "latest") -> str:
        self.calls.append(tx)
        return self.call_results[tx["to"].lower()]

    @property
    def deployment_data(self) -> List[str]:
        return [tx["data"] for tx in self.sent]


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def local_network() -> NetworkConfig:
    return NetworkConfig(
        name="hardhat",
        chain_id=31337,
        rpc_url="http://127.0.0.1:8545",
        settle_delay=0.0,
        is_local=True,
    )


@pytest.fixture
def public_network() -> NetworkConfig:
    return NetworkConfig(
        name="sepolia",
        chain_id=11155111,
        rpc_url="http://sepolia-rpc.example.com",
        settle_delay=20.0,
        is_local=False,
        block_explorer_url="https://sepolia.etherscan.io",
    )


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def temp_ledger_dir(tmp_path: Path) -> Path:
    """Create a temporary ledger directory for tests."""
    ledger_dir = tmp_path / "deployments"
    ledger_dir.mkdir(parents=True, exist_ok=True)
    return ledger_dir


@pytest.fixture
def ledger(temp_ledger_dir: Path) -> DeploymentLedger:
    return DeploymentLedger(temp_ledger_dir)


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "artifacts"
    path.mkdir()
    return path


@pytest.fixture
def write_artifact(artifacts_dir: Path) -> Callable[..., Path]:
    """Return a function writing a Hardhat artifact file."""

    def _write(
        contract_name: str,
        bytecode: str,
        abi: Optional[List[Dict[str, Any]]] = None,
        source_path: Optional[str] = None,
    ) -> Path:
        source_path = source_path or f"contracts/{contract_name}.sol"
        path = artifacts_dir / source_path / f"{contract_name}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(
                {
                    "_format": "hh-sol-artifact-1",
                    "contractName": contract_name,
                    "sourceName": source_path,
                    "abi": abi if abi is not None else [],
                    "bytecode": bytecode,
                    "deployedBytecode": "0x",
                    "linkReferences": {},
                    "deployedLinkReferences": {},
                }
            )
        )
        return path

    return _write


@pytest.fixture
def token_and_wrapper(write_artifact: Callable[..., Path]) -> DeploymentPlan:
    """Write TokenA and Wrapper artifacts and return the two-node plan."""
    write_artifact("TokenA", TOKEN_BYTECODE, TOKEN_ABI)
    write_artifact("Wrapper", WRAPPER_BYTECODE, WRAPPER_ABI)
    return DeploymentPlan(
        name="wrapped-token",
        nodes=(
            DependencyNode("TokenA", ArtifactReference("TokenA")),
            DependencyNode("Wrapper", ArtifactReference("Wrapper"), (AddressRef("TokenA"),)),
        ),
    )


@pytest.fixture
def make_orchestrator(
    ledger: DeploymentLedger, artifacts_dir: Path, clock: FakeClock
) -> Callable[..., Orchestrator]:
    """Return a function building an Orchestrator over a fake chain."""

    def _make(chain: FakeChain, network: NetworkConfig, **kwargs: Any) -> Orchestrator:
        driver = TransactionDriver(
            chain,
            NodeAccountSigner(HARDHAT_DEFAULT_ACCOUNT),
            network,
            sleep=clock.sleep,
            clock=clock,
        )
        return Orchestrator(ledger, HardhatArtifactProvider(artifacts_dir), driver, network, **kwargs)

    return _make


@pytest.fixture
def sample_record() -> DeploymentRecord:
    return DeploymentRecord(
        address="0x00000000000000000000000000000000c0de0001",
        abi=TOKEN_ABI,
        bytecode=TOKEN_BYTECODE,
        network="sepolia",
        chain_id=11155111,
        receipt={
            "transactionHash": "0x" + "11" * 32,
            "blockNumber": "0x65",
            "status": "0x1",
            "contractAddress": "0x00000000000000000000000000000000c0de0001",
        },
        constructor_args=[],
    )
