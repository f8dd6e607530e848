"""Unit tests for the deployment ledger."""

import json
import os
import stat
from dataclasses import replace
from pathlib import Path

import pytest

from evm_deployments.exceptions import LedgerUnavailable
from evm_deployments.ledger import DeploymentLedger
from evm_deployments.types import DeploymentRecord


class TestLedgerWrite:
    """Test writing records."""

    def test_write_then_read(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that a written record can be read back."""
        ledger.write("TokenA", "sepolia", sample_record)

        assert ledger.record("TokenA", "sepolia") == sample_record

    def test_document_layout(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that the document maps network name to the stored record."""
        ledger.write("TokenA", "sepolia", sample_record)

        with open(ledger.ledger_dir / "TokenA.json") as f:
            data = json.load(f)

        assert list(data) == ["sepolia"]
        assert data["sepolia"]["address"] == sample_record.address
        assert data["sepolia"]["chainId"] == 11155111

    def test_keeps_other_networks(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that writing one network keeps the entries of other networks."""
        local = replace(sample_record, network="hardhat", chain_id=31337)
        ledger.write("TokenA", "sepolia", sample_record)
        ledger.write("TokenA", "hardhat", local)

        records = ledger.read("TokenA")

        assert set(records) == {"sepolia", "hardhat"}
        assert records["sepolia"] == sample_record

    def test_overwrites_same_network(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that a new record replaces the previous one on the same network."""
        ledger.write("TokenA", "sepolia", sample_record)
        newer = replace(sample_record, address="0x00000000000000000000000000000000c0de0002")
        ledger.write("TokenA", "sepolia", newer)

        assert ledger.record("TokenA", "sepolia").address.endswith("c0de0002")

    def test_rejects_network_mismatch(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that a record cannot be filed under another network."""
        with pytest.raises(ValueError):
            ledger.write("TokenA", "mainnet", sample_record)

    def test_no_temporary_files_left(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that the atomic replace leaves only the document behind."""
        ledger.write("TokenA", "sepolia", sample_record)

        assert sorted(p.name for p in ledger.ledger_dir.iterdir()) == ["TokenA.json"]

    def test_document_mode_follows_umask(
        self, ledger: DeploymentLedger, sample_record: DeploymentRecord
    ):
        """Test that documents are readable by others under the usual umask."""
        previous = os.umask(0o022)
        try:
            ledger.write("TokenA", "sepolia", sample_record)
        finally:
            os.umask(previous)

        assert stat.S_IMODE((ledger.ledger_dir / "TokenA.json").stat().st_mode) == 0o644

    def test_failed_replace_keeps_previous_document(
        self, ledger: DeploymentLedger, sample_record: DeploymentRecord, monkeypatch
    ):
        """Test that a failing replace leaves the old document intact."""
        ledger.write("TokenA", "sepolia", sample_record)
        before = (ledger.ledger_dir / "TokenA.json").read_text()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)
        local = replace(sample_record, network="hardhat", chain_id=31337)

        with pytest.raises(LedgerUnavailable):
            ledger.write("TokenA", "hardhat", local)

        assert (ledger.ledger_dir / "TokenA.json").read_text() == before
        assert sorted(p.name for p in ledger.ledger_dir.iterdir()) == ["TokenA.json"]


class TestLedgerRead:
    """Test reading records."""

    def test_missing_document_is_empty(self, ledger: DeploymentLedger):
        """Test that a never deployed contract has no records."""
        assert ledger.read("Unknown") == {}
        assert ledger.record("Unknown", "sepolia") is None

    def test_corrupted_document_raises(self, ledger: DeploymentLedger):
        """Test that a corrupted document raises LedgerUnavailable."""
        (ledger.ledger_dir / "TokenA.json").write_text("{ invalid json")

        with pytest.raises(LedgerUnavailable):
            ledger.read("TokenA")

    def test_defective_record_raises(self, ledger: DeploymentLedger):
        """Test that a record missing fields raises LedgerUnavailable."""
        (ledger.ledger_dir / "TokenA.json").write_text(json.dumps({"sepolia": {"address": "0x1"}}))

        with pytest.raises(LedgerUnavailable):
            ledger.record("TokenA", "sepolia")

    def test_null_bytecode_fails_load(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that a record with null bytecode is rejected when the ledger loads."""
        ledger.write("TokenA", "sepolia", sample_record)
        path = ledger.ledger_dir / "TokenA.json"
        document = json.loads(path.read_text())
        document["sepolia"]["bytecode"] = None
        path.write_text(json.dumps(document))

        with pytest.raises(LedgerUnavailable, match="bytecode"):
            ledger.load()

    def test_names_lists_documents(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that names() lists logical names, skipping temporary files."""
        ledger.write("TokenA", "sepolia", sample_record)
        ledger.write("lock", "sepolia", sample_record)
        (ledger.ledger_dir / ".TokenA.abc.tmp").write_text("{}")

        assert ledger.names() == ["TokenA", "lock"]

    def test_names_without_directory(self, tmp_path: Path):
        """Test that a missing ledger directory lists nothing."""
        assert DeploymentLedger(tmp_path / "missing").names() == []


class TestLedgerLoad:
    """Test loading the whole ledger."""

    def test_creates_directory(self, tmp_path: Path):
        """Test that load() creates the ledger directory."""
        ledger = DeploymentLedger(tmp_path / "new" / "deployments")

        assert ledger.load() == {}
        assert ledger.ledger_dir.is_dir()

    def test_returns_all_documents(self, ledger: DeploymentLedger, sample_record: DeploymentRecord):
        """Test that load() returns every document by logical name."""
        ledger.write("TokenA", "sepolia", sample_record)

        assert ledger.load() == {"TokenA": {"sepolia": sample_record}}

    def test_directory_blocked_by_file(self, tmp_path: Path):
        """Test that a file in place of the ledger directory raises LedgerUnavailable."""
        blocker = tmp_path / "deployments"
        blocker.write_text("not a directory")

        with pytest.raises(LedgerUnavailable):
            DeploymentLedger(blocker).load()

    def test_corrupted_document_fails_load(self, ledger: DeploymentLedger):
        """Test that load() surfaces corrupted documents."""
        (ledger.ledger_dir / "TokenA.json").write_text("[1, 2")

        with pytest.raises(LedgerUnavailable):
            ledger.load()

    def test_default_directory(self, tmp_path: Path, monkeypatch):
        """Test that the default ledger is ./deployments."""
        monkeypatch.chdir(tmp_path)

        assert DeploymentLedger().ledger_dir == Path.cwd() / "deployments"
