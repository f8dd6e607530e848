"""Durable per-network deployment ledger for evm-deployments library."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import DefectiveRecordError, LedgerUnavailable
from .parsers import parse_ledger_document, record_to_dict
from .paths import get_default_ledger_dir, get_record_path
from .types import DeploymentRecord

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class DeploymentLedger:
    """
    Stores one JSON document per logical contract name.

    Each document maps network name to the record of the contract's live
    deployment on that network::

        deployments/PrivateToken.json
        {
          "sepolia": {"address": ..., "abi": [...], "bytecode": ..., "network": "sepolia",
                      "chainId": 11155111, "receipt": {...}, "args": [...]}
        }

    Documents are replaced atomically, so concurrent readers see either the
    previous or the new version of a document, never a partial one.
    """

    def __init__(self, ledger_dir: Optional[Union[Path, str]] = None):
        """
        Initialize the ledger.

        Args:
            ledger_dir: Directory holding the ledger documents
                        If None, uses ./deployments
        """
        if ledger_dir is None:
            ledger_dir = get_default_ledger_dir()
        self.ledger_dir = Path(ledger_dir).absolute()

    def path_for(self, logical_name: str) -> Path:
        return get_record_path(logical_name, self.ledger_dir)

    def names(self) -> List[str]:
        """
        List logical names that have a ledger document.

        Raises:
            LedgerUnavailable: If the ledger directory cannot be listed
        """
        if not self.ledger_dir.exists():
            return []
        try:
            return sorted(p.stem for p in self.ledger_dir.glob("*.json") if not p.name.startswith("."))
        except OSError as e:
            raise LedgerUnavailable(f"Cannot list ledger {self.ledger_dir}: {e}") from e

    def read(self, logical_name: str) -> Dict[str, DeploymentRecord]:
        """
        Read all network records for a contract.

        Args:
            logical_name: Logical contract name

        Returns:
            Dictionary mapping network -> DeploymentRecord
            Empty dict if the contract was never deployed

        Raises:
            LedgerUnavailable: If the document cannot be read or is corrupted
        """
        path = self.path_for(logical_name)
        try:
            return parse_ledger_document(path)
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, DefectiveRecordError) as e:
            raise LedgerUnavailable(f"Corrupted ledger document {path}: {e}") from e
        except OSError as e:
            raise LedgerUnavailable(f"Cannot read ledger document {path}: {e}") from e

    def record(self, logical_name: str, network: str) -> Optional[DeploymentRecord]:
        """Get the record of a contract on one network, or None."""
        return self.read(logical_name).get(network)

    def load(self) -> Dict[str, Dict[str, DeploymentRecord]]:
        """
        Read and validate the whole ledger.

        Creates the ledger directory if needed and checks it is writable, so
        storage faults surface before a run touches the chain.

        Returns:
            Dictionary mapping logical name -> network -> DeploymentRecord

        Raises:
            LedgerUnavailable: On any I/O, permission or format fault
        """
        try:
            self.ledger_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LedgerUnavailable(f"Cannot create ledger directory {self.ledger_dir}: {e}") from e

        if not os.access(self.ledger_dir, os.W_OK):
            raise LedgerUnavailable(f"Ledger directory {self.ledger_dir} is not writable")

        return {name: self.read(name) for name in self.names()}

    def write(self, logical_name: str, network: str, record: DeploymentRecord) -> None:
        """
        Store the record of a contract on one network.

        The document is re-read from disk so entries for other networks,
        possibly written by another run, are kept.

        Args:
            logical_name: Logical contract name
            network: Network name, must match record.network
            record: Complete deployment record

        Raises:
            ValueError: If the record belongs to another network
            LedgerUnavailable: If the document cannot be read or replaced
        """
        if record.network != network:
            raise ValueError(
                f"Record for network '{record.network}' cannot be stored under '{network}'"
            )

        records = self.read(logical_name)
        records[network] = record
        document = {net: record_to_dict(rec) for net, rec in records.items()}

        path = self.path_for(logical_name)
        try:
            self._replace(path, document)
        except OSError as e:
            raise LedgerUnavailable(f"Cannot write ledger document {path}: {e}") from e

        logger.debug("Ledger: %s on %s -> %s", logical_name, network, record.address)

    @staticmethod
    def _replace(path: Path, document: Dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            # mkstemp creates 0600 files; give the document the usual umask mode
            os.fchmod(fd, 0o666 & ~_current_umask())
            with os.fdopen(fd, "w") as f:
                json.dump(document, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
