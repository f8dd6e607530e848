"""Ledger document and artifact file parsers for evm-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ArtifactNotFound, DefectiveRecordError
from .types import ArtifactReference, ContractArtifact, DeploymentRecord

REQUIRED_RECORD_FIELDS = ("address", "abi", "bytecode", "network", "chainId", "receipt")


def parse_record(data: Dict[str, Any], source: str = "<memory>") -> DeploymentRecord:
    """
    Build a DeploymentRecord from its stored JSON form.

    Args:
        data: One network entry of a ledger document
        source: Where the entry came from, for error messages

    Returns:
        DeploymentRecord

    Raises:
        DefectiveRecordError: If a required field is missing or mistyped
    """
    if not isinstance(data, dict):
        raise DefectiveRecordError(f"Deployment record in {source} is not an object")

    missing = [f for f in REQUIRED_RECORD_FIELDS if f not in data]
    if missing:
        raise DefectiveRecordError(
            f"Deployment record in {source} is missing fields: {', '.join(missing)}"
        )

    if not isinstance(data["abi"], list) or not isinstance(data["receipt"], dict):
        raise DefectiveRecordError(f"Deployment record in {source} has malformed abi or receipt")

    mistyped = [f for f in ("address", "bytecode", "network") if not isinstance(data[f], str)]
    if mistyped:
        raise DefectiveRecordError(
            f"Deployment record in {source} has non-string fields: {', '.join(mistyped)}"
        )
    if data.get("args") is not None and not isinstance(data["args"], list):
        raise DefectiveRecordError(f"Deployment record in {source} has malformed args")

    try:
        chain_id = int(data["chainId"])
    except (TypeError, ValueError) as e:
        raise DefectiveRecordError(f"Invalid chainId in {source}: {data['chainId']!r}") from e

    return DeploymentRecord(
        address=data["address"],
        abi=data["abi"],
        bytecode=data["bytecode"],
        network=data["network"],
        chain_id=chain_id,
        receipt=data["receipt"],
        constructor_args=data.get("args"),
    )


def record_to_dict(record: DeploymentRecord) -> Dict[str, Any]:
    """
    Convert a DeploymentRecord to its stored JSON form.

    Field names follow the hardhat-deploy convention (``chainId``, ``args``)
    so other tooling can read the ledger directly.
    """
    result: Dict[str, Any] = {
        "address": record.address,
        "abi": record.abi,
        "bytecode": record.bytecode,
        "network": record.network,
        "chainId": record.chain_id,
        "receipt": record.receipt,
    }
    if record.constructor_args is not None:
        result["args"] = record.constructor_args
    return result


def parse_ledger_document(file_path: Path) -> Dict[str, DeploymentRecord]:
    """
    Parse a per-contract ledger document.

    Args:
        file_path: Path to <ledger_dir>/<logical_name>.json

    Returns:
        Dictionary mapping network name -> DeploymentRecord

    Raises:
        FileNotFoundError: If the document does not exist
        json.JSONDecodeError: If the document is not valid JSON
        DefectiveRecordError: If the document or one of its records is malformed
    """
    with open(file_path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise DefectiveRecordError(f"Ledger document {file_path} is not an object")

    result: Dict[str, DeploymentRecord] = {}
    for network, entry in data.items():
        record = parse_record(entry, f"{file_path} [{network}]")
        if record.network != network:
            raise DefectiveRecordError(
                f"Record under '{network}' in {file_path} claims network '{record.network}'"
            )
        result[network] = record
    return result


def parse_hardhat_artifact(
    file_path: Path, reference: Optional[ArtifactReference] = None
) -> ContractArtifact:
    """
    Parse a Hardhat compilation artifact.

    Args:
        file_path: Path to artifacts/<source path>/<Contract>.json
        reference: Reference the artifact is being resolved for

    Returns:
        ContractArtifact

    Raises:
        ArtifactNotFound: If the file is unreadable or lacks abi/bytecode
    """
    try:
        with open(file_path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ArtifactNotFound(f"Cannot read artifact {file_path}: {e}") from e

    if "abi" not in data or "bytecode" not in data:
        raise ArtifactNotFound(f"Artifact {file_path} has no abi or bytecode")

    if reference is None:
        reference = ArtifactReference(
            contract_name=data.get("contractName", file_path.stem),
            source_path=data.get("sourceName"),
        )

    bytecode = data["bytecode"]
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode

    return ContractArtifact(
        name=reference.qualified_name,
        abi=data["abi"],
        bytecode=bytecode,
        reference=reference,
    )
