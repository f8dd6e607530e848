"""Path management utilities for evm-deployments library."""

from pathlib import Path
from typing import Optional, Union


def get_default_ledger_dir() -> Path:
    """
    Get default ledger directory.

    Returns:
        Path to ./deployments
    """
    return Path.cwd() / "deployments"


def get_default_artifacts_dir() -> Path:
    """
    Get default Hardhat artifacts directory.

    Returns:
        Path to ./artifacts
    """
    return Path.cwd() / "artifacts"


def get_record_path(
    logical_name: str, ledger_dir: Optional[Union[Path, str]] = None
) -> Path:
    """
    Get the ledger document path for a logical contract name.

    Args:
        logical_name: Logical contract name, used as the file stem
        ledger_dir: Custom ledger directory (defaults to ./deployments)

    Returns:
        Path to <ledger_dir>/<logical_name>.json

    Raises:
        ValueError: If the name is empty, hidden, or contains a path separator
    """
    if not logical_name or logical_name.startswith("."):
        raise ValueError(f"Invalid logical contract name: '{logical_name}'")
    if "/" in logical_name or "\\" in logical_name:
        raise ValueError(
            f"Logical contract name must not contain path separators: '{logical_name}'"
        )

    if ledger_dir is None:
        ledger_dir = get_default_ledger_dir()
    else:
        ledger_dir = Path(ledger_dir).absolute()

    return ledger_dir / f"{logical_name}.json"
