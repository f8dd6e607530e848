"""Deploy-vs-reuse decisions for evm-deployments library."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union

from .abi import to_json_args
from .types import ContractArtifact, DeploymentRecord


@dataclass(frozen=True)
class Reuse:
    """The cached deployment is current; no transaction is needed."""

    record: DeploymentRecord


@dataclass(frozen=True)
class Deploy:
    """A new deployment is needed."""

    reason: str


Decision = Union[Reuse, Deploy]


def normalize_bytecode(bytecode: str) -> str:
    """Lowercase, 0x-prefixed form so equal bytes compare equal."""
    bytecode = bytecode.lower()
    if not bytecode.startswith("0x"):
        bytecode = "0x" + bytecode
    return bytecode


def _normalize_arg(value: Any) -> Any:
    if isinstance(value, str) and value.startswith(("0x", "0X")):
        return value.lower()
    if isinstance(value, list):
        return [_normalize_arg(v) for v in value]
    return value


def args_match(stored: Optional[Sequence[Any]], resolved: Sequence[Any]) -> bool:
    """Compare stored and freshly resolved constructor args, hex case-insensitively."""
    if stored is None:
        return False
    return _normalize_arg(list(stored)) == _normalize_arg(to_json_args(resolved))


def decide(
    cached_record: Optional[DeploymentRecord],
    fresh_artifact: ContractArtifact,
    network: str,
    force_redeploy: bool = False,
    *,
    constructor_args: Optional[Sequence[Any]] = None,
    reuse_ignores_arg_changes: bool = True,
) -> Decision:
    """
    Decide whether a contract must be (re)deployed on a network.

    The deployment bytecode is the staleness signal. Constructor arguments are
    not part of it, so by default a contract whose upstream address changed is
    still reused. Pass ``reuse_ignores_arg_changes=False`` to also require the
    stored arguments to equal ``constructor_args``.

    Args:
        cached_record: Ledger record for the target network, if any
        fresh_artifact: Freshly compiled artifact
        network: Target network name
        force_redeploy: Always deploy
        constructor_args: Resolved arguments for the upcoming deployment
        reuse_ignores_arg_changes: Keep the bytecode-only fingerprint

    Returns:
        Reuse(cached_record) or Deploy(reason)
    """
    if force_redeploy:
        return Deploy("redeploy forced")

    if cached_record is None or cached_record.network != network:
        return Deploy(f"no deployment on {network}")

    if normalize_bytecode(cached_record.bytecode) != normalize_bytecode(fresh_artifact.bytecode):
        return Deploy("bytecode changed")

    if not reuse_ignores_arg_changes and not args_match(
        cached_record.constructor_args, constructor_args or []
    ):
        return Deploy("constructor arguments changed")

    return Reuse(cached_record)
