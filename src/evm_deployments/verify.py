"""Verification command generation from the deployment ledger."""

import json
import shlex
from typing import Any, List, Optional, Sequence

from .contracts import ContractHandle
from .exceptions import ContractNotFoundError, DependencyOrderError
from .ledger import DeploymentLedger
from .sequencer import AddressRef, DeploymentPlan, LiteralArg
from .types import DeploymentRecord


def _require_record(ledger: DeploymentLedger, logical_name: str, network: str) -> DeploymentRecord:
    record = ledger.record(logical_name, network)
    if record is None:
        raise ContractNotFoundError(f"'{logical_name}' is not deployed on '{network}'")
    return record


def resolve_args_from_ledger(
    plan: DeploymentPlan, logical_name: str, ledger: DeploymentLedger, network: str
) -> List[Any]:
    """
    Rebuild a node's constructor arguments from the addresses in the ledger.

    Raises:
        KeyError: If the node is not in the plan
        DependencyOrderError: If a referenced contract is not deployed on the network
    """
    resolved: List[Any] = []
    for arg in plan.node(logical_name).constructor_args:
        match arg:
            case AddressRef(logical_name=ref):
                upstream = ledger.record(ref, network)
                if upstream is None:
                    raise DependencyOrderError(
                        f"'{logical_name}' references '{ref}', not deployed on '{network}'"
                    )
                resolved.append(upstream.address)
            case LiteralArg(value=value):
                resolved.append(value)
    return resolved


def _format_arg(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return shlex.quote(json.dumps(value))
    return shlex.quote(str(value))


def verify_command(
    ledger: DeploymentLedger,
    logical_name: str,
    network: str,
    args: Optional[Sequence[Any]] = None,
    plan: Optional[DeploymentPlan] = None,
) -> str:
    """
    Build the ``hardhat verify`` command for a deployed contract.

    Constructor arguments come from, in order: ``args``, the arguments stored
    with the record, or the plan node resolved against the ledger.

    Raises:
        ContractNotFoundError: If the contract is not deployed on the network
        ValueError: If no constructor arguments can be determined
    """
    record = _require_record(ledger, logical_name, network)

    if args is None:
        if record.constructor_args is not None:
            args = record.constructor_args
        elif plan is not None:
            args = resolve_args_from_ledger(plan, logical_name, ledger, network)
        else:
            raise ValueError(
                f"No constructor arguments stored for '{logical_name}' on '{network}'; "
                "pass them explicitly or provide the deployment plan"
            )

    parts = ["npx", "hardhat", "verify", "--network", network, record.address]
    parts.extend(_format_arg(a) for a in args)
    return " ".join(parts)


def read_contract(
    ledger: DeploymentLedger,
    client: Any,
    logical_name: str,
    network: str,
    function_name: str,
    *args: Any,
) -> Any:
    """
    Read live state of a ledger contract, e.g. ``decimals()`` of a token.

    Raises:
        ContractNotFoundError: If the contract is not deployed on the network
    """
    record = _require_record(ledger, logical_name, network)
    handle = ContractHandle.from_record(logical_name, record, client)
    return handle.call(function_name, *args)
