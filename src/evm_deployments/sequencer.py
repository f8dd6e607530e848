"""Dependency plans for evm-deployments library."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Set, Tuple, Union

from .exceptions import DependencyOrderError
from .paths import get_record_path
from .types import ArtifactReference


@dataclass(frozen=True)
class LiteralArg:
    """Constructor argument passed as is."""

    value: Any


@dataclass(frozen=True)
class AddressRef:
    """Constructor argument replaced by the address of an earlier node."""

    logical_name: str


ConstructorArg = Union[LiteralArg, AddressRef]


@dataclass(frozen=True)
class DependencyNode:
    """One deployment step."""

    logical_name: str
    artifact: ArtifactReference
    constructor_args: Tuple[ConstructorArg, ...] = ()

    @property
    def dependencies(self) -> List[str]:
        return [a.logical_name for a in self.constructor_args if isinstance(a, AddressRef)]

    def resolve_args(self, addresses: Mapping[str, str]) -> List[Any]:
        """
        Substitute upstream addresses into the constructor arguments.

        Args:
            addresses: Logical name -> address of nodes committed in this run

        Returns:
            Positional constructor arguments

        Raises:
            DependencyOrderError: If a referenced node has no address yet
        """
        resolved: List[Any] = []
        for arg in self.constructor_args:
            match arg:
                case AddressRef(logical_name=name):
                    if name not in addresses:
                        raise DependencyOrderError(
                            f"'{self.logical_name}' needs the address of '{name}', "
                            "which is not committed yet"
                        )
                    resolved.append(addresses[name])
                case LiteralArg(value=value):
                    resolved.append(value)
        return resolved


@dataclass(frozen=True)
class DeploymentPlan:
    """Topologically ordered deployment steps."""

    name: str
    nodes: Tuple[DependencyNode, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[DependencyNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def names(self) -> List[str]:
        return [n.logical_name for n in self.nodes]

    def node(self, logical_name: str) -> DependencyNode:
        for node in self.nodes:
            if node.logical_name == logical_name:
                return node
        raise KeyError(logical_name)

    def validate(self) -> None:
        """
        Check that every address reference points strictly backwards.

        Raises:
            DependencyOrderError: On duplicates, forward or self references,
                or names unusable as ledger keys
        """
        seen: Set[str] = set()
        for node in self.nodes:
            try:
                get_record_path(node.logical_name)
            except ValueError as e:
                raise DependencyOrderError(f"Plan '{self.name}': {e}") from e
            if node.logical_name in seen:
                raise DependencyOrderError(
                    f"Plan '{self.name}' deploys '{node.logical_name}' twice"
                )
            for dep in node.dependencies:
                if dep not in seen:
                    raise DependencyOrderError(
                        f"In plan '{self.name}', '{node.logical_name}' references '{dep}' "
                        "which is not deployed before it"
                    )
            seen.add(node.logical_name)

    def for_target(self, logical_name: str) -> "DeploymentPlan":
        """
        Sub-plan deploying one contract and everything it depends on.

        Args:
            logical_name: Contract to deploy

        Returns:
            DeploymentPlan keeping the original order

        Raises:
            KeyError: If the contract is not part of this plan
        """
        by_name = {n.logical_name: n for n in self.nodes}
        if logical_name not in by_name:
            raise KeyError(logical_name)

        needed: Set[str] = set()
        pending = [logical_name]
        while pending:
            name = pending.pop()
            if name in needed:
                continue
            needed.add(name)
            pending.extend(by_name[name].dependencies)

        return DeploymentPlan(
            name=logical_name,
            nodes=tuple(n for n in self.nodes if n.logical_name in needed),
        )


def _parse_arg(raw: Any, source: str) -> ConstructorArg:
    if isinstance(raw, dict) and set(raw) == {"ref"}:
        return AddressRef(raw["ref"])
    if isinstance(raw, dict) and set(raw) == {"value"}:
        return LiteralArg(raw["value"])
    raise ValueError(f"Constructor argument in {source} must be {{'ref': ...}} or {{'value': ...}}: {raw!r}")


def parse_plan(data: Dict[str, Any], source: str = "<memory>") -> DeploymentPlan:
    """
    Build a plan from its JSON form.

    Format::

        {
          "name": "wrapped-token",
          "contracts": [
            {"name": "TokenA", "artifact": "contracts/TokenA.sol:TokenA"},
            {"name": "Wrapper", "artifact": "Wrapper", "args": [{"ref": "TokenA"}, {"value": 18}]}
          ]
        }

    Raises:
        ValueError: If the document is malformed
        DependencyOrderError: If references do not point backwards
    """
    try:
        contracts = data["contracts"]
        nodes = tuple(
            DependencyNode(
                logical_name=entry["name"],
                artifact=ArtifactReference.parse(entry.get("artifact", entry["name"])),
                constructor_args=tuple(_parse_arg(a, source) for a in entry.get("args", [])),
            )
            for entry in contracts
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed deployment plan {source}: {e}") from e

    plan = DeploymentPlan(name=data.get("name", Path(source).stem), nodes=nodes)
    plan.validate()
    return plan


def load_plan(file_path: Union[Path, str]) -> DeploymentPlan:
    """Load a deployment plan from a JSON file."""
    file_path = Path(file_path)
    with open(file_path) as f:
        data = json.load(f)
    return parse_plan(data, str(file_path))
