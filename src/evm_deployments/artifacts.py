"""Compiled artifact lookup for evm-deployments library."""

from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from .exceptions import ArtifactNotFound
from .parsers import parse_hardhat_artifact
from .paths import get_default_artifacts_dir
from .types import ArtifactReference, ContractArtifact


class ArtifactProvider(Protocol):
    """Turns an artifact reference into a compiled contract."""

    def get_artifact(self, reference: ArtifactReference) -> ContractArtifact: ...


class HardhatArtifactProvider:
    """
    Reads artifacts from a Hardhat ``artifacts/`` tree.

    Hardhat writes ``artifacts/<source path>/<Contract>.json`` for every
    compiled contract, plus ``.dbg.json`` companions and a ``build-info``
    directory, both of which are ignored here.
    """

    def __init__(self, artifacts_dir: Optional[Union[Path, str]] = None):
        if artifacts_dir is None:
            artifacts_dir = get_default_artifacts_dir()
        self.artifacts_dir = Path(artifacts_dir)
        self._cache: Dict[ArtifactReference, ContractArtifact] = {}

    def get_artifact(self, reference: ArtifactReference) -> ContractArtifact:
        """
        Resolve a reference to its compiled artifact.

        Args:
            reference: Bare or source-qualified contract reference

        Returns:
            ContractArtifact

        Raises:
            ArtifactNotFound: If no artifact matches, or a bare name matches
                several contracts
        """
        if reference in self._cache:
            return self._cache[reference]

        if reference.source_path:
            path = self.artifacts_dir / reference.source_path / f"{reference.contract_name}.json"
            if not path.exists():
                raise ArtifactNotFound(
                    f"No artifact for '{reference.qualified_name}' at {path}"
                )
        else:
            path = self._find_unique(reference.contract_name)

        artifact = parse_hardhat_artifact(path, reference)
        self._cache[reference] = artifact
        return artifact

    def _find_unique(self, contract_name: str) -> Path:
        candidates = self._candidates(contract_name)
        if not candidates:
            raise ArtifactNotFound(
                f"No artifact named '{contract_name}' under {self.artifacts_dir}"
            )
        if len(candidates) > 1:
            qualified = ", ".join(
                f"{p.parent.relative_to(self.artifacts_dir).as_posix()}:{contract_name}"
                for p in candidates
            )
            raise ArtifactNotFound(
                f"Multiple artifacts named '{contract_name}'; use a qualified name: {qualified}"
            )
        return candidates[0]

    def _candidates(self, contract_name: str) -> List[Path]:
        if not self.artifacts_dir.exists():
            return []
        return sorted(
            p
            for p in self.artifacts_dir.rglob(f"{contract_name}.json")
            if "build-info" not in p.relative_to(self.artifacts_dir).parts
        )
