"""Settings and signer selection for evm-deployments library."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import DEFAULT_RECEIPT_TIMEOUT, HARDHAT_DEFAULT_ACCOUNT, NETWORK_CONFIG
from .exceptions import ConfigurationError, NetworkNotFoundError
from .paths import get_default_artifacts_dir, get_default_ledger_dir
from .signers import LocalAccountSigner, NodeAccountSigner, Signer
from .types import NetworkConfig

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def get_network(
    name: str, rpc_url: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> NetworkConfig:
    """
    Build the configuration of a known network.

    The RPC URL is taken from, in order: ``rpc_url``, the network's environment
    variable (e.g. $SEPOLIA_RPC_URL), the local default for dev networks.

    Raises:
        NetworkNotFoundError: If the network is unknown
        ConfigurationError: If no RPC URL is available
    """
    if name not in NETWORK_CONFIG:
        raise NetworkNotFoundError(
            f"Network '{name}' not configured; known networks: {', '.join(NETWORK_CONFIG)}"
        )
    if environ is None:
        environ = os.environ

    config = NETWORK_CONFIG[name]
    if rpc_url is None:
        rpc_url = environ.get(config["default_rpc_env"]) or config.get("default_rpc_url")
    if not rpc_url:
        raise ConfigurationError(
            f"RPC URL required for '{name}': set ${config['default_rpc_env']} "
            "or pass rpc_url"
        )

    return NetworkConfig(
        name=name,
        chain_id=config["chain_id"],
        rpc_url=rpc_url,
        settle_delay=config["settle_delay"],
        is_local=config["is_local"],
        block_explorer_url=config.get("block_explorer_url"),
    )


def _env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"${key} must be a boolean, got '{raw}'")


def _env_seconds(
    environ: Mapping[str, str], key: str, default: Optional[float]
) -> Optional[float]:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    if raw.strip().lower() == "none":
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"${key} must be a number of seconds, got '{raw}'") from e
    if value < 0:
        raise ConfigurationError(f"${key} must not be negative")
    return value


@dataclass
class DeploySettings:
    """Everything a deployment run needs from the operator."""

    network: NetworkConfig
    ledger_dir: Path
    artifacts_dir: Path
    private_key: Optional[str] = None
    deployer_address: Optional[str] = None
    receipt_timeout: Optional[float] = DEFAULT_RECEIPT_TIMEOUT
    settle_delay: Optional[float] = None  # None keeps the network default
    force_redeploy: bool = False
    reuse_ignores_arg_changes: bool = True

    @classmethod
    def from_env(
        cls,
        network_name: str,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "DeploySettings":
        """
        Read settings from environment variables.

        Args:
            network_name: Target network
            environ: Environment mapping (defaults to os.environ)
            **overrides: Explicit values taking precedence over the environment
                         (None values are ignored); ``rpc_url`` is accepted too

        Environment:
            <NETWORK>_RPC_URL, DEPLOYER_PRIVATE_KEY, DEPLOYER_ADDRESS,
            DEPLOY_LEDGER_DIR, DEPLOY_ARTIFACTS_DIR, DEPLOY_RECEIPT_TIMEOUT,
            DEPLOY_SETTLE_DELAY, DEPLOY_FORCE_REDEPLOY,
            DEPLOY_REUSE_IGNORES_ARG_CHANGES

        Raises:
            NetworkNotFoundError: If the network is unknown
            ConfigurationError: If a value is missing or malformed
        """
        if environ is None:
            environ = os.environ
        overrides = {k: v for k, v in overrides.items() if v is not None}

        network = get_network(network_name, overrides.pop("rpc_url", None), environ)

        values = {
            "network": network,
            "ledger_dir": Path(environ.get("DEPLOY_LEDGER_DIR") or get_default_ledger_dir()),
            "artifacts_dir": Path(
                environ.get("DEPLOY_ARTIFACTS_DIR") or get_default_artifacts_dir()
            ),
            "private_key": environ.get("DEPLOYER_PRIVATE_KEY") or None,
            "deployer_address": environ.get("DEPLOYER_ADDRESS") or None,
            "receipt_timeout": _env_seconds(
                environ, "DEPLOY_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT
            ),
            "settle_delay": _env_seconds(environ, "DEPLOY_SETTLE_DELAY", None),
            "force_redeploy": _env_bool(environ, "DEPLOY_FORCE_REDEPLOY", False),
            "reuse_ignores_arg_changes": _env_bool(
                environ, "DEPLOY_REUSE_IGNORES_ARG_CHANGES", True
            ),
        }
        values.update(overrides)
        for key in ("ledger_dir", "artifacts_dir"):
            values[key] = Path(values[key])
        return cls(**values)


def build_signer(settings: DeploySettings) -> Signer:
    """
    Pick the deployment signer.

    A private key wins, then an explicit node account. Local dev networks fall
    back to the default unlocked Hardhat account; public networks require one
    of the two.

    Raises:
        ConfigurationError: If no signer can be chosen
    """
    if settings.private_key:
        return LocalAccountSigner(settings.private_key)
    if settings.deployer_address:
        return NodeAccountSigner(settings.deployer_address)
    if settings.network.is_local:
        return NodeAccountSigner(HARDHAT_DEFAULT_ACCOUNT)
    raise ConfigurationError(
        f"No deployer for '{settings.network.name}': set $DEPLOYER_PRIVATE_KEY "
        "or $DEPLOYER_ADDRESS"
    )
