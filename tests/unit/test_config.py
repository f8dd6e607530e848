"""Unit tests for settings and signer selection."""

from pathlib import Path

import pytest

from evm_deployments.config import DeploySettings, build_signer, get_network
from evm_deployments.constants import DEFAULT_RECEIPT_TIMEOUT, HARDHAT_DEFAULT_ACCOUNT
from evm_deployments.exceptions import ConfigurationError, NetworkNotFoundError
from evm_deployments.signers import LocalAccountSigner, NodeAccountSigner

HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SEPOLIA_ENV = {"SEPOLIA_RPC_URL": "https://sepolia.example.com"}


class TestGetNetwork:
    """Test the get_network function."""

    def test_local_network_defaults(self):
        """Test that dev networks need no configuration."""
        network = get_network("hardhat", environ={})

        assert network.chain_id == 31337
        assert network.rpc_url == "http://127.0.0.1:8545"
        assert network.is_local
        assert network.settle_delay == 0

    def test_public_network_from_env(self):
        """Test that public networks take their RPC URL from the environment."""
        network = get_network("sepolia", environ=SEPOLIA_ENV)

        assert network.chain_id == 11155111
        assert network.rpc_url == "https://sepolia.example.com"
        assert not network.is_local
        assert network.settle_delay == 20

    def test_explicit_rpc_url_wins(self):
        """Test that an explicit RPC URL overrides the environment."""
        network = get_network("sepolia", "http://override:8545", environ=SEPOLIA_ENV)
        assert network.rpc_url == "http://override:8545"

    def test_missing_rpc_url(self):
        """Test that a public network without RPC URL names the variable to set."""
        with pytest.raises(ConfigurationError, match="SEPOLIA_RPC_URL"):
            get_network("sepolia", environ={})

    def test_unknown_network(self):
        """Test that an unknown network raises NetworkNotFoundError."""
        with pytest.raises(NetworkNotFoundError, match="goerli"):
            get_network("goerli", environ={})


class TestDeploySettings:
    """Test DeploySettings.from_env."""

    def test_defaults(self, tmp_path: Path, monkeypatch):
        """Test the settings of an empty environment."""
        monkeypatch.chdir(tmp_path)

        settings = DeploySettings.from_env("hardhat", environ={})

        assert settings.ledger_dir == Path.cwd() / "deployments"
        assert settings.artifacts_dir == Path.cwd() / "artifacts"
        assert settings.private_key is None
        assert settings.receipt_timeout == DEFAULT_RECEIPT_TIMEOUT
        assert settings.settle_delay is None
        assert settings.force_redeploy is False
        assert settings.reuse_ignores_arg_changes is True

    def test_reads_environment(self, tmp_path: Path):
        """Test that every setting can come from the environment."""
        environ = {
            **SEPOLIA_ENV,
            "DEPLOY_LEDGER_DIR": str(tmp_path / "ledger"),
            "DEPLOY_ARTIFACTS_DIR": str(tmp_path / "out"),
            "DEPLOYER_ADDRESS": HARDHAT_DEFAULT_ACCOUNT,
            "DEPLOY_RECEIPT_TIMEOUT": "none",
            "DEPLOY_SETTLE_DELAY": "5",
            "DEPLOY_FORCE_REDEPLOY": "yes",
            "DEPLOY_REUSE_IGNORES_ARG_CHANGES": "false",
        }

        settings = DeploySettings.from_env("sepolia", environ=environ)

        assert settings.ledger_dir == tmp_path / "ledger"
        assert settings.artifacts_dir == tmp_path / "out"
        assert settings.deployer_address == HARDHAT_DEFAULT_ACCOUNT
        assert settings.receipt_timeout is None
        assert settings.settle_delay == 5.0
        assert settings.force_redeploy is True
        assert settings.reuse_ignores_arg_changes is False

    def test_overrides_win(self, tmp_path: Path):
        """Test that explicit overrides beat the environment, except None."""
        environ = {**SEPOLIA_ENV, "DEPLOY_LEDGER_DIR": str(tmp_path / "env")}

        settings = DeploySettings.from_env(
            "sepolia",
            environ=environ,
            ledger_dir=str(tmp_path / "explicit"),
            artifacts_dir=None,
            rpc_url="http://override:8545",
        )

        assert settings.ledger_dir == tmp_path / "explicit"
        assert settings.network.rpc_url == "http://override:8545"

    def test_invalid_boolean(self):
        """Test that an unparsable flag raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="DEPLOY_FORCE_REDEPLOY"):
            DeploySettings.from_env("hardhat", environ={"DEPLOY_FORCE_REDEPLOY": "maybe"})

    @pytest.mark.parametrize("value", ["-1", "soon"])
    def test_invalid_seconds(self, value: str):
        """Test that negative or non-numeric durations raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="DEPLOY_RECEIPT_TIMEOUT"):
            DeploySettings.from_env("hardhat", environ={"DEPLOY_RECEIPT_TIMEOUT": value})


class TestBuildSigner:
    """Test the build_signer function."""

    def test_private_key_wins(self):
        """Test that a private key selects local signing."""
        settings = DeploySettings.from_env(
            "sepolia",
            environ={**SEPOLIA_ENV, "DEPLOYER_PRIVATE_KEY": HARDHAT_KEY, "DEPLOYER_ADDRESS": "0x" + "11" * 20},
        )

        signer = build_signer(settings)

        assert isinstance(signer, LocalAccountSigner)
        assert signer.address == HARDHAT_DEFAULT_ACCOUNT

    def test_node_account(self):
        """Test that an address selects a node account."""
        settings = DeploySettings.from_env(
            "sepolia", environ={**SEPOLIA_ENV, "DEPLOYER_ADDRESS": HARDHAT_DEFAULT_ACCOUNT}
        )

        assert isinstance(build_signer(settings), NodeAccountSigner)

    def test_local_network_default_account(self):
        """Test that dev networks fall back to the default Hardhat account."""
        signer = build_signer(DeploySettings.from_env("hardhat", environ={}))

        assert isinstance(signer, NodeAccountSigner)
        assert signer.address == HARDHAT_DEFAULT_ACCOUNT

    def test_public_network_requires_deployer(self):
        """Test that public networks never fall back to a default account."""
        with pytest.raises(ConfigurationError, match="DEPLOYER_PRIVATE_KEY"):
            build_signer(DeploySettings.from_env("sepolia", environ=SEPOLIA_ENV))
