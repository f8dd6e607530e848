"""Transaction signers for evm-deployments library."""

import logging
from typing import Any, Dict, Protocol

from eth_account import Account
from eth_utils import to_checksum_address

from .constants import GAS_ESTIMATE_MARGIN
from .exceptions import SignerRejected

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Supplies the account that signs deployment transactions."""

    @property
    def address(self) -> str: ...

    def send_deployment(self, client: Any, constructor: Any) -> str:
        """Send a contract-creation transaction and return its hash."""
        ...


class NodeAccountSigner:
    """
    Signs through an account unlocked on the node (Hardhat, Anvil, Geth dev).

    Gas and nonce are left to the node.
    """

    def __init__(self, address: str):
        self._address = to_checksum_address(address)

    @property
    def address(self) -> str:
        return self._address

    def send_deployment(self, client: Any, constructor: Any) -> str:
        return client.send_transaction(
            {"from": self._address, "data": constructor.data_in_transaction}
        )


class LocalAccountSigner:
    """Signs legacy transactions locally with a private key."""

    def __init__(self, private_key: str, gas_margin: float = GAS_ESTIMATE_MARGIN):
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            # Never echo the key itself
            raise SignerRejected(f"Invalid deployer private key: {type(e).__name__}") from None
        self.gas_margin = gas_margin

    @property
    def address(self) -> str:
        return self._account.address

    def build_transaction(self, client: Any, constructor: Any) -> Dict[str, Any]:
        """
        Fill in nonce, gas, gas price and chain id for a creation transaction.

        The nonce counts pending transactions so a re-run after a timeout does
        not reuse the nonce of a still-pending deployment.

        Args:
            client: Chain client answering the estimate, nonce and price queries
            constructor: web3 ContractConstructor with its arguments bound
        """
        gas = client.estimate_gas({"from": self.address, "data": constructor.data_in_transaction})
        return constructor.build_transaction(
            {
                "from": self.address,
                "value": 0,
                "nonce": client.get_transaction_count(self.address, "pending"),
                "gas": int(gas * self.gas_margin),
                "gasPrice": client.gas_price(),
                "chainId": client.chain_id(),
            }
        )

    def send_deployment(self, client: Any, constructor: Any) -> str:
        tx = self.build_transaction(client, constructor)
        logger.debug("Signing deployment from %s with nonce %d", self.address, tx["nonce"])
        try:
            signed = self._account.sign_transaction(tx)
        except (ValueError, TypeError) as e:
            raise SignerRejected(f"Signer {self.address} rejected transaction: {e}") from e
        return client.send_raw_transaction("0x" + signed.raw_transaction.hex().removeprefix("0x"))
