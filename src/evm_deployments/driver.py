"""Contract-creation transaction driver for evm-deployments library."""

import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence

from eth_abi.exceptions import EncodingError
from eth_utils import to_checksum_address
from web3.exceptions import Web3Exception

from .abi import contract_factory, to_json_args
from .constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_POLL_INTERVAL,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECEIPT_TIMEOUT,
)
from .exceptions import DeploymentFailed, ReceiptTimeout, RpcError, RpcTransportError, SignerRejected
from .signers import Signer
from .types import ContractArtifact, DeploymentRecord, NetworkConfig

logger = logging.getLogger(__name__)


class TransactionDriver:
    """
    Sends a deployment, waits for its receipt and lets the network settle.

    Once broadcast, a transaction cannot be withdrawn, so ``submit`` only
    returns after a receipt is in or the receipt timeout expires.
    """

    def __init__(
        self,
        client: Any,
        signer: Signer,
        network: NetworkConfig,
        receipt_timeout: Optional[float] = DEFAULT_RECEIPT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        settle_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            client: Chain client (see rpc.JsonRpcClient)
            signer: Account sending the deployments
            network: Target network
            receipt_timeout: Max seconds to wait for a receipt, None for no bound
            poll_interval: First delay between receipt polls
            max_poll_interval: Upper bound of the polling delay
            backoff_factor: Growth of the polling delay after each miss
            settle_delay: Override of network.settle_delay
            sleep: Sleep function, replaceable in tests
            clock: Monotonic clock, replaceable in tests
        """
        self.client = client
        self.signer = signer
        self.network = network
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self.max_poll_interval = max_poll_interval
        self.backoff_factor = backoff_factor
        self.settle_delay = network.settle_delay if settle_delay is None else settle_delay
        self._sleep = sleep
        self._clock = clock

    def submit(
        self,
        logical_name: str,
        artifact: ContractArtifact,
        constructor_args: Sequence[Any],
    ) -> DeploymentRecord:
        """
        Deploy a contract and wait until it is usable.

        Args:
            logical_name: Ledger key of the contract
            artifact: Compiled contract
            constructor_args: Resolved constructor arguments

        Returns:
            DeploymentRecord for the new deployment

        Raises:
            DeploymentFailed: If encoding, signing, sending or execution fails
            ReceiptTimeout: If no receipt arrives within receipt_timeout
        """
        try:
            constructor = contract_factory(artifact.abi, artifact.bytecode).constructor(*constructor_args)
            data = constructor.data_in_transaction
        except (Web3Exception, ValueError, TypeError, EncodingError) as e:
            raise DeploymentFailed(logical_name, f"cannot encode constructor arguments: {e}") from e
        logger.debug("%s creation payload is %d bytes", logical_name, (len(data) - 2) // 2)

        try:
            tx_hash = self.signer.send_deployment(self.client, constructor)
        except (RpcError, SignerRejected) as e:
            raise DeploymentFailed(logical_name, e) from e

        logger.info("%s deployment sent in %s", logical_name, tx_hash)

        try:
            receipt = self.wait_for_receipt(logical_name, tx_hash)
        except ReceiptTimeout:
            raise
        except RpcError as e:
            raise DeploymentFailed(logical_name, e) from e

        if not self._succeeded(logical_name, tx_hash, receipt):
            raise DeploymentFailed(
                logical_name, f"transaction {tx_hash} reverted (out of gas or failed constructor)"
            )
        if not receipt.get("contractAddress"):
            raise DeploymentFailed(logical_name, f"receipt of {tx_hash} has no contract address")

        address = to_checksum_address(receipt["contractAddress"])
        logger.info("%s contract deployed at %s", logical_name, address)

        if self.settle_delay > 0:
            logger.info("Waiting %gs for %s to settle", self.settle_delay, self.network.name)
            self._sleep(self.settle_delay)

        return DeploymentRecord(
            address=address,
            abi=artifact.abi,
            bytecode=artifact.bytecode,
            network=self.network.name,
            chain_id=self.network.chain_id,
            receipt=receipt,
            constructor_args=to_json_args(constructor_args),
        )

    def wait_for_receipt(self, logical_name: str, tx_hash: str) -> Dict[str, Any]:
        """
        Poll for a receipt with exponential backoff.

        A missing receipt means the transaction is not mined yet. Transport
        faults are retried too, since the transaction is already out.

        Raises:
            ReceiptTimeout: If receipt_timeout expires first
            RpcError: If the node answers with a non-transient error
        """
        deadline = None if self.receipt_timeout is None else self._clock() + self.receipt_timeout
        interval = self.poll_interval

        while True:
            try:
                receipt = self.client.get_transaction_receipt(tx_hash)
            except RpcTransportError as e:
                logger.warning("Receipt poll for %s failed, retrying: %s", tx_hash, e)
                receipt = None

            if receipt is not None:
                return receipt

            delay = interval
            if deadline is not None:
                remaining = deadline - self._clock()
                if remaining <= 0:
                    raise ReceiptTimeout(logical_name, tx_hash, self.receipt_timeout)
                delay = min(delay, remaining)

            logger.debug("Receipt for %s not available, next poll in %.1fs", tx_hash, delay)
            self._sleep(delay)
            interval = min(interval * self.backoff_factor, self.max_poll_interval)

    @staticmethod
    def _succeeded(logical_name: str, tx_hash: str, receipt: Dict[str, Any]) -> bool:
        """
        Read the execution status of a receipt.

        Receipts without a status (pre-Byzantium nodes) count as success.

        Raises:
            DeploymentFailed: If the status is not a hex quantity
        """
        status = receipt.get("status")
        if status is None:
            return True
        try:
            return int(str(status), 16) == 1
        except ValueError:
            raise DeploymentFailed(
                logical_name, f"receipt of {tx_hash} has an unreadable status {status!r}"
            ) from None
