"""JSON-RPC chain client for evm-deployments library."""

import itertools
import logging
from typing import Any, Dict, List, Optional

import requests

from .constants import RPC_REQUEST_TIMEOUT
from .exceptions import RpcError, RpcTransportError

logger = logging.getLogger(__name__)

# Messages some nodes return instead of a null receipt for a pending transaction
_PENDING_RECEIPT_MARKERS = ("not found", "unknown transaction", "not yet mined")


class JsonRpcClient:
    """Minimal Ethereum JSON-RPC client over HTTP."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = RPC_REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Perform a JSON-RPC call.

        Args:
            method: RPC method name, e.g. "eth_chainId"
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            RpcTransportError: If the endpoint is unreachable or answers non-200
            RpcError: If the response carries an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug("RPC %s %s", method, payload["params"])

        try:
            response = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcTransportError(f"Network error during RPC call {method}: {e}") from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise RpcTransportError(
                f"RPC request {method} failed with status {response.status_code}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise RpcTransportError(f"RPC response to {method} is not JSON") from e

        # Check for RPC errors
        if "error" in result:
            error = result["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"RPC error in {method}: {error.get('message', error)}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(f"RPC error in {method}: {error}")

        return result.get("result")

    def chain_id(self) -> int:
        return int(self.request("eth_chainId"), 16)

    def gas_price(self) -> int:
        return int(self.request("eth_gasPrice"), 16)

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return int(self.request("eth_getTransactionCount", [address, block]), 16)

    def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return int(self.request("eth_estimateGas", [tx]), 16)

    def send_transaction(self, tx: Dict[str, Any]) -> str:
        """Send a transaction signed by an account unlocked on the node."""
        return self.request("eth_sendTransaction", [tx])

    def send_raw_transaction(self, raw_tx: str) -> str:
        return self.request("eth_sendRawTransaction", [raw_tx])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a transaction receipt.

        Returns:
            Receipt dictionary, or None while the transaction is not yet mined
        """
        try:
            return self.request("eth_getTransactionReceipt", [tx_hash])
        except RpcTransportError:
            raise
        except RpcError as e:
            message = str(e).lower()
            if any(marker in message for marker in _PENDING_RECEIPT_MARKERS):
                return None
            raise

    def call(self, tx: Dict[str, Any], block: str = "latest") -> str:
        return self.request("eth_call", [tx, block])

    def get_code(self, address: str, block: str = "latest") -> str:
        return self.request("eth_getCode", [address, block])
