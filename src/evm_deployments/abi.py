"""Contract objects and argument conversion for evm-deployments library."""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_utils import decode_hex, encode_hex, to_checksum_address
from eth_utils.abi import get_abi_output_types
from web3 import Web3

# No provider: used for encoding and decoding only, chain access goes through rpc.JsonRpcClient
_w3 = Web3()


def contract_factory(
    abi: List[Dict[str, Any]],
    bytecode: Optional[str] = None,
    address: Optional[str] = None,
) -> Any:
    """
    Build a web3 contract from an ABI.

    Args:
        abi: Contract ABI
        bytecode: Creation bytecode, needed for ``constructor(...)``
        address: Deployed address, needed for function calls

    Returns:
        A contract class without address, or a contract instance with one
    """
    if address is None:
        return _w3.eth.contract(abi=abi, bytecode=bytecode)
    return _w3.eth.contract(address=to_checksum_address(address), abi=abi)


def decode_output(function_abi: Dict[str, Any], data: str) -> Tuple[Any, ...]:
    """Decode the return data of an eth_call against a function ABI entry."""
    output_types = get_abi_output_types(function_abi)
    if not output_types:
        return ()
    return tuple(_w3.codec.decode(output_types, decode_hex(data)))


def to_json_args(args: Sequence[Any]) -> List[Any]:
    """
    Convert resolved constructor arguments to a JSON-safe list.

    Bytes become 0x hex, tuples become lists.
    """
    result: List[Any] = []
    for arg in args:
        if isinstance(arg, (bytes, bytearray)):
            result.append(encode_hex(bytes(arg)))
        elif isinstance(arg, (list, tuple)):
            result.append(to_json_args(arg))
        else:
            result.append(arg)
    return result
