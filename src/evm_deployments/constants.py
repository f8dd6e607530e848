"""Configuration constants for evm-deployments library."""

# Network configuration based on ethereum-lists/chains
# Public networks get a settle delay so load-balanced RPC nodes catch up
# before the next dependent deployment reads chain state.
NETWORK_CONFIG = {
    "hardhat": {
        "chain_id": 31337,
        "chain_name": "Hardhat Network",
        "is_local": True,
        "settle_delay": 0.0,
        "default_rpc_url": "http://127.0.0.1:8545",
        "default_rpc_env": "HARDHAT_RPC_URL",
    },
    "localhost": {
        "chain_id": 31337,
        "chain_name": "Localhost",
        "is_local": True,
        "settle_delay": 0.0,
        "default_rpc_url": "http://127.0.0.1:8545",
        "default_rpc_env": "LOCALHOST_RPC_URL",
    },
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "is_local": False,
        "settle_delay": 20.0,
        "block_explorer_url": "https://sepolia.etherscan.io",
        "default_rpc_env": "SEPOLIA_RPC_URL",
    },
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "is_local": False,
        "settle_delay": 20.0,
        "block_explorer_url": "https://etherscan.io",
        "default_rpc_env": "MAINNET_RPC_URL",
    },
}

# First account of the default Hardhat/Anvil mnemonic, unlocked on dev nodes
HARDHAT_DEFAULT_ACCOUNT = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

# Receipt polling
DEFAULT_RECEIPT_TIMEOUT = 300.0
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_POLL_INTERVAL = 15.0
DEFAULT_BACKOFF_FACTOR = 1.5

# Margin applied on top of eth_estimateGas for locally signed transactions
GAS_ESTIMATE_MARGIN = 1.2

RPC_REQUEST_TIMEOUT = 30
