"""
Fixed values of the execution-layer genesis.

Pre-deployed contract addresses, chain presets and genesis header defaults.
"""

from __future__ import annotations

ZERO_ADDRESS = "0x" + "0" * 40
ZERO_HASH = "0x" + "0" * 64

# Chain presets: name -> execution-layer chain id.
DEVNET_CHAIN_ID = 80087
BEPOLIA_CHAIN_ID = 80069
MAINNET_CHAIN_ID = 80094

CHAIN_IDS: dict[str, int] = {
    "devnet": DEVNET_CHAIN_ID,
    "bepolia": BEPOLIA_CHAIN_ID,
    "testnet": BEPOLIA_CHAIN_ID,
    "mainnet": MAINNET_CHAIN_ID,
}

# Canonical chain names used in the consensus chain id.
CHAIN_NAMES: dict[str, str] = {
    "devnet": "devnet",
    "bepolia": "bepolia",
    "testnet": "bepolia",
    "mainnet": "mainnet",
}

# Blob fee market (EIP-4844). Cancun and Prague share the same parameters.
BLOB_TARGET = 3
BLOB_MAX = 6
BLOB_BASE_FEE_UPDATE_FRACTION = 3338477

# Genesis block header.
GENESIS_DIFFICULTY = "0x01"
GENESIS_GAS_LIMIT = "0x1c9c380"
GENESIS_NONCE = "0x1234"
GENESIS_TIMESTAMP = "0"

# Defaults shared by every standard contract.
CONTRACT_BALANCE = "0x0"
CONTRACT_NONCE = "0x1"
EMPTY_CODE = "0x"

# EIP-4788 beacon block root contract.
BEACON_ROOTS_ADDRESS = "0x000F3df6D732807Ef1319fB7B8bB8522d0Beac02"
BEACON_ROOTS_CODE = (
    "0x3373fffffffffffffffffffffffffffffffffffffffe14604d57602036146024575f5ffd5b5f35801560495762"
    "001fff810690815414603c575f5ffd5b62001fff01545f5260205ff35b5f5ffd5b62001fff42064281555f359062"
    "001fff015500"
)

# Deterministic CREATE2 deployment proxy.
CREATE2_DEPLOYER_ADDRESS = "0x4e59b44847b379578588920cA78FbF26c0B4956C"
CREATE2_DEPLOYER_CODE = (
    "0x7fffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffffe03601600081602082378035"
    "828234f58015156039578182fd5b8082525050506014600cf3"
)

MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
WBERA_ADDRESS = "0x6969696969696969696969696969696969696969"
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
BEACON_DEPOSIT_ADDRESS = "0x4242424242424242424242424242424242424242"
