"""
Global configuration for beranode.

This module contains environment-specific settings and the well-known names
of files and directories inside a beranodes working directory.
"""

import os
from pathlib import Path

_SUPPORTED_LOG_LEVELS: list[str] = ["debug", "info", "warning", "error"]

BERANODES_PATH = Path(os.environ.get("BERANODES_PATH", "beranodes"))
"""Default working directory holding binaries, config and generated genesis files."""

BERANODE_LOG_LEVEL = os.environ.get("BERANODE_LOG_LEVEL", "info").lower()
"""Default log level when --verbose is not passed. Defaults to 'info'."""

if BERANODE_LOG_LEVEL not in _SUPPORTED_LOG_LEVELS:
    raise ValueError(
        f"Invalid BERANODE_LOG_LEVEL environment variable: '{BERANODE_LOG_LEVEL}'. "
        f"Supported values: {_SUPPORTED_LOG_LEVELS}"
    )

CONFIG_FILE_NAME = "beranodes.config.json"
"""Name of the node/network description inside the working directory."""

GENESIS_ETH_NAME = "eth-genesis.json"
"""Execution-layer genesis artifact."""

GENESIS_BEACON_NAME = "genesis.json"
"""Consensus-layer genesis artifact."""

BIN_DIR = "bin"
TMP_DIR = "tmp"
LOG_DIR = "log"
NODES_DIR = "nodes"

BIN_BEACOND = "beacond"
"""Consensus-layer client binary."""

BIN_BERARETH = "bera-reth"
"""Execution-layer client binary."""

KZG_TRUSTED_SETUP_NAME = "kzg-trusted-setup.json"
"""Blob verification parameters, referenced from the beacond app.toml."""
