"""
Shared pytest fixtures for all beranode tests.

Provides a ready-made working directory with a two-validator, one-RPC-node
configuration and a fake beacond binary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from beranode import config
from beranode.nodes import build_base_config
from beranode.store import write_json_atomic
from tests.beranode.helpers import WALLET_ADDRESS, WALLET_PRIVATE_KEY, FakeToolRunner


@pytest.fixture
def base_document(tmp_path: Path) -> dict[str, Any]:
    """Fresh configuration with two validators and one full RPC node."""
    return build_base_config(
        moniker="local",
        network="devnet",
        beranode_dir=tmp_path,
        validators=2,
        full_nodes=1,
        wallet_address=WALLET_ADDRESS,
        wallet_private_key=WALLET_PRIVATE_KEY,
    )


@pytest.fixture
def config_dir(tmp_path: Path, base_document: dict[str, Any]) -> Path:
    """Working directory holding the base configuration and a beacond binary."""
    write_json_atomic(tmp_path / config.CONFIG_FILE_NAME, base_document)
    binary = tmp_path / config.BIN_DIR / config.BIN_BEACOND
    binary.parent.mkdir(parents=True)
    binary.write_text("#!/bin/sh\n")
    (tmp_path / config.TMP_DIR).mkdir()
    return tmp_path


@pytest.fixture
def runner() -> FakeToolRunner:
    """Fake beacond/cast runner."""
    return FakeToolRunner()
