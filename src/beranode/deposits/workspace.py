"""
Paths and transient directories of a beranodes working directory.

    <config_dir>/
        beranodes.config.json
        bin/beacond
        bin/bera-reth
        tmp/eth-genesis.json
        tmp/genesis.json
        tmp/kzg-trusted-setup.json
        tmp/beacond/            transient beacond home
        tmp/bera-reth/          transient bera-reth home
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from beranode import config
from beranode.exceptions import LoadError
from beranode.nodes import NodeDescriptor
from beranode.store import read_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Workspace:
    """Well-known locations under one configuration directory."""

    root: Path

    @property
    def config_file(self) -> Path:
        return self.root / config.CONFIG_FILE_NAME

    @property
    def bin_dir(self) -> Path:
        return self.root / config.BIN_DIR

    @property
    def beacond_binary(self) -> Path:
        return self.bin_dir / config.BIN_BEACOND

    @property
    def tmp_dir(self) -> Path:
        return self.root / config.TMP_DIR

    @property
    def beacond_home(self) -> Path:
        return self.tmp_dir / config.BIN_BEACOND

    @property
    def berareth_home(self) -> Path:
        return self.tmp_dir / config.BIN_BERARETH

    @property
    def eth_genesis(self) -> Path:
        """Canonical execution-layer genesis."""
        return self.tmp_dir / config.GENESIS_ETH_NAME

    @property
    def beacon_genesis(self) -> Path:
        """Canonical consensus-layer genesis."""
        return self.tmp_dir / config.GENESIS_BEACON_NAME

    @property
    def kzg_trusted_setup(self) -> Path:
        return self.tmp_dir / config.KZG_TRUSTED_SETUP_NAME

    def clean_transient(self) -> None:
        """Remove the transient client homes. Missing directories are fine."""
        for path in (self.beacond_home, self.berareth_home):
            if path.exists():
                shutil.rmtree(path)
                logger.info(f"Removed {path}")

    def load_document(self) -> dict[str, Any]:
        """
        Read the configuration document.

        Raises:
            LoadError: If it is missing, malformed, or not an object.
        """
        document = read_json(self.config_file)
        if not isinstance(document, dict):
            raise LoadError(self.config_file, "top-level JSON value is not an object")
        return document

    def load_nodes(self, document: dict[str, Any] | None = None) -> list[NodeDescriptor]:
        """
        Parse `nodes[]` of the configuration document.

        Raises:
            LoadError: If there are no nodes or a node is malformed.
        """
        if document is None:
            document = self.load_document()
        raw_nodes = document.get("nodes")
        if not isinstance(raw_nodes, list) or not raw_nodes:
            raise LoadError(self.config_file, "no nodes found")

        nodes = []
        for index, raw in enumerate(raw_nodes):
            try:
                nodes.append(NodeDescriptor.model_validate(raw))
            except PydanticValidationError as e:
                first = e.errors()[0]
                loc = ".".join(str(part) for part in first["loc"])
                where = f"nodes[{index}].{loc}" if loc else f"nodes[{index}]"
                raise LoadError(self.config_file, f"{where}: {first['msg']}") from e
        return nodes
