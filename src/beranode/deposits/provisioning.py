"""
Per-node key provisioning.

Each node gets a throwaway beacond home in which its consensus identity is
created. The resulting keys, a JWT secret, an execution-layer key pair and
(for validators) a premined deposit are stored on the node object in
beranodes.config.json. The home is deleted once the node is recorded.

Nodes are processed one at a time and each node is persisted before the
next one starts, so an interrupted run keeps every completed node.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from beranode.exceptions import ExternalToolError, LoadError
from beranode.genesis.spec import NetworkSpec
from beranode.nodes import BeacondKeys, BerarethKeys, DepositRecord, NodeDescriptor
from beranode.store import ConfigStore, update_json
from beranode.tooling import BeacondClient, CastClient, CommandRunner

from .workspace import Workspace

logger = logging.getLogger(__name__)

GENESIS_DEPOSIT_AMOUNT = "250000000000000"
"""Stake of each genesis validator, in gwei."""


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


class KeyProvisioner:
    """
    Generates and stores the keys of every node in a configuration.

    Args:
        config_dir: beranodes working directory.
        chain_spec: Chain preset name, e.g. `devnet`.
        chain_id: Explicit chain id for chains without a preset.
        runner: Command runner shared by beacond and cast.
        cast: Wallet toolkit client. Defaults to `cast` on PATH.
        deposit_amount: Premined deposit of each validator, in gwei.
    """

    def __init__(
        self,
        config_dir: Path | str,
        chain_spec: str,
        *,
        chain_id: int | None = None,
        runner: CommandRunner | None = None,
        cast: CastClient | None = None,
        deposit_amount: str = GENESIS_DEPOSIT_AMOUNT,
    ) -> None:
        self.workspace = Workspace(Path(config_dir))
        self.network = NetworkSpec.for_chain(chain_spec, chain_id)
        self.chain_spec = chain_spec
        self.runner = runner or CommandRunner()
        self.cast = cast or CastClient(runner=self.runner)
        self.deposit_amount = deposit_amount

    def run(self) -> list[NodeDescriptor]:
        """
        Provision every node in order.

        Returns:
            The updated node descriptors.

        Raises:
            LoadError: If the configuration is missing or has no nodes.
            MissingKeyError: If `wallet_address` is not configured.
            ExternalToolError: If beacond or cast fails.
        """
        workspace = self.workspace
        if not workspace.beacond_binary.is_file():
            raise LoadError(workspace.beacond_binary, "beacond binary not found")

        store = ConfigStore()
        store.load(workspace.config_file)
        withdraw_address = store.get_required("wallet_address")

        nodes = workspace.load_nodes()
        logger.info(f"Provisioning keys for {len(nodes)} node(s)")

        workspace.clean_transient()
        provisioned = []
        try:
            for index, node in enumerate(nodes):
                provisioned.append(self.provision_node(index, node, withdraw_address))
        finally:
            workspace.clean_transient()
        return provisioned

    def provision_node(
        self, index: int, node: NodeDescriptor, withdraw_address: str
    ) -> NodeDescriptor:
        """Create, record and clean up the keys of `nodes[index]`."""
        home = self.workspace.beacond_home
        beacond = BeacondClient(self.workspace.beacond_binary, home, self.chain_spec, self.runner)

        beacond.init(node.moniker, self.network.beacon_chain_id)
        node_key = beacond.read_node_key()
        priv_validator_key = beacond.read_priv_validator_key()
        keys = beacond.validator_keys()
        node_id = beacond.node_id()

        premined_deposit = None
        if node.is_validator:
            raw_deposit = beacond.add_premined_deposit(self.deposit_amount, withdraw_address)
            premined_deposit = self._parse_deposit(raw_deposit, beacond)

        jwt = beacond.generate_jwt(home / "jwt.hex")

        private_key = self.cast.new_private_key()
        public_key = self.cast.public_key(private_key)

        beacond_config = BeacondKeys(
            comet_address=keys.comet_address,
            comet_pubkey=keys.comet_pubkey,
            node_id=node_id,
            deposit_amount=self.deposit_amount,
            jwt=jwt,
            eth_beacon_pubkey=keys.eth_beacon_pubkey,
            node_key=node_key,
            premined_deposit=premined_deposit,
            priv_validator_key=priv_validator_key,
        )
        berareth_config = BerarethKeys(
            private_key=_strip_0x(private_key),
            public_key=_strip_0x(public_key),
        )
        fields = {
            "berareth_config": berareth_config.model_dump(),
            "beacond_config": beacond_config.model_dump(),
        }

        def _apply(document: Any) -> Any:
            document["nodes"][index].update(fields)
            return document

        update_json(self.workspace.config_file, _apply)
        if home.exists():
            shutil.rmtree(home)

        logger.info(f"Provisioned keys for node {index} ({node.moniker}, {node.role.value})")
        return node.model_copy(
            update={"berareth_config": berareth_config, "beacond_config": beacond_config}
        )

    @staticmethod
    def _parse_deposit(raw: dict[str, Any], beacond: BeacondClient) -> DepositRecord:
        try:
            return DepositRecord.model_validate(raw)
        except PydanticValidationError as e:
            raise ExternalToolError(
                [str(beacond.binary), "genesis", "add-premined-deposit"],
                0,
                detail=f"malformed premined deposit ({e.errors()[0]['msg']})",
            ) from e
