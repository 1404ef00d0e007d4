"""
Genesis deposit coordinator.

Binds the validator set into both genesis documents so that they agree:
the consensus genesis lists one deposit per validator, and the execution
genesis carries the deposit-contract storage derived from the same set.

The pipeline works on a transient beacond home seeded from the first
validator. The canonical documents in `tmp/` are only replaced in the final
step. Until then beacond writes to the transient home and the execution
genesis is edited through a staged copy, so a failure at any step leaves the
previously finalized documents untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from beranode.exceptions import ConsistencyError, ExternalToolError, LoadError
from beranode.genesis.constants import BEACON_DEPOSIT_ADDRESS
from beranode.genesis.spec import NetworkSpec
from beranode.nodes import NodeDescriptor
from beranode.store import ConfigStore, read_json, write_json_atomic
from beranode.tooling import BeacondClient, CommandRunner
from beranode.validation import deposit_issues

from .state import DepositState
from .workspace import Workspace

logger = logging.getLogger(__name__)

STAGED_ETH_GENESIS_NAME = "eth-genesis.staged.json"
"""Execution genesis with injected storage, before it replaces the canonical one."""


def _find_alloc_key(alloc: dict[str, Any], address: str) -> str | None:
    """Key of `address` in an `alloc` mapping, compared case-insensitively."""
    for key in alloc:
        if key.lower() == address.lower():
            return key
    return None


class DepositCoordinator:
    """
    Drives the deposit pipeline for one configuration directory.

    Args:
        config_dir: beranodes working directory.
        chain_spec: Chain preset name, e.g. `devnet`.
        chain_id: Explicit chain id for chains without a preset.
        runner: Command runner for beacond.
        beacond_binary: beacond executable. Defaults to `<config_dir>/bin/beacond`.
    """

    def __init__(
        self,
        config_dir: Path | str,
        chain_spec: str,
        *,
        chain_id: int | None = None,
        runner: CommandRunner | None = None,
        beacond_binary: Path | str | None = None,
    ) -> None:
        self.workspace = Workspace(Path(config_dir))
        self.network = NetworkSpec.for_chain(chain_spec, chain_id)
        self.chain_spec = chain_spec
        self.runner = runner or CommandRunner()
        self.beacond_binary = Path(beacond_binary or self.workspace.beacond_binary)
        self.store = ConfigStore()
        self.state = DepositState.NO_DEPOSITS

        self.deposits: list[Any] = []
        self.validator_root: str | None = None

    def _advance(self, target: DepositState) -> None:
        previous = self.state
        self.state = previous.advance_to(target)
        logger.info(f"Deposit state: {previous.value} -> {target.value}")

    def run(self) -> DepositState:
        """
        Run the pipeline to completion.

        Returns:
            The final state, always `FINALIZED`.

        Raises:
            LoadError: If the configuration or execution genesis is missing.
            ConsistencyError: If beacond collects the wrong number of deposits.
            ExternalToolError: If a beacond call fails or its output is unusable.
        """
        workspace = self.workspace
        self.store.load(workspace.config_file)
        document = workspace.load_document()
        validators = [node for node in workspace.load_nodes(document) if node.is_validator]
        if not validators:
            raise LoadError(workspace.config_file, "no validator nodes found")
        if not workspace.eth_genesis.is_file():
            raise LoadError(workspace.eth_genesis, "execution genesis not found")
        if not self.beacond_binary.is_file():
            raise LoadError(self.beacond_binary, "beacond binary not found")

        if self._has_current_deposits(document, len(validators)):
            logger.info(f"Reusing {len(validators)} stored genesis deposit(s)")
            self._advance(DepositState.FINALIZED)
            return self.state

        workspace.clean_transient()
        try:
            beacond = self._prepare_home(validators[0])
            self._collect(beacond, validators)
            self._compute_root(beacond)
            staged = self._inject_storage(beacond)
            beacon_genesis = self._embed_payload(beacond, staged)
            self._finalize(staged, beacon_genesis)
        finally:
            workspace.clean_transient()
        return self.state

    def _has_current_deposits(self, document: dict[str, Any], validator_count: int) -> bool:
        """Whether the stored deposits can be reused as they are."""
        stored = document.get("genesis_deposits")
        if not isinstance(stored, list):
            logger.warning("genesis_deposits is missing or not an array, generating deposits")
            return False
        malformed = [
            issue
            for index, deposit in enumerate(stored)
            for issue in deposit_issues(deposit, f"genesis_deposits[{index}]")
        ]
        if malformed:
            logger.warning(
                f"genesis_deposits has {len(malformed)} invalid field(s), regenerating deposits"
            )
            return False
        if len(stored) != validator_count:
            logger.warning(
                f"genesis_deposits holds {len(stored)} deposit(s) but there are "
                f"{validator_count} validator(s), regenerating deposits"
            )
            return False
        return True

    def _prepare_home(self, validator: NodeDescriptor) -> BeacondClient:
        """Initialize the transient beacond home with the validator's stored keys."""
        keys = validator.beacond_config
        if keys is None:
            raise LoadError(
                self.workspace.config_file,
                f"validator {validator.moniker} has no keys, provision keys first",
            )

        beacond = BeacondClient(
            self.beacond_binary, self.workspace.beacond_home, self.chain_spec, self.runner
        )
        beacond.init(validator.moniker, self.network.beacon_chain_id)
        jwt_path = beacond.install_keys(keys.node_key, keys.priv_validator_key, keys.jwt)
        beacond.configure_app_toml(jwt_path, self.workspace.kzg_trusted_setup)
        return beacond

    def _collect(self, beacond: BeacondClient, validators: list[NodeDescriptor]) -> None:
        self._advance(DepositState.COLLECTING)
        beacond.premined_deposits_dir.mkdir(parents=True, exist_ok=True)
        for node in validators:
            deposit = node.premined_deposit
            if deposit is None:
                raise LoadError(
                    self.workspace.config_file,
                    f"validator {node.moniker} has no premined deposit",
                )
            beacond.write_premined_deposit(deposit.model_dump())

        deposits = beacond.collect_premined_deposits()
        if len(deposits) != len(validators):
            raise ConsistencyError(
                "collected deposit count does not match validator count",
                expected=len(validators),
                actual=len(deposits),
            )
        self.deposits = deposits
        self._advance(DepositState.DEPOSITS_COLLECTED)
        logger.info(f"Collected {len(deposits)} premined deposit(s)")

    def _compute_root(self, beacond: BeacondClient) -> None:
        self.validator_root = beacond.validator_root()
        self._advance(DepositState.VALIDATOR_ROOT_COMPUTED)
        logger.info(f"Validator root: {self.validator_root}")

    def _inject_storage(self, beacond: BeacondClient) -> Path:
        """Stage the execution genesis with beacond's deposit-contract storage."""
        canonical = self.workspace.eth_genesis
        with_storage = beacond.set_deposit_storage(canonical)

        storage = self._deposit_storage(with_storage)
        document = read_json(canonical)
        alloc = document.get("alloc") if isinstance(document, dict) else None
        key = _find_alloc_key(alloc, BEACON_DEPOSIT_ADDRESS) if isinstance(alloc, dict) else None
        if key is None:
            raise LoadError(canonical, f"alloc has no deposit contract at {BEACON_DEPOSIT_ADDRESS}")
        alloc[key]["storage"] = storage

        staged = beacond.home / STAGED_ETH_GENESIS_NAME
        write_json_atomic(staged, document)
        self._advance(DepositState.STORAGE_INJECTED)
        logger.info(f"Staged deposit contract storage ({len(storage)} slot(s))")
        return staged

    def _deposit_storage(self, path: Path) -> dict[str, Any]:
        document = read_json(path)
        alloc = document.get("alloc") if isinstance(document, dict) else None
        key = _find_alloc_key(alloc, BEACON_DEPOSIT_ADDRESS) if isinstance(alloc, dict) else None
        storage = alloc[key].get("storage") if key is not None else None
        if not isinstance(storage, dict):
            raise ExternalToolError(
                [str(self.beacond_binary), "genesis", "set-deposit-storage"],
                0,
                detail=f"no deposit contract storage in {path}",
            )
        return storage

    def _embed_payload(self, beacond: BeacondClient, staged: Path) -> dict[str, Any]:
        beacon_genesis = beacond.execution_payload(staged)
        self._advance(DepositState.PAYLOAD_EMBEDDED)
        return beacon_genesis

    def _finalize(self, staged: Path, beacon_genesis: dict[str, Any]) -> None:
        """Publish both documents and record them in the configuration."""
        workspace = self.workspace
        # Both sources are parsed before either canonical document is replaced.
        eth_genesis = read_json(staged)
        write_json_atomic(workspace.eth_genesis, eth_genesis)
        write_json_atomic(workspace.beacon_genesis, beacon_genesis)

        self.store.write_fields(
            {
                "genesis_deposits": self.deposits,
                "validator_root": self.validator_root,
                "genesis_file": str(workspace.beacon_genesis),
                "genesis_eth_file": str(workspace.eth_genesis),
            }
        )
        self._advance(DepositState.FINALIZED)
        logger.info(f"Wrote {workspace.beacon_genesis} and {workspace.eth_genesis}")
