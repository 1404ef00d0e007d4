"""
beacond, the consensus-layer client.

beacond owns every consensus-specific genesis operation: node home
initialization, validator key derivation, premined deposits, deposit
collection, the validator root, deposit-contract storage and the execution
payload. This module wraps each subcommand and checks its output.

All commands operate on a single home directory. Files that beacond creates
there are part of its contract:

    <home>/config/node_key.json
    <home>/config/priv_validator_key.json
    <home>/config/app.toml
    <home>/config/genesis.json
    <home>/config/premined-deposits/premined-deposit-*.json
    <home>/eth-genesis.json            (written by set-deposit-storage)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from beranode.exceptions import ExternalToolError, LoadError
from beranode.store import read_json, write_json_atomic, write_text_atomic

from .runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

PREMINED_DEPOSITS_DIR = "premined-deposits"
ETH_GENESIS_NAME = "eth-genesis.json"
GENESIS_NAME = "genesis.json"


@dataclass(frozen=True, slots=True)
class ValidatorKeys:
    """Identity printed by `beacond deposit validator-keys`."""

    comet_address: str
    comet_pubkey: str
    eth_beacon_pubkey: str

    @classmethod
    def parse(cls, result: CommandResult) -> ValidatorKeys:
        """
        Extract the keys from lines 2, 5 and 8 of the output.

        All whitespace is removed from each value.

        Raises:
            ExternalToolError: If the output is too short or a line is empty.
        """
        values = ["".join(result.line(number).split()) for number in (2, 5, 8)]
        if not all(values):
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail="validator keys output has an empty key line",
            )
        return cls(*values)


class BeacondClient:
    """
    Runs beacond subcommands against one home directory.

    Args:
        binary: Path to the beacond executable.
        home: Node home directory passed as `--home`.
        chain_spec: Chain spec name passed as `--beacon-kit.chain-spec`.
        runner: Command runner. Defaults to a fail-fast runner.
    """

    def __init__(
        self,
        binary: Path | str,
        home: Path | str,
        chain_spec: str,
        runner: CommandRunner | None = None,
    ) -> None:
        self.binary = Path(binary)
        self.home = Path(home)
        self.chain_spec = chain_spec
        self.runner = runner or CommandRunner()

    @property
    def config_dir(self) -> Path:
        """`<home>/config`."""
        return self.home / "config"

    @property
    def genesis_file(self) -> Path:
        """The consensus genesis inside the home."""
        return self.config_dir / GENESIS_NAME

    @property
    def premined_deposits_dir(self) -> Path:
        """Where premined deposit files are written and collected from."""
        return self.config_dir / PREMINED_DEPOSITS_DIR

    def _spec_args(self) -> list[str]:
        return ["--beacon-kit.chain-spec", self.chain_spec, "--home", str(self.home)]

    def _run(self, *args: str | Path, spec: bool = True) -> CommandResult:
        command: list[str | Path] = [self.binary, *args]
        if spec:
            command.extend(self._spec_args())
        else:
            command.extend(["--home", str(self.home)])
        return self.runner.run(command)

    def init(self, moniker: str, chain_id: str) -> None:
        """Initialize the home directory for a node."""
        self.home.mkdir(parents=True, exist_ok=True)
        self._run("init", moniker, "--chain-id", chain_id)
        logger.info(f"Initialized beacond node {moniker} at {self.home}")

    def read_node_key(self) -> dict[str, Any]:
        """Contents of `node_key.json`."""
        return self._read_home_json(self.config_dir / "node_key.json")

    def read_priv_validator_key(self) -> dict[str, Any]:
        """Contents of `priv_validator_key.json`."""
        return self._read_home_json(self.config_dir / "priv_validator_key.json")

    def validator_keys(self) -> ValidatorKeys:
        """Comet address, comet pubkey and beacon pubkey of the home."""
        return ValidatorKeys.parse(self._run("deposit", "validator-keys", spec=False))

    def node_id(self) -> str:
        """P2P node identity."""
        result = self._run("tendermint", "show-node-id")
        node_id = result.stdout.strip()
        if not node_id:
            raise ExternalToolError(result.command, result.exit_code, detail="empty node id")
        return node_id

    def add_premined_deposit(self, amount: str, withdraw_address: str) -> dict[str, Any]:
        """
        Create the node's premined deposit and return its contents.

        Raises:
            ExternalToolError: If beacond fails or writes no deposit file.
        """
        result = self._run("genesis", "add-premined-deposit", amount, withdraw_address)
        files = sorted(self.premined_deposits_dir.glob("premined-deposit-*.json"))
        if not files:
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail=f"no premined deposit file in {self.premined_deposits_dir}",
            )
        return self._read_home_json(files[0])

    def generate_jwt(self, path: Path | str) -> str:
        """
        Generate an Engine API secret into `path` and return it.

        Raises:
            ExternalToolError: If beacond fails or the file is empty.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        command = [self.binary, "jwt", "generate", "-o", path]
        result = self.runner.run(command)
        secret = path.read_text(encoding="utf-8").strip() if path.is_file() else ""
        if not secret:
            raise ExternalToolError(result.command, result.exit_code, detail=f"no JWT in {path}")
        return secret

    def install_keys(
        self,
        node_key: dict[str, Any],
        priv_validator_key: dict[str, Any],
        jwt: str,
    ) -> Path:
        """
        Replace the keys created by `init` with stored ones.

        Only the fields beacond reads are kept: the node key's `priv_key`, and
        the validator key's `address`, `pub_key` and `priv_key`.

        Returns:
            Path of the written `jwt.hex`.
        """
        write_json_atomic(
            self.config_dir / "node_key.json",
            {"priv_key": _typed_key(node_key, "priv_key")},
        )
        write_json_atomic(
            self.config_dir / "priv_validator_key.json",
            {
                "address": priv_validator_key.get("address", ""),
                "pub_key": _typed_key(priv_validator_key, "pub_key"),
                "priv_key": _typed_key(priv_validator_key, "priv_key"),
            },
        )
        jwt_path = self.config_dir / "jwt.hex"
        write_text_atomic(jwt_path, f"{jwt}\n")
        return jwt_path

    def configure_app_toml(self, jwt_path: Path | str, trusted_setup_path: Path | str) -> None:
        """
        Point `app.toml` at the JWT secret and the KZG trusted setup.

        Raises:
            ExternalToolError: If `app.toml` is missing.
        """
        app_toml = self.config_dir / "app.toml"
        if not app_toml.is_file():
            raise ExternalToolError([str(self.binary)], None, detail=f"{app_toml} not found")

        text = app_toml.read_text(encoding="utf-8")
        for key, value in (
            ("jwt-secret-path", jwt_path),
            ("trusted-setup-path", trusted_setup_path),
        ):
            text = re.sub(
                rf'^{re.escape(key)} = ".*"$',
                lambda _, key=key, value=value: f'{key} = "{value}"',
                text,
                flags=re.MULTILINE,
            )
        write_text_atomic(app_toml, text)
        logger.debug(f"Configured {app_toml}")

    def write_premined_deposit(self, deposit: dict[str, Any]) -> Path:
        """Place a stored deposit where `collect-premined-deposits` finds it."""
        path = self.premined_deposits_dir / f"premined-deposit-{deposit['pubkey']}.json"
        write_json_atomic(path, deposit)
        return path

    def collect_premined_deposits(self) -> list[Any]:
        """
        Bind every premined deposit into the home's consensus genesis.

        Returns:
            `app_state.beacon.deposits` of the resulting genesis.
        """
        result = self._run("genesis", "collect-premined-deposits")
        genesis = self._read_home_json(self.genesis_file)
        deposits = genesis.get("app_state", {}).get("beacon", {}).get("deposits")
        if not isinstance(deposits, list):
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail=f"app_state.beacon.deposits missing from {self.genesis_file}",
            )
        return deposits

    def validator_root(self) -> str:
        """Commitment over the validator set of the home's consensus genesis."""
        result = self._run("genesis", "validator-root", self.genesis_file)
        root = result.stdout.strip()
        if not re.fullmatch(r"0x[0-9a-fA-F]+", root):
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail="validator root is not a hex string",
            )
        return root

    def set_deposit_storage(self, eth_genesis: Path | str) -> Path:
        """
        Compute deposit-contract storage for an execution genesis.

        beacond leaves `eth_genesis` untouched and writes a copy with the
        storage filled in to `<home>/eth-genesis.json`.

        Returns:
            Path of the copy.
        """
        result = self._run("genesis", "set-deposit-storage", eth_genesis)
        output = self.home / ETH_GENESIS_NAME
        if not output.is_file():
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail=f"{output} was not written",
            )
        return output

    def execution_payload(self, eth_genesis: Path | str) -> dict[str, Any]:
        """
        Embed the execution payload of `eth_genesis` into the home's genesis.

        Returns:
            The resulting consensus genesis.

        Raises:
            ExternalToolError: If the call fails or leaves a genesis that is
                not a JSON object.
        """
        result = self._run("genesis", "execution-payload", eth_genesis)
        genesis = self._read_home_json(self.genesis_file)
        if not isinstance(genesis, dict):
            raise ExternalToolError(
                result.command,
                result.exit_code,
                result.stdout,
                detail=f"{self.genesis_file} is not a JSON object",
            )
        return genesis

    def _read_home_json(self, path: Path) -> Any:
        try:
            return read_json(path)
        except LoadError as e:
            raise ExternalToolError([str(self.binary)], None, detail=e.message) from e


def _typed_key(document: dict[str, Any], name: str) -> dict[str, str]:
    """Extract a `{"type": ..., "value": ...}` key object."""
    key = document.get(name)
    if not isinstance(key, dict):
        # Flat {"type", "value"} form.
        key = document
    return {"type": str(key.get("type", "")), "value": str(key.get("value", ""))}
