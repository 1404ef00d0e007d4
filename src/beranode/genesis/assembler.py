"""
Execution-layer genesis assembly.

Builds eth-genesis.json as a plain document tree and serializes it once.
The tree is assembled in a fixed key order:

    config
        chainId, the hard-fork blocks, shanghaiTime/cancunTime/pragueTime,
        terminal total difficulty, blobSchedule, berachain, ethash
    coinbase, difficulty, extraData, gasLimit, nonce, mixhash,
    parentHash, timestamp
    alloc
        standard contracts, custom contracts, account allocations

Nothing in the output depends on the clock or on hash ordering, so equal
inputs always produce byte-identical files.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, NonNegativeInt, ValidationError, field_validator

from beranode.exceptions import BuildError, LoadError
from beranode.store import render_json, write_text_atomic
from beranode.types import FrozenModel

from .allocations import (
    AccountAllocation,
    ContractAllocation,
    CustomContract,
    StandardContracts,
    parse_account_allocations,
)
from .prague import PragueSchedule
from .spec import BlobSchedule, ForkSchedule, GenesisHeader, NetworkSpec

logger = logging.getLogger(__name__)


def merge_overrides(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge `overrides` onto `base`.

    Nested mappings are merged key by key. Any other override value
    replaces the base value.
    """
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_overrides(current, value)
        else:
            merged[key] = value
    return merged


class GenesisParams(FrozenModel):
    """
    Every input of the execution-layer genesis.

    Each field has a default, so `GenesisParams()` describes a devnet chain
    with all forks active from genesis and the six standard contracts.

    Example YAML:

        chain_spec: devnet
        forks:
          cancun_time: 0
        prague:
          1:
            time: 0
            base_fee_change_denominator: 48
        custom_contracts:
          1:
            address: "0x1111111111111111111111111111111111111111"
            storage: "0x01=0x02"
    """

    chain_spec: str = "devnet"
    """Chain preset name. Supplies the chain id unless `chain_id` is set."""

    chain_id: NonNegativeInt | None = None
    forks: ForkSchedule = Field(default_factory=ForkSchedule)
    blob_schedule: BlobSchedule = Field(default_factory=BlobSchedule)
    header: GenesisHeader = Field(default_factory=GenesisHeader)
    prague: PragueSchedule = Field(default_factory=PragueSchedule)
    contracts: StandardContracts = Field(default_factory=StandardContracts)
    custom_contracts: dict[NonNegativeInt, CustomContract] = Field(default_factory=dict)
    allocations: list[AccountAllocation] = Field(default_factory=list)

    @field_validator("allocations", mode="before")
    @classmethod
    def parse_allocation_strings(cls, v: Any) -> Any:
        """Accept `0xADDRESS=BALANCE` strings, comma-joined or as a list."""
        if isinstance(v, str) or (isinstance(v, list) and all(isinstance(x, str) for x in v)):
            return parse_account_allocations(v)
        return v

    @classmethod
    def build(cls, data: Mapping[str, Any] | None = None) -> GenesisParams:
        """
        Validate raw parameters.

        Raises:
            BuildError: If any parameter is malformed.
        """
        try:
            return cls.model_validate(dict(data or {}))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise BuildError(
                f"{first['msg']} ({e.error_count()} error(s) in genesis parameters)",
                flag=location or None,
                value=first.get("input"),
            ) from e

    @classmethod
    def from_yaml(cls, text: str) -> GenesisParams:
        """
        Load parameters from a YAML string.

        Raises:
            LoadError: If the YAML is invalid or not a mapping.
            BuildError: If a parameter is malformed.
        """
        return cls.build(_parse_yaml(text, "<string>"))

    @classmethod
    def from_yaml_file(cls, path: Path | str) -> GenesisParams:
        """
        Load parameters from a YAML file.

        Raises:
            LoadError: If the file does not exist or is not valid YAML.
            BuildError: If a parameter is malformed.
        """
        return cls.build(read_params_file(path))

    def network_spec(self) -> NetworkSpec:
        """Resolve the chain preset and fold in forks, blobs and header."""
        return NetworkSpec.for_chain(
            self.chain_spec,
            self.chain_id,
            forks=self.forks,
            blob_schedule=self.blob_schedule,
            header=self.header,
        )


def _parse_yaml(text: str, source: Path | str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LoadError(source, f"invalid YAML ({e})") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise LoadError(source, f"expected a mapping, got {type(data).__name__}")
    return data


def read_params_file(path: Path | str) -> dict[str, Any]:
    """
    Read raw genesis parameters from YAML without validating them.

    Used when file values are merged with command-line overrides before
    validation.

    Raises:
        LoadError: If the file does not exist or is not a YAML mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise LoadError(path, "file not found")
    return _parse_yaml(path.read_text(encoding="utf-8"), path)


class GenesisAssembler:
    """
    Builds eth-genesis.json from `GenesisParams`.

    The network spec is resolved once at construction, so an unknown chain
    preset fails before anything is built.
    """

    def __init__(self, params: GenesisParams | None = None) -> None:
        self.params = params or GenesisParams()
        self.network = self.params.network_spec()

    def build_config(self) -> dict[str, Any]:
        """The `config` object: chain id, forks, blobs, Berachain sections."""
        return {
            "chainId": self.network.chain_id,
            **self.network.forks.model_dump(by_alias=True),
            "blobSchedule": self.network.blob_schedule.to_json(),
            "berachain": self.params.prague.to_json(),
            "ethash": {},
        }

    def build_alloc(self) -> dict[str, Any]:
        """
        The `alloc` object.

        Raises:
            BuildError: If two allocations target the same address.
        """
        entries: list[tuple[str, dict[str, Any]]] = []

        contracts: list[ContractAllocation] = list(self.params.contracts.allocations())
        for index in sorted(self.params.custom_contracts):
            allocation = self.params.custom_contracts[index].to_allocation()
            if allocation is None:
                logger.warning(f"Custom contract {index} has no address, skipping")
                continue
            contracts.append(allocation)

        entries.extend((contract.address, contract.to_json()) for contract in contracts)
        entries.extend(
            (account.address, {"balance": account.balance}) for account in self.params.allocations
        )

        alloc: dict[str, Any] = {}
        seen: set[str] = set()
        for address, entry in entries:
            if address.lower() in seen:
                raise BuildError("address is allocated more than once", flag="alloc", value=address)
            seen.add(address.lower())
            alloc[address] = entry
        return alloc

    def build_document(self) -> dict[str, Any]:
        """The complete genesis document tree."""
        header = self.network.header.model_dump(by_alias=True)
        return {
            "config": self.build_config(),
            **header,
            "alloc": self.build_alloc(),
        }

    def render(self) -> str:
        """The document, serialized with the canonical layout."""
        return render_json(self.build_document())

    def write(self, path: Path | str) -> Path:
        """
        Assemble the genesis and atomically write it to `path`.

        Nothing is written if any input is malformed. The serialized text is
        parsed back before it replaces the destination.

        Raises:
            BuildError: If an input is malformed.
            CorruptOutputError: If the output does not re-parse as JSON.
        """
        path = Path(path)
        text = self.render()
        write_text_atomic(path, text, verify_json=True)
        logger.info(
            f"Wrote execution genesis for chain {self.network.chain_id} "
            f"({self.network.beacon_chain_id}) to {path}"
        )
        return path
