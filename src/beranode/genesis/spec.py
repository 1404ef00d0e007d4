"""
Network specification models.

A network is described by its chain id, the fork schedule, the blob fee
market and the genesis block header. Every fork defaults to "active from
genesis": block numbers and timestamps are 0 and the terminal total
difficulty is 0 and already passed, so the chain starts as proof of stake.

Field order here is the field order of the emitted genesis document.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, NonNegativeInt

from beranode.exceptions import BuildError
from beranode.types import FrozenModel

from . import constants as c

_ADDRESS = r"^0x[0-9a-fA-F]{40}$"
_HEX = r"^0x[0-9a-fA-F]*$"
_HEX_OR_DECIMAL = r"^(0x[0-9a-fA-F]+|[0-9]+)$"


class ForkSchedule(FrozenModel):
    """Activation points of every Ethereum hard fork."""

    homestead_block: NonNegativeInt = 0
    dao_fork_block: NonNegativeInt = 0
    dao_fork_support: bool = True
    eip150_block: NonNegativeInt = 0
    eip155_block: NonNegativeInt = 0
    eip158_block: NonNegativeInt = 0
    byzantium_block: NonNegativeInt = 0
    constantinople_block: NonNegativeInt = 0
    petersburg_block: NonNegativeInt = 0
    istanbul_block: NonNegativeInt = 0
    muir_glacier_block: NonNegativeInt = 0
    berlin_block: NonNegativeInt = 0
    london_block: NonNegativeInt = 0
    arrow_glacier_block: NonNegativeInt = 0
    gray_glacier_block: NonNegativeInt = 0
    merge_netsplit_block: NonNegativeInt = 0

    shanghai_time: NonNegativeInt = 0
    cancun_time: NonNegativeInt = 0
    prague_time: NonNegativeInt = 0
    """Ethereum Prague. Berachain's own Prague sections are separate."""

    terminal_total_difficulty: NonNegativeInt = 0
    terminal_total_difficulty_passed: bool = True


class BlobSchedule(FrozenModel):
    """Blob fee market parameters, applied to both Cancun and Prague."""

    target: NonNegativeInt = c.BLOB_TARGET
    max_blobs: NonNegativeInt = Field(default=c.BLOB_MAX, alias="max")
    base_fee_update_fraction: NonNegativeInt = c.BLOB_BASE_FEE_UPDATE_FRACTION

    def to_json(self) -> dict[str, Any]:
        """The `blobSchedule` object of the genesis config."""
        entry = self.model_dump(by_alias=True)
        return {"cancun": dict(entry), "prague": dict(entry)}


class GenesisHeader(FrozenModel):
    """Fields of block zero."""

    coinbase: str = Field(default=c.ZERO_ADDRESS, pattern=_ADDRESS)
    difficulty: str = Field(default=c.GENESIS_DIFFICULTY, pattern=_HEX)
    extra_data: str = Field(default=c.ZERO_HASH, pattern=_HEX)
    gas_limit: str = Field(default=c.GENESIS_GAS_LIMIT, pattern=_HEX)
    nonce: str = Field(default=c.GENESIS_NONCE, pattern=_HEX)
    mix_hash: str = Field(default=c.ZERO_HASH, pattern=_HEX, alias="mixhash")
    parent_hash: str = Field(default=c.ZERO_HASH, pattern=_HEX)
    timestamp: str = Field(default=c.GENESIS_TIMESTAMP, pattern=_HEX_OR_DECIMAL)


class NetworkSpec(FrozenModel):
    """Everything that identifies a chain at genesis."""

    chain_id: NonNegativeInt
    chain_name: str = Field(min_length=1)
    forks: ForkSchedule = Field(default_factory=ForkSchedule)
    blob_schedule: BlobSchedule = Field(default_factory=BlobSchedule)
    header: GenesisHeader = Field(default_factory=GenesisHeader)

    @property
    def beacon_chain_id(self) -> str:
        """Consensus-layer chain id, e.g. `devnet-beacon-80087`."""
        return f"{self.chain_name}-beacon-{self.chain_id}"

    @classmethod
    def for_chain(cls, chain_spec: str, chain_id: int | None = None, **kwargs: Any) -> NetworkSpec:
        """
        Resolve a chain preset by name.

        Args:
            chain_spec: Preset name (devnet, bepolia, testnet, mainnet).
            chain_id: Explicit chain id. Overrides the preset and allows
                chain names without a preset.
            **kwargs: Remaining NetworkSpec fields.

        Raises:
            BuildError: If the name has no preset and no chain id is given.
        """
        if chain_id is None:
            if chain_spec not in c.CHAIN_IDS:
                raise BuildError(
                    f"unknown chain spec, expected one of {sorted(c.CHAIN_IDS)}",
                    flag="--chain-spec",
                    value=chain_spec,
                )
            chain_id = c.CHAIN_IDS[chain_spec]
        name = c.CHAIN_NAMES.get(chain_spec, chain_spec)
        return cls(chain_id=chain_id, chain_name=name, **kwargs)
