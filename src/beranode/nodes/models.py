"""
Node and deposit models.

These mirror the objects stored in the `nodes[]` and `genesis_deposits[]`
arrays of beranodes.config.json. Keys keep the snake_case spelling of the
configuration file.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

MONIKER_PATTERN = r"[a-zA-Z0-9_-]{3,64}"
"""Human-readable node name. Also the consensus-layer display identifier."""

PUBKEY_PATTERN = r"^0x[0-9a-fA-F]{96}$"
HEX_PATTERN = r"^0x[0-9a-fA-F]+$"


class Role(str, Enum):
    """What a node does in the network."""

    VALIDATOR = "validator"
    """Signs blocks. Owns a premined genesis deposit."""

    RPC_FULL = "rpc-full"
    """Serves RPC with full history."""

    RPC_PRUNED = "rpc-pruned"
    """Serves RPC with pruned history."""


class DepositRecord(BaseModel):
    """
    A validator's genesis-time staking deposit.

    Produced by the consensus client and bound into the consensus genesis
    before any block exists.
    """

    model_config = ConfigDict(extra="forbid")

    pubkey: str = Field(pattern=PUBKEY_PATTERN)
    """BLS public key of the validator (48 bytes)."""

    credentials: str = Field(pattern=HEX_PATTERN)
    """Withdrawal credentials."""

    amount: str = Field(pattern=HEX_PATTERN)
    """Deposit amount in gwei, hex encoded."""

    signature: str = Field(pattern=HEX_PATTERN)
    """BLS signature over the deposit message."""

    index: int = Field(ge=0)
    """Position of the deposit in the genesis deposit list."""


class BerarethKeys(BaseModel):
    """Execution-layer P2P identity of a node (hex without 0x prefix)."""

    private_key: str
    public_key: str


class BeacondKeys(BaseModel):
    """
    Consensus-layer identity and secrets of a node.

    Populated by key provisioning from the output of the consensus client.
    """

    model_config = ConfigDict(extra="allow")

    comet_address: str
    comet_pubkey: str
    node_id: str = ""
    deposit_amount: str = ""
    jwt: str
    eth_beacon_pubkey: str
    node_key: dict[str, Any] = Field(default_factory=dict)
    priv_validator_key: dict[str, Any] = Field(default_factory=dict)
    premined_deposit: DepositRecord | None = None


class NodeDescriptor(BaseModel):
    """
    One node of the local network.

    Ports are optional because a freshly written configuration carries them
    while hand-written test fixtures often do not. Keys are absent until key
    provisioning has run.
    """

    model_config = ConfigDict(extra="allow")

    moniker: str = Field(pattern=f"^{MONIKER_PATTERN}$")
    role: Role
    network: str
    wallet_address: str = ""

    ethrpc_port: int | None = None
    ethp2p_port: int | None = None
    ethproxy_port: int | None = None
    el_ethrpc_port: int | None = None
    el_authrpc_port: int | None = None
    el_eth_port: int | None = None
    el_prometheus_port: int | None = None
    cl_prometheus_port: int | None = None

    berareth_config: BerarethKeys | None = None
    beacond_config: BeacondKeys | None = None

    @model_validator(mode="after")
    def validate_premined_deposit_matches_role(self) -> NodeDescriptor:
        """Only validators carry a premined deposit, and every validator does."""
        if self.beacond_config is None:
            return self
        has_deposit = self.beacond_config.premined_deposit is not None
        if has_deposit != self.is_validator:
            raise ValueError(
                f"node {self.moniker}: premined_deposit must be present "
                f"if and only if role is '{Role.VALIDATOR.value}' (role is '{self.role.value}')"
            )
        return self

    @property
    def is_validator(self) -> bool:
        """Whether this node signs blocks."""
        return self.role is Role.VALIDATOR

    @property
    def premined_deposit(self) -> DepositRecord | None:
        """The node's genesis deposit, if keys have been provisioned."""
        if self.beacond_config is None:
            return None
        return self.beacond_config.premined_deposit
