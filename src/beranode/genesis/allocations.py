"""
Genesis `alloc` entries.

The `alloc` object of the execution-layer genesis is built in three groups,
in this order:

1. The six standard contracts: beacon roots, CREATE2 deployer, Multicall3,
   WBERA, Permit2 and the beacon deposit contract. A slot whose address is
   empty is left out.
2. Custom contracts, in ascending index order.
3. Plain account allocations (`address=balance` pairs).
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pydantic import Field, field_validator, model_validator

from beranode.exceptions import BuildError
from beranode.types import FrozenModel

from . import constants as c

_STORAGE_ENTRY = re.compile(r"0x[0-9a-fA-F]+=(0x)?[0-9a-fA-F]+")
_ACCOUNT_ENTRY = re.compile(r"(0x[0-9a-fA-F]{40})=(0x[0-9a-fA-F]+|[0-9]+)")
_ADDRESS = r"^0x[0-9a-fA-F]{40}$"
_HEX = r"^0x[0-9a-fA-F]*$"


def split_list(value: str | Sequence[str] | None) -> list[str]:
    """
    Normalize a list given either comma-joined or pre-split.

    `"0x1,0x2"`, `["0x1,0x2"]` and `["0x1", "0x2"]` all yield
    `["0x1", "0x2"]`. Whitespace is stripped and empty entries dropped.
    """
    if value is None:
        return []
    parts = [value] if isinstance(value, str) else list(value)
    return [item.strip() for part in parts for item in part.split(",") if item.strip()]


def parse_custom_storage(raw: str, flag: str | None = None) -> dict[str, str]:
    """
    Parse `0xKEY=VALUE[,0xKEY=VALUE...]` into a storage mapping.

    Values may be written with or without the `0x` prefix.

    Raises:
        BuildError: If any entry is malformed. A single bad entry rejects
            the whole value.
    """
    storage: dict[str, str] = {}
    for entry in raw.split(","):
        if _STORAGE_ENTRY.fullmatch(entry) is None:
            raise BuildError(
                "expected '0xKEY=VALUE[,0xKEY2=VALUE2...]'",
                flag=flag,
                value=raw,
            )
        key, value = entry.split("=", 1)
        storage[key] = value
    return storage


def check_storage(storage: Any, flag: str | None = None) -> dict[str, str]:
    """
    Check a storage mapping entry by entry.

    Applies the same `0xKEY=VALUE` rule as `parse_custom_storage`, so a
    mapping from a parameters file is held to the flag syntax.

    Raises:
        BuildError: If the value is not a mapping or any entry is malformed.
    """
    if not isinstance(storage, Mapping):
        raise BuildError("expected a mapping of storage slots", flag=flag, value=storage)
    for key, value in storage.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise BuildError("storage slots must be strings", flag=flag, value={key: value})
        if _STORAGE_ENTRY.fullmatch(f"{key}={value}") is None:
            raise BuildError(
                "expected 0x-prefixed hex keys with hex values", flag=flag, value={key: value}
            )
    return dict(storage)


def deposit_storage(keys: Sequence[str], values: Sequence[str]) -> dict[str, str]:
    """
    Pair deposit-contract storage keys with their values.

    Raises:
        BuildError: If the two lists differ in length.
    """
    if len(keys) != len(values):
        raise BuildError(
            f"{len(keys)} storage key(s) but {len(values)} storage value(s)",
            flag="--eth-genesis-beacon-deposit-storage-key",
        )
    return dict(zip(keys, values, strict=True))


class ContractAllocation(FrozenModel):
    """One pre-deployed account. Unset fields are left out of the output."""

    address: str = Field(pattern=_ADDRESS)
    balance: str | None = None
    nonce: str | None = None
    code: str | None = None
    storage: dict[str, str] = Field(default_factory=dict)

    @field_validator("storage", mode="before")
    @classmethod
    def validate_storage(cls, v: Any) -> dict[str, str]:
        return check_storage(v)

    def to_json(self) -> dict[str, Any]:
        """The value stored under this address in `alloc`."""
        entry = self.model_dump(exclude={"address", "storage"}, exclude_none=True)
        if self.storage:
            entry["storage"] = dict(self.storage)
        return entry


class AccountAllocation(FrozenModel):
    """A pre-funded account with no code."""

    address: str = Field(pattern=_ADDRESS)
    balance: str = Field(pattern=r"^(0x[0-9a-fA-F]+|[0-9]+)$")

    @classmethod
    def parse(cls, raw: str) -> AccountAllocation:
        """
        Parse `0xADDRESS=BALANCE`.

        Raises:
            BuildError: If the entry is malformed.
        """
        match = _ACCOUNT_ENTRY.fullmatch(raw.strip())
        if match is None:
            raise BuildError(
                "expected '0xADDRESS=BALANCE'", flag="--eth-genesis-allocations", value=raw
            )
        return cls(address=match.group(1), balance=match.group(2))


def parse_account_allocations(raw: str | Sequence[str]) -> list[AccountAllocation]:
    """Parse a comma-joined or pre-split list of `0xADDRESS=BALANCE` entries."""
    return [AccountAllocation.parse(entry) for entry in split_list(raw)]


class ContractSlot(FrozenModel):
    """
    One of the standard contracts.

    Every field can be overridden. Clearing the address drops the contract.
    """

    address: str = Field(default="", pattern=r"^(0x[0-9a-fA-F]{40})?$")
    code: str = Field(default=c.EMPTY_CODE, pattern=_HEX)
    balance: str = Field(default=c.CONTRACT_BALANCE, pattern=_HEX)
    nonce: str = Field(default=c.CONTRACT_NONCE, pattern=_HEX)

    def to_allocation(self) -> ContractAllocation | None:
        """The alloc entry, or None when the slot is disabled."""
        if not self.address:
            return None
        return ContractAllocation(
            address=self.address,
            balance=self.balance,
            nonce=self.nonce,
            code=self.code,
        )


class DepositContractSlot(ContractSlot):
    """The beacon deposit contract. Also carries genesis storage."""

    storage_key: list[str] = Field(default_factory=list)
    storage_value: list[str] = Field(default_factory=list)

    @field_validator("storage_key", "storage_value", mode="before")
    @classmethod
    def normalize_list(cls, v: Any) -> list[str]:
        """Accept one comma-joined string or a list; both normalize the same way."""
        return split_list(v)

    @model_validator(mode="after")
    def validate_storage_lengths(self) -> DepositContractSlot:
        """Keys and values pair up one to one."""
        deposit_storage(self.storage_key, self.storage_value)
        return self

    def to_allocation(self) -> ContractAllocation | None:
        """The alloc entry, with storage when keys are present."""
        if not self.address:
            return None
        return ContractAllocation(
            address=self.address,
            balance=self.balance,
            nonce=self.nonce,
            code=self.code,
            storage=deposit_storage(self.storage_key, self.storage_value),
        )


_SLOT_DEFAULTS: dict[str, dict[str, str]] = {
    "beacon_roots": {"address": c.BEACON_ROOTS_ADDRESS, "code": c.BEACON_ROOTS_CODE},
    "create2_deployer": {"address": c.CREATE2_DEPLOYER_ADDRESS, "code": c.CREATE2_DEPLOYER_CODE},
    "multicall3": {"address": c.MULTICALL3_ADDRESS},
    "wbera": {"address": c.WBERA_ADDRESS},
    "permit2": {"address": c.PERMIT2_ADDRESS},
    "beacon_deposit": {"address": c.BEACON_DEPOSIT_ADDRESS},
}


class StandardContracts(FrozenModel):
    """
    The six standard contracts, in emission order.

    A partial override such as `{"wbera": {"balance": "0x10"}}` keeps the
    default address and code of that slot.
    """

    beacon_roots: ContractSlot = Field(
        default_factory=lambda: ContractSlot(**_SLOT_DEFAULTS["beacon_roots"])
    )
    create2_deployer: ContractSlot = Field(
        default_factory=lambda: ContractSlot(**_SLOT_DEFAULTS["create2_deployer"])
    )
    multicall3: ContractSlot = Field(
        default_factory=lambda: ContractSlot(**_SLOT_DEFAULTS["multicall3"])
    )
    wbera: ContractSlot = Field(default_factory=lambda: ContractSlot(**_SLOT_DEFAULTS["wbera"]))
    permit2: ContractSlot = Field(default_factory=lambda: ContractSlot(**_SLOT_DEFAULTS["permit2"]))
    beacon_deposit: DepositContractSlot = Field(
        default_factory=lambda: DepositContractSlot(**_SLOT_DEFAULTS["beacon_deposit"])
    )

    @model_validator(mode="before")
    @classmethod
    def merge_slot_defaults(cls, data: Any) -> Any:
        """Fill partially overridden slots from their defaults."""
        if not isinstance(data, Mapping):
            return data
        merged = dict(data)
        for name, defaults in _SLOT_DEFAULTS.items():
            override = merged.get(name)
            if isinstance(override, Mapping):
                merged[name] = {**defaults, **override}
        return merged

    def allocations(self) -> Iterator[ContractAllocation]:
        """Enabled contracts in fixed order."""
        for slot in (
            self.beacon_roots,
            self.create2_deployer,
            self.multicall3,
            self.wbera,
            self.permit2,
            self.beacon_deposit,
        ):
            allocation = slot.to_allocation()
            if allocation is not None:
                yield allocation


class CustomContract(FrozenModel):
    """A user-defined contract. Only the fields that are set are emitted."""

    address: str | None = Field(default=None, pattern=_ADDRESS)
    code: str | None = Field(default=None, pattern=_HEX)
    balance: str | None = None
    nonce: str | None = Field(default=None, pattern=_HEX)
    storage: dict[str, str] = Field(default_factory=dict)

    @field_validator("nonce", mode="before")
    @classmethod
    def nonce_to_hex(cls, v: Any) -> Any:
        """YAML files may give the nonce as a plain integer."""
        if isinstance(v, int) and not isinstance(v, bool):
            return hex(v)
        return v

    @field_validator("storage", mode="before")
    @classmethod
    def parse_storage(cls, v: Any) -> Any:
        """Accept the `0xKEY=VALUE,...` flag syntax as well as a mapping."""
        if isinstance(v, str):
            return parse_custom_storage(v)
        return check_storage(v)

    def to_allocation(self) -> ContractAllocation | None:
        """The alloc entry, or None when no address is set."""
        if not self.address:
            return None
        return ContractAllocation(
            address=self.address,
            balance=self.balance or None,
            nonce=self.nonce or None,
            code=self.code or None,
            storage=self.storage,
        )
