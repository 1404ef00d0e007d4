"""
Execution-layer genesis.

Network spec models, Berachain Prague sections, `alloc` entries, the
assembler and its command-line flags.
"""

from .allocations import (
    AccountAllocation,
    ContractAllocation,
    ContractSlot,
    CustomContract,
    DepositContractSlot,
    StandardContracts,
    check_storage,
    deposit_storage,
    parse_account_allocations,
    parse_custom_storage,
    split_list,
)
from .assembler import GenesisAssembler, GenesisParams, merge_overrides, read_params_file
from .flags import (
    FIXED_FLAGS,
    add_genesis_arguments,
    namespace_overrides,
    parse_genesis_flags,
    parse_indexed_flags,
)
from .prague import PragueSchedule, PragueSection, parse_blocked_addresses
from .spec import BlobSchedule, ForkSchedule, GenesisHeader, NetworkSpec

__all__ = [
    "AccountAllocation",
    "BlobSchedule",
    "ContractAllocation",
    "ContractSlot",
    "CustomContract",
    "DepositContractSlot",
    "FIXED_FLAGS",
    "ForkSchedule",
    "GenesisAssembler",
    "GenesisHeader",
    "GenesisParams",
    "NetworkSpec",
    "PragueSchedule",
    "PragueSection",
    "StandardContracts",
    "add_genesis_arguments",
    "check_storage",
    "deposit_storage",
    "merge_overrides",
    "namespace_overrides",
    "parse_account_allocations",
    "parse_blocked_addresses",
    "parse_custom_storage",
    "parse_genesis_flags",
    "parse_indexed_flags",
    "read_params_file",
    "split_list",
]
