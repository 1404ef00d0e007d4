"""
Command-line flags for execution-layer genesis assembly.

Two kinds of flags are accepted:

- Fixed flags such as `--chain-id` or `--eth-genesis-wbera-balance`,
  registered on an argparse parser.
- Indexed flags, parsed generically for any N:

      --prague<N>-time 0
      --prague<N>-blocked-addresses 0xaa,0xbb
      --eth-genesis-custom<N>-contract-storage 0x01=0x02,0x03=0x04

Flags are turned into a nested override mapping with the same shape as
`GenesisParams`, so they can be merged over a YAML parameters file.
"""

from __future__ import annotations

import argparse
import re
from collections.abc import Sequence
from typing import Any

from beranode.exceptions import BuildError

from .allocations import parse_custom_storage
from .prague import parse_blocked_addresses
from .spec import ForkSchedule

_CONTRACT_SLOTS = (
    "beacon-roots",
    "create2-deployer",
    "multicall3",
    "wbera",
    "permit2",
    "beacon-deposit",
)


def _fixed_flags() -> dict[str, tuple[str, ...]]:
    flags: dict[str, tuple[str, ...]] = {
        "--chain-spec": ("chain_spec",),
        "--chain-id": ("chain_id",),
    }
    for name in ForkSchedule.model_fields:
        flags["--" + name.replace("_", "-")] = ("forks", name)

    flags["--blob-target"] = ("blob_schedule", "target")
    flags["--blob-max"] = ("blob_schedule", "max_blobs")
    flags["--blob-base-fee-update-fraction"] = ("blob_schedule", "base_fee_update_fraction")

    for name in (
        "coinbase-address",
        "difficulty",
        "extra-data",
        "gas-limit",
        "nonce",
        "mix-hash",
        "parent-hash",
        "timestamp",
    ):
        field = "coinbase" if name == "coinbase-address" else name.replace("-", "_")
        flags[f"--genesis-{name}"] = ("header", field)

    for slot in _CONTRACT_SLOTS:
        for field in ("address", "code", "balance", "nonce"):
            flags[f"--eth-genesis-{slot}-{field}"] = ("contracts", slot.replace("-", "_"), field)
    flags["--eth-genesis-beacon-deposit-storage-key"] = (
        "contracts",
        "beacon_deposit",
        "storage_key",
    )
    flags["--eth-genesis-beacon-deposit-storage-value"] = (
        "contracts",
        "beacon_deposit",
        "storage_value",
    )

    flags["--eth-genesis-allocations"] = ("allocations",)
    return flags


FIXED_FLAGS: dict[str, tuple[str, ...]] = _fixed_flags()
"""Flag name to the parameter path it sets."""

_PRAGUE_FLAG = re.compile(
    r"--prague(\d+)-(time|base-fee-change-denominator|min-base-fee|pol-distributor"
    r"|bex-vault|rescue-address|blocked-addresses)"
)
_PRAGUE_FIELDS = {
    "time": "time",
    "base-fee-change-denominator": "base_fee_change_denominator",
    "min-base-fee": "minimum_base_fee_wei",
    "pol-distributor": "pol_distributor_address",
    "bex-vault": "bex_vault_address",
    "rescue-address": "rescue_address",
    "blocked-addresses": "blocked_addresses",
}

_CUSTOM_FLAG = re.compile(
    r"--eth-genesis-custom(\d+)-contract-(address|code|balance|nonce|storage)"
)


class _FlagParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as BuildError."""

    def error(self, message: str) -> Any:  # type: ignore[override]
        raise BuildError(message)


def add_genesis_arguments(parser: argparse.ArgumentParser) -> None:
    """Register every fixed genesis flag. Unset flags leave no attribute."""
    group = parser.add_argument_group("genesis parameters")
    for flag, path in FIXED_FLAGS.items():
        group.add_argument(
            flag,
            dest=".".join(path),
            metavar="VALUE",
            default=argparse.SUPPRESS,
        )


def _set_path(target: dict[Any, Any], path: Sequence[Any], value: Any) -> None:
    for part in path[:-1]:
        target = target.setdefault(part, {})
    target[path[-1]] = value


def namespace_overrides(namespace: argparse.Namespace) -> dict[str, Any]:
    """Turn parsed fixed flags into a nested override mapping."""
    overrides: dict[str, Any] = {}
    dests = {".".join(path) for path in FIXED_FLAGS.values()}
    for dest, value in vars(namespace).items():
        if dest in dests:
            _set_path(overrides, dest.split("."), value)
    return overrides


def _iter_flag_values(tokens: Sequence[str]) -> list[tuple[str, str]]:
    pairs = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if not token.startswith("--"):
            raise BuildError("unexpected argument", value=token)
        if "=" in token:
            flag, value = token.split("=", 1)
            i += 1
        else:
            if i + 1 >= len(tokens):
                raise BuildError("missing value", flag=token)
            flag, value = token, tokens[i + 1]
            i += 2
        pairs.append((flag, value))
    return pairs


def parse_indexed_flags(tokens: Sequence[str]) -> dict[str, Any]:
    """
    Parse `--pragueN-*` and `--eth-genesis-customN-contract-*` flags.

    Blocked-address lists and custom storage are checked here, so a
    malformed value is reported against the flag that carried it.

    Raises:
        BuildError: On an unknown flag, a missing value, a Prague index
            below 1, or a malformed list value.
    """
    overrides: dict[str, Any] = {}
    for flag, value in _iter_flag_values(tokens):
        if match := _PRAGUE_FLAG.fullmatch(flag):
            index = int(match.group(1))
            if index < 1:
                raise BuildError("Prague sections are numbered from 1", flag=flag)
            field = _PRAGUE_FIELDS[match.group(2)]
            parsed: Any = value
            if field == "blocked_addresses":
                parsed = list(parse_blocked_addresses(value, flag))
            _set_path(overrides, ("prague", index, field), parsed)
        elif match := _CUSTOM_FLAG.fullmatch(flag):
            index = int(match.group(1))
            field = match.group(2)
            parsed = parse_custom_storage(value, flag) if field == "storage" else value
            _set_path(overrides, ("custom_contracts", index, field), parsed)
        else:
            raise BuildError("unknown flag", flag=flag)
    return overrides


def parse_genesis_flags(argv: Sequence[str]) -> dict[str, Any]:
    """
    Parse genesis flags into a nested override mapping.

    Raises:
        BuildError: If any flag is unknown or malformed.
    """
    parser = _FlagParser(add_help=False, allow_abbrev=False)
    add_genesis_arguments(parser)
    namespace, extras = parser.parse_known_args(list(argv))

    overrides = namespace_overrides(namespace)
    overrides.update(parse_indexed_flags(extras))
    return overrides
