"""Tests for genesis command-line flags."""

from __future__ import annotations

import argparse

import pytest

from beranode.exceptions import BuildError
from beranode.genesis import (
    FIXED_FLAGS,
    GenesisAssembler,
    GenesisParams,
    add_genesis_arguments,
    namespace_overrides,
    parse_genesis_flags,
    parse_indexed_flags,
)
from beranode.genesis import constants as c

ADDRESS = "0x" + "11" * 20


class TestFixedFlags:
    """Tests for the fixed flag table."""

    def test_table_covers_forks_and_contracts(self) -> None:
        """Representative flags map to their parameter paths."""
        assert FIXED_FLAGS["--chain-id"] == ("chain_id",)
        assert FIXED_FLAGS["--cancun-time"] == ("forks", "cancun_time")
        assert FIXED_FLAGS["--genesis-coinbase-address"] == ("header", "coinbase")
        assert FIXED_FLAGS["--eth-genesis-wbera-balance"] == ("contracts", "wbera", "balance")
        assert FIXED_FLAGS["--blob-max"] == ("blob_schedule", "max_blobs")

    def test_both_value_forms(self) -> None:
        """`--flag value` and `--flag=value` are equivalent."""
        spaced = parse_genesis_flags(["--chain-id", "7"])
        joined = parse_genesis_flags(["--chain-id=7"])

        assert spaced == joined == {"chain_id": "7"}

    def test_namespace_overrides_ignores_other_options(self) -> None:
        """Only genesis flags become overrides."""
        parser = argparse.ArgumentParser()
        parser.add_argument("--output")
        add_genesis_arguments(parser)

        namespace = parser.parse_args(["--output", "x", "--eth-genesis-wbera-balance", "0x10"])

        assert namespace_overrides(namespace) == {"contracts": {"wbera": {"balance": "0x10"}}}

    def test_unknown_flag(self) -> None:
        """Flags outside both families are rejected."""
        with pytest.raises(BuildError, match="unknown flag"):
            parse_genesis_flags(["--not-a-flag", "1"])

    def test_missing_value(self) -> None:
        """A trailing flag without a value is rejected."""
        with pytest.raises(BuildError):
            parse_genesis_flags(["--prague1-time"])


class TestIndexedFlags:
    """Tests for the --pragueN-* and --eth-genesis-customN-contract-* families."""

    def test_prague_flags(self) -> None:
        """Any index N >= 1 is accepted."""
        overrides = parse_indexed_flags(
            [
                "--prague1-time",
                "0",
                "--prague12-time=5",
                "--prague12-blocked-addresses",
                "0xaa,0xbb",
                "--prague1-min-base-fee",
                "1",
            ]
        )

        assert overrides == {
            "prague": {
                1: {"time": "0", "minimum_base_fee_wei": "1"},
                12: {"time": "5", "blocked_addresses": ["0xaa", "0xbb"]},
            }
        }

    def test_prague_index_zero(self) -> None:
        """Prague sections start at 1."""
        with pytest.raises(BuildError):
            parse_indexed_flags(["--prague0-time", "0"])

    def test_custom_contract_flags(self) -> None:
        """Custom contract storage is parsed at the flag."""
        overrides = parse_indexed_flags(
            [
                "--eth-genesis-custom3-contract-address",
                ADDRESS,
                "--eth-genesis-custom3-contract-storage",
                "0x01=0x02",
            ]
        )

        assert overrides == {
            "custom_contracts": {3: {"address": ADDRESS, "storage": {"0x01": "0x02"}}}
        }

    def test_malformed_storage_names_the_flag(self) -> None:
        """The error carries the flag that held the bad value."""
        with pytest.raises(BuildError) as exc:
            parse_indexed_flags(["--eth-genesis-custom1-contract-storage", "0xZZ=0x01"])

        assert exc.value.flag == "--eth-genesis-custom1-contract-storage"

    def test_malformed_blocked_addresses(self) -> None:
        """Blocked addresses are checked at the flag."""
        with pytest.raises(BuildError):
            parse_indexed_flags(["--prague2-blocked-addresses", "0xaa,zz"])

    def test_stray_argument(self) -> None:
        """Values must follow a flag."""
        with pytest.raises(BuildError, match="unexpected argument"):
            parse_indexed_flags(["0"])


class TestFlagsToGenesis:
    """Flags flow through to the assembled document."""

    def test_flags_build_a_genesis(self) -> None:
        """Fixed and indexed flags combine into one parameter set."""
        overrides = parse_genesis_flags(
            [
                "--chain-spec",
                "mainnet",
                "--prague1-time",
                "0",
                "--eth-genesis-permit2-address=",
                "--eth-genesis-custom1-contract-address",
                ADDRESS,
            ]
        )

        document = GenesisAssembler(GenesisParams.build(overrides)).build_document()

        assert document["config"]["chainId"] == c.MAINNET_CHAIN_ID
        assert document["config"]["berachain"] == {"prague1": {"time": 0}}
        assert c.PERMIT2_ADDRESS not in document["alloc"]
        assert ADDRESS in document["alloc"]
