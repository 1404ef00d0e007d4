"""Tests for execution-layer genesis assembly."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from beranode.exceptions import BuildError, LoadError
from beranode.genesis import GenesisAssembler, GenesisParams, merge_overrides, read_params_file
from beranode.genesis import constants as c

ADDRESS = "0x" + "11" * 20


class TestMergeOverrides:
    """Tests for merge_overrides."""

    def test_nested_merge(self) -> None:
        """Nested mappings merge key by key, other values replace."""
        base = {"forks": {"cancun_time": 1, "prague_time": 2}, "chain_spec": "devnet"}
        overrides = {"forks": {"prague_time": 3}, "chain_spec": "mainnet"}

        assert merge_overrides(base, overrides) == {
            "forks": {"cancun_time": 1, "prague_time": 3},
            "chain_spec": "mainnet",
        }

    def test_base_is_not_modified(self) -> None:
        """The inputs are left as they were."""
        base = {"forks": {"cancun_time": 1}}
        merge_overrides(base, {"forks": {"cancun_time": 2}})

        assert base == {"forks": {"cancun_time": 1}}


class TestGenesisParams:
    """Tests for parameter loading."""

    def test_defaults(self) -> None:
        """Empty parameters describe a devnet chain."""
        assert GenesisAssembler(GenesisParams.build()).network.chain_id == c.DEVNET_CHAIN_ID

    def test_first_error_is_reported(self) -> None:
        """Pydantic errors become a BuildError naming the parameter."""
        with pytest.raises(BuildError) as exc:
            GenesisParams.build({"forks": {"cancun_time": -1}})

        assert exc.value.flag is not None
        assert exc.value.flag.startswith("forks.")

    def test_unknown_parameter(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(BuildError):
            GenesisParams.build({"chain_name": "x"})

    def test_from_yaml(self) -> None:
        """YAML files use the same shape as the model."""
        params = GenesisParams.from_yaml(
            "chain_spec: mainnet\n"
            "prague:\n"
            "  1:\n"
            "    time: 0\n"
            "custom_contracts:\n"
            "  1:\n"
            f"    address: '{ADDRESS}'\n"
            "    storage: '0x01=0x02'\n"
            "    nonce: 1\n"
        )

        assert params.chain_spec == "mainnet"
        assert params.custom_contracts[1].storage == {"0x01": "0x02"}
        assert params.custom_contracts[1].nonce == "0x1"

    def test_from_yaml_rejects_non_mapping(self) -> None:
        """Top-level YAML must be a mapping."""
        with pytest.raises(LoadError):
            GenesisParams.from_yaml("- a\n- b\n")

    def test_from_yaml_rejects_invalid_yaml(self) -> None:
        """Unparseable YAML is a LoadError."""
        with pytest.raises(LoadError, match="invalid YAML"):
            GenesisParams.from_yaml("a: [1, 2\n")

    def test_read_params_file(self, tmp_path: Path) -> None:
        """Missing and empty files are handled."""
        with pytest.raises(LoadError):
            read_params_file(tmp_path / "missing.yaml")

        empty = tmp_path / "empty.yaml"
        empty.write_text("", encoding="utf-8")
        assert read_params_file(empty) == {}

    def test_from_yaml_file(self, tmp_path: Path) -> None:
        """Files are read and validated."""
        path = tmp_path / "params.yaml"
        path.write_text("chain_id: 1234\n", encoding="utf-8")

        assert GenesisParams.from_yaml_file(path).network_spec().chain_id == 1234


class TestGenesisAssembler:
    """Tests for GenesisAssembler."""

    def test_document_key_order(self) -> None:
        """Top-level keys follow the genesis layout."""
        document = GenesisAssembler().build_document()

        assert list(document) == [
            "config",
            "coinbase",
            "difficulty",
            "extraData",
            "gasLimit",
            "nonce",
            "mixhash",
            "parentHash",
            "timestamp",
            "alloc",
        ]

    def test_config_section(self) -> None:
        """chainId comes first and berachain/ethash close the section."""
        config = GenesisAssembler().build_config()
        keys = list(config)

        assert keys[0] == "chainId"
        assert keys[-3:] == ["blobSchedule", "berachain", "ethash"]
        assert config["berachain"] == {}
        assert config["ethash"] == {}

    def test_prague_sections(self) -> None:
        """Configured Prague sections appear under berachain."""
        params = GenesisParams.build({"prague": {1: {"time": 0}, 3: {"time": 10}}})

        berachain = GenesisAssembler(params).build_config()["berachain"]

        assert berachain == {"prague1": {"time": 0}, "prague3": {"time": 10}}

    def test_alloc_groups_in_order(self) -> None:
        """Standard contracts, then custom contracts, then accounts."""
        account = "0x" + "22" * 20
        params = GenesisParams.build(
            {
                "custom_contracts": {2: {"address": ADDRESS, "code": "0x60"}},
                "allocations": f"{account}=0x5",
            }
        )

        alloc = GenesisAssembler(params).build_alloc()

        assert list(alloc)[-2:] == [ADDRESS, account]
        assert list(alloc)[0] == c.BEACON_ROOTS_ADDRESS
        assert alloc[account] == {"balance": "0x5"}

    def test_custom_contracts_in_index_order(self) -> None:
        """Custom contracts are emitted by ascending index."""
        second = "0x" + "33" * 20
        params = GenesisParams.build(
            {"custom_contracts": {5: {"address": second}, 1: {"address": ADDRESS}}}
        )

        assert list(GenesisAssembler(params).build_alloc())[-2:] == [ADDRESS, second]

    def test_duplicate_address(self) -> None:
        """An address may be allocated only once, regardless of case."""
        params = GenesisParams.build({"allocations": [f"{c.BEACON_ROOTS_ADDRESS.lower()}=1"]})

        with pytest.raises(BuildError, match="more than once"):
            GenesisAssembler(params).build_alloc()

    def test_byte_identical_output(self, tmp_path: Path) -> None:
        """Equal inputs produce identical files."""
        params = GenesisParams.build({"prague": {1: {"time": 0}}})

        first = GenesisAssembler(params).write(tmp_path / "a.json")
        second = GenesisAssembler(params).write(tmp_path / "b.json")

        assert first.read_bytes() == second.read_bytes()

    def test_written_file_is_json(self, tmp_path: Path) -> None:
        """The output parses back to the built document."""
        assembler = GenesisAssembler()
        path = assembler.write(tmp_path / "out" / "eth-genesis.json")

        assert json.loads(path.read_text()) == assembler.build_document()

    def test_unknown_chain_fails_before_building(self) -> None:
        """The chain preset is resolved at construction."""
        with pytest.raises(BuildError):
            GenesisAssembler(GenesisParams.build({"chain_spec": "localnet"}))

    def test_malformed_storage_writes_nothing(self, tmp_path: Path) -> None:
        """A malformed parameter fails before any file exists."""
        with pytest.raises(BuildError):
            params = GenesisParams.build(
                {"custom_contracts": {1: {"address": ADDRESS, "storage": "0xZZ=0x01"}}}
            )
            GenesisAssembler(params).write(tmp_path / "eth-genesis.json")

        assert list(tmp_path.iterdir()) == []

    def test_malformed_storage_mapping_in_params_file(self, tmp_path: Path) -> None:
        """Storage given as a YAML mapping is checked entry by entry."""
        params_file = tmp_path / "params.yaml"
        params_file.write_text(
            "custom_contracts:\n"
            "  1:\n"
            f"    address: '{ADDRESS}'\n"
            "    storage:\n"
            "      '0xZZ': nothex\n",
            encoding="utf-8",
        )

        with pytest.raises(BuildError) as exc:
            GenesisParams.build(read_params_file(params_file))

        assert exc.value.value == {"0xZZ": "nothex"}
