"""Tests for network specification models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from beranode.exceptions import BuildError
from beranode.genesis import BlobSchedule, ForkSchedule, GenesisHeader, NetworkSpec
from beranode.genesis import constants as c


class TestNetworkSpec:
    """Tests for chain presets."""

    @pytest.mark.parametrize(
        ("name", "chain_id", "beacon_chain_id"),
        [
            ("devnet", 80087, "devnet-beacon-80087"),
            ("bepolia", 80069, "bepolia-beacon-80069"),
            ("testnet", 80069, "bepolia-beacon-80069"),
            ("mainnet", 80094, "mainnet-beacon-80094"),
        ],
    )
    def test_presets(self, name: str, chain_id: int, beacon_chain_id: str) -> None:
        """Every preset resolves its chain id and consensus chain id."""
        spec = NetworkSpec.for_chain(name)

        assert spec.chain_id == chain_id
        assert spec.beacon_chain_id == beacon_chain_id

    def test_unknown_preset(self) -> None:
        """A name without a preset needs an explicit chain id."""
        with pytest.raises(BuildError) as exc:
            NetworkSpec.for_chain("localnet")

        assert exc.value.flag == "--chain-spec"

    def test_explicit_chain_id(self) -> None:
        """An explicit id overrides the preset and allows custom names."""
        assert NetworkSpec.for_chain("devnet", 1).chain_id == 1
        assert NetworkSpec.for_chain("localnet", 7).beacon_chain_id == "localnet-beacon-7"

    def test_frozen(self) -> None:
        """Specs cannot be modified after construction."""
        spec = NetworkSpec.for_chain("devnet")

        with pytest.raises(ValidationError):
            spec.chain_id = 2  # type: ignore[misc]


class TestForkSchedule:
    """Tests for the fork schedule."""

    def test_all_forks_active_from_genesis(self) -> None:
        """Every block number and timestamp defaults to 0."""
        dumped = ForkSchedule().model_dump(by_alias=True)

        assert dumped["homesteadBlock"] == 0
        assert dumped["pragueTime"] == 0
        assert dumped["terminalTotalDifficulty"] == 0
        assert dumped["terminalTotalDifficultyPassed"] is True

    def test_string_values_are_coerced(self) -> None:
        """Command-line strings become integers."""
        assert ForkSchedule(cancun_time="1700000000").cancun_time == 1700000000

    def test_negative_rejected(self) -> None:
        """Fork points are non-negative."""
        with pytest.raises(ValidationError):
            ForkSchedule(shanghai_time=-1)

    def test_unknown_field_rejected(self) -> None:
        """Typos in fork names fail instead of being ignored."""
        with pytest.raises(ValidationError):
            ForkSchedule(osaka_time=0)


class TestBlobsAndHeader:
    """Tests for blob parameters and the genesis header."""

    def test_blob_schedule_applies_to_cancun_and_prague(self) -> None:
        """Both forks get the same parameters under the `max` key."""
        entry = {
            "target": c.BLOB_TARGET,
            "max": c.BLOB_MAX,
            "baseFeeUpdateFraction": c.BLOB_BASE_FEE_UPDATE_FRACTION,
        }

        assert BlobSchedule().to_json() == {"cancun": entry, "prague": entry}

    def test_header_keys(self) -> None:
        """Header fields use genesis spelling, including `mixhash`."""
        assert list(GenesisHeader().model_dump(by_alias=True)) == [
            "coinbase",
            "difficulty",
            "extraData",
            "gasLimit",
            "nonce",
            "mixhash",
            "parentHash",
            "timestamp",
        ]

    def test_header_rejects_bad_coinbase(self) -> None:
        """The coinbase must be an address."""
        with pytest.raises(ValidationError):
            GenesisHeader(coinbase="0x1234")
