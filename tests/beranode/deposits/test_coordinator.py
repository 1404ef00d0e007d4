"""Tests for the genesis deposit coordinator."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from beranode.deposits import DepositCoordinator, DepositState, KeyProvisioner, Workspace
from beranode.exceptions import ConsistencyError, ExternalToolError, LoadError
from beranode.genesis import GenesisAssembler
from beranode.genesis.constants import BEACON_DEPOSIT_ADDRESS
from beranode.tooling import CommandResult
from beranode.validation import validate_config
from tests.beranode.helpers import FakeToolRunner


class _CorruptPayloadRunner(FakeToolRunner):
    """Lets `genesis execution-payload` succeed but leave unparsable output."""

    def run(self, command: Sequence[str | Path], **kwargs: Any) -> CommandResult:
        result = super().run(command, **kwargs)
        if "execution-payload" in result.command:
            home = Path(result.command[result.command.index("--home") + 1])
            (home / "config" / "genesis.json").write_text("{broken")
        return result


def _document(workspace: Workspace) -> dict[str, Any]:
    return json.loads(workspace.config_file.read_text())


@pytest.fixture
def workspace(config_dir: Path, runner: FakeToolRunner) -> Workspace:
    """Provisioned configuration with a freshly assembled execution genesis."""
    KeyProvisioner(config_dir, "devnet", runner=runner).run()
    workspace = Workspace(config_dir)
    GenesisAssembler().write(workspace.eth_genesis)
    return workspace


class TestDepositCoordinator:
    """Tests for DepositCoordinator.run."""

    def test_full_run(self, workspace: Workspace) -> None:
        """Deposits are collected, bound into both documents and recorded."""
        runner = FakeToolRunner()
        coordinator = DepositCoordinator(workspace.root, "devnet", runner=runner)

        assert coordinator.run() is DepositState.FINALIZED

        document = _document(workspace)
        assert len(document["genesis_deposits"]) == 2
        assert document["validator_root"] == coordinator.validator_root
        assert document["genesis_file"] == str(workspace.beacon_genesis)
        assert document["genesis_eth_file"] == str(workspace.eth_genesis)

        eth_genesis = json.loads(workspace.eth_genesis.read_text())
        storage = eth_genesis["alloc"][BEACON_DEPOSIT_ADDRESS]["storage"]
        assert storage == {f"0x{'0' * 64}": f"0x{2:064x}"}

        beacon_genesis = json.loads(workspace.beacon_genesis.read_text())
        beacon = beacon_genesis["app_state"]["beacon"]
        assert beacon["deposits"] == document["genesis_deposits"]
        assert beacon["execution_payload_header"]["storage"] == storage

        assert not workspace.beacond_home.exists()

    def test_pipeline_order(self, workspace: Workspace) -> None:
        """beacond is driven through the steps in order."""
        runner = FakeToolRunner()
        DepositCoordinator(workspace.root, "devnet", runner=runner).run()

        genesis_steps = [call[2] for call in runner.calls if call[1] == "genesis"]
        assert genesis_steps == [
            "collect-premined-deposits",
            "validator-root",
            "set-deposit-storage",
            "execution-payload",
        ]

    def test_result_validates(self, workspace: Workspace) -> None:
        """The finalized configuration still passes validation."""
        DepositCoordinator(workspace.root, "devnet", runner=FakeToolRunner()).run()

        assert validate_config(workspace.config_file).passed

    def test_second_run_reuses_deposits(self, workspace: Workspace) -> None:
        """Matching stored deposits short-circuit without calling beacond."""
        DepositCoordinator(workspace.root, "devnet", runner=FakeToolRunner()).run()
        before = workspace.eth_genesis.read_bytes()

        runner = FakeToolRunner()
        state = DepositCoordinator(workspace.root, "devnet", runner=runner).run()

        assert state is DepositState.FINALIZED
        assert runner.calls == []
        assert workspace.eth_genesis.read_bytes() == before

    def test_stale_deposits_are_regenerated(self, workspace: Workspace) -> None:
        """A stored deposit count that no longer matches is rebuilt."""
        DepositCoordinator(workspace.root, "devnet", runner=FakeToolRunner()).run()
        document = _document(workspace)
        document["genesis_deposits"] = document["genesis_deposits"][:1]
        workspace.config_file.write_text(json.dumps(document))

        runner = FakeToolRunner()
        DepositCoordinator(workspace.root, "devnet", runner=runner).run()

        assert "collect-premined-deposits" in [call[2] for call in runner.calls if len(call) > 2]
        assert len(_document(workspace)["genesis_deposits"]) == 2

    def test_malformed_stored_deposits_are_regenerated(self, workspace: Workspace) -> None:
        """Stored deposits that fail validation are not reused."""
        document = _document(workspace)
        document["genesis_deposits"] = [{"pubkey": "0x1"}, {"pubkey": "0x2"}]
        workspace.config_file.write_text(json.dumps(document))

        runner = FakeToolRunner()
        DepositCoordinator(workspace.root, "devnet", runner=runner).run()

        assert runner.calls
        assert len(_document(workspace)["genesis_deposits"]) == 2

    def test_count_mismatch_leaves_documents_untouched(self, workspace: Workspace) -> None:
        """A lost deposit aborts before anything canonical is replaced."""
        config_before = workspace.config_file.read_bytes()
        eth_before = workspace.eth_genesis.read_bytes()
        coordinator = DepositCoordinator(
            workspace.root, "devnet", runner=FakeToolRunner(drop_deposits=1)
        )

        with pytest.raises(ConsistencyError) as exc:
            coordinator.run()

        assert (exc.value.expected, exc.value.actual) == (2, 1)
        assert coordinator.state is DepositState.COLLECTING
        assert workspace.config_file.read_bytes() == config_before
        assert workspace.eth_genesis.read_bytes() == eth_before
        assert not workspace.beacon_genesis.exists()
        assert not workspace.beacond_home.exists()

    @pytest.mark.parametrize(
        "step", ["validator-root", "set-deposit-storage", "execution-payload"]
    )
    def test_tool_failure_leaves_documents_untouched(
        self, workspace: Workspace, step: str
    ) -> None:
        """A failing beacond step publishes nothing."""
        eth_before = workspace.eth_genesis.read_bytes()
        coordinator = DepositCoordinator(
            workspace.root, "devnet", runner=FakeToolRunner(fail_on=step)
        )

        with pytest.raises(ExternalToolError):
            coordinator.run()

        assert workspace.eth_genesis.read_bytes() == eth_before
        assert "genesis_deposits" not in _document(workspace)
        assert not workspace.beacond_home.exists()
        assert not coordinator.state.is_terminal

    def test_missing_execution_genesis(self, workspace: Workspace) -> None:
        """The execution genesis must be assembled first."""
        workspace.eth_genesis.unlink()

        with pytest.raises(LoadError, match="execution genesis not found"):
            DepositCoordinator(workspace.root, "devnet", runner=FakeToolRunner()).run()

    def test_unprovisioned_validators(self, config_dir: Path) -> None:
        """Keys must be provisioned before deposits can be bound."""
        workspace = Workspace(config_dir)
        GenesisAssembler().write(workspace.eth_genesis)

        with pytest.raises(LoadError, match="provision keys first"):
            DepositCoordinator(config_dir, "devnet", runner=FakeToolRunner()).run()

    def test_no_validators(self, workspace: Workspace) -> None:
        """A network without validators has nothing to bind."""
        document = _document(workspace)
        document["nodes"] = [node for node in document["nodes"] if node["role"] != "validator"]
        workspace.config_file.write_text(json.dumps(document))

        with pytest.raises(LoadError, match="no validator nodes"):
            DepositCoordinator(workspace.root, "devnet", runner=FakeToolRunner()).run()

    def test_staged_copy_is_used(self, workspace: Workspace) -> None:
        """The execution payload is computed from the staged document."""
        runner = FakeToolRunner()
        DepositCoordinator(workspace.root, "devnet", runner=runner).run()

        (payload_call,) = [call for call in runner.calls if "execution-payload" in call]
        assert payload_call[3].endswith("eth-genesis.staged.json")

    def test_corrupt_beacon_genesis_publishes_nothing(self, workspace: Workspace) -> None:
        """Neither document is replaced when beacond leaves a corrupt genesis."""
        eth_before = workspace.eth_genesis.read_bytes()
        config_before = workspace.config_file.read_bytes()
        coordinator = DepositCoordinator(workspace.root, "devnet", runner=_CorruptPayloadRunner())

        with pytest.raises(ExternalToolError, match="genesis.json"):
            coordinator.run()

        assert workspace.eth_genesis.read_bytes() == eth_before
        assert workspace.config_file.read_bytes() == config_before
        assert not workspace.beacon_genesis.exists()
        assert coordinator.state is DepositState.STORAGE_INJECTED
