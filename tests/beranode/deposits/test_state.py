"""Tests for the deposit pipeline states."""

from __future__ import annotations

import pytest

from beranode.deposits import TRANSITIONS, DepositState
from beranode.exceptions import ConsistencyError

_PIPELINE = [
    DepositState.NO_DEPOSITS,
    DepositState.COLLECTING,
    DepositState.DEPOSITS_COLLECTED,
    DepositState.VALIDATOR_ROOT_COMPUTED,
    DepositState.STORAGE_INJECTED,
    DepositState.PAYLOAD_EMBEDDED,
    DepositState.FINALIZED,
]


class TestDepositState:
    """Tests for DepositState transitions."""

    def test_every_state_has_transitions(self) -> None:
        """The transition table covers every state."""
        assert set(TRANSITIONS) == set(DepositState)

    def test_linear_pipeline(self) -> None:
        """Each step of the pipeline advances to the next."""
        state = _PIPELINE[0]
        for target in _PIPELINE[1:]:
            state = state.advance_to(target)

        assert state.is_terminal

    def test_short_circuit(self) -> None:
        """A reusable deposit set goes straight to FINALIZED."""
        assert DepositState.NO_DEPOSITS.advance_to(DepositState.FINALIZED).is_terminal

    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (DepositState.NO_DEPOSITS, DepositState.DEPOSITS_COLLECTED),
            (DepositState.COLLECTING, DepositState.FINALIZED),
            (DepositState.STORAGE_INJECTED, DepositState.VALIDATOR_ROOT_COMPUTED),
            (DepositState.FINALIZED, DepositState.NO_DEPOSITS),
        ],
    )
    def test_illegal_transitions(self, source: DepositState, target: DepositState) -> None:
        """Skipping or reversing steps is rejected."""
        assert not source.can_advance_to(target)
        with pytest.raises(ConsistencyError, match="illegal deposit state transition"):
            source.advance_to(target)

    def test_only_finalized_is_terminal(self) -> None:
        """No other state ends the pipeline."""
        assert [state for state in DepositState if state.is_terminal] == [DepositState.FINALIZED]
