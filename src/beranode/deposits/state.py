"""
States of the genesis deposit pipeline.

    NO_DEPOSITS -> COLLECTING -> DEPOSITS_COLLECTED -> VALIDATOR_ROOT_COMPUTED
                -> STORAGE_INJECTED -> PAYLOAD_EMBEDDED -> FINALIZED

A configuration that already carries a matching deposit set short-circuits
from NO_DEPOSITS straight to FINALIZED.
"""

from __future__ import annotations

from enum import Enum

from beranode.exceptions import ConsistencyError


class DepositState(str, Enum):
    """Where the coordinator is in the pipeline."""

    NO_DEPOSITS = "no-deposits"
    COLLECTING = "collecting"
    DEPOSITS_COLLECTED = "deposits-collected"
    VALIDATOR_ROOT_COMPUTED = "validator-root-computed"
    STORAGE_INJECTED = "storage-injected"
    PAYLOAD_EMBEDDED = "payload-embedded"
    FINALIZED = "finalized"

    @property
    def is_terminal(self) -> bool:
        return self is DepositState.FINALIZED

    def can_advance_to(self, target: DepositState) -> bool:
        """Whether `target` is a legal next state."""
        return target in TRANSITIONS[self]

    def advance_to(self, target: DepositState) -> DepositState:
        """
        Return `target` if the transition is legal.

        Raises:
            ConsistencyError: On an illegal transition.
        """
        if not self.can_advance_to(target):
            raise ConsistencyError(
                f"illegal deposit state transition {self.value} -> {target.value}"
            )
        return target


TRANSITIONS: dict[DepositState, frozenset[DepositState]] = {
    DepositState.NO_DEPOSITS: frozenset({DepositState.COLLECTING, DepositState.FINALIZED}),
    DepositState.COLLECTING: frozenset({DepositState.DEPOSITS_COLLECTED}),
    DepositState.DEPOSITS_COLLECTED: frozenset({DepositState.VALIDATOR_ROOT_COMPUTED}),
    DepositState.VALIDATOR_ROOT_COMPUTED: frozenset({DepositState.STORAGE_INJECTED}),
    DepositState.STORAGE_INJECTED: frozenset({DepositState.PAYLOAD_EMBEDDED}),
    DepositState.PAYLOAD_EMBEDDED: frozenset({DepositState.FINALIZED}),
    DepositState.FINALIZED: frozenset(),
}
"""Legal successors of each state."""
