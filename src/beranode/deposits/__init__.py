"""Key provisioning and the genesis deposit pipeline."""

from .coordinator import DepositCoordinator
from .provisioning import GENESIS_DEPOSIT_AMOUNT, KeyProvisioner
from .state import TRANSITIONS, DepositState
from .workspace import Workspace

__all__ = [
    "DepositCoordinator",
    "DepositState",
    "GENESIS_DEPOSIT_AMOUNT",
    "KeyProvisioner",
    "TRANSITIONS",
    "Workspace",
]
