"""Node descriptors, genesis deposits and the base network layout."""

from .layout import DEFAULT_WALLET_BALANCE, NodePorts, build_base_config
from .models import (
    MONIKER_PATTERN,
    BeacondKeys,
    BerarethKeys,
    DepositRecord,
    NodeDescriptor,
    Role,
)

__all__ = [
    "BeacondKeys",
    "BerarethKeys",
    "DEFAULT_WALLET_BALANCE",
    "DepositRecord",
    "MONIKER_PATTERN",
    "NodeDescriptor",
    "NodePorts",
    "Role",
    "build_base_config",
]
