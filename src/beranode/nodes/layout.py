"""
Base network layout.

Builds the initial beranodes.config.json document for a local network:
top-level settings plus one entry per node. Nodes are laid out validators
first, then full RPC nodes, then pruned RPC nodes. Every node gets its own
set of ports, each one higher than the previous node's.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .models import Role

DEFAULT_WALLET_BALANCE = "0x1027e72f1f12813088000000"
"""Genesis balance of the operator wallet (about 5 billion BERA, in wei)."""


@dataclass(frozen=True, slots=True)
class NodePorts:
    """Ports used by one node. Each network-wide counter advances by one per node."""

    ethrpc_port: int = 26657
    ethp2p_port: int = 26656
    ethproxy_port: int = 26658
    el_ethrpc_port: int = 8545
    el_authrpc_port: int = 8551
    el_eth_port: int = 30303
    el_prometheus_port: int = 9101
    cl_prometheus_port: int = 26660

    def next(self) -> NodePorts:
        """Ports for the following node."""
        return NodePorts(
            ethrpc_port=self.ethrpc_port + 1,
            ethp2p_port=self.ethp2p_port + 1,
            ethproxy_port=self.ethproxy_port + 1,
            el_ethrpc_port=self.el_ethrpc_port + 1,
            el_authrpc_port=self.el_authrpc_port + 1,
            el_eth_port=self.el_eth_port + 1,
            el_prometheus_port=self.el_prometheus_port + 1,
            cl_prometheus_port=self.cl_prometheus_port + 1,
        )

    def as_dict(self) -> dict[str, int]:
        """Flat field mapping, as stored on each node object."""
        return {
            "ethrpc_port": self.ethrpc_port,
            "ethp2p_port": self.ethp2p_port,
            "ethproxy_port": self.ethproxy_port,
            "el_ethrpc_port": self.el_ethrpc_port,
            "el_authrpc_port": self.el_authrpc_port,
            "el_eth_port": self.el_eth_port,
            "el_prometheus_port": self.el_prometheus_port,
            "cl_prometheus_port": self.cl_prometheus_port,
        }


_MONIKER_SUFFIX = {
    Role.VALIDATOR: "val",
    Role.RPC_FULL: "rpc-full",
    Role.RPC_PRUNED: "rpc-pruned",
}


def build_base_config(
    *,
    moniker: str,
    network: str,
    beranode_dir: Path | str,
    validators: int = 1,
    full_nodes: int = 0,
    pruned_nodes: int = 0,
    wallet_address: str = "",
    wallet_private_key: str = "",
    wallet_balance: str = DEFAULT_WALLET_BALANCE,
    mode: str = "local",
    first_ports: NodePorts | None = None,
) -> dict[str, Any]:
    """
    Build a fresh configuration document.

    Args:
        moniker: Base name; node monikers are `<moniker>-val-0`, etc.
        network: Chain spec name (devnet, testnet, mainnet).
        beranode_dir: Working directory recorded in the document.
        validators: Number of validator nodes.
        full_nodes: Number of full-history RPC nodes.
        pruned_nodes: Number of pruned RPC nodes.
        wallet_address: Operator wallet, used as withdrawal address.
        wallet_private_key: Operator wallet key.
        wallet_balance: Genesis balance of the operator wallet.
        mode: Deployment mode.
        first_ports: Ports of the first node.

    Returns:
        The document, ready to be written with `write_json_atomic`.
    """
    if min(validators, full_nodes, pruned_nodes) < 0:
        raise ValueError("node counts must be non-negative")

    ports = first_ports or NodePorts()
    nodes: list[dict[str, Any]] = []
    for role, count in (
        (Role.VALIDATOR, validators),
        (Role.RPC_FULL, full_nodes),
        (Role.RPC_PRUNED, pruned_nodes),
    ):
        for i in range(count):
            nodes.append(
                {
                    "role": role.value,
                    "moniker": f"{moniker}-{_MONIKER_SUFFIX[role]}-{i}",
                    "network": network,
                    "wallet_address": wallet_address,
                    **ports.as_dict(),
                }
            )
            ports = ports.next()

    return {
        "moniker": moniker,
        "network": network,
        "mode": mode,
        "beranode_dir": str(beranode_dir),
        "validators": validators,
        "full_nodes": full_nodes,
        "pruned_nodes": pruned_nodes,
        "total_nodes": validators + full_nodes + pruned_nodes,
        "wallet_private_key": wallet_private_key,
        "wallet_address": wallet_address,
        "wallet_balance": wallet_balance,
        "nodes": nodes,
    }
