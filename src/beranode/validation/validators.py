"""
Semantic validators for configuration values.

Each validator takes the string form of a value (as stored by the
ConfigStore) and returns whether it is well formed. Validators never raise.
"""

from __future__ import annotations

import re

from beranode.nodes.models import MONIKER_PATTERN, Role

_INTEGER = re.compile(r"[0-9]+")
_HEX_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}")
_HEX_32_BYTES = re.compile(r"0x[0-9a-fA-F]{64}")
_HEX_STRING = re.compile(r"0x[0-9a-fA-F]+")
_PUBKEY = re.compile(r"0x[0-9a-fA-F]{96}")
_URL = re.compile(r"(http|https|tcp|ws|wss)://.*", re.DOTALL)
_DURATION = re.compile(r"[0-9]+(h|ms|us|ns|m|s)([0-9]+(h|ms|us|ns|m|s))*")
_NETWORK = re.compile(r"[a-zA-Z0-9_-]+")
_MONIKER = re.compile(MONIKER_PATTERN)
_COMET_ADDRESS = re.compile(r"[0-9A-F]{40}")

MAX_PORT = 65535
"""Highest valid TCP/UDP port. Port 0 is rejected (it means 'any port')."""

MODES: frozenset[str] = frozenset({"local", "docker"})
"""Deployment modes a configuration may declare."""

PORT_PLACEHOLDER = "<PORT_DEFINED_BY_NODE>"
"""Marker in listen addresses that is substituted per node at start time."""


def validate_string(value: str) -> bool:
    """Non-empty string."""
    return bool(value)


def validate_optional(value: str) -> bool:
    """Free-form field; empty strings are allowed."""
    return True


def validate_boolean(value: str) -> bool:
    """Exactly `true` or `false`, case-sensitive."""
    return value in ("true", "false")


def validate_integer(value: str) -> bool:
    """Unsigned decimal integer."""
    return _INTEGER.fullmatch(value) is not None


def validate_port(value: str | int) -> bool:
    """Integer in [1, 65535]."""
    value = str(value)
    return validate_integer(value) and 0 < int(value) <= MAX_PORT


def validate_hex_address(value: str) -> bool:
    """Execution-layer address: 0x followed by 40 hex characters."""
    return _HEX_ADDRESS.fullmatch(value) is not None


def validate_optional_hex_address(value: str) -> bool:
    """Either empty or a valid hex address."""
    return not value or validate_hex_address(value)


def validate_hex_private_key(value: str) -> bool:
    """Private key: 0x followed by 64 hex characters."""
    return _HEX_32_BYTES.fullmatch(value) is not None


def validate_jwt(value: str) -> bool:
    """Engine API shared secret: 0x followed by 64 hex characters."""
    return _HEX_32_BYTES.fullmatch(value) is not None


def validate_hex_string(value: str, length: int | None = None) -> bool:
    """
    Generic 0x-prefixed hex string.

    Args:
        value: Candidate string.
        length: Exact number of hex characters after the prefix, if fixed.
    """
    if _HEX_STRING.fullmatch(value) is None:
        return False
    return length is None or len(value) - 2 == length


def validate_hex_or_integer(value: str) -> bool:
    """Amounts may be written as hex or as decimal integers."""
    return validate_hex_string(value) or validate_integer(value)


def validate_pubkey(value: str) -> bool:
    """BLS public key: 0x followed by 96 hex characters."""
    return _PUBKEY.fullmatch(value) is not None


def validate_path(value: str) -> bool:
    """File or directory path: non-empty and free of NUL bytes."""
    return bool(value) and "\0" not in value


def validate_url(value: str) -> bool:
    """URL with an http, https, tcp, ws or wss scheme."""
    return _URL.fullmatch(value) is not None


def validate_listen_address(value: str) -> bool:
    """
    Listen or dial address.

    Accepts an empty value, a value carrying the per-node port placeholder,
    a URL, or a bare host:port starting with a digit, dot or colon.
    """
    if not value or PORT_PLACEHOLDER in value:
        return True
    return validate_url(value) or value[0] in "0123456789.:"


def validate_duration(value: str) -> bool:
    """One or more `<int><unit>` pairs (h, m, s, ms, us, ns), or `0`."""
    return value in ("0", "0s") or _DURATION.fullmatch(value) is not None


def validate_network(value: str) -> bool:
    """Network name: letters, digits, hyphens and underscores."""
    return _NETWORK.fullmatch(value) is not None


def validate_moniker(value: str) -> bool:
    """Node moniker: 3 to 64 letters, digits, hyphens or underscores."""
    return _MONIKER.fullmatch(value) is not None


def validate_comet_address(value: str) -> bool:
    """CometBFT address: 40 uppercase hex characters, no prefix."""
    return _COMET_ADDRESS.fullmatch(value) is not None


def validate_role(value: str) -> bool:
    """One of the node roles."""
    return value in {role.value for role in Role}


def validate_mode(value: str) -> bool:
    """One of the deployment modes."""
    return value in MODES
