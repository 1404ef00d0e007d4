"""
cast, the wallet toolkit.

Used to create execution-layer key pairs and derive addresses. Output is
parsed by fixed-format extraction:

    $ cast wallet new
    Successfully created new keypair.
    Address:     0x...
    Private key: 0x...
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from beranode.exceptions import ExternalToolError

from .runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

SUPPORTED_CAST_VERSION = "1.0.0"
"""Oldest cast release whose output format is understood."""

_PRIVATE_KEY = re.compile(r"^Private key:\s*(0x[0-9a-fA-F]{64})\s*$", re.MULTILINE)
_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}")
_PUBLIC_KEY = re.compile(r"0x[0-9a-fA-F]+")


def parse_version(text: str) -> tuple[int, ...]:
    """
    Turn `1.2.3` into `(1, 2, 3)`.

    Raises:
        ValueError: If a component is not a number.
    """
    return tuple(int(part) for part in text.split("."))


def version_at_least(version: str, minimum: str) -> bool:
    """Compare dotted versions. Missing components count as zero."""
    have, want = parse_version(version), parse_version(minimum)
    width = max(len(have), len(want))
    have += (0,) * (width - len(have))
    want += (0,) * (width - len(want))
    return have >= want


class CastClient:
    """
    Runs cast wallet commands.

    Args:
        binary: cast executable, looked up on PATH by default.
        runner: Command runner. Defaults to a fail-fast runner.
    """

    def __init__(self, binary: Path | str = "cast", runner: CommandRunner | None = None) -> None:
        self.binary = str(binary)
        self.runner = runner or CommandRunner()

    def _fail(self, result: CommandResult, detail: str) -> ExternalToolError:
        return ExternalToolError(result.command, result.exit_code, result.stdout, detail=detail)

    def new_private_key(self) -> str:
        """Generate a fresh private key (`0x` + 64 hex)."""
        result = self.runner.run([self.binary, "wallet", "new"])
        match = _PRIVATE_KEY.search(result.stdout)
        if match is None:
            raise self._fail(result, "no 'Private key:' line in output")
        return match.group(1)

    def address(self, private_key: str) -> str:
        """Derive the address of a private key."""
        result = self.runner.run([self.binary, "wallet", "address", "--private-key", private_key])
        address = result.stdout.strip()
        if _ADDRESS.fullmatch(address) is None:
            raise self._fail(result, "output is not an address")
        return address

    def public_key(self, private_key: str) -> str:
        """Derive the uncompressed public key of a private key."""
        result = self.runner.run(
            [self.binary, "wallet", "public-key", "--private-key", private_key]
        )
        public_key = result.stdout.strip()
        if _PUBLIC_KEY.fullmatch(public_key) is None:
            raise self._fail(result, "output is not a hex public key")
        return public_key

    def version(self) -> str:
        """
        Installed version without any suffix, e.g. `1.2.3`.

        The version is the third token of the first output line
        (`cast Version: 1.2.3-stable`).
        """
        result = self.runner.run([self.binary, "--version"])
        lines = result.lines
        tokens = lines[0].split() if lines else []
        if len(tokens) < 3:
            raise self._fail(result, "unrecognized version output")
        return tokens[2].split("-", 1)[0]

    def check_version(self, minimum: str = SUPPORTED_CAST_VERSION) -> str:
        """
        Require at least `minimum`.

        Returns:
            The installed version.

        Raises:
            ExternalToolError: If cast is missing, too old, or its version
                cannot be read.
        """
        installed = self.version()
        try:
            supported = version_at_least(installed, minimum)
        except ValueError as e:
            raise ExternalToolError(
                [self.binary, "--version"], 0, detail=f"unparseable version {installed!r}"
            ) from e
        if not supported:
            raise ExternalToolError(
                [self.binary, "--version"],
                0,
                detail=f"cast {installed} is older than required {minimum}",
            )
        logger.info(f"Found cast {installed} (required >= {minimum})")
        return installed
