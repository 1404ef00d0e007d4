"""
Blocking execution of external binaries.

Every call to beacond, bera-reth or cast goes through `CommandRunner`.
Calls are synchronous: the caller does not continue until the process has
exited and its result has been checked.

A call either returns a `CommandResult` for a zero exit code or raises
`ExternalToolError`. Timeouts and retries are explicit per call. The
defaults are a 120 second timeout and no retry, so a failing tool stops
the pipeline immediately.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from beranode.exceptions import ExternalToolError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0
"""Seconds a single external call may run."""

DEFAULT_RETRIES = 0
"""Additional attempts after a failed call."""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a successful external call."""

    command: tuple[str, ...]
    """The argv that was executed."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def lines(self) -> list[str]:
        """Stdout split into lines."""
        return self.stdout.splitlines()

    def line(self, number: int) -> str:
        """
        Return stdout line `number` (1-based), stripped.

        Raises:
            ExternalToolError: If the output has fewer lines.
        """
        lines = self.lines
        if not 1 <= number <= len(lines):
            raise ExternalToolError(
                self.command,
                self.exit_code,
                self.stdout,
                detail=f"expected at least {number} line(s) of output, got {len(lines)}",
            )
        return lines[number - 1].strip()


class CommandRunner:
    """
    Runs external commands and checks their exit code.

    Args:
        timeout: Default per-call timeout, in seconds.
        retries: Default number of additional attempts.
        env: Extra environment variables for every call.
    """

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        env: Mapping[str, str] | None = None,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be non-negative")
        self.timeout = timeout
        self.retries = retries
        self.env = dict(env) if env else None

    def run(
        self,
        command: Sequence[str | Path],
        *,
        cwd: Path | str | None = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> CommandResult:
        """
        Run `command` to completion.

        Args:
            command: Program and arguments. No shell is involved.
            cwd: Working directory.
            timeout: Overrides the runner's default timeout.
            retries: Overrides the runner's default retry count.

        Returns:
            The captured output of the successful attempt.

        Raises:
            ExternalToolError: If the binary is missing, times out, or exits
                non-zero on every attempt.
        """
        argv = tuple(str(part) for part in command)
        timeout = self.timeout if timeout is None else timeout
        retries = self.retries if retries is None else retries
        if retries < 0:
            raise ValueError("retries must be non-negative")
        attempts = 1 + retries

        for attempt in range(1, attempts):
            logger.debug(f"Running (attempt {attempt}/{attempts}): {' '.join(argv)}")
            try:
                return self._run_once(argv, cwd, timeout)
            except ExternalToolError as e:
                logger.warning(f"{e.message}, retrying")

        logger.debug(f"Running (attempt {attempts}/{attempts}): {' '.join(argv)}")
        try:
            return self._run_once(argv, cwd, timeout)
        except ExternalToolError as e:
            logger.error(e.message)
            raise

    def _run_once(
        self,
        argv: tuple[str, ...],
        cwd: Path | str | None,
        timeout: float | None,
    ) -> CommandResult:
        env = {**os.environ, **self.env} if self.env else None

        try:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(argv, None, detail=f"executable not found ({e})") from e
        except subprocess.TimeoutExpired as e:
            output = e.stdout if isinstance(e.stdout, str) else ""
            raise ExternalToolError(argv, None, output, detail=f"timed out after {timeout}s") from e

        if proc.returncode != 0:
            raise ExternalToolError(argv, proc.returncode, proc.stdout + proc.stderr)

        return CommandResult(
            command=argv,
            exit_code=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr,
        )
