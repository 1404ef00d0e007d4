"""Exception hierarchy for configuration loading and genesis assembly."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from beranode.validation.report import ValidationIssue


class BeranodeError(Exception):
    """
    Base exception for all beranode errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class LoadError(BeranodeError):
    """
    Raised when a configuration file is missing or cannot be parsed.

    Attributes:
        path: The file that failed to load.
        detail: Description of what went wrong.
    """

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"Failed to load {self.path}: {detail}")


class EmptyError(LoadError):
    """Raised when a load or merge produced zero configuration entries."""

    def __init__(self, path: Path | str, detail: str = "no configuration values found") -> None:
        super().__init__(path, detail)


class MissingKeyError(BeranodeError):
    """
    Raised when a required configuration key is absent, empty or null.

    Attributes:
        key: The dot-notation key that was requested.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Missing required config: {key}")


class ValidationError(BeranodeError):
    """
    Raised when one or more configuration fields fail validation.

    Validation never stops at the first failure. The full list of issues
    is carried so the user can fix everything in a single pass.

    Attributes:
        issues: Every failing field or object.
    """

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = list(issues)
        super().__init__(f"Validation failed with {len(self.issues)} error(s)")


class BuildError(BeranodeError):
    """
    Raised when an input to genesis assembly is malformed.

    Attributes:
        detail: Description of what went wrong.
        flag: The flag or parameter name (if known).
        value: The offending raw value (if known).
    """

    def __init__(
        self,
        detail: str,
        *,
        flag: str | None = None,
        value: object = None,
    ) -> None:
        self.detail = detail
        self.flag = flag
        self.value = value

        if flag is not None:
            msg = f"Invalid value for {flag}: {detail}"
            if value is not None:
                msg = f"{msg} (got {value!r})"
        else:
            msg = detail

        super().__init__(msg)


class ConsistencyError(BeranodeError):
    """
    Raised when a cross-document invariant is violated.

    Attributes:
        detail: Description of the violated invariant.
        expected: The expected quantity (if applicable).
        actual: The observed quantity (if applicable).
    """

    def __init__(
        self,
        detail: str,
        *,
        expected: int | None = None,
        actual: int | None = None,
    ) -> None:
        self.detail = detail
        self.expected = expected
        self.actual = actual

        msg = detail
        if expected is not None and actual is not None:
            msg = f"{detail}: expected {expected}, got {actual}"

        super().__init__(msg)


class ExternalToolError(BeranodeError):
    """
    Raised when an external binary fails or produces unusable output.

    Attributes:
        command: The argv that was executed.
        exit_code: Process exit code (None if the process never completed).
        output: Captured stdout and stderr, for diagnostics.
        detail: Additional context about the failure.
    """

    def __init__(
        self,
        command: Sequence[str],
        exit_code: int | None,
        output: str = "",
        *,
        detail: str | None = None,
    ) -> None:
        self.command = [str(part) for part in command]
        self.exit_code = exit_code
        self.output = output
        self.detail = detail

        rendered = " ".join(self.command)
        if detail:
            msg = f"Command failed: {rendered}: {detail}"
        else:
            msg = f"Command failed: {rendered} (exit code {exit_code})"

        super().__init__(msg)


class CorruptOutputError(BeranodeError):
    """
    Raised when an assembled document does not re-parse as JSON.

    Attributes:
        path: The destination that was not written.
        detail: The parser error.
    """

    def __init__(self, path: Path | str, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"{self.path} is not valid JSON or is corrupted: {detail}")


class ReleaseError(BeranodeError):
    """
    Raised when release metadata cannot be fetched or understood.

    There is no fallback: callers abort instead of guessing a version.

    Attributes:
        url: The endpoint that was queried.
        detail: Description of what went wrong.
    """

    def __init__(self, url: str, detail: str) -> None:
        self.url = url
        self.detail = detail
        super().__init__(f"{detail}: {url}")
