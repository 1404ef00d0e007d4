"""External binaries: the command runner, beacond and cast."""

from .beacond import BeacondClient, ValidatorKeys
from .cast import SUPPORTED_CAST_VERSION, CastClient, version_at_least
from .runner import DEFAULT_RETRIES, DEFAULT_TIMEOUT, CommandResult, CommandRunner

__all__ = [
    "BeacondClient",
    "CastClient",
    "CommandResult",
    "CommandRunner",
    "DEFAULT_RETRIES",
    "DEFAULT_TIMEOUT",
    "SUPPORTED_CAST_VERSION",
    "ValidatorKeys",
    "version_at_least",
]
