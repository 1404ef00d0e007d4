"""Tests for blocking external command execution."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from beranode.exceptions import ExternalToolError
from beranode.tooling import DEFAULT_TIMEOUT, CommandResult, CommandRunner


def _completed(
    returncode: int = 0, stdout: str = "", stderr: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(["tool"], returncode, stdout, stderr)


class TestCommandRunner:
    """Tests for CommandRunner.run."""

    def test_success(self) -> None:
        """A zero exit code returns the captured output."""
        with patch("subprocess.run", return_value=_completed(stdout="a\nb\n")) as run:
            result = CommandRunner().run(["tool", "--flag"])

        assert result.command == ("tool", "--flag")
        assert result.lines == ["a", "b"]
        assert run.call_args.kwargs["timeout"] == DEFAULT_TIMEOUT
        assert run.call_args.kwargs["check"] is False

    def test_nonzero_exit(self) -> None:
        """A non-zero exit code raises with the output attached."""
        with patch("subprocess.run", return_value=_completed(2, "out", "err")):
            with pytest.raises(ExternalToolError) as exc:
                CommandRunner().run(["tool"])

        assert exc.value.exit_code == 2
        assert exc.value.output == "outerr"
        assert exc.value.command == ["tool"]

    def test_missing_binary(self) -> None:
        """A missing executable is an ExternalToolError without exit code."""
        with patch("subprocess.run", side_effect=FileNotFoundError("tool")):
            with pytest.raises(ExternalToolError, match="executable not found") as exc:
                CommandRunner().run(["tool"])

        assert exc.value.exit_code is None

    def test_timeout(self) -> None:
        """A timeout is reported with the limit that was exceeded."""
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["tool"], 1.5)):
            with pytest.raises(ExternalToolError, match="timed out after 1.5s"):
                CommandRunner().run(["tool"], timeout=1.5)

    def test_no_retry_by_default(self) -> None:
        """A failing call is attempted exactly once."""
        with patch("subprocess.run", return_value=_completed(1)) as run:
            with pytest.raises(ExternalToolError):
                CommandRunner().run(["tool"])

        assert run.call_count == 1

    def test_retries(self) -> None:
        """Retries stop at the first success."""
        outcomes = [_completed(1), _completed(1), _completed(0, "ok")]
        with patch("subprocess.run", side_effect=outcomes) as run:
            result = CommandRunner(retries=3).run(["tool"])

        assert result.stdout == "ok"
        assert run.call_count == 3

    def test_retries_exhausted(self) -> None:
        """The last error is raised once every attempt failed."""
        with patch("subprocess.run", return_value=_completed(4)) as run:
            with pytest.raises(ExternalToolError) as exc:
                CommandRunner().run(["tool"], retries=2)

        assert run.call_count == 3
        assert exc.value.exit_code == 4

    def test_negative_retries(self) -> None:
        """Retry counts are non-negative."""
        with pytest.raises(ValueError):
            CommandRunner(retries=-1)

    def test_negative_retries_per_call(self) -> None:
        """A per-call override is checked before anything runs."""
        with patch("subprocess.run") as run:
            with pytest.raises(ValueError):
                CommandRunner().run(["tool"], retries=-1)

        run.assert_not_called()

    def test_retries_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Each retry is a warning and the final failure an error."""
        with patch("subprocess.run", return_value=_completed(4)):
            with pytest.raises(ExternalToolError):
                CommandRunner(retries=2).run(["tool"])

        levels = [record.levelname for record in caplog.records if record.levelno >= 30]
        assert levels == ["WARNING", "WARNING", "ERROR"]

    def test_extra_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Extra variables are added on top of the inherited environment."""
        monkeypatch.setenv("BERANODE_INHERITED", "yes")
        with patch("subprocess.run", return_value=_completed()) as run:
            CommandRunner(env={"BERANODE_TEST": "1"}).run(["tool"])

        assert run.call_args.kwargs["env"]["BERANODE_TEST"] == "1"
        assert run.call_args.kwargs["env"]["BERANODE_INHERITED"] == "yes"


class TestCommandResult:
    """Tests for line extraction."""

    def test_line_is_one_based_and_stripped(self) -> None:
        """line(1) is the first line, without surrounding whitespace."""
        result = CommandResult(("tool",), 0, "  first \nsecond\n", "")

        assert result.line(1) == "first"
        assert result.line(2) == "second"

    def test_line_out_of_range(self) -> None:
        """Asking past the end of the output raises."""
        result = CommandResult(("tool",), 0, "only\n", "")

        with pytest.raises(ExternalToolError, match="at least 3 line"):
            result.line(3)
