"""Tests for reltool.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from reltool.core.result import Err, Ok
from reltool.output.console import MockConsole, Style
from reltool.platform.process import (
    MASK,
    CommandFailed,
    CommandInvocation,
    ProcessRunner,
    RecordingRunner,
)


class TestCommandInvocation:
    def test_display_plain(self) -> None:
        inv = CommandInvocation.of("git", "checkout", "master")
        assert inv.display() == "git checkout master"
        assert inv.argv == ["git", "checkout", "master"]

    def test_display_masked(self) -> None:
        inv = CommandInvocation.of("signtool", "sign", "/p", "hunter2", mask_args=True)
        assert inv.display() == f"signtool {MASK}"
        assert "hunter2" not in inv.display()

    def test_frozen(self) -> None:
        inv = CommandInvocation.of("git")
        with pytest.raises(AttributeError):
            inv.quiet = True  # type: ignore[misc]


class TestCommandFailed:
    def test_str(self) -> None:
        assert str(CommandFailed("cpack", 1)) == "Failed to run command: cpack (exit 1)"


class TestProcessRunner:
    def test_success_echoes_then_blank_line(self, tmp_path: Path) -> None:
        console = MockConsole()
        runner = ProcessRunner(console)
        inv = CommandInvocation.of(sys.executable, "-c", "pass")

        result = runner.run(inv, cwd=tmp_path)

        assert isinstance(result, Ok)
        assert console.outputs[0].style == Style.DIM
        assert console.outputs[0].message == inv.display()
        assert console.outputs[-1].message == ""

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        console = MockConsole()
        runner = ProcessRunner(console)

        result = runner.run(
            CommandInvocation.of(sys.executable, "-c", "import sys; sys.exit(42)"), cwd=tmp_path
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.program == sys.executable
        # No blank line after a failed command.
        assert console.outputs[-1].message != ""

    def test_program_not_found(self, tmp_path: Path) -> None:
        runner = ProcessRunner(MockConsole())
        result = runner.run(CommandInvocation.of("nonexistent_command_12345"), cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_masked_arguments_never_printed(
        self, tmp_path: Path, capfd: pytest.CaptureFixture[str]
    ) -> None:
        console = MockConsole()
        runner = ProcessRunner(console)
        inv = CommandInvocation.of(
            sys.executable, "-c", "pass", "s3cr3t-password", mask_args=True
        )

        assert isinstance(runner.run(inv, cwd=tmp_path), Ok)

        assert all("s3cr3t-password" not in m for m in console.messages)
        assert console.find(MASK)
        captured = capfd.readouterr()
        assert "s3cr3t-password" not in captured.out
        assert "s3cr3t-password" not in captured.err

    def test_quiet_discards_output(
        self, tmp_path: Path, capfd: pytest.CaptureFixture[str]
    ) -> None:
        runner = ProcessRunner(MockConsole())
        inv = CommandInvocation.of(sys.executable, "-c", "print('noisy')", quiet=True)

        assert isinstance(runner.run(inv, cwd=tmp_path), Ok)
        assert "noisy" not in capfd.readouterr().out

    def test_quiet_still_checks_exit_status(self, tmp_path: Path) -> None:
        runner = ProcessRunner(MockConsole())
        inv = CommandInvocation.of(sys.executable, "-c", "raise SystemExit(3)", quiet=True)
        assert isinstance(runner.run(inv, cwd=tmp_path), Err)

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        runner = ProcessRunner(MockConsole())
        inv = CommandInvocation.of(sys.executable, "-c", "import os; print(os.getcwd())")

        result = runner.capture(inv, cwd=tmp_path)

        assert isinstance(result, Ok)
        assert Path(result.value.strip()).resolve() == tmp_path.resolve()

    def test_capture_is_silent(self, tmp_path: Path) -> None:
        console = MockConsole()
        runner = ProcessRunner(console)

        result = runner.capture(
            CommandInvocation.of(sys.executable, "-c", "print('hello')"), cwd=tmp_path
        )

        assert isinstance(result, Ok)
        assert result.value.strip() == "hello"
        assert console.outputs == []

    def test_capture_failure_keeps_stderr(self, tmp_path: Path) -> None:
        runner = ProcessRunner(MockConsole())
        inv = CommandInvocation.of(
            sys.executable, "-c", "import sys; sys.stderr.write('nope'); sys.exit(1)"
        )

        result = runner.capture(inv, cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.detail == "nope"


class TestRecordingRunner:
    def test_records_calls(self, tmp_path: Path) -> None:
        runner = RecordingRunner()
        runner.run(CommandInvocation.of("git", "status", quiet=True), cwd=tmp_path)
        runner.capture(CommandInvocation.of("git", "rev-parse", "HEAD"), cwd=tmp_path)

        assert runner.argvs == [("git", "status"), ("git", "rev-parse", "HEAD")]
        assert runner.calls[0].quiet is True
        assert runner.calls[1].captured is True
        assert runner.programs() == ["git", "git"]

    def test_latest_matching_rule_wins(self, tmp_path: Path) -> None:
        runner = RecordingRunner()
        runner.script("git", stdout="general")
        runner.script("git", "rev-parse", stdout="specific")

        assert runner.capture(CommandInvocation.of("git", "rev-parse"), cwd=tmp_path) == Ok(
            "specific"
        )
        assert runner.capture(CommandInvocation.of("git", "log"), cwd=tmp_path) == Ok("general")

    def test_scripted_failure(self, tmp_path: Path) -> None:
        runner = RecordingRunner()
        runner.script("cmake", returncode=2)

        result = runner.run(CommandInvocation.of("cmake", "--build", "."), cwd=tmp_path)

        assert result == Err(CommandFailed(program="cmake", returncode=2))

    def test_effect_receives_cwd(self, tmp_path: Path) -> None:
        runner = RecordingRunner()
        runner.script("cpack", effect=lambda cwd: (cwd / "pkg.zip").write_text("x"))

        runner.run(CommandInvocation.of("cpack"), cwd=tmp_path)

        assert (tmp_path / "pkg.zip").exists()

    def test_echoes_like_process_runner(self, tmp_path: Path) -> None:
        console = MockConsole()
        runner = RecordingRunner(console)

        runner.run(CommandInvocation.of("signtool", "/p", "pw", mask_args=True), cwd=tmp_path)

        assert console.messages == [f"signtool {MASK}", ""]
