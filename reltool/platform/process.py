"""External program execution.

Every external tool a release run touches (git, cmake, cpack, lupdate, tx,
signtool, gpg) is started through a ``CommandRunner``. The runner echoes the
command line before starting it, streams or discards its output, turns a
non-zero exit status into ``Err(CommandFailed)``, and prints a blank line
after each successful command so sequential logs stay readable.

Arguments flagged as sensitive (key passwords) are replaced by ``<masked>``
in the echoed line and never reach the console.

Usage:
    runner = ProcessRunner(console)
    match runner.run(CommandInvocation.of("cmake", "--build", "."), cwd=build_dir):
        case Ok(_):
            ...
        case Err(error):
            console.error(f"{error.program} failed")
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from reltool.core.result import Err, Ok, Result
from reltool.output.console import ConsoleProtocol, Style
from reltool.platform.paths import find_program

__all__ = [
    "MASK",
    "CommandFailed",
    "CommandInvocation",
    "CommandRunner",
    "ProcessRunner",
    "RecordedCall",
    "RecordingRunner",
]

MASK = "<masked>"


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """A single external program call.

    Attributes:
        program: Program name or path.
        args: Arguments passed to the program.
        mask_args: Replace the arguments with ``<masked>`` when echoing.
        quiet: Discard the program's output (exit status is still checked).
    """

    program: str
    args: tuple[str, ...] = ()
    mask_args: bool = False
    quiet: bool = False

    @classmethod
    def of(
        cls, program: str, *args: str, mask_args: bool = False, quiet: bool = False
    ) -> CommandInvocation:
        return cls(program=program, args=tuple(args), mask_args=mask_args, quiet=quiet)

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        """The command line as it may be shown to the operator."""
        if self.mask_args:
            return f"{self.program} {MASK}"
        return " ".join(self.argv)


@dataclass(frozen=True, slots=True)
class CommandFailed:
    """An external program exited non-zero or could not be started."""

    program: str
    returncode: int
    detail: str = ""

    def __str__(self) -> str:
        return f"Failed to run command: {self.program} (exit {self.returncode})"


class CommandRunner(Protocol):
    """Narrow interface over process execution."""

    def run(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[None, CommandFailed]:
        """Echo, execute and check one command."""
        ...

    def capture(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, CommandFailed]:
        """Execute a query command silently and return its stdout."""
        ...


def announce(console: ConsoleProtocol, invocation: CommandInvocation) -> None:
    console.print(invocation.display(), Style.DIM)


class ProcessRunner:
    """``CommandRunner`` backed by ``subprocess``.

    No timeout is applied: build and signing steps may legitimately run for
    a long time, and a release run is attended.
    """

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def run(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[None, CommandFailed]:
        announce(self._console, invocation)

        sink = subprocess.DEVNULL if invocation.quiet else None
        try:
            proc = subprocess.run(
                self._argv(invocation, env),
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                stdout=sink,
                stderr=sink,
                check=False,
            )
        except OSError as e:
            return Err(CommandFailed(program=invocation.program, returncode=-1, detail=str(e)))

        if proc.returncode != 0:
            return Err(CommandFailed(program=invocation.program, returncode=proc.returncode))

        self._console.newline()
        return Ok(None)

    def capture(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, CommandFailed]:
        try:
            proc = subprocess.run(
                self._argv(invocation, env),
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            return Err(CommandFailed(program=invocation.program, returncode=-1, detail=str(e)))

        if proc.returncode != 0:
            return Err(
                CommandFailed(
                    program=invocation.program,
                    returncode=proc.returncode,
                    detail=proc.stderr.strip(),
                )
            )
        return Ok(proc.stdout)

    def _argv(self, invocation: CommandInvocation, env: Mapping[str, str] | None) -> list[str]:
        # Resolve against the session PATH; subprocess on Windows would use ours.
        resolved = find_program(invocation.program, env)
        program = str(resolved) if resolved is not None else invocation.program
        return [program, *invocation.args]


# -----------------------------------------------------------------------------
# Test double
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RecordedCall:
    """One invocation seen by ``RecordingRunner``."""

    argv: tuple[str, ...]
    cwd: Path
    mask_args: bool
    quiet: bool
    captured: bool


@dataclass(frozen=True, slots=True)
class _Rule:
    prefix: tuple[str, ...]
    returncode: int
    stdout: str
    effect: Callable[[Path], None] | None


def _empty_calls() -> list[RecordedCall]:
    return []


def _empty_rules() -> list[_Rule]:
    return []


@dataclass
class RecordingRunner:
    """``CommandRunner`` that records invocations instead of spawning them.

    Commands succeed with empty output unless a rule registered with
    ``script`` matches the start of their argv; the most recent matching
    rule wins. When a console is given, commands are echoed exactly as
    ``ProcessRunner`` would echo them.
    """

    console: ConsoleProtocol | None = None
    calls: list[RecordedCall] = field(default_factory=_empty_calls)
    _rules: list[_Rule] = field(default_factory=_empty_rules)

    def script(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        effect: Callable[[Path], None] | None = None,
    ) -> None:
        """Register the outcome of commands starting with ``prefix``.

        ``effect`` is called with the working directory before the outcome is
        returned, to simulate files a command would produce.
        """
        self._rules.append(_Rule(tuple(prefix), returncode, stdout, effect))

    def run(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[None, CommandFailed]:
        if self.console is not None:
            announce(self.console, invocation)
        rule = self._record(invocation, cwd, captured=False)
        if rule is not None and rule.returncode != 0:
            return Err(CommandFailed(program=invocation.program, returncode=rule.returncode))
        if self.console is not None:
            self.console.newline()
        return Ok(None)

    def capture(
        self,
        invocation: CommandInvocation,
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, CommandFailed]:
        rule = self._record(invocation, cwd, captured=True)
        if rule is None:
            return Ok("")
        if rule.returncode != 0:
            return Err(CommandFailed(program=invocation.program, returncode=rule.returncode))
        return Ok(rule.stdout)

    @property
    def argvs(self) -> list[tuple[str, ...]]:
        """All recorded argv tuples, in call order."""
        return [c.argv for c in self.calls]

    def programs(self) -> list[str]:
        return [c.argv[0] for c in self.calls]

    def find(self, *prefix: str) -> list[RecordedCall]:
        """Recorded calls whose argv starts with ``prefix``."""
        return [c for c in self.calls if c.argv[: len(prefix)] == prefix]

    def _record(self, invocation: CommandInvocation, cwd: Path, *, captured: bool) -> _Rule | None:
        argv = tuple(invocation.argv)
        self.calls.append(
            RecordedCall(
                argv=argv,
                cwd=cwd,
                mask_args=invocation.mask_args,
                quiet=invocation.quiet,
                captured=captured,
            )
        )
        for rule in reversed(self._rules):
            if argv[: len(rule.prefix)] == rule.prefix:
                if rule.effect is not None:
                    rule.effect(cwd)
                return rule
        return None
