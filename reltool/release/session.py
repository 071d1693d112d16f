"""Mutable state of one release run.

The current directory and the process environment are not touched
globally: a ``Session`` carries them explicitly and every external command
runs with the session's directory and environment. ``RecoveryGuard`` resets
them through the same object.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from reltool.core.config import ProjectConfig
from reltool.core.result import Result
from reltool.git.repository import Repository
from reltool.output.console import ConsoleProtocol
from reltool.platform.paths import find_program, prepend_path
from reltool.platform.process import CommandFailed, CommandInvocation, CommandRunner

__all__ = ["Session"]


@dataclass
class Session:
    """Explicit run state threaded through every pipeline step.

    Attributes:
        source_dir: Root of the project repository.
        config: Project configuration loaded from ``reltool.toml``.
        runner: Executes external programs.
        console: Operator-facing output.
        cwd: Directory external commands run in; changed with ``chdir``.
        env: Environment external commands run with.
    """

    source_dir: Path
    config: ProjectConfig
    runner: CommandRunner
    console: ConsoleProtocol
    cwd: Path
    env: dict[str, str]

    @classmethod
    def start(
        cls,
        *,
        source_dir: Path,
        config: ProjectConfig,
        runner: CommandRunner,
        console: ConsoleProtocol,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        extra_path: Path | None = None,
    ) -> Session:
        base_env = dict(os.environ) if env is None else dict(env)
        if extra_path is not None:
            base_env = prepend_path(base_env, extra_path.expanduser().resolve())
        return cls(
            source_dir=source_dir,
            config=config,
            runner=runner,
            console=console,
            cwd=cwd if cwd is not None else Path.cwd(),
            env=base_env,
        )

    @property
    def repo(self) -> Repository:
        return Repository(self.source_dir, self.runner, self.env)

    def chdir(self, path: Path) -> None:
        self.cwd = path

    def run(
        self, program: str, *args: str, mask_args: bool = False, quiet: bool = False
    ) -> Result[None, CommandFailed]:
        invocation = CommandInvocation.of(program, *args, mask_args=mask_args, quiet=quiet)
        return self.runner.run(invocation, cwd=self.cwd, env=self.env)

    def capture(self, program: str, *args: str) -> Result[str, CommandFailed]:
        return self.runner.capture(CommandInvocation.of(program, *args), cwd=self.cwd, env=self.env)

    def which(self, program: str) -> Path | None:
        return find_program(program, self.env)

    def update_env(self, values: Mapping[str, str]) -> None:
        self.env.update(values)

    def prepend_path(self, *dirs: Path) -> None:
        self.env = prepend_path(self.env, *dirs)
