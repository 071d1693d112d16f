from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from reltool.cli.prompts import PromptSecret, PromptSelection
from reltool.output.console import ConsoleProtocol, RichConsole
from reltool.platform.process import CommandRunner, ProcessRunner
from reltool.release.signing import SecretSource
from reltool.release.toolchains import SelectionSource


@dataclass(frozen=True, slots=True)
class CLIContext:
    console: ConsoleProtocol
    runner: CommandRunner
    selection: SelectionSource
    secrets: SecretSource
    env: Mapping[str, str] | None = None


def build_context() -> CLIContext:
    console = RichConsole()
    return CLIContext(
        console=console,
        runner=ProcessRunner(console),
        selection=PromptSelection(),
        secrets=PromptSecret(),
    )
