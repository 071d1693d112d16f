"""Shared helpers for CLI commands."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from reltool.core.config import load_config_or_default
from reltool.core.errors import ErrorCode
from reltool.core.result import Err, Result
from reltool.output.console import Style
from reltool.output.errors import print_release_error, release_error_exit_code
from reltool.release.errors import ReleaseError
from reltool.release.session import Session

if TYPE_CHECKING:
    from reltool.cli.context import CLIContext

T = TypeVar("T")


def exit_on_release_error(result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the value of ``result``, or report the error and exit.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                print_release_error(e, ctx.console)
                raise typer.Exit(code=release_error_exit_code(e))
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        exit_with_code(release_error_exit_code(result.error))
    return result.value


def open_session(ctx: CLIContext, source_dir: Path, extra_path: Path | None) -> Session:
    """Load ``reltool.toml`` from ``source_dir`` and start a session there."""
    config = load_config_or_default(source_dir)
    if isinstance(config, Err):
        ctx.console.error(config.error.message)
        if config.error.path is not None:
            ctx.console.print(f"hint: fix or remove {config.error.path}", Style.DIM)
        exit_with_code(int(ErrorCode.IO_ERROR))

    return Session.start(
        source_dir=source_dir,
        config=config.value,
        runner=ctx.runner,
        console=ctx.console,
        env=ctx.env,
        extra_path=extra_path,
    )


def split_options(value: str | None) -> tuple[str, ...]:
    """Split a shell-style option string (``--cmake-options``) into arguments."""
    if not value:
        return ()
    return tuple(shlex.split(value))


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
