"""Merge command - merge a release branch and tag the release."""

from __future__ import annotations

from pathlib import Path

import typer

from reltool.cli.commands._helpers import exit_on_release_error, open_session
from reltool.cli.context import build_context
from reltool.release.merge import run_merge
from reltool.release.params import DEFAULT_TARGET_BRANCH, MergeParams


def merge(
    version: str = typer.Argument(..., help="Release version (MAJOR.MINOR.PATCH)"),
    source_dir: Path = typer.Option(Path("."), "--source-dir", help="Project repository"),
    source_branch: str | None = typer.Option(
        None,
        "--source-branch",
        help="Branch to release (default: current branch)",
        show_default=False,
    ),
    target_branch: str = typer.Option(
        DEFAULT_TARGET_BRANCH, "--target-branch", help="Branch receiving the release"
    ),
    extra_path: Path | None = typer.Option(
        None, "--extra-path", help="Directory searched first for programs", show_default=False
    ),
) -> None:
    """Merge a release branch into the target branch and create a signed tag."""
    ctx = build_context()

    params = exit_on_release_error(
        MergeParams.create(
            version=version,
            source_dir=source_dir,
            source_branch=source_branch,
            target_branch=target_branch,
            extra_path=extra_path,
        ),
        ctx,
    )
    session = open_session(ctx, params.source_dir, params.extra_path)
    exit_on_release_error(run_merge(session, params), ctx)
