"""Sign command - sign existing artifacts."""

from __future__ import annotations

from pathlib import Path

import typer

from reltool.cli.commands._helpers import exit_on_release_error, open_session
from reltool.cli.context import build_context
from reltool.release.params import DEFAULT_ARCH, SignParams
from reltool.release.sign import run_sign


def sign(
    version: str = typer.Argument(..., help="Release version (MAJOR.MINOR.PATCH)"),
    files: list[str] = typer.Argument(..., help="Files or glob patterns to sign"),
    source_dir: Path = typer.Option(Path("."), "--source-dir", help="Project repository"),
    sign_key: Path | None = typer.Option(
        None, "--sign-key", help="PKCS#12 code signing key", show_default=False
    ),
    timestamp: str | None = typer.Option(
        None, "--timestamp", help="Timestamp server URL", show_default=False
    ),
    gpg_key: str | None = typer.Option(
        None, "--gpg-key", help="GPG key id for detached signatures", show_default=False
    ),
    toolchain: str | None = typer.Option(
        None, "--toolchain", help="Toolchain name to use", show_default=False
    ),
    arch: str = typer.Option(DEFAULT_ARCH, "--arch", help="Target architecture"),
    extra_path: Path | None = typer.Option(
        None, "--extra-path", help="Directory searched first for programs", show_default=False
    ),
) -> None:
    """Sign files: signtool for .exe/.dll/.msi, GPG and digests for .msi/.zip/.dmg."""
    ctx = build_context()

    params = exit_on_release_error(
        SignParams.create(
            version=version,
            source_dir=source_dir,
            files=tuple(files),
            sign_key=sign_key,
            timestamp_url=timestamp,
            gpg_key=gpg_key,
            toolchain=toolchain,
            arch=arch,
            extra_path=extra_path,
        ),
        ctx,
    )
    session = open_session(ctx, params.source_dir, params.extra_path)
    exit_on_release_error(
        run_sign(session, params, selection=ctx.selection, secrets=ctx.secrets), ctx
    )
