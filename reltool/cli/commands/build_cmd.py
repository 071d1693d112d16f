"""Build command - configure, compile, package and sign a release."""

from __future__ import annotations

from pathlib import Path

import typer

from reltool.cli.commands._helpers import exit_on_release_error, open_session, split_options
from reltool.cli.context import build_context
from reltool.release.build import run_build
from reltool.release.params import (
    DEFAULT_ARCH,
    DEFAULT_GENERATOR,
    DEFAULT_PACKAGE_GENERATORS,
    BuildParams,
)


def build(
    version: str = typer.Argument(..., help="Release version (MAJOR.MINOR.PATCH)"),
    source_dir: Path = typer.Option(Path("."), "--source-dir", help="Project repository"),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        help="Package directory (default: <source-dir>/release)",
        show_default=False,
    ),
    toolchain_file: Path | None = typer.Option(
        None, "--toolchain-file", help="CMake toolchain file", show_default=False
    ),
    tag: str | None = typer.Option(
        None, "--tag", help="Tag to build (default: the version)", show_default=False
    ),
    snapshot: bool = typer.Option(
        False, "--snapshot", help="Build the current checkout as <version>-snapshot"
    ),
    generator: str = typer.Option(DEFAULT_GENERATOR, "--generator", help="CMake generator"),
    cmake_options: str | None = typer.Option(
        None, "--cmake-options", help="Extra configure arguments", show_default=False
    ),
    make_options: str | None = typer.Option(
        None, "--make-options", help="Extra native build tool arguments", show_default=False
    ),
    package_generators: str = typer.Option(
        ";".join(DEFAULT_PACKAGE_GENERATORS),
        "--package-generators",
        help="CPack generators, ';'-separated",
    ),
    toolchain: str | None = typer.Option(
        None, "--toolchain", help="Toolchain name to use", show_default=False
    ),
    arch: str = typer.Option(DEFAULT_ARCH, "--arch", help="Target architecture"),
    sign: bool = typer.Option(False, "--sign", help="Sign binaries and packages"),
    sign_key: Path | None = typer.Option(
        None, "--sign-key", help="PKCS#12 code signing key", show_default=False
    ),
    timestamp: str | None = typer.Option(
        None, "--timestamp", help="Timestamp server URL", show_default=False
    ),
    gpg_key: str | None = typer.Option(
        None, "--gpg-key", help="GPG key id for detached signatures", show_default=False
    ),
    extra_path: Path | None = typer.Option(
        None, "--extra-path", help="Directory searched first for programs", show_default=False
    ),
) -> None:
    """Build and package a release from its tag."""
    ctx = build_context()

    params = exit_on_release_error(
        BuildParams.create(
            version=version,
            source_dir=source_dir,
            output_dir=output_dir,
            toolchain_file=toolchain_file,
            tag=tag,
            snapshot=snapshot,
            generator=generator,
            cmake_options=split_options(cmake_options),
            make_options=split_options(make_options),
            package_generators=package_generators,
            toolchain=toolchain,
            arch=arch,
            sign=sign,
            sign_key=sign_key,
            timestamp_url=timestamp,
            gpg_key=gpg_key,
            extra_path=extra_path,
        ),
        ctx,
    )
    session = open_session(ctx, params.source_dir, params.extra_path)
    exit_on_release_error(
        run_build(session, params, selection=ctx.selection, secrets=ctx.secrets), ctx
    )
