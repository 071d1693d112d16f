"""Validated parameters for one release run.

A run is exactly one of ``MergeParams``, ``BuildParams`` or ``SignParams``.
Each is frozen and only built through its ``create`` constructor, which
checks the inputs that need no external program: version shape, directory
and file existence. Pipelines can therefore trust every field they read.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from reltool.core.result import Err, Ok, Result
from reltool.release.errors import (
    OutputDirContainsSource,
    ReleaseError,
    SourceDirNotFound,
    ToolchainFileNotFound,
)
from reltool.release.version import parse_version

__all__ = [
    "DEFAULT_ARCH",
    "DEFAULT_GENERATOR",
    "DEFAULT_PACKAGE_GENERATORS",
    "DEFAULT_TARGET_BRANCH",
    "BuildParams",
    "MergeParams",
    "RunParameters",
    "SignParams",
]

DEFAULT_TARGET_BRANCH = "master"
DEFAULT_GENERATOR = "Ninja"
DEFAULT_PACKAGE_GENERATORS = ("WIX", "ZIP")
DEFAULT_ARCH = "amd64"


def _source_dir(path: Path) -> Result[Path, ReleaseError]:
    resolved = path.expanduser().resolve()
    if not resolved.is_dir():
        return Err(SourceDirNotFound(path=resolved))
    return Ok(resolved)


def _optional_path(path: Path | None) -> Path | None:
    return path.expanduser().resolve() if path is not None else None


def _split_generators(value: str | tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    return tuple(g.strip() for g in value.split(";") if g.strip())


@dataclass(frozen=True, slots=True)
class MergeParams:
    """Merge a release branch into the target branch and tag it."""

    version: str
    source_dir: Path
    source_branch: str | None = None
    target_branch: str = DEFAULT_TARGET_BRANCH
    extra_path: Path | None = None

    @classmethod
    def create(
        cls,
        *,
        version: str,
        source_dir: Path,
        source_branch: str | None = None,
        target_branch: str = DEFAULT_TARGET_BRANCH,
        extra_path: Path | None = None,
    ) -> Result[MergeParams, ReleaseError]:
        v = parse_version(version)
        if isinstance(v, Err):
            return v
        src = _source_dir(source_dir)
        if isinstance(src, Err):
            return src
        return Ok(
            cls(
                version=v.value,
                source_dir=src.value,
                source_branch=source_branch or None,
                target_branch=target_branch,
                extra_path=extra_path,
            )
        )


@dataclass(frozen=True, slots=True)
class BuildParams:
    """Build, package and optionally sign a tagged release (or a snapshot).

    Attributes:
        output_dir: Where packages end up; ``build-release`` is created inside.
        toolchain_file: CMake toolchain file passed as ``CMAKE_TOOLCHAIN_FILE``.
        tag: Tag to check out; defaults to the version.
        toolchain: Name of the compiler installation to activate.
        cmake_options: Extra configure arguments, already split.
        make_options: Extra arguments for the native build tool.
    """

    version: str
    source_dir: Path
    output_dir: Path
    toolchain_file: Path | None = None
    tag: str | None = None
    snapshot: bool = False
    generator: str = DEFAULT_GENERATOR
    cmake_options: tuple[str, ...] = ()
    make_options: tuple[str, ...] = ()
    package_generators: tuple[str, ...] = DEFAULT_PACKAGE_GENERATORS
    toolchain: str | None = None
    arch: str = DEFAULT_ARCH
    sign: bool = False
    sign_key: Path | None = None
    timestamp_url: str | None = None
    gpg_key: str | None = None
    extra_path: Path | None = None

    @property
    def checkout_ref(self) -> str:
        return f"tags/{self.tag or self.version}"

    @classmethod
    def create(
        cls,
        *,
        version: str,
        source_dir: Path,
        output_dir: Path | None = None,
        toolchain_file: Path | None = None,
        tag: str | None = None,
        snapshot: bool = False,
        generator: str = DEFAULT_GENERATOR,
        cmake_options: tuple[str, ...] = (),
        make_options: tuple[str, ...] = (),
        package_generators: str | tuple[str, ...] = DEFAULT_PACKAGE_GENERATORS,
        toolchain: str | None = None,
        arch: str = DEFAULT_ARCH,
        sign: bool = False,
        sign_key: Path | None = None,
        timestamp_url: str | None = None,
        gpg_key: str | None = None,
        extra_path: Path | None = None,
    ) -> Result[BuildParams, ReleaseError]:
        v = parse_version(version)
        if isinstance(v, Err):
            return v
        src = _source_dir(source_dir)
        if isinstance(src, Err):
            return src

        resolved_toolchain_file: Path | None = None
        if toolchain_file is not None:
            resolved_toolchain_file = toolchain_file.expanduser().resolve()
            if not resolved_toolchain_file.is_file():
                return Err(ToolchainFileNotFound(path=resolved_toolchain_file))

        out = output_dir if output_dir is not None else Path("release")
        if not out.is_absolute():
            out = src.value / out
        # Release builds empty the output directory first.
        resolved_out = out.resolve()
        if not snapshot and (resolved_out == src.value or resolved_out in src.value.parents):
            return Err(OutputDirContainsSource(path=out, source_dir=src.value))

        return Ok(
            cls(
                version=v.value,
                source_dir=src.value,
                output_dir=out,
                toolchain_file=resolved_toolchain_file,
                tag=tag or None,
                snapshot=snapshot,
                generator=generator,
                cmake_options=cmake_options,
                make_options=make_options,
                package_generators=_split_generators(package_generators),
                toolchain=toolchain or None,
                arch=arch,
                sign=sign,
                sign_key=_optional_path(sign_key),
                timestamp_url=timestamp_url,
                gpg_key=gpg_key or None,
                extra_path=extra_path,
            )
        )


@dataclass(frozen=True, slots=True)
class SignParams:
    """Sign existing artifacts matched by ``files`` (glob patterns)."""

    version: str
    source_dir: Path
    files: tuple[str, ...]
    sign_key: Path | None = None
    timestamp_url: str | None = None
    gpg_key: str | None = None
    toolchain: str | None = None
    arch: str = DEFAULT_ARCH
    extra_path: Path | None = None

    @classmethod
    def create(
        cls,
        *,
        version: str,
        source_dir: Path,
        files: tuple[str, ...],
        sign_key: Path | None = None,
        timestamp_url: str | None = None,
        gpg_key: str | None = None,
        toolchain: str | None = None,
        arch: str = DEFAULT_ARCH,
        extra_path: Path | None = None,
    ) -> Result[SignParams, ReleaseError]:
        v = parse_version(version)
        if isinstance(v, Err):
            return v
        src = _source_dir(source_dir)
        if isinstance(src, Err):
            return src
        return Ok(
            cls(
                version=v.value,
                source_dir=src.value,
                files=files,
                sign_key=_optional_path(sign_key),
                timestamp_url=timestamp_url,
                gpg_key=gpg_key or None,
                toolchain=toolchain or None,
                arch=arch,
                extra_path=extra_path,
            )
        )


RunParameters = MergeParams | BuildParams | SignParams
