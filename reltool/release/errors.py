"""Error types returned by release operations.

Each failure is a frozen dataclass; ``ReleaseError`` is their closed union.
``reltool.output.errors`` renders them and maps them to exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from reltool.platform.process import CommandFailed


@dataclass(frozen=True, slots=True)
class InvalidVersionFormat:
    version: str


@dataclass(frozen=True, slots=True)
class VersionNotUpdated:
    file: str


@dataclass(frozen=True, slots=True)
class WorkingTreeDirty:
    path: Path


@dataclass(frozen=True, slots=True)
class MissingDependency:
    tool: str


@dataclass(frozen=True, slots=True)
class NoToolchainFound:
    hint: str = "Install a build toolchain or declare one under [[toolchains]] in reltool.toml"


@dataclass(frozen=True, slots=True)
class InvalidSelection:
    answer: str
    count: int


@dataclass(frozen=True, slots=True)
class KeyFileNotFound:
    path: Path


@dataclass(frozen=True, slots=True)
class InvalidSourceBranch:
    branch: str


@dataclass(frozen=True, slots=True)
class ToolchainFileNotFound:
    path: Path


@dataclass(frozen=True, slots=True)
class ChangelogSectionMissing:
    version: str
    file: str


@dataclass(frozen=True, slots=True)
class SourceDirNotFound:
    path: Path


@dataclass(frozen=True, slots=True)
class OutputDirContainsSource:
    path: Path
    source_dir: Path


@dataclass(frozen=True, slots=True)
class FileOperationFailed:
    path: Path
    message: str


ReleaseError = (
    InvalidVersionFormat
    | VersionNotUpdated
    | WorkingTreeDirty
    | MissingDependency
    | NoToolchainFound
    | InvalidSelection
    | CommandFailed
    | KeyFileNotFound
    | InvalidSourceBranch
    | ToolchainFileNotFound
    | ChangelogSectionMissing
    | SourceDirNotFound
    | OutputDirContainsSource
    | FileOperationFailed
)

__all__ = [
    "ChangelogSectionMissing",
    "CommandFailed",
    "FileOperationFailed",
    "InvalidSelection",
    "InvalidSourceBranch",
    "InvalidVersionFormat",
    "KeyFileNotFound",
    "MissingDependency",
    "NoToolchainFound",
    "OutputDirContainsSource",
    "ReleaseError",
    "SourceDirNotFound",
    "ToolchainFileNotFound",
    "VersionNotUpdated",
    "WorkingTreeDirty",
]
