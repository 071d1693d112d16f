"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reltool.core.errors import ErrorCode
from reltool.output.console import Style
from reltool.release.errors import (
    ChangelogSectionMissing,
    CommandFailed,
    FileOperationFailed,
    InvalidSelection,
    InvalidSourceBranch,
    InvalidVersionFormat,
    KeyFileNotFound,
    MissingDependency,
    NoToolchainFound,
    OutputDirContainsSource,
    ReleaseError,
    SourceDirNotFound,
    ToolchainFileNotFound,
    VersionNotUpdated,
    WorkingTreeDirty,
)

if TYPE_CHECKING:
    from reltool.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print release error to console with appropriate formatting."""
    match error:
        case InvalidVersionFormat(version=version):
            console.error(f"Invalid version format: {version}")
            console.print("hint: use MAJOR.MINOR.PATCH, e.g. 2.7.4", Style.DIM)
        case VersionNotUpdated(file=file):
            console.error(f"Version not updated in {file}")
        case WorkingTreeDirty(path=path):
            console.error(f"Working tree is not clean: {path}")
            console.print("hint: commit or stash your changes first", Style.DIM)
        case MissingDependency(tool=tool):
            console.error(f"{tool}: missing")
            console.print("hint: install it or pass --extra-path", Style.DIM)
        case NoToolchainFound(hint=hint):
            console.error("No build toolchain found")
            console.print(f"hint: {hint}", Style.DIM)
        case InvalidSelection(answer=answer, count=count):
            console.error(f"Invalid selection: '{answer}' (expected 1-{count})")
        case CommandFailed(detail=detail):
            console.error(str(error))
            if detail:
                console.print(detail, Style.DIM)
        case KeyFileNotFound(path=path):
            console.error(f"Signing key file not found: {path}")
            console.print("hint: pass --sign-key <file.pfx>", Style.DIM)
        case InvalidSourceBranch(branch=branch):
            console.error(f"Source branch must be 'develop' or 'release/*', got '{branch}'")
        case ToolchainFileNotFound(path=path):
            console.error(f"Toolchain file not found: {path}")
        case ChangelogSectionMissing(version=version, file=file):
            console.error(f"No section for {version} in {file}")
        case SourceDirNotFound(path=path):
            console.error(f"Source directory not found: {path}")
        case OutputDirContainsSource(path=path, source_dir=source_dir):
            console.error(f"Output directory {path} contains the source tree {source_dir}")
            console.print("hint: pass an --output-dir outside the sources", Style.DIM)
        case FileOperationFailed(path=path, message=message):
            console.error(message)
            console.print(f"hint: {path}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error:
        case (
            InvalidVersionFormat()
            | InvalidSelection()
            | InvalidSourceBranch()
            | ToolchainFileNotFound()
            | SourceDirNotFound()
            | OutputDirContainsSource()
        ):
            return int(ErrorCode.USER_ERROR)
        case MissingDependency() | NoToolchainFound() | KeyFileNotFound():
            return int(ErrorCode.ENV_ERROR)
        case CommandFailed():
            return int(ErrorCode.BUILD_ERROR)
        case WorkingTreeDirty() | VersionNotUpdated() | ChangelogSectionMissing():
            return int(ErrorCode.REPO_ERROR)
        case FileOperationFailed():
            return int(ErrorCode.IO_ERROR)
