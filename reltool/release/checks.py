"""Preconditions checked before a pipeline touches anything.

Missing programs are detected up front so a run never stops halfway for a
tool that was never installed; version markers and working-tree state are
checked before any branch is switched.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from reltool.core.config import ProjectConfig
from reltool.core.result import Err, Ok, Result
from reltool.release.errors import (
    InvalidSourceBranch,
    MissingDependency,
    VersionNotUpdated,
    WorkingTreeDirty,
)
from reltool.release.session import Session

__all__ = [
    "check_clean_tree",
    "check_dependencies",
    "check_source_branch",
    "check_version_markers",
    "version_markers",
]

_DATE = r"\d{4}-\d{2}-\d{2}"
_SOURCE_BRANCH_RE = re.compile(r"release/.+|develop")


def check_dependencies(session: Session, tools: Iterable[str]) -> Result[None, MissingDependency]:
    """Every tool must resolve on the session ``PATH``."""
    for tool in tools:
        if session.which(tool) is None:
            return Err(MissingDependency(tool=tool))
    return Ok(None)


def version_markers(config: ProjectConfig, version: str) -> list[tuple[str, list[re.Pattern[str]]]]:
    """(file, patterns) pairs that must all match once ``version`` is prepared."""
    major, minor, patch = version.split(".")
    prefix = re.escape(config.cmake_prefix)
    v = re.escape(version)
    files = config.files
    return [
        (
            files.cmake,
            [
                re.compile(rf'set\(\s*{prefix}_VERSION_{part}\s+"{value}"\s*\)')
                for part, value in (("MAJOR", major), ("MINOR", minor), ("PATCH", patch))
            ],
        ),
        (files.changelog, [re.compile(rf"^## {v} \({_DATE}\)[ \t]*$", re.MULTILINE)]),
        (files.app_metadata, [re.compile(rf'<release version="{v}" date="{_DATE}"')]),
        (
            files.package_manifest,
            [re.compile(rf"^version:\s*['\"]?{v}['\"]?[ \t]*$", re.MULTILINE)],
        ),
    ]


def check_version_markers(
    source_dir: Path, config: ProjectConfig, version: str
) -> Result[None, VersionNotUpdated]:
    """Each version-bearing file must already mention ``version``."""
    for rel, patterns in version_markers(config, version):
        try:
            text = (source_dir / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return Err(VersionNotUpdated(file=rel))
        if not all(p.search(text) for p in patterns):
            return Err(VersionNotUpdated(file=rel))
    return Ok(None)


def check_clean_tree(session: Session) -> Result[None, WorkingTreeDirty]:
    if not session.repo.is_clean():
        return Err(WorkingTreeDirty(path=session.source_dir))
    return Ok(None)


def check_source_branch(branch: str) -> Result[str, InvalidSourceBranch]:
    """Only ``develop`` and ``release/*`` may be released."""
    if _SOURCE_BRANCH_RE.fullmatch(branch) is None:
        return Err(InvalidSourceBranch(branch=branch))
    return Ok(branch)
