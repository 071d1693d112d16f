"""Release version strings.

A release version is exactly ``MAJOR.MINOR.PATCH``. Build types are derived
from it: snapshots are versioned ``<version>-snapshot``, and a tag ending in
``-beta<N>`` builds as a pre-release.
"""

from __future__ import annotations

import re
from typing import Literal

from reltool.core.result import Err, Ok, Result
from reltool.release.errors import InvalidVersionFormat

__all__ = ["BuildType", "build_type", "parse_version", "release_name"]

_VERSION_RE = re.compile(r"\d+\.\d+\.\d+", re.ASCII)
_PRERELEASE_RE = re.compile(r"-beta\d+$", re.ASCII)

BuildType = Literal["Release", "PreRelease", "Snapshot"]


def parse_version(version: str) -> Result[str, InvalidVersionFormat]:
    """Accept only ``MAJOR.MINOR.PATCH`` with ASCII digits."""
    if _VERSION_RE.fullmatch(version) is None:
        return Err(InvalidVersionFormat(version=version))
    return Ok(version)


def build_type(version: str, *, snapshot: bool) -> BuildType:
    if snapshot:
        return "Snapshot"
    if _PRERELEASE_RE.search(version):
        return "PreRelease"
    return "Release"


def release_name(version: str, *, snapshot: bool) -> str:
    return f"{version}-snapshot" if snapshot else version
