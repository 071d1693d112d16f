"""Release notes from the project changelog."""

from __future__ import annotations

import re
from pathlib import Path

from reltool.core.result import Err, Ok, Result
from reltool.release.errors import ChangelogSectionMissing

__all__ = ["extract_section", "read_release_notes"]


def extract_section(text: str, version: str) -> str | None:
    """Body of the ``## <version>`` section of a changelog.

    The body runs from the line after the header up to the next ``## ``
    header or the end of the document, line endings included. Returns None
    if there is no header for ``version``.
    """
    header = re.compile(rf"^## {re.escape(version)}(\s|$)")
    body: list[str] = []
    inside = False
    for line in text.splitlines(keepends=True):
        if inside:
            if line.startswith("## "):
                break
            body.append(line)
        elif header.match(line):
            inside = True
    if not inside:
        return None
    return "".join(body)


def read_release_notes(path: Path, version: str) -> Result[str, ChangelogSectionMissing]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return Err(ChangelogSectionMissing(version=version, file=path.name))
    section = extract_section(text, version)
    if section is None:
        return Err(ChangelogSectionMissing(version=version, file=path.name))
    return Ok(section)
