"""Build toolchain discovery, selection and activation.

Candidates come from the Visual Studio installer's ``vswhere`` (Windows)
followed by any ``[[toolchains]]`` declared in ``reltool.toml``, in that
order. Selection is deterministic:

1. no candidates: ``NoToolchainFound``;
2. a name was given: the first candidate with exactly that name, or the
   first candidate overall when none matches (a warning is printed);
3. a single candidate: that one, without asking;
4. several: a numbered list is shown and a ``SelectionSource`` answers
   with a 1-based index; anything else is ``InvalidSelection``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, cast

from reltool.core.result import Err, Ok, Result
from reltool.output.console import ConsoleProtocol, Style
from reltool.platform.detection import is_windows
from reltool.release.errors import InvalidSelection, NoToolchainFound, ReleaseError
from reltool.release.session import Session

__all__ = [
    "FixedSelection",
    "SelectionSource",
    "ToolchainCandidate",
    "activate",
    "discover",
    "parse_vswhere",
    "resolve_toolchain",
    "select",
]


@dataclass(frozen=True, slots=True)
class ToolchainCandidate:
    """An installed build environment.

    Attributes:
        name: Display name used for ``--toolchain`` matching.
        path: Installation root.
        version: Installation version, informational only.
    """

    name: str
    path: Path
    version: str = ""


class SelectionSource(Protocol):
    """Answers the "which toolchain?" question."""

    def choose(self, prompt: str) -> str:
        """Return the raw answer (expected to be a 1-based index)."""
        ...


@dataclass(frozen=True, slots=True)
class FixedSelection:
    """``SelectionSource`` with a predetermined answer."""

    answer: str

    def choose(self, prompt: str) -> str:
        return self.answer


# -----------------------------------------------------------------------------
# Discovery
# -----------------------------------------------------------------------------


def _vswhere_path(env: dict[str, str]) -> Path:
    program_files = (
        env.get("ProgramFiles(x86)")
        or env.get("PROGRAMFILES(X86)")
        or r"C:\Program Files (x86)"
    )
    return Path(program_files) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"


def parse_vswhere(output: str) -> list[ToolchainCandidate]:
    """Candidates from ``vswhere -format json`` output, in listed order."""
    try:
        data: object = json.loads(output or "[]")
    except json.JSONDecodeError:
        return []
    if not isinstance(data, list):
        return []

    out: list[ToolchainCandidate] = []
    for item in cast(list[object], data):
        if not isinstance(item, dict):
            continue
        entry = cast(dict[str, object], item)
        name = entry.get("displayName")
        path = entry.get("installationPath")
        version = entry.get("installationVersion")
        if not isinstance(name, str) or not isinstance(path, str):
            continue
        out.append(
            ToolchainCandidate(
                name=name,
                path=Path(path),
                version=version if isinstance(version, str) else "",
            )
        )
    return out


def discover(session: Session) -> list[ToolchainCandidate]:
    """All toolchains visible to this session, order-stable."""
    candidates: list[ToolchainCandidate] = []

    if is_windows():
        vswhere = _vswhere_path(session.env)
        if vswhere.exists():
            result = session.capture(
                str(vswhere), "-format", "json", "-prerelease", "-products", "*"
            )
            if isinstance(result, Ok):
                candidates += parse_vswhere(result.value)

    for entry in session.config.toolchains:
        candidates.append(ToolchainCandidate(name=entry.name, path=Path(entry.path).expanduser()))

    return candidates


# -----------------------------------------------------------------------------
# Selection
# -----------------------------------------------------------------------------


def select(
    candidates: Sequence[ToolchainCandidate],
    *,
    name: str | None,
    selection: SelectionSource,
    console: ConsoleProtocol,
) -> Result[ToolchainCandidate, ReleaseError]:
    if not candidates:
        return Err(NoToolchainFound())

    if name:
        for candidate in candidates:
            if candidate.name == name:
                return Ok(candidate)
        console.warning(f"toolchain '{name}' not found, using '{candidates[0].name}'")
        return Ok(candidates[0])

    if len(candidates) == 1:
        return Ok(candidates[0])

    console.print("Found multiple toolchains:", Style.BOLD)
    for i, candidate in enumerate(candidates, start=1):
        detail = f" ({candidate.version})" if candidate.version else ""
        console.print(f"  {i}: {candidate.name}{detail} - {candidate.path}")

    answer = selection.choose(f"Select toolchain [1-{len(candidates)}]").strip()
    try:
        index = int(answer)
    except ValueError:
        return Err(InvalidSelection(answer=answer, count=len(candidates)))
    if not 1 <= index <= len(candidates):
        return Err(InvalidSelection(answer=answer, count=len(candidates)))
    return Ok(candidates[index - 1])


# -----------------------------------------------------------------------------
# Activation
# -----------------------------------------------------------------------------


def _parse_set_output(output: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if not sep or not key or key.startswith(("=", " ")):
            continue
        values[key.upper()] = value
    return values


def activate(
    session: Session, candidate: ToolchainCandidate, *, arch: str
) -> Result[None, ReleaseError]:
    """Make ``candidate`` the session's compiler environment.

    On Windows the installation's ``vcvarsall.bat`` is run and the
    environment it leaves behind is copied into the session. Elsewhere the
    installation's ``bin`` directory is put first on ``PATH``.
    """
    if is_windows():
        vcvars = candidate.path / "VC" / "Auxiliary" / "Build" / "vcvarsall.bat"
        result = session.capture("cmd", "/c", "call", str(vcvars), arch, ">nul", "&&", "set")
        if isinstance(result, Err):
            return result
        session.update_env(_parse_set_output(result.value))
        return Ok(None)

    bin_dir = candidate.path / "bin"
    session.prepend_path(bin_dir if bin_dir.is_dir() else candidate.path)
    return Ok(None)


def resolve_toolchain(
    session: Session,
    *,
    name: str | None,
    selection: SelectionSource,
    arch: str,
) -> Result[ToolchainCandidate, ReleaseError]:
    """Discover, select and activate a toolchain in one step."""
    chosen = select(discover(session), name=name, selection=selection, console=session.console)
    if isinstance(chosen, Err):
        return chosen

    session.console.print(f"Using toolchain: {chosen.value.name} ({chosen.value.path})", Style.DIM)
    activated = activate(session, chosen.value, arch=arch)
    if isinstance(activated, Err):
        return activated
    return chosen
