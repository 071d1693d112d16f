"""Executable search path handling.

Release runs may prepend extra directories (``--extra-path``) and toolchain
directories to ``PATH``. Lookups are done against the session environment,
never against the interpreter's own ``os.environ``.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from pathlib import Path

__all__ = ["find_program", "prepend_path", "search_path"]


def search_path(env: Mapping[str, str] | None) -> str | None:
    if env is None:
        return None
    # Windows environments may spell it "Path".
    for key in ("PATH", "Path"):
        if key in env:
            return env[key]
    return ""


def find_program(name: str, env: Mapping[str, str] | None = None) -> Path | None:
    """Resolve ``name`` on the environment's ``PATH``.

    Returns None if the program cannot be found.
    """
    found = shutil.which(name, path=search_path(env))
    return Path(found) if found else None


def prepend_path(env: Mapping[str, str], *dirs: Path) -> dict[str, str]:
    """Return a copy of ``env`` with ``dirs`` placed first on ``PATH``."""
    out = dict(env)
    key = "Path" if "Path" in out and "PATH" not in out else "PATH"
    current = out.get(key, "")
    parts = [str(d) for d in dirs]
    if current:
        parts.append(current)
    out[key] = os.pathsep.join(parts)
    return out
