"""Artifact signing.

Two independent kinds of signature are produced:

- binary signatures embedded by ``signtool`` into executables, libraries and
  installers (``.exe``, ``.dll``, ``.msi``);
- detached, ASCII-armored GPG signatures (``<file>.sig``) plus a SHA-256
  digest file (``<file>.DIGEST``) for archives, installers and disk images
  (``.msi``, ``.zip``, ``.dmg``).

A file can be in both groups and then receives both.

The digest file holds exactly ``<UPPERCASE HEX SHA-256> *<file name>`` with
no trailing newline; download pages and verification scripts parse it in
that form.
"""

from __future__ import annotations

import glob
import hashlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from reltool.core.result import Err, Ok, Result
from reltool.output.console import Style
from reltool.release.errors import FileOperationFailed, KeyFileNotFound, ReleaseError
from reltool.release.session import Session

__all__ = [
    "BINARY_SUFFIXES",
    "CachedSecret",
    "DETACHED_SUFFIXES",
    "FixedSecret",
    "SecretSource",
    "SignTarget",
    "classify",
    "digest_line",
    "expand_patterns",
    "sign_binaries",
    "sign_detached",
    "write_digest",
]

BINARY_SUFFIXES = frozenset({".exe", ".dll", ".msi"})
DETACHED_SUFFIXES = frozenset({".msi", ".zip", ".dmg"})

_HASH_CHUNK = 1024 * 1024


@dataclass(frozen=True, slots=True)
class SignTarget:
    """A file to sign and the signature kinds it receives."""

    path: Path
    binary: bool
    detached: bool

    @classmethod
    def of(cls, path: Path) -> SignTarget:
        suffix = path.suffix.lower()
        return cls(
            path=path,
            binary=suffix in BINARY_SUFFIXES,
            detached=suffix in DETACHED_SUFFIXES,
        )


def classify(paths: Iterable[Path]) -> tuple[list[Path], list[Path]]:
    """Split ``paths`` into (binary-signable, detachable-signable), order kept."""
    binary: list[Path] = []
    detached: list[Path] = []
    for target in (SignTarget.of(p) for p in paths):
        if target.binary:
            binary.append(target.path)
        if target.detached:
            detached.append(target.path)
    return binary, detached


def expand_patterns(base: Path, patterns: Sequence[str]) -> list[Path]:
    """Existing files matching ``patterns`` (relative to ``base``), deduplicated.

    Files are listed pattern by pattern; matches of one wildcard pattern are
    sorted by name.
    """
    seen: set[Path] = set()
    out: list[Path] = []
    for pattern in patterns:
        expanded = Path(pattern).expanduser()
        full = expanded if expanded.is_absolute() else base / expanded
        if glob.has_magic(str(expanded)):
            root = Path(expanded.anchor) if expanded.is_absolute() else base
            found = glob.glob(str(expanded.relative_to(root)), root_dir=root)
            matches = sorted(root / m for m in found)
        else:
            matches = [full]
        for match in matches:
            resolved = match.resolve()
            if resolved.is_file() and resolved not in seen:
                seen.add(resolved)
                out.append(resolved)
    return out


class SecretSource(Protocol):
    """Supplies the signing key password."""

    def secret(self, prompt: str) -> str:
        ...


@dataclass(frozen=True, slots=True)
class FixedSecret:
    """``SecretSource`` with a predetermined value."""

    value: str

    def secret(self, prompt: str) -> str:
        return self.value


class CachedSecret:
    """Asks the wrapped source once and repeats the answer afterwards."""

    def __init__(self, source: SecretSource) -> None:
        self._source = source
        self._value: str | None = None

    def secret(self, prompt: str) -> str:
        if self._value is None:
            self._value = self._source.secret(prompt)
        return self._value


def sign_binaries(
    session: Session,
    files: Sequence[Path],
    *,
    key: Path | None,
    timestamp_url: str,
    description: str,
    secrets: SecretSource,
) -> Result[None, ReleaseError]:
    """Embed signatures with ``signtool`` using a PKCS#12 key file.

    Asks for the key password once. The signtool command line carries the
    password, so it is always echoed masked.
    """
    if not files:
        return Ok(None)
    if key is None or not key.is_file():
        return Err(KeyFileNotFound(path=key if key is not None else Path()))

    session.console.print(f"Signing files using {key}", Style.INFO)
    password = secrets.secret(f"Password for {key.name}")

    for file in files:
        result = session.run(
            "signtool",
            "sign",
            "/f",
            str(key),
            "/p",
            password,
            "/d",
            description,
            "/td",
            "sha256",
            "/fd",
            "sha256",
            "/tr",
            timestamp_url,
            str(file),
            mask_args=True,
        )
        if isinstance(result, Err):
            return result
    return Ok(None)


def digest_line(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
            h.update(chunk)
    return f"{h.hexdigest().upper()} *{path.name}"


def write_digest(path: Path) -> Result[Path, FileOperationFailed]:
    """Write ``<path>.DIGEST`` next to ``path`` and return its location."""
    digest = path.with_name(f"{path.name}.DIGEST")
    try:
        digest.write_bytes(digest_line(path).encode("utf-8"))
    except OSError as e:
        return Err(FileOperationFailed(path=digest, message=f"failed to write {digest.name}: {e}"))
    return Ok(digest)


def sign_detached(
    session: Session,
    files: Sequence[Path],
    *,
    gpg_key: str | None,
) -> Result[None, ReleaseError]:
    """Create ``.sig`` and ``.DIGEST`` files for each of ``files``."""
    if not files:
        return Ok(None)

    session.console.print("Signing and hashing files using GPG", Style.INFO)
    for file in files:
        sig = file.with_name(f"{file.name}.sig")
        try:
            sig.unlink(missing_ok=True)
        except OSError as e:
            return Err(FileOperationFailed(path=sig, message=f"failed to remove {sig.name}: {e}"))

        args = ["--output", str(sig), "--armor"]
        if gpg_key:
            args += ["--local-user", gpg_key]
        args += ["--detach-sig", str(file)]

        result = session.run("gpg", *args)
        if isinstance(result, Err):
            return result
        digest = write_digest(file)
        if isinstance(digest, Err):
            return digest
    return Ok(None)
