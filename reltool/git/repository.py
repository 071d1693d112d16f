"""Git repository abstraction.

All git calls go through the session's ``CommandRunner``: queries via
``capture`` (silent), mutations via ``run`` (echoed and streamed). Every
method that can fail returns a ``Result``.

Usage:
    repo = Repository(root, runner)

    match repo.current_ref():
        case Ok(ref):
            print(f"On {ref}")
        case Err(e):
            print(f"git failed: {e}")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from reltool.core.result import Err, Ok, Result
from reltool.platform.process import CommandFailed, CommandInvocation, CommandRunner

__all__ = ["Repository"]


def _message_args(messages: Sequence[str]) -> list[str]:
    args: list[str] = []
    for message in messages:
        args += ["-m", message]
    return args


class Repository:
    """Git operations on the repository rooted at ``path``.

    Attributes:
        path: Repository root; every git command runs there.
    """

    def __init__(
        self,
        path: Path,
        runner: CommandRunner,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self._runner = runner
        self._env = env

    # -- queries --------------------------------------------------------------

    def current_branch(self) -> Result[str | None, CommandFailed]:
        """Current branch name, or None on a detached HEAD."""
        result = self._capture(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return result
        branch = result.value.strip()
        return Ok(None if branch in ("", "HEAD") else branch)

    def current_ref(self) -> Result[str, CommandFailed]:
        """Something ``checkout`` can return to: the branch, else the commit."""
        branch = self.current_branch()
        if isinstance(branch, Err):
            return branch
        if branch.value is not None:
            return Ok(branch.value)

        sha = self._capture(["rev-parse", "HEAD"])
        if isinstance(sha, Err):
            return sha
        return Ok(sha.value.strip())

    def is_clean(self) -> bool:
        """True if tracked files match HEAD.

        Uses ``git diff-index --quiet HEAD --``; any failure counts as dirty.
        """
        return isinstance(self._capture(["diff-index", "--quiet", "HEAD", "--"]), Ok)

    def has_changes(self, *paths: str) -> Result[bool, CommandFailed]:
        """True if ``git status --porcelain`` reports anything.

        With ``paths``, only changes under those paths count.
        """
        args = ["status", "--porcelain"]
        if paths:
            args += ["--", *paths]
        result = self._capture(args)
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip() != "")

    # -- mutations ------------------------------------------------------------

    def checkout(self, ref: str, *, quiet: bool = False) -> Result[None, CommandFailed]:
        return self._run(["checkout", ref], quiet=quiet)

    def add(self, *paths: str) -> Result[None, CommandFailed]:
        return self._run(["add", "-A", *paths])

    def commit(self, message: str) -> Result[None, CommandFailed]:
        return self._run(["commit", "-m", message])

    def merge(
        self, branch: str, *, messages: Sequence[str], sign: bool = True
    ) -> Result[None, CommandFailed]:
        """Merge ``branch`` into the current branch with a merge commit."""
        args = ["merge", branch, "--no-ff", *_message_args(messages)]
        if sign:
            args.append("-S")
        return self._run(args)

    def tag(
        self, name: str, *, messages: Sequence[str], sign: bool = True
    ) -> Result[None, CommandFailed]:
        """Create an annotated (and by default GPG-signed) tag."""
        args = ["tag", "-a", name, *_message_args(messages)]
        if sign:
            args.append("-s")
        return self._run(args)

    def _run(self, args: list[str], *, quiet: bool = False) -> Result[None, CommandFailed]:
        invocation = CommandInvocation.of("git", *args, quiet=quiet)
        return self._runner.run(invocation, cwd=self.path, env=self._env)

    def _capture(self, args: list[str]) -> Result[str, CommandFailed]:
        invocation = CommandInvocation.of("git", *args)
        return self._runner.capture(invocation, cwd=self.path, env=self._env)
