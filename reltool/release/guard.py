"""Working-state restoration around a release pipeline.

Usage:
    opened = RecoveryGuard.open(session)
    if isinstance(opened, Err):
        return opened
    with opened.value as guard:
        return guard.track(run_steps(steps, session.console))

When the block raises, or ``track`` sees an ``Err``, the guard checks the
recorded branch back out and resets the session directory before the
failure leaves the block. Restoration problems are reported as warnings;
the original failure is always the one that propagates. Commits already
made (e.g. a translation update) are not rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import TypeVar

from reltool.core.result import Err, Ok, Result
from reltool.release.errors import ReleaseError
from reltool.release.session import Session

__all__ = ["RecoveryGuard", "RestorePoint"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RestorePoint:
    """Where the repository and session were before the run.

    Attributes:
        ref: Branch name, or commit id when HEAD was detached.
        cwd: Session directory at the time the guard opened.
    """

    ref: str
    cwd: Path


class RecoveryGuard:
    """Scoped restore of branch and directory.

    Args:
        always: Restore on success too (build runs check out a tag).
    """

    def __init__(self, session: Session, point: RestorePoint, *, always: bool = False) -> None:
        self._session = session
        self._point = point
        self._always = always
        self._failed = False
        self._restored = False

    @classmethod
    def open(cls, session: Session, *, always: bool = False) -> Result[RecoveryGuard, ReleaseError]:
        """Record the restore point; nothing has been changed yet."""
        ref = session.repo.current_ref()
        if isinstance(ref, Err):
            return ref
        return Ok(cls(session, RestorePoint(ref=ref.value, cwd=session.cwd), always=always))

    @property
    def point(self) -> RestorePoint:
        return self._point

    @property
    def restored(self) -> bool:
        return self._restored

    def __enter__(self) -> RecoveryGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc_type is not None or self._failed:
            self._session.console.warning("Restoring original state...")
            self.restore()
        elif self._always:
            self.restore()
        return False

    def track(self, result: Result[T, ReleaseError]) -> Result[T, ReleaseError]:
        """Pass ``result`` through, remembering whether it failed."""
        if isinstance(result, Err):
            self._failed = True
        return result

    def restore(self) -> None:
        """Check out the recorded ref, then reset the directory. Runs once."""
        if self._restored:
            return
        self._restored = True

        checkout = self._session.repo.checkout(self._point.ref, quiet=True)
        if isinstance(checkout, Err):
            self._session.console.warning(
                f"could not check out '{self._point.ref}' again: {checkout.error}"
            )
        self._session.chdir(self._point.cwd)
